from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class IntentAction(str, Enum):
    SWAP = "swap"
    TRANSFER = "transfer"
    BRIDGE = "bridge"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str
    content: Any = ""


class ExtractedParams(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    action: str = ""
    token1: str = ""
    token2: str = ""
    chain: str = ""
    amount: str = ""
    protocol: str = ""
    address: str = Field(..., min_length=1)
    dest_chain: str = ""
    destinationChain: str = ""
    destinationAddress: str = Field(..., min_length=1)


class TokenRef(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    symbol: str
    address: str
    decimals: int


class ContractCallStep(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    contractAddress: str
    entrypoint: str
    calldata: list[str]


class SwapTransferData(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    description: str = ""
    steps: list[ContractCallStep] = Field(default_factory=list)
    fromToken: TokenRef
    toToken: TokenRef
    fromAmount: str
    toAmount: str
    receiver: str
    amountToApprove: str | None = None
    gasCostUSD: str | None = None


class BridgeDetails(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    sourceNetwork: str
    destinationNetwork: str
    sourceToken: str
    destinationToken: str
    amount: float
    sourceAddress: str
    destinationAddress: str


class BridgeData(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    description: str = ""
    steps: list[ContractCallStep] = Field(default_factory=list)
    bridge: BridgeDetails


class ProtocolData(BaseModel):
    """Payload for deposit/withdraw into a protocol."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    description: str = ""
    steps: list[ContractCallStep] = Field(default_factory=list)
    protocol: str
    fromAmount: str
    toAmount: str
    receiver: str


IntentData = Union[SwapTransferData, BridgeData, ProtocolData]


class TransactionIntent(BaseModel):
    """
    Normalized transaction intent handed to the transaction processor.

    Built once per request and never mutated; ``kind`` goes over the wire
    as ``type``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    solver: str
    action: IntentAction
    kind: Literal["write"] = Field(default="write", alias="type")
    extractedParams: ExtractedParams
    data: IntentData

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ProcessedTransaction(BaseModel):
    model_config = ConfigDict(extra="allow")

    description: str | None = None
    transactions: list[Any] = Field(default_factory=list)
    fromToken: Any = None
    toToken: Any = None
    fromAmount: Any = None
    toAmount: Any = None
    receiver: str | None = None
    estimatedGas: Any = None
    solver: str | None = None
    protocol: str | None = None
    bridge: Any = None
    action: str | None = None
