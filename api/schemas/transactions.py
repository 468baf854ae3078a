from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from app.intents.contracts import ChatMessage


class TransactionPromptRequest(BaseModel):
    # prompt/address are checked by the endpoint so a missing one is a 400, not a 422
    prompt: str | None = None
    address: str | None = None
    messages: list[ChatMessage] = Field(default_factory=list)
    chainId: str | None = None

    @field_validator("chainId", mode="before")
    @classmethod
    def _chain_id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class QuestionAnswer(BaseModel):
    type: Literal["question"] = "question"
    answer: str


class ProcessedTransactionData(BaseModel):
    transactions: list[Any] = Field(default_factory=list)
    fromToken: Any = None
    toToken: Any = None
    fromAmount: Any = None
    toAmount: Any = None
    receiver: str | None = None
    gasCostUSD: Any = None
    solver: str | None = None
    protocol: str | None = None
    bridge: Any = None


class TransactionEnvelope(BaseModel):
    type: str | None = None
    data: ProcessedTransactionData


class TransactionResult(BaseModel):
    description: str | None = None
    transaction: TransactionEnvelope


class ResultItem(BaseModel):
    data: TransactionResult | QuestionAnswer
    conversationHistory: list[ChatMessage] = Field(default_factory=list)


class TransactionPromptResponse(BaseModel):
    result: list[ResultItem]


class ErrorResponse(BaseModel):
    error: str
