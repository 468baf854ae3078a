from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, Mapping

from pydantic import ValidationError

from app.intents.contracts import (
    BridgeData,
    BridgeDetails,
    ChatMessage,
    ContractCallStep,
    ExtractedParams,
    IntentData,
    ProtocolData,
    SwapTransferData,
    TokenRef,
    TransactionIntent,
)
from llm.client import GenerationService, parse_json_object
from llm.prompts import build_transaction_intent_prompt

logger = logging.getLogger(__name__)

DEFAULT_SOLVER = "OpenAI-Intent-Recognizer"

# Every token is treated as 18-decimals when scaling calldata amounts; real
# token metadata is not available at this layer.
ASSUMED_TOKEN_DECIMALS = 18
# fromToken/toToken carry a placeholder; the processor resolves real decimals.
PLACEHOLDER_TOKEN_DECIMALS = 1
# len(str(2**256 - 1))
MAX_WEI_DIGITS = 78

_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class IntentExtractionError(Exception):
    pass


class MalformedIntentError(IntentExtractionError):
    pass


class UnsupportedActionError(IntentExtractionError):
    pass


class InvalidAmountError(IntentExtractionError):
    pass


def _text(value: Any, default: str = "") -> str:
    if not value:
        return default
    if isinstance(value, str):
        return value
    return str(value)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return _text(value)


def format_conversation_history(history: Iterable[ChatMessage | Mapping[str, Any]]) -> str:
    lines = []
    for msg in history or ():
        if isinstance(msg, Mapping):
            role, content = msg.get("role"), msg.get("content")
        else:
            role, content = msg.role, msg.content
        lines.append(f"{role}: {content}")
    return "\n".join(lines)


def to_wei(amount: Any, decimals: int = ASSUMED_TOKEN_DECIMALS) -> int:
    """
    floor(amount * 10**decimals) as an exact integer.

    Works on the decimal digits directly so large or very precise amounts
    never pass through a float. Results as wide as a u256 or wider are rejected
    before any scaling happens.
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as exc:
        raise InvalidAmountError(f"amount is not numeric: {amount!r}") from exc
    if not value.is_finite():
        raise InvalidAmountError(f"amount is not finite: {amount!r}")
    if value.is_zero():
        return 0
    if value.adjusted() + decimals >= MAX_WEI_DIGITS:
        raise InvalidAmountError(f"amount out of range: {amount!r}")

    sign, digits, exponent = value.as_tuple()
    shift = exponent + decimals
    if shift >= 0:
        wei = int("".join(map(str, digits))) * 10**shift
        return -wei if sign else wei

    # digits left of the point once scaled; the rest is below one wei
    cut = max(len(digits) + shift, 0)
    whole = int("".join(map(str, digits[:cut])) or "0")
    if sign:
        return -(whole + (1 if any(digits[cut:]) else 0))
    return whole


def parse_float_prefix(value: Any, default: float = 0.0) -> float:
    """
    Lenient float parse: reads the leading numeric part ("2.5 ETH" -> 2.5),
    falling back to ``default`` when there is none.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    match = _FLOAT_PREFIX.match(str(value or "").strip())
    if not match:
        return default
    return float(match.group(0))


def build_extracted_params(raw: Mapping[str, Any], *, address: str) -> ExtractedParams:
    dest_chain = _text(raw.get("dest_chain")) or _text(raw.get("destinationChain"))
    return ExtractedParams(
        action=_text(raw.get("action")),
        token1=_text(raw.get("token1")),
        token2=_text(raw.get("token2")),
        chain=_text(raw.get("chain")),
        amount=_text(raw.get("amount")),
        protocol=_text(raw.get("protocol")),
        address=_text(raw.get("address"), address),
        dest_chain=dest_chain,
        destinationChain=dest_chain,
        destinationAddress=_text(raw.get("destinationAddress"), address),
    )


def _supplied(value: Any) -> bool:
    """
    A step field counts as supplied when it is a non-blank string or a list.
    """
    if isinstance(value, str):
        return bool(value.strip())
    return isinstance(value, list)


def _contract_call(raw_params: Mapping[str, Any], params: ExtractedParams, address: str) -> ContractCallStep | None:
    transaction = raw_params.get("transaction")
    if not isinstance(transaction, Mapping):
        return None
    if not all(_supplied(transaction.get(key)) for key in ("contractAddress", "entrypoint", "calldata")):
        return None

    # model-supplied calldata is replaced: recipient, u256 low, u256 high
    recipient = _text(raw_params.get("destinationAddress")) or _text(raw_params.get("address")) or address
    return ContractCallStep(
        contractAddress=_text(transaction["contractAddress"]),
        entrypoint=_text(transaction["entrypoint"]),
        calldata=[recipient, str(to_wei(params.amount)), "0"],
    )


def _swap_transfer_data(
    payload: Mapping[str, Any],
    raw_params: Mapping[str, Any],
    params: ExtractedParams,
    address: str,
) -> SwapTransferData:
    raw_data = payload.get("data")
    if not isinstance(raw_data, Mapping):
        raw_data = {}

    step = _contract_call(raw_params, params, address)
    token_address = _text(raw_params.get("address"))
    return SwapTransferData(
        description=_text(raw_data.get("description")),
        steps=[step] if step else [],
        fromToken=TokenRef(symbol=params.token1, address=token_address, decimals=PLACEHOLDER_TOKEN_DECIMALS),
        toToken=TokenRef(symbol=params.token2, address=token_address, decimals=PLACEHOLDER_TOKEN_DECIMALS),
        fromAmount=params.amount,
        toAmount=params.amount,
        receiver=params.address,
        amountToApprove=_optional_text(raw_data.get("amountToApprove")),
        gasCostUSD=_optional_text(raw_data.get("gasCostUSD")),
    )


def _bridge_data(
    payload: Mapping[str, Any],
    raw_params: Mapping[str, Any],
    params: ExtractedParams,
    address: str,
) -> BridgeData:
    return BridgeData(
        bridge=BridgeDetails(
            sourceNetwork=params.chain,
            destinationNetwork=params.dest_chain,
            sourceToken=params.token1,
            destinationToken=params.token2,
            amount=parse_float_prefix(params.amount or "0"),
            sourceAddress=address,
            destinationAddress=params.destinationAddress,
        )
    )


def _protocol_data(
    payload: Mapping[str, Any],
    raw_params: Mapping[str, Any],
    params: ExtractedParams,
    address: str,
) -> ProtocolData:
    return ProtocolData(
        protocol=params.protocol,
        fromAmount=params.amount,
        toAmount=params.amount,
        receiver=params.address,
    )


_DataBuilder = Callable[[Mapping[str, Any], Mapping[str, Any], ExtractedParams, str], IntentData]

_DATA_BUILDERS: Dict[str, _DataBuilder] = {
    "swap": _swap_transfer_data,
    "transfer": _swap_transfer_data,
    "bridge": _bridge_data,
    "deposit": _protocol_data,
    "withdraw": _protocol_data,
}


def build_transaction_intent(
    payload: Mapping[str, Any],
    *,
    address: str,
    default_solver: str = DEFAULT_SOLVER,
) -> TransactionIntent:
    """
    Turn a parsed model payload into a TransactionIntent.

    Raises IntentExtractionError (or pydantic's ValidationError) when the
    payload cannot be turned into a complete intent.
    """
    raw_params = payload.get("extractedParams")
    if not isinstance(raw_params, Mapping):
        raise MalformedIntentError("extractedParams missing or not an object")

    action = payload.get("action")
    builder = _DATA_BUILDERS.get(action) if isinstance(action, str) else None
    if builder is None:
        raise UnsupportedActionError(f"Unsupported action type: {action}")

    params = build_extracted_params(raw_params, address=address)
    data = builder(payload, raw_params, params, address)

    return TransactionIntent(
        solver=_text(payload.get("solver"), default_solver),
        action=action,
        extractedParams=params,
        data=data,
    )


class IntentExtractor:
    """
    Decides whether a prompt is a transaction intent and normalizes it.

    ``extract`` never raises: every failure is logged with its cause and
    reported as ``None``, the same answer as "not a transaction".
    """

    def __init__(self, generation_service: GenerationService, *, solver: str = DEFAULT_SOLVER) -> None:
        self.generation_service = generation_service
        self.solver = solver

    def extract(
        self,
        prompt: str,
        address: str,
        chain_id: str,
        history: Iterable[ChatMessage | Mapping[str, Any]] = (),
    ) -> TransactionIntent | None:
        try:
            request = build_transaction_intent_prompt(
                prompt=prompt,
                chain_id=chain_id,
                conversation_history=format_conversation_history(history),
            )
        except Exception:
            logger.exception("intent extraction failed: could not format prompt or history")
            return None

        try:
            raw_text = self.generation_service.complete(request)
        except Exception:
            logger.exception("intent extraction failed: generation service error")
            return None

        try:
            payload = parse_json_object(raw_text)
        except (ValueError, RecursionError) as exc:
            logger.warning("intent extraction failed: unparseable model output: %s", exc)
            return None

        if not payload.get("isTransactionIntent"):
            logger.info("prompt not recognized as a transaction intent")
            return None

        try:
            intent = build_transaction_intent(payload, address=address, default_solver=self.solver)
        except UnsupportedActionError as exc:
            logger.warning("intent extraction failed: %s", exc)
            return None
        except (IntentExtractionError, ValidationError) as exc:
            logger.warning("intent extraction failed: malformed intent: %s", exc)
            return None
        except Exception:
            logger.exception("intent extraction failed: unexpected error")
            return None

        logger.info("transaction intent extracted action=%s solver=%s", intent.action.value, intent.solver)
        return intent
