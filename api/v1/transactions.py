from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from api.deps import get_intent_extractor, get_knowledge_base_responder, get_transaction_processor
from api.schemas.transactions import (
    ErrorResponse,
    ProcessedTransactionData,
    QuestionAnswer,
    ResultItem,
    TransactionEnvelope,
    TransactionPromptRequest,
    TransactionPromptResponse,
    TransactionResult,
)
from app.config import get_settings
from app.intents.extractor import IntentExtractor
from app.services.knowledge_base import KnowledgeBaseResponder
from app.services.transaction_processor import TransactionProcessingError, TransactionProcessor
from app.services.transactions_service import PromptOutcome, resolve_prompt
from db.deps import get_db

router = APIRouter(prefix="/transactions", tags=["transactions"])
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _build_result(outcome: PromptOutcome, req: TransactionPromptRequest) -> TransactionPromptResponse:
    if not outcome.is_transaction:
        data = QuestionAnswer(answer=outcome.answer or "")
    else:
        processed = outcome.processed
        data = TransactionResult(
            description=processed.description,
            transaction=TransactionEnvelope(
                type=processed.action or outcome.intent.action.value,
                data=ProcessedTransactionData(
                    transactions=processed.transactions,
                    fromToken=processed.fromToken,
                    toToken=processed.toToken,
                    fromAmount=processed.fromAmount,
                    toAmount=processed.toAmount,
                    receiver=processed.receiver,
                    gasCostUSD=processed.estimatedGas,
                    solver=processed.solver,
                    protocol=processed.protocol,
                    bridge=processed.bridge,
                ),
            ),
        )
    return TransactionPromptResponse(result=[ResultItem(data=data, conversationHistory=req.messages)])


@router.post(
    "",
    response_model=TransactionPromptResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def transaction_prompt(
    req: TransactionPromptRequest,
    db: Session = Depends(get_db),
    extractor: IntentExtractor = Depends(get_intent_extractor),
    responder: KnowledgeBaseResponder = Depends(get_knowledge_base_responder),
    processor: TransactionProcessor = Depends(get_transaction_processor),
):
    if not req.prompt or not req.address:
        return _error(400, "Missing required parameters (prompt or address)")

    chain_id = req.chainId or get_settings().DEFAULT_CHAIN_ID
    try:
        outcome = resolve_prompt(
            db,
            prompt=req.prompt,
            address=req.address,
            chain_id=chain_id,
            messages=req.messages,
            extractor=extractor,
            responder=responder,
            processor=processor,
        )
    except TransactionProcessingError as exc:
        logger.warning("transaction processing failed: %s", exc)
        return _error(400, str(exc))
    except Exception:
        logger.exception("transaction request failed")
        return _error(500, "Internal server error")

    return _build_result(outcome, req)
