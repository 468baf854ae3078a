from __future__ import annotations

import logging
import uuid
from typing import Any, Sequence

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.context import set_intent_action
from app.intents.contracts import ChatMessage, IntentAction, ProcessedTransaction, TransactionIntent
from app.intents.extractor import IntentExtractor
from app.services.knowledge_base import KnowledgeBaseResponder
from app.services.transaction_processor import TransactionProcessor
from db.models.chat import ChatType
from db.models.transaction import TxType
from db.repos.chats_repo import create_chat
from db.repos.messages_repo import store_message
from db.repos.transactions_repo import store_transaction
from db.repos.users_repo import get_or_create_user

logger = logging.getLogger(__name__)

# the wallet, not the protocol, receives deposit/withdraw proceeds
_RECEIVER_IS_WALLET = {IntentAction.DEPOSIT, IntentAction.WITHDRAW}


class PromptOutcome(BaseModel):
    chat_id: uuid.UUID
    answer: str | None = None
    intent: TransactionIntent | None = None
    processed: ProcessedTransaction | None = None
    transaction_id: uuid.UUID | None = None

    @property
    def is_transaction(self) -> bool:
        return self.intent is not None


def resolve_prompt(
    db: Session,
    *,
    prompt: str,
    address: str,
    chain_id: str,
    messages: Sequence[ChatMessage],
    extractor: IntentExtractor,
    responder: KnowledgeBaseResponder,
    processor: TransactionProcessor,
) -> PromptOutcome:
    """
    Resolve one user prompt: a processed transaction when the prompt is a
    transaction intent, a knowledge-base answer otherwise.

    Raises TransactionProcessingError when the processor rejects the intent.
    """
    user = get_or_create_user(db, address=address)
    chat = create_chat(db, user_id=user.id, chat_type=ChatType.TRANSACTION)

    intent = extractor.extract(prompt, address, chain_id, messages)
    set_intent_action(intent.action.value if intent is not None else "question")

    store_message(db, chat_id=chat.id, user_id=user.id, content=[{"role": "user", "content": prompt}])

    if intent is None:
        answer = responder.answer(prompt, messages)
        store_message(
            db,
            chat_id=chat.id,
            user_id=user.id,
            content=[{"role": "assistant", "content": answer}],
        )
        return PromptOutcome(chat_id=chat.id, answer=answer)

    processed = processor.process(intent)
    if intent.action in _RECEIVER_IS_WALLET:
        processed = processed.model_copy(update={"receiver": address})

    metadata: dict[str, Any] = {
        **processed.model_dump(mode="json"),
        "chainId": chain_id,
        "originalIntent": intent.to_wire(),
    }
    transaction = store_transaction(db, user_id=user.id, tx_type=TxType(intent.action.value), metadata=metadata)

    store_message(
        db,
        chat_id=chat.id,
        user_id=user.id,
        content=[
            {
                "role": "assistant",
                "content": processed.model_dump_json(),
                "transactionId": str(transaction.id),
            }
        ],
    )
    logger.info("transaction stored id=%s action=%s", transaction.id, intent.action.value)

    return PromptOutcome(
        chat_id=chat.id,
        intent=intent,
        processed=processed,
        transaction_id=transaction.id,
    )
