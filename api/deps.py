from __future__ import annotations

from app.config import get_settings
from app.intents.extractor import IntentExtractor
from app.services.knowledge_base import KnowledgeBaseResponder, build_knowledge_base_client
from app.services.transaction_processor import TransactionProcessor, build_transaction_processor
from llm.client import build_llm_client


def get_intent_extractor() -> IntentExtractor:
    return IntentExtractor(build_llm_client())


def get_knowledge_base_responder() -> KnowledgeBaseResponder:
    settings = get_settings()
    llm = build_llm_client() if settings.LLM_ENABLED else None
    return KnowledgeBaseResponder(build_knowledge_base_client(), llm)


def get_transaction_processor() -> TransactionProcessor:
    return build_transaction_processor()
