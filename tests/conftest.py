import json
import os

import pytest
from fastapi.testclient import TestClient

# Set test database before any imports
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

from api.deps import get_intent_extractor, get_knowledge_base_responder, get_transaction_processor
from app.config import get_settings
from app.intents.contracts import ProcessedTransaction
from app.intents.extractor import IntentExtractor
from app.main import create_app
from app.services.knowledge_base import KnowledgeBaseResponder
from db.base import Base
from db.session import engine

WALLET = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"


class FakeGenerationService:
    """Returns canned completions and records every prompt it sees."""

    def __init__(self, response=None, *, error: Exception | None = None):
        if isinstance(response, dict):
            response = json.dumps(response)
        self.response = response
        self.error = error
        self.prompts: list[str] = []
        self.systems: list[str | None] = []

    def complete(self, prompt: str, *, system: str | None = None) -> str:
        self.prompts.append(prompt)
        self.systems.append(system)
        if self.error is not None:
            raise self.error
        return self.response


class FakeKnowledgeBaseClient:
    def __init__(self, answer: str = "Starknet is a validity rollup.", *, error: Exception | None = None):
        self.answer = answer
        self.error = error
        self.queries: list[str] = []

    def query(self, prompt: str) -> str:
        self.queries.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer


class FakeTransactionProcessor:
    def __init__(self, result: dict | None = None, *, error: Exception | None = None):
        self.result = result or {}
        self.error = error
        self.intents = []

    def process(self, intent):
        self.intents.append(intent)
        if self.error is not None:
            raise self.error
        return ProcessedTransaction.model_validate(self.result)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create all tables before tests run, drop after all tests complete."""
    # Import models to ensure they are registered with Base
    import db.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    """Clean tables between tests to ensure isolation."""
    yield
    from db.session import SessionLocal
    from db.models import Chat, Message, Transaction, User

    with SessionLocal() as db:
        db.query(Message).delete()
        db.query(Transaction).delete()
        db.query(Chat).delete()
        db.query(User).delete()
        db.commit()


@pytest.fixture(autouse=True)
def _configure_llm(monkeypatch):
    monkeypatch.setenv("LLM_ENABLED", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db():
    from db.session import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def wallet():
    return WALLET


@pytest.fixture
def fake_llm():
    return FakeGenerationService({"isTransactionIntent": False})


@pytest.fixture
def fake_kb():
    return FakeKnowledgeBaseClient()


@pytest.fixture
def fake_processor():
    return FakeTransactionProcessor()


@pytest.fixture
def client(fake_llm, fake_kb, fake_processor):
    app = create_app()
    app.dependency_overrides[get_intent_extractor] = lambda: IntentExtractor(fake_llm)
    app.dependency_overrides[get_knowledge_base_responder] = lambda: KnowledgeBaseResponder(fake_kb)
    app.dependency_overrides[get_transaction_processor] = lambda: fake_processor
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_llm():
    return FakeGenerationService


@pytest.fixture
def make_kb():
    return FakeKnowledgeBaseClient


@pytest.fixture
def make_processor():
    return FakeTransactionProcessor
