from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.v1.transactions import router as transactions_router
from app.config import get_settings
from app.core.langsmith import configure_langsmith
from app.core.logging import configure_logging
from app.core.middleware import RequestContextMiddleware
from db.base import Base
from db.session import engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Import models to ensure they are registered with Base
    import db.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    configure_logging()
    configure_langsmith()

    app = FastAPI(title="Intent Resolver", version="0.1.0", lifespan=lifespan)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(transactions_router, prefix="/v1")

    @app.get("/healthz")
    async def healthz():
        s = get_settings()
        return {
            "ok": True,
            "llm_enabled": s.LLM_ENABLED,
            "llm_model": s.LLM_MODEL,
            "db_configured": bool(s.DATABASE_URL),
            "knowledge_base_configured": bool(s.knowledge_base_url and s.knowledge_base_api_key),
            "transaction_processor_configured": bool(s.transaction_processor_url),
        }

    return app


app = create_app()
