from __future__ import annotations

import logging
from typing import Protocol

import requests
from pydantic import ValidationError

from app.config import get_settings
from app.intents.contracts import ProcessedTransaction, TransactionIntent

logger = logging.getLogger(__name__)


class TransactionProcessingError(RuntimeError):
    pass


class TransactionProcessor(Protocol):
    def process(self, intent: TransactionIntent) -> ProcessedTransaction:
        ...


class HttpTransactionProcessor:
    """
    Forwards intents to the downstream processor service over HTTP.
    """

    def __init__(self, *, url: str, timeout_s: int = 30) -> None:
        self.url = url
        self.timeout_s = timeout_s

    def process(self, intent: TransactionIntent) -> ProcessedTransaction:
        if not self.url:
            raise TransactionProcessingError("TRANSACTION_PROCESSOR_URL is not set")

        logger.info("processing intent action=%s", intent.action.value)
        try:
            resp = requests.post(self.url, json=intent.to_wire(), timeout=self.timeout_s)
        except requests.RequestException as exc:
            raise TransactionProcessingError(f"transaction processor unreachable: {exc}") from exc

        if resp.status_code >= 400:
            detail = resp.text[:500]
            raise TransactionProcessingError(
                f"transaction processor rejected {intent.action.value}: {resp.status_code} {detail}"
            )

        try:
            return ProcessedTransaction.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise TransactionProcessingError(f"transaction processor returned invalid body: {exc}") from exc


def build_transaction_processor() -> HttpTransactionProcessor:
    settings = get_settings()
    return HttpTransactionProcessor(
        url=settings.transaction_processor_url,
        timeout_s=settings.transaction_processor_timeout_s,
    )
