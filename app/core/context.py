from __future__ import annotations

from contextvars import ContextVar
from typing import Optional

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
# "swap", "bridge", ... once a prompt is resolved; "question" for knowledge-base answers
intent_action_ctx: ContextVar[Optional[str]] = ContextVar("intent_action", default=None)


def set_request_id(request_id: Optional[str]) -> None:
    request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


def set_intent_action(action: Optional[str]) -> None:
    intent_action_ctx.set(action)


def get_intent_action() -> Optional[str]:
    return intent_action_ctx.get()
