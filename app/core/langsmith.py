from __future__ import annotations

import os
from typing import Any, Dict

from app.config import get_settings
from app.core.context import get_intent_action, get_request_id

SERVICE_TAG = "intent-resolver"


def configure_langsmith() -> bool:
    """
    Export LangSmith tracing env vars when tracing is switched on.

    Returns whether tracing was enabled.
    """
    s = get_settings()

    if not s.langsmith_tracing:
        return False

    os.environ["LANGCHAIN_TRACING_V2"] = "true"
    if s.langsmith_api_key:
        os.environ["LANGCHAIN_API_KEY"] = s.langsmith_api_key
    os.environ["LANGCHAIN_PROJECT"] = s.langsmith_project
    os.environ["LANGCHAIN_ENDPOINT"] = s.langsmith_endpoint
    return True


def run_config(run_name: str) -> Dict[str, Any]:
    """
    LangChain ``invoke`` config naming the run and tagging it with the
    current request id and intent action, so an extraction and the
    knowledge-base answer for the same prompt group together in a trace.
    """
    tags = [SERVICE_TAG]
    metadata: Dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        metadata["request_id"] = request_id
    action = get_intent_action()
    if action:
        tags.append(f"action:{action}")
        metadata["intent_action"] = action

    return {"run_name": run_name, "tags": tags, "metadata": metadata}
