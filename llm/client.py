from __future__ import annotations

import json
import logging
from typing import Any, Dict, Protocol

from app.config import get_settings
from app.core.langsmith import run_config

logger = logging.getLogger(__name__)


class GenerationService(Protocol):
    def complete(self, prompt: str, *, system: str | None = None) -> str:
        ...


class LLMClient:
    """
    Thin text-completion client over LangChain chat models.

    One provider call per ``complete``; retries and timeouts beyond the
    provider request timeout are the caller's business.
    """

    def __init__(
        self,
        *,
        model: str | None = None,
        provider: str | None = None,
        api_key: str | None = None,
        temperature: float = 0.0,
        timeout_s: int = 30,
    ) -> None:
        self.model = model
        self.provider = provider
        self.api_key = api_key
        self.temperature = temperature
        self.timeout_s = timeout_s

    def complete(self, prompt: str, *, system: str | None = None) -> str:
        return self._call_provider(prompt={"system": system, "user": prompt})

    def _call_provider(self, *, prompt: dict) -> str:
        if self.provider == "openai":
            return self._call_openai(prompt=prompt)
        raise RuntimeError("LLM provider not configured")

    def _call_openai(self, *, prompt: dict) -> str:
        if not self.api_key:
            raise RuntimeError("OPENAI_API_KEY is not set")
        try:
            from langchain_core.messages import HumanMessage, SystemMessage
            from langchain_openai import ChatOpenAI
        except Exception as e:
            raise RuntimeError(f"LangChain OpenAI client not available: {e}") from e

        messages = []
        if prompt.get("system"):
            messages.append(SystemMessage(content=prompt["system"]))
        messages.append(HumanMessage(content=prompt["user"]))

        model = self.model or "gpt-4"
        logger.info("LLM call start provider=openai model=%s", model)
        llm = ChatOpenAI(
            model=model,
            temperature=self.temperature,
            timeout=self.timeout_s,
            api_key=self.api_key,
        )
        response = llm.invoke(messages, config=run_config("intent-resolver.llm"))
        output_text = response.content
        if not output_text:
            raise RuntimeError("OpenAI returned empty content")
        if not isinstance(output_text, str):
            output_text = json.dumps(output_text)
        logger.info("LLM call success provider=openai output_len=%s", len(output_text))
        return output_text


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Strict JSON parse of model output; the top level must be an object.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValueError("LLM returned empty response")
    try:
        parsed = json.loads(text)
    except RecursionError as exc:
        raise ValueError("LLM returned unparseable JSON: nesting too deep") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"LLM returned {type(parsed).__name__}, expected a JSON object")
    return parsed


def build_llm_client() -> LLMClient:
    settings = get_settings()
    return LLMClient(
        model=settings.LLM_MODEL,
        provider=settings.LLM_PROVIDER if settings.LLM_ENABLED else None,
        api_key=settings.OPENAI_API_KEY,
        temperature=settings.LLM_TEMPERATURE,
        timeout_s=settings.LLM_TIMEOUT_S,
    )
