from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import requests
from langgraph.graph import END, StateGraph
from pydantic import BaseModel, ConfigDict, Field

from app.config import get_settings
from app.core.langsmith import run_config
from app.intents.contracts import ChatMessage
from app.intents.extractor import format_conversation_history
from llm.client import GenerationService
from llm.prompts import build_ask_agent_system_prompt, build_history_summary_prompt

logger = logging.getLogger(__name__)

APOLOGY_ANSWER = "Sorry, I am unable to process your request at the moment."


class KnowledgeBaseError(RuntimeError):
    pass


class KnowledgeBaseClient:
    def __init__(self, *, url: str, api_key: str, kb: str, timeout_s: int = 30) -> None:
        self.url = url
        self.api_key = api_key
        self.kb = kb
        self.timeout_s = timeout_s

    def query(self, prompt: str) -> str:
        try:
            resp = requests.post(
                self.url,
                json={"prompt": prompt, "kb": self.kb},
                headers={
                    "Content-Type": "application/json",
                    "x-brian-api-key": self.api_key,
                },
                timeout=self.timeout_s,
            )
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as exc:
            raise KnowledgeBaseError(f"knowledge base request failed: {exc}") from exc
        except ValueError as exc:
            raise KnowledgeBaseError(f"knowledge base returned invalid JSON: {exc}") from exc

        answer = (body.get("result") or {}).get("answer") if isinstance(body, dict) else None
        if not isinstance(answer, str) or not answer.strip():
            raise KnowledgeBaseError("knowledge base response missing result.answer")
        return answer


class AnswerState(BaseModel):
    """
    State flowing through the knowledge-base answer graph.
    """

    model_config = ConfigDict(extra="forbid")

    query: str
    history: str = ""
    knowledge_base_answer: str | None = None
    summary: str | None = None
    answer: str | None = None
    errors: list[str] = Field(default_factory=list)


def build_answer_graph(kb_client: KnowledgeBaseClient, llm: GenerationService | None) -> StateGraph:
    """
    KNOWLEDGE_BASE -> (SUMMARIZE_HISTORY) -> ANSWER -> END

    Without an llm the knowledge-base answer is returned as-is.
    """

    def knowledge_base(state: AnswerState) -> dict[str, Any]:
        try:
            return {"knowledge_base_answer": kb_client.query(state.query)}
        except KnowledgeBaseError as exc:
            logger.warning("knowledge base lookup failed: %s", exc)
            return {"answer": APOLOGY_ANSWER, "errors": state.errors + [str(exc)]}

    def summarize_history(state: AnswerState) -> dict[str, Any]:
        try:
            summary = llm.complete(build_history_summary_prompt(state.history))
        except Exception as exc:
            logger.warning("history summary failed, answering without it: %s", exc)
            return {"errors": state.errors + [f"summary: {exc}"]}
        return {"summary": summary}

    def answer(state: AnswerState) -> dict[str, Any]:
        if llm is None:
            return {"answer": state.knowledge_base_answer}
        system = build_ask_agent_system_prompt(
            knowledge_base_answer=state.knowledge_base_answer or "",
            summary=state.summary,
        )
        try:
            return {"answer": llm.complete(state.query, system=system)}
        except Exception as exc:
            logger.warning("answer composition failed: %s", exc)
            return {"answer": APOLOGY_ANSWER, "errors": state.errors + [f"answer: {exc}"]}

    def after_knowledge_base(state: AnswerState) -> str:
        if state.answer:
            return "END"
        if state.history and llm is not None:
            return "SUMMARIZE_HISTORY"
        return "ANSWER"

    graph = StateGraph(AnswerState)
    graph.add_node("KNOWLEDGE_BASE", knowledge_base)
    graph.add_node("SUMMARIZE_HISTORY", summarize_history)
    graph.add_node("ANSWER", answer)

    graph.set_entry_point("KNOWLEDGE_BASE")
    graph.add_conditional_edges(
        "KNOWLEDGE_BASE",
        after_knowledge_base,
        {
            "SUMMARIZE_HISTORY": "SUMMARIZE_HISTORY",
            "ANSWER": "ANSWER",
            "END": END,
        },
    )
    graph.add_edge("SUMMARIZE_HISTORY", "ANSWER")
    graph.add_edge("ANSWER", END)
    return graph


class KnowledgeBaseResponder:
    def __init__(self, kb_client: KnowledgeBaseClient, llm: GenerationService | None = None) -> None:
        self.kb_client = kb_client
        self.llm = llm
        self._app = build_answer_graph(kb_client, llm).compile()

    def answer(self, prompt: str, history: Iterable[ChatMessage | Mapping[str, Any]] = ()) -> str:
        state = AnswerState(query=prompt, history=format_conversation_history(history))
        raw = self._app.invoke(state.model_dump(), config=run_config("intent-resolver.knowledge_base"))
        result = AnswerState.model_validate(raw)
        return result.answer or APOLOGY_ANSWER


def build_knowledge_base_client() -> KnowledgeBaseClient:
    settings = get_settings()
    return KnowledgeBaseClient(
        url=settings.knowledge_base_url,
        api_key=settings.knowledge_base_api_key,
        kb=settings.knowledge_base_name,
        timeout_s=settings.knowledge_base_timeout_s,
    )
