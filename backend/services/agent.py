"""Agent gateway: one question in, one answer out.

The production gateway runs a LangGraph react agent over an OpenAI chat
model. Handlers receive it through the ``get_agent_gateway`` dependency so
tests can swap in a deterministic stand-in.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from langchain_core.messages import HumanMessage, SystemMessage
from langgraph.prebuilt import create_react_agent

from config import settings
from errors import UpstreamError

logger = logging.getLogger(__name__)


class AgentGateway(Protocol):
    def ask(self, question: str) -> str: ...


def _message_text(content) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


def extract_final_answer(messages: list) -> str:
    """Text of the last non-empty AI message, or ``""``."""
    for msg in reversed(messages):
        if getattr(msg, "type", None) != "ai":
            continue
        text = _message_text(getattr(msg, "content", "")).strip()
        if text:
            return text
    return ""


class LangChainAgentGateway:
    def __init__(self, llm, tools: list, instructions: str = "") -> None:
        self._agent = create_react_agent(
            model=llm,
            tools=tools,
            prompt=SystemMessage(content=instructions) if instructions else None,
        )

    def ask(self, question: str) -> str:
        try:
            result = self._agent.invoke({"messages": [HumanMessage(content=question)]})
        except Exception as exc:
            logger.exception("Agent call failed")
            raise UpstreamError(str(exc) or exc.__class__.__name__) from exc

        answer = extract_final_answer(result.get("messages", []) if isinstance(result, dict) else [])
        if not answer:
            raise UpstreamError("Agent returned an empty answer")
        logger.info("Agent answered (%d chars)", len(answer))
        return answer


def build_agent_gateway(session_factory=None) -> LangChainAgentGateway:
    """Construct the production gateway from settings."""
    from langchain_openai import ChatOpenAI

    from services.agent_tools import build_tools

    if session_factory is None:
        from database import SessionLocal
        session_factory = SessionLocal

    llm = ChatOpenAI(
        api_key=settings.OPENAI_API_KEY,
        model=settings.AGENT_MODEL,
        temperature=0,
        timeout=settings.AGENT_TIMEOUT,
        max_retries=0,
    )
    return LangChainAgentGateway(llm, build_tools(session_factory), settings.AGENT_INSTRUCTIONS)


class LazyAgentGateway:
    """Builds the real gateway on the first ask, so the app starts without an API key.

    The key is checked at ask time, after request validation has already run.
    """

    def __init__(self, factory=None) -> None:
        self._factory = factory or build_agent_gateway
        self._gateway: AgentGateway | None = None
        self._lock = threading.Lock()

    def _resolve(self) -> AgentGateway:
        if self._gateway is None:
            with self._lock:
                if self._gateway is None:
                    if not settings.OPENAI_API_KEY:
                        raise UpstreamError("OPENAI_API_KEY is not configured")
                    self._gateway = self._factory()
                    logger.info("Initialized agent gateway (model=%s)", settings.AGENT_MODEL)
        return self._gateway

    def ask(self, question: str) -> str:
        return self._resolve().ask(question)


_gateway = LazyAgentGateway()


def get_agent_gateway() -> AgentGateway:
    """FastAPI dependency returning the process-wide agent gateway."""
    return _gateway
