"""Oracle clients used to classify raw queries."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage

from intent_router.errors import OracleUnavailable
from intent_router.llm import message_text


class Oracle(ABC):
    """Natural-language completion service used purely as a classifier."""

    @abstractmethod
    async def complete(self, instruction: str, query: str) -> str:
        """Return the raw completion for `query`, or raise `OracleUnavailable`."""


class ChatModelOracle(Oracle):
    """Oracle backed by any LangChain chat model.

    A single call is made per query. Transport, auth and quota errors all
    surface as `OracleUnavailable`; no retry is attempted.
    """

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    async def complete(self, instruction: str, query: str) -> str:
        messages = [SystemMessage(content=instruction), HumanMessage(content=query)]
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as exc:
            raise OracleUnavailable(f"Oracle call failed: {exc}") from exc

        text = message_text(response)
        if not text.strip():
            raise OracleUnavailable("Oracle returned an empty completion")
        return text
