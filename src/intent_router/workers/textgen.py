"""History-aware text generation over LangChain chat models."""

from __future__ import annotations

from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from intent_router.config import Settings
from intent_router.errors import HandlerFailure, HandlerUnavailable
from intent_router.llm import create_chat_model, message_text
from intent_router.workers.history import ConversationStore, ConversationTurn


class ConversationalGenerator:
    """Replays the user's history, asks the model, stores the new exchange."""

    def __init__(self, llm: Any, store: ConversationStore, *, name: str = "textgen") -> None:
        self.llm = llm
        self.store = store
        self.name = name

    async def generate_response(self, user_id: str, prompt: str) -> str:
        messages = [_to_message(turn) for turn in self.store.read(user_id)]
        messages.append(HumanMessage(content=prompt))

        response = await self.llm.ainvoke(messages)
        reply = message_text(response).strip()
        if not reply:
            raise HandlerFailure(f"{self.name} returned an empty reply")

        self.store.store_exchange(user_id, prompt, reply)
        return reply


def _to_message(turn: ConversationTurn) -> BaseMessage:
    if turn.role == "user":
        return HumanMessage(content=turn.text)
    return AIMessage(content=turn.text)


def create_textgen(settings: Settings, store: ConversationStore) -> ConversationalGenerator:
    llm = create_chat_model(settings)
    if llm is None:
        raise HandlerUnavailable("OPENAI_API_KEY is not configured")
    return ConversationalGenerator(llm, store, name="textgen")


def create_thinkgen(settings: Settings, store: ConversationStore) -> ConversationalGenerator:
    if not settings.think_model:
        raise HandlerUnavailable("THINK_MODEL is not configured")
    llm = create_chat_model(settings, model=settings.think_model)
    if llm is None:
        raise HandlerUnavailable("OPENAI_API_KEY is not configured")
    return ConversationalGenerator(llm, store, name="thinkgen")
