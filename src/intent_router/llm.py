"""Model client factories and response helpers."""

from __future__ import annotations

from typing import Any

from intent_router.config import Settings


def create_chat_model(
    settings: Settings,
    *,
    model: str | None = None,
    temperature: float | None = None,
) -> Any:
    """Build a LangChain chat model, or `None` when no API key is configured."""
    if not settings.openai_api_key:
        return None

    from langchain_openai import ChatOpenAI

    kwargs: dict[str, Any] = {
        "model": model or settings.openai_model,
        "api_key": settings.openai_api_key,
    }
    if temperature is not None:
        kwargs["temperature"] = temperature
    return ChatOpenAI(**kwargs)


def create_genai_client(settings: Settings) -> Any:
    """Build a Google GenAI client, or `None` when no API key is configured."""
    if not settings.gemini_api_key:
        return None

    from google import genai

    return genai.Client(api_key=settings.gemini_api_key)


def message_text(message: Any) -> str:
    """Flatten a chat model reply into plain text."""
    if isinstance(message, dict):
        return str(message.get("content", ""))
    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if "text" in item:
                    parts.append(str(item["text"]))
                continue
            parts.append(str(item))
        return " ".join(parts).strip()
    return str(content)
