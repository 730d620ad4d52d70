"""Image description via a vision-capable chat model."""

from __future__ import annotations

import asyncio
from typing import Any

from langchain_core.messages import HumanMessage

from intent_router.config import Settings
from intent_router.errors import HandlerFailure, HandlerUnavailable
from intent_router.llm import create_chat_model, message_text
from intent_router.workers.history import ConversationStore
from intent_router.workers.media import MediaFetcher, MediaKind


class ImageDescriber:
    """Sends every referenced image inline, followed by the user's prompt."""

    def __init__(self, llm: Any, fetcher: MediaFetcher, store: ConversationStore) -> None:
        self.llm = llm
        self.fetcher = fetcher
        self.store = store

    async def generate_response(self, user_id: str, prompt: str, urls: list[str]) -> str:
        images = await asyncio.gather(*(self.fetcher.fetch(url, MediaKind.IMAGE) for url in urls))
        content: list[dict[str, Any]] = [
            {"type": "image_url", "image_url": {"url": image.as_data_uri()}} for image in images
        ]
        content.append({"type": "text", "text": prompt})

        response = await self.llm.ainvoke([HumanMessage(content=content)])
        reply = message_text(response).strip()
        if not reply:
            raise HandlerFailure("img2txt returned an empty reply")

        self.store.store_exchange(user_id, f"{prompt} : {' and '.join(urls)}", reply)
        return reply


def create_img2txt(
    settings: Settings, fetcher: MediaFetcher, store: ConversationStore
) -> ImageDescriber:
    llm = create_chat_model(settings)
    if llm is None:
        raise HandlerUnavailable("OPENAI_API_KEY is not configured")
    return ImageDescriber(llm, fetcher, store)
