"""Per-worker argument marshaling into the uniform adapter signature.

Every adapter is called as `adapter(user_id, prompt, urls)` and returns a
`ResultEnvelope`. Each factory below bakes one handler calling convention
into that signature: which URL is the subject media, whether URLs are
ignored, and how the handler's payload maps onto the envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from intent_router.types import EnvelopeType, ResultEnvelope
from intent_router.workers.history import ConversationStore
from intent_router.workers.registry import WorkerAdapter

CLEARED_MESSAGE = "Your conversation history has been cleared."
NOTHING_TO_CLEAR_MESSAGE = "No conversation history found to clear."


@dataclass(slots=True)
class GeneratedImage:
    image_url: str
    text_response: str
    model_response: str


@dataclass(slots=True)
class EditedImage:
    original_url: str
    edited_image_url: str
    text_response: str
    model_response: str


class TextHandler(Protocol):
    async def generate_response(self, user_id: str, prompt: str) -> str: ...


class SingleMediaHandler(Protocol):
    async def generate_response(self, user_id: str, prompt: str, url: str) -> str: ...


class MultiMediaHandler(Protocol):
    async def generate_response(self, user_id: str, prompt: str, urls: list[str]) -> str: ...


class ImageGenerationHandler(Protocol):
    async def generate_image(self, user_id: str, prompt: str) -> GeneratedImage: ...


class ImageEditHandler(Protocol):
    async def edit_image(self, user_id: str, image_url: str, prompt: str) -> EditedImage: ...


def text_adapter(handler: TextHandler, *, envelope_type: EnvelopeType = "text") -> WorkerAdapter:
    """`(uid, prompt)`; URLs are ignored."""

    async def _adapter(user_id: str, prompt: str, urls: list[str]) -> ResultEnvelope:
        del urls
        reply = await handler.generate_response(user_id, prompt)
        return ResultEnvelope(success=True, type=envelope_type, message=reply)

    return _adapter


def first_media_adapter(handler: SingleMediaHandler) -> WorkerAdapter:
    """`(uid, prompt, urls[0])`."""

    async def _adapter(user_id: str, prompt: str, urls: list[str]) -> ResultEnvelope:
        reply = await handler.generate_response(user_id, prompt, urls[0])
        return ResultEnvelope(success=True, type="text", message=reply)

    return _adapter


def all_media_adapter(handler: MultiMediaHandler) -> WorkerAdapter:
    """`(uid, prompt, urls)`."""

    async def _adapter(user_id: str, prompt: str, urls: list[str]) -> ResultEnvelope:
        reply = await handler.generate_response(user_id, prompt, list(urls))
        return ResultEnvelope(success=True, type="text", message=reply)

    return _adapter


def image_generation_adapter(handler: ImageGenerationHandler) -> WorkerAdapter:
    async def _adapter(user_id: str, prompt: str, urls: list[str]) -> ResultEnvelope:
        del urls
        result = await handler.generate_image(user_id, prompt)
        return ResultEnvelope(
            success=True,
            type="image",
            message=result.model_response,
            image_url=result.image_url,
        )

    return _adapter


def image_edit_adapter(handler: ImageEditHandler) -> WorkerAdapter:
    """`(uid, urls[0], prompt)`: the subject image comes before the prompt."""

    async def _adapter(user_id: str, prompt: str, urls: list[str]) -> ResultEnvelope:
        result = await handler.edit_image(user_id, urls[0], prompt)
        return ResultEnvelope(
            success=True,
            type="image",
            message=result.model_response,
            original_url=result.original_url,
            edited_image_url=result.edited_image_url,
        )

    return _adapter


def clear_adapter(store: ConversationStore) -> WorkerAdapter:
    """`(uid)`: deletes the user's conversation record."""

    async def _adapter(user_id: str, prompt: str, urls: list[str]) -> ResultEnvelope:
        del prompt, urls
        cleared = store.clear(user_id)
        message = CLEARED_MESSAGE if cleared else NOTHING_TO_CLEAR_MESSAGE
        return ResultEnvelope(success=True, type="text", message=message)

    return _adapter
