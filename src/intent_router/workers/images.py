"""Image generation and editing through the Gemini image model.

Both handlers write the model's image to a temp file, publish it through the
anonymous uploader and remove every temp file on all exit paths. Cleanup
failures are logged and never raised.
"""

from __future__ import annotations

import asyncio
import re
import time
from pathlib import Path
from typing import Any

from google.genai import types
from loguru import logger
from PIL import Image, UnidentifiedImageError

from intent_router.config import Settings
from intent_router.errors import HandlerFailure, HandlerUnavailable
from intent_router.workers.adapters import EditedImage, GeneratedImage
from intent_router.workers.gemini import response_parts
from intent_router.workers.history import ConversationStore
from intent_router.workers.media import MediaFetcher, MediaKind
from intent_router.workers.uploader import AnonymousUploader

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_PNG_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I"}


def _image_config() -> types.GenerateContentConfig:
    return types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"])


def split_image_response(response: Any) -> tuple[bytes, str]:
    """Return `(image_bytes, text)` from a TEXT+IMAGE model reply."""
    image: bytes | None = None
    text = ""
    for part in response_parts(response):
        if getattr(part, "thought", False):
            continue
        if getattr(part, "text", None):
            text = part.text
        elif getattr(part, "inline_data", None) is not None and part.inline_data.data:
            image = part.inline_data.data
    if image is None:
        raise HandlerFailure("No image was generated")
    return image, text


def discard_temp_files(*paths: Path | None) -> None:
    for path in paths:
        if path is None:
            continue
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("temp.cleanup_failed path={} error={}", path, exc)


def convert_to_png(source: Path, target: Path) -> bytes:
    try:
        with Image.open(source) as image:
            if image.mode not in _PNG_MODES:
                image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
            image.save(target, format="PNG")
    except (UnidentifiedImageError, OSError) as exc:
        raise HandlerFailure(f"Could not convert {source.name} to PNG: {exc}") from exc
    return target.read_bytes()


def _safe_name(user_id: str) -> str:
    return _UNSAFE_NAME_CHARS.sub("_", user_id) or "user"


class ImageGenerator:
    def __init__(
        self,
        client: Any,
        model: str,
        uploader: AnonymousUploader,
        store: ConversationStore,
        temp_dir: Path,
    ) -> None:
        self.client = client
        self.model = model
        self.uploader = uploader
        self.store = store
        self.temp_dir = temp_dir

    async def generate_image(self, user_id: str, prompt: str) -> GeneratedImage:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        output = self.temp_dir / f"{_safe_name(user_id)}_{time.time_ns()}.png"
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=_image_config(),
            )
            image, text = split_image_response(response)
            await asyncio.to_thread(output.write_bytes, image)
            image_url = await self.uploader.upload(output)
        finally:
            discard_temp_files(output)

        model_response = f"Here's ai generated image of your prompt: {image_url}"
        self.store.store_exchange(user_id, prompt, model_response)
        return GeneratedImage(image_url=image_url, text_response=text, model_response=model_response)


class ImageEditor:
    """Downloads the subject image, normalizes it to PNG and asks for an edit."""

    def __init__(
        self,
        client: Any,
        model: str,
        fetcher: MediaFetcher,
        uploader: AnonymousUploader,
        store: ConversationStore,
        temp_dir: Path,
    ) -> None:
        self.client = client
        self.model = model
        self.fetcher = fetcher
        self.uploader = uploader
        self.store = store
        self.temp_dir = temp_dir

    async def edit_image(self, user_id: str, image_url: str, prompt: str) -> EditedImage:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        stamp = time.time_ns()
        download = self.temp_dir / f"download_{stamp}"
        converted = self.temp_dir / f"converted_{stamp}.png"
        output = self.temp_dir / f"edited_{_safe_name(user_id)}_{stamp}.png"
        try:
            source = await self.fetcher.fetch(image_url, MediaKind.IMAGE)
            await asyncio.to_thread(download.write_bytes, source.data)
            png = await asyncio.to_thread(convert_to_png, download, converted)

            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[prompt, types.Part.from_bytes(data=png, mime_type="image/png")],
                config=_image_config(),
            )
            image, text = split_image_response(response)
            await asyncio.to_thread(output.write_bytes, image)
            edited_url = await self.uploader.upload(output)
        finally:
            discard_temp_files(download, converted, output)

        model_response = f"Here's the edited image: {edited_url}"
        self.store.store_exchange(
            user_id, f"Edit this image: {image_url} with prompt: {prompt}", model_response
        )
        return EditedImage(
            original_url=image_url,
            edited_image_url=edited_url,
            text_response=text,
            model_response=model_response,
        )


def create_genimg(
    settings: Settings, client: Any, uploader: AnonymousUploader, store: ConversationStore
) -> ImageGenerator:
    if client is None:
        raise HandlerUnavailable("GEMINI_API_KEY is not configured")
    return ImageGenerator(client, settings.gemini_image_model, uploader, store, settings.temp_dir)


def create_genai(
    settings: Settings,
    client: Any,
    fetcher: MediaFetcher,
    uploader: AnonymousUploader,
    store: ConversationStore,
) -> ImageEditor:
    if client is None:
        raise HandlerUnavailable("GEMINI_API_KEY is not configured")
    return ImageEditor(
        client, settings.gemini_image_model, fetcher, uploader, store, settings.temp_dir
    )
