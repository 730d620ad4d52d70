"""Anonymous file host used to publish generated images."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
from loguru import logger

from intent_router.config import MediaConfig
from intent_router.errors import HandlerFailure


class AnonymousUploader:
    """Uploads a file as multipart `files[]` and returns its public URL."""

    def __init__(
        self,
        config: MediaConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or MediaConfig()
        self._transport = transport

    async def upload(self, path: Path, *, content_type: str = "image/png") -> str:
        data = await asyncio.to_thread(path.read_bytes)
        files = {"files[]": (path.name, data, content_type)}
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                headers={"User-Agent": self.config.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.post(self.config.upload_url, files=files)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise HandlerFailure(f"Upload to {self.config.upload_url} failed: {exc}") from exc

        uploaded = payload.get("files") if isinstance(payload, dict) else None
        if uploaded and isinstance(uploaded[0], dict) and uploaded[0].get("url"):
            url = str(uploaded[0]["url"])
            logger.info("upload.done file={} url={}", path.name, url)
            return url
        raise HandlerFailure("Upload host returned no file URL")
