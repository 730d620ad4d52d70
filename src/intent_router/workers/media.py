"""Media download and MIME inference shared by media-consuming handlers."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import urlparse

import httpx
from loguru import logger

from intent_router.config import MediaConfig
from intent_router.errors import MediaFetchError


class MediaKind(str, Enum):
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


IMAGE_MIME_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".svg": "image/svg+xml",
}

AUDIO_MIME_TYPES: dict[str, str] = {
    ".mp3": "audio/mp3",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".oga": "audio/ogg",
    ".flac": "audio/flac",
    ".aac": "audio/aac",
    ".m4a": "audio/mp4",
    ".m4p": "audio/mp4",
    ".wma": "audio/x-ms-wma",
}

VIDEO_MIME_TYPES: dict[str, str] = {
    ".mp4": "video/mp4",
    ".mpeg": "video/mpeg",
    ".mov": "video/mov",
    ".avi": "video/avi",
    ".flv": "video/x-flv",
    ".mpg": "video/mpg",
    ".webm": "video/webm",
    ".wmv": "video/wmv",
    ".3gp": "video/3gpp",
}

_MIME_TABLES: dict[MediaKind, tuple[dict[str, str], str]] = {
    MediaKind.IMAGE: (IMAGE_MIME_TYPES, "image/jpeg"),
    MediaKind.AUDIO: (AUDIO_MIME_TYPES, "audio/mp3"),
    MediaKind.VIDEO: (VIDEO_MIME_TYPES, "video/mp4"),
}


def url_extension(url: str) -> str:
    return PurePosixPath(urlparse(url).path).suffix.lower()


def guess_media_kind(url: str) -> MediaKind | None:
    """Classify a URL by its path extension."""
    extension = url_extension(url)
    for kind, (table, _) in _MIME_TABLES.items():
        if extension in table:
            return kind
    return None


def infer_mime_type(url: str, kind: MediaKind, content_type: str | None = None) -> str:
    """Resolve a MIME type: response header, then extension, then class default."""
    if content_type:
        essence = content_type.split(";", 1)[0].strip().lower()
        if essence.startswith(f"{kind.value}/"):
            return essence

    table, default = _MIME_TABLES[kind]
    return table.get(url_extension(url), default)


@dataclass(slots=True)
class MediaPayload:
    """Downloaded media ready to be attached to a model request."""

    url: str
    data: bytes
    mime_type: str

    def as_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def as_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.as_base64()}"


class MediaFetcher:
    """Downloads media referenced by a request as binary."""

    def __init__(
        self,
        config: MediaConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or MediaConfig()
        self._transport = transport

    async def fetch(self, url: str, kind: MediaKind) -> MediaPayload:
        logger.debug("media.fetch kind={} url={}", kind.value, url)
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": self.config.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise MediaFetchError(f"Failed to fetch {kind.value} from {url}: {exc}") from exc

        mime_type = infer_mime_type(url, kind, response.headers.get("content-type"))
        logger.debug(
            "media.fetched kind={} mime_type={} bytes={}", kind.value, mime_type, len(response.content)
        )
        return MediaPayload(url=url, data=response.content, mime_type=mime_type)
