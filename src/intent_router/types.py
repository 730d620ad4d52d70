"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from intent_router.errors import UnknownWorker

EnvelopeType = Literal["text", "image", "code", "error"]


class Worker(str, Enum):
    """Closed set of capabilities a request can be routed to."""

    TEXTGEN = "textgen"
    AUDIO2TXT = "audio2txt"
    IMG2TXT = "img2txt"
    GENIMG = "genimg"
    GENAI = "genai"
    THINKGEN = "thinkgen"
    VID2TXT = "vid2txt"
    YTB2TXT = "ytb2txt"
    CLEAR = "clear"
    CODE = "code"

    @classmethod
    def parse(cls, name: Any) -> Worker:
        """Strict lookup by wire name."""
        try:
            return cls(name)
        except (TypeError, ValueError) as exc:
            raise UnknownWorker(f"Unknown worker: {name!r}") from exc


@dataclass(frozen=True, slots=True)
class Query:
    """One inbound request, reduced from any caller."""

    text: str
    user_id: str
    urls: tuple[str, ...] = ()


@dataclass(slots=True)
class Decision:
    """Routing decision produced from a raw query."""

    worker: Worker
    prompt: str
    urls: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {"worker": self.worker.value, "prompt": self.prompt, "urls": list(self.urls)}


class ResultEnvelope(BaseModel):
    """Normalized outcome of one routing cycle.

    This is the only shape callers observe. Optional media references use the
    camelCase names of the wire format and are omitted when absent.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    success: bool
    type: EnvelopeType
    message: str
    image_url: str | None = Field(default=None, alias="imageUrl")
    edited_image_url: str | None = Field(default=None, alias="editedImageUrl")
    original_url: str | None = Field(default=None, alias="originalUrl")

    @classmethod
    def error(cls, message: str) -> ResultEnvelope:
        return cls(success=False, type="error", message=message)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(slots=True)
class RouteTrace:
    """Trace record for one routed request."""

    trace_id: str
    timestamp_utc: str
    user_id: str
    worker: str | None
    success: bool
    envelope_type: str
    url_count: int
    latency_ms: float
