"""Per-user conversation history storage."""

from __future__ import annotations

import hashlib
import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import BaseModel, TypeAdapter

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class TextPart(BaseModel):
    text: str


class ConversationTurn(BaseModel):
    """One dialogue entry in the persisted record format."""

    role: Literal["user", "model"]
    parts: list[TextPart]

    @classmethod
    def from_text(cls, role: Literal["user", "model"], text: str) -> ConversationTurn:
        return cls(role=role, parts=[TextPart(text=text)])

    @property
    def text(self) -> str:
        return " ".join(part.text for part in self.parts)


_TURNS = TypeAdapter(list[ConversationTurn])


class ConversationStore(ABC):
    """Append-only dialogue storage keyed by user id."""

    @abstractmethod
    def append(self, user_id: str, turns: list[ConversationTurn]) -> None:
        """Append turns to the user's record, creating it if needed."""

    @abstractmethod
    def read(self, user_id: str) -> list[ConversationTurn]:
        """Return the user's turns in order; empty when none exist."""

    @abstractmethod
    def clear(self, user_id: str) -> bool:
        """Delete the user's record. Returns whether one existed."""

    def store_exchange(self, user_id: str, user_text: str, model_text: str) -> bool:
        """Append one user/model exchange.

        History is a side effect of serving a request, so a failed write is
        logged and reported as `False` instead of failing the request.
        """
        turns = [
            ConversationTurn.from_text("user", user_text),
            ConversationTurn.from_text("model", model_text),
        ]
        try:
            self.append(user_id, turns)
        except (OSError, ValueError):
            logger.exception("history.store_failed user_id={}", user_id)
            return False
        return True


class InMemoryConversationStore(ConversationStore):
    """Process-local store for tests and ephemeral deployments."""

    def __init__(self) -> None:
        self._records: dict[str, list[ConversationTurn]] = {}

    def append(self, user_id: str, turns: list[ConversationTurn]) -> None:
        self._records.setdefault(user_id, []).extend(turns)

    def read(self, user_id: str) -> list[ConversationTurn]:
        return list(self._records.get(user_id, []))

    def clear(self, user_id: str) -> bool:
        return self._records.pop(user_id, None) is not None


class JsonFileConversationStore(ConversationStore):
    """One pretty-printed JSON file per user under `data_dir`.

    Concurrent writers for the same user id are not serialized; their turns
    may interleave.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, user_id: str) -> Path:
        safe_id = _UNSAFE_ID_CHARS.sub("_", user_id).strip(".") or "_"
        if safe_id != user_id:
            # Distinct raw ids must never share a sanitized file name.
            digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()[:10]
            safe_id = f"{safe_id}-{digest}"
        return self.data_dir / f"{safe_id}.json"

    def append(self, user_id: str, turns: list[ConversationTurn]) -> None:
        path = self.path_for(user_id)
        records = self.read(user_id) + list(turns)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        payload = _TURNS.dump_python(records, mode="json")
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")

    def read(self, user_id: str) -> list[ConversationTurn]:
        path = self.path_for(user_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        try:
            return _TURNS.validate_json(raw)
        except ValueError:
            logger.warning("history.corrupt_record user_id={} path={}", user_id, path)
            return []

    def clear(self, user_id: str) -> bool:
        try:
            self.path_for(user_id).unlink()
        except FileNotFoundError:
            return False
        return True
