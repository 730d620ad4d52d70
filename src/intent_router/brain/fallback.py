"""Deterministic fallback oracle when no external LLM is configured."""

from __future__ import annotations

import json
import re

from intent_router.brain.oracle import Oracle
from intent_router.types import Worker
from intent_router.workers.media import MediaKind, guess_media_kind

_URL_PATTERN = re.compile(r"https?://[^\s<>\"']+")
_URL_TRAILING = ").,!?;:"
_YOUTUBE_PATTERN = re.compile(
    r"^https?://(?:www\.|m\.|music\.)?(?:youtube\.com/|youtu\.be/)", flags=re.IGNORECASE
)

_CLEAR_PATTERN = re.compile(
    r"\b(clear|reset|forget|wipe|delete)\b.*\b(history|conversation|chat|memory)\b"
)
_GENERATE_IMAGE_PATTERN = re.compile(
    r"\b(draw|paint|sketch|generate|create|make|render)\b.*"
    r"\b(image|picture|photo|drawing|illustration|painting|art|logo)\b"
)
_EDIT_PATTERN = re.compile(
    r"\b(edit|change|modify|replace|remove|add|turn|convert|recolou?r|make it|make this)\b"
)
_CODE_PATTERN = re.compile(
    r"\b(code|function|script|debug|bug|compile|regex|sql|python|javascript|"
    r"typescript|java|rust|golang|algorithm)\b"
)
_THINK_PATTERN = re.compile(
    r"\b(think (?:deeply|carefully|hard)|step[- ]by[- ]step|reason through|prove|derive)\b"
)
_MEDIA_REFERENCES: tuple[tuple[re.Pattern[str], MediaKind], ...] = (
    (re.compile(r"\b(this|the|attached) (image|photo|picture|pic|screenshot)\b"), MediaKind.IMAGE),
    (re.compile(r"\b(this|the|attached) (audio|song|voice|recording|track|clip)\b"), MediaKind.AUDIO),
    (re.compile(r"\b(this|the|attached) (video|movie|footage)\b"), MediaKind.VIDEO),
)


class KeywordOracle(Oracle):
    """Oracle that classifies with URL and keyword heuristics.

    It emits the same JSON wire format as a model-backed oracle, so decisions
    flow through the regular parser and validation. Useful for local/offline
    environments where `OPENAI_API_KEY` is not configured.
    """

    async def complete(self, instruction: str, query: str) -> str:
        del instruction  # heuristics do not need the model instruction.
        urls = extract_urls(query)
        prompt = _URL_PATTERN.sub("", query).strip() or query
        worker = classify(query, urls)
        return json.dumps({"worker": worker.value, "prompt": prompt, "urls": urls})


def extract_urls(text: str) -> list[str]:
    return [match.rstrip(_URL_TRAILING) for match in _URL_PATTERN.findall(text)]


def classify(query: str, urls: list[str]) -> Worker:
    lowered = query.lower()

    if any(_YOUTUBE_PATTERN.match(url) for url in urls):
        return Worker.YTB2TXT

    kinds = {guess_media_kind(url) for url in urls}
    if MediaKind.IMAGE in kinds:
        return Worker.GENAI if _EDIT_PATTERN.search(lowered) else Worker.IMG2TXT
    if MediaKind.AUDIO in kinds:
        return Worker.AUDIO2TXT
    if MediaKind.VIDEO in kinds:
        return Worker.VID2TXT

    if _CLEAR_PATTERN.search(lowered):
        return Worker.CLEAR
    if _GENERATE_IMAGE_PATTERN.search(lowered) and not _references(lowered, MediaKind.IMAGE):
        return Worker.GENIMG

    for pattern, kind in _MEDIA_REFERENCES:
        if pattern.search(lowered):
            return _worker_for_reference(kind, lowered)

    if _CODE_PATTERN.search(lowered):
        return Worker.CODE
    if _THINK_PATTERN.search(lowered):
        return Worker.THINKGEN
    return Worker.TEXTGEN


def _references(lowered: str, kind: MediaKind) -> bool:
    return any(pattern.search(lowered) for pattern, ref in _MEDIA_REFERENCES if ref is kind)


def _worker_for_reference(kind: MediaKind, lowered: str) -> Worker:
    if kind is MediaKind.IMAGE:
        return Worker.GENAI if _EDIT_PATTERN.search(lowered) else Worker.IMG2TXT
    if kind is MediaKind.AUDIO:
        return Worker.AUDIO2TXT
    return Worker.VID2TXT
