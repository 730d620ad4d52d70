"""Tolerant extraction of decision objects from raw oracle text.

The oracle is a generative model and does not always honour the "raw JSON
only" instruction. Extraction runs three stages in strict order and returns
the first JSON object found:

1. the whole trimmed text;
2. the interior of a fenced code block;
3. the first brace-delimited substring anywhere in the text.

Every stage is total: it returns `None` instead of raising.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

from intent_router.errors import DecisionUnparseable

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", flags=re.IGNORECASE)
_DECODER = json.JSONDecoder()


def _loads_object(candidate: str) -> dict[str, Any] | None:
    try:
        payload = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    return payload if isinstance(payload, dict) else None


def _parse_whole(text: str) -> dict[str, Any] | None:
    return _loads_object(text)


def _parse_fenced(text: str) -> dict[str, Any] | None:
    for match in _FENCED_BLOCK.finditer(text):
        payload = _loads_object(match.group(1))
        if payload is not None:
            return payload
    return None


def _parse_braced(text: str) -> dict[str, Any] | None:
    start = text.find("{")
    while start != -1:
        try:
            payload, _ = _DECODER.raw_decode(text, start)
        except (ValueError, RecursionError):
            payload = None
        if isinstance(payload, dict):
            return payload
        start = text.find("{", start + 1)
    return None


_STAGES: tuple[Callable[[str], dict[str, Any] | None], ...] = (
    _parse_whole,
    _parse_fenced,
    _parse_braced,
)


def parse_decision(raw: str | None) -> dict[str, Any] | None:
    """Extract the first decision object from `raw`, or `None`."""
    if not raw:
        return None
    text = raw.strip()
    for stage in _STAGES:
        payload = stage(text)
        if payload is not None:
            return payload
    return None


def require_decision(raw: str | None) -> dict[str, Any]:
    """Like `parse_decision`, but raise `DecisionUnparseable` on failure."""
    payload = parse_decision(raw)
    if payload is None:
        preview = (raw or "")[:120]
        raise DecisionUnparseable(f"No decision object in oracle output: {preview!r}")
    return payload
