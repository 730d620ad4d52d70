"""Decision maker: raw query -> validated routing decision."""

from __future__ import annotations

from typing import Any

from loguru import logger

from intent_router.brain.oracle import Oracle
from intent_router.brain.parser import require_decision
from intent_router.config import RoutingConfig
from intent_router.errors import DecisionUnparseable, OracleUnavailable, UnknownWorker
from intent_router.types import Decision, Worker

FALLBACK_WORKER = Worker.TEXTGEN

WORKER_DESCRIPTIONS: dict[Worker, str] = {
    Worker.TEXTGEN: "General conversation, questions and text-based responses",
    Worker.AUDIO2TXT: (
        "Audio files or voice messages: transcription and questions about the audio, "
        "song or voice clip"
    ),
    Worker.IMG2TXT: "Image analysis: detailed descriptions or questions about an image",
    Worker.GENIMG: "Creates images from text descriptions",
    Worker.GENAI: "Edits an existing image following the user's instructions",
    Worker.THINKGEN: "Deep reasoning and complex, multi-step text responses",
    Worker.VID2TXT: (
        "Regular video files (never YouTube links): describes content or answers "
        "questions about the video"
    ),
    Worker.YTB2TXT: (
        "YouTube links only (youtube.com/watch?v=, youtu.be/): answers questions "
        "about the video"
    ),
    Worker.CLEAR: "Resets or clears the conversation history",
    Worker.CODE: "Coding tasks: writing, debugging or running code",
}

_INSTRUCTION_TEMPLATE = """
You are an intent router. Read the user's message and choose the single worker
best suited to handle it. Detect media by URL and by wording; never guess a
worker that does not exist.

Available workers:
{workers}

Supported file extension examples (not exhaustive):
- Images: .jpg, .png, .gif, .webp
- Audio: .mp3, .aac, .flac, .m4a, .m4p, .wav, .wma
- Video: .mp4, .mov

Output must strictly follow this JSON format:
{{"worker":"workername","prompt":"main text/instruction","urls":["url1","url2"]}}

Rules:
1) Return only the raw JSON object: no explanations and no code fences.
2) Put every URL found in the message into "urls" and keep the remaining
   instruction in "prompt".
3) YouTube links (youtube.com or youtu.be) always go to ytb2txt; any other
   video link goes to vid2txt regardless of extension.
4) Match images and audio by intent or by the extension examples above.
5) If the message refers to media ("this image", "this video", "this song")
   without a URL, assume the media arrives separately and return an empty
   "urls" array.
6) When unsure, use textgen.
""".strip()


def build_instruction() -> str:
    """System instruction enumerating the closed worker set."""
    workers = "\n".join(
        f"- {worker.value}: {WORKER_DESCRIPTIONS[worker]}" for worker in Worker
    )
    return _INSTRUCTION_TEMPLATE.format(workers=workers)


class DecisionMaker:
    """Turns a raw query into a `Decision` using an oracle.

    `decide` never raises: an unreachable oracle, unparseable output and
    unknown worker names all degrade to general conversation so the user
    always gets some answer.
    """

    def __init__(self, oracle: Oracle, config: RoutingConfig | None = None) -> None:
        self.oracle = oracle
        self.config = config or RoutingConfig()
        self.instruction = build_instruction()

    async def decide(self, user_id: str, query: str) -> Decision:
        try:
            raw = await self.oracle.complete(self.instruction, query)
        except OracleUnavailable as exc:
            logger.warning("decision.oracle_unavailable user_id={} error={}", user_id, exc)
            return _default_decision(query)
        except Exception:
            logger.exception("decision.oracle_error user_id={}", user_id)
            return _default_decision(query)

        logger.debug("decision.raw user_id={} raw={!r}", user_id, raw)
        try:
            payload = require_decision(raw)
        except DecisionUnparseable as exc:
            logger.warning("decision.unparseable user_id={} error={}", user_id, exc)
            return _default_decision(query)

        try:
            worker = Worker.parse(payload.get("worker"))
        except UnknownWorker as exc:
            logger.warning("decision.unknown_worker user_id={} error={}", user_id, exc)
            worker = FALLBACK_WORKER

        prompt = payload.get("prompt")
        if not isinstance(prompt, str) or not prompt.strip():
            prompt = query

        return Decision(worker=worker, prompt=prompt, urls=_coerce_urls(payload.get("urls")))


def _default_decision(query: str) -> Decision:
    return Decision(worker=FALLBACK_WORKER, prompt=query, urls=[])


def _coerce_urls(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
