"""Dispatcher: validated decision -> handler invocation -> result envelope."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from loguru import logger

from intent_router.brain.decision import DecisionMaker
from intent_router.config import RoutingConfig
from intent_router.errors import InvalidRequest, MediaRequired
from intent_router.obs.tracing import Timer
from intent_router.types import Decision, ResultEnvelope, RouteTrace, Worker
from intent_router.workers.registry import WorkerRegistry, WorkerSpec

RouteObserver = Callable[[RouteTrace], None]


class Dispatcher:
    """Routes one query to exactly one worker and normalizes the outcome.

    `route` never raises. Invalid requests, missing media, uninitialized
    handlers and handler exceptions all resolve to an error envelope; the
    underlying cause is logged, not exposed.
    """

    def __init__(
        self,
        *,
        decision_maker: DecisionMaker,
        registry: WorkerRegistry,
        config: RoutingConfig | None = None,
        observer: RouteObserver | None = None,
    ) -> None:
        registry.validate()
        self.decision_maker = decision_maker
        self.registry = registry
        self.config = config or RoutingConfig()
        self._observer = observer

    async def route(
        self,
        user_id: str,
        query: str,
        external_urls: Sequence[str] | None = None,
    ) -> ResultEnvelope:
        urls = [url.strip() for url in external_urls or () if url and url.strip()]
        with Timer() as timer:
            envelope, worker, url_count = await self._route(user_id, query, urls)

        self._emit(
            RouteTrace(
                trace_id=str(uuid.uuid4()),
                timestamp_utc=datetime.now(timezone.utc).isoformat(),
                user_id=user_id,
                worker=worker.value if worker is not None else None,
                success=envelope.success,
                envelope_type=envelope.type,
                url_count=url_count,
                latency_ms=timer.elapsed_ms,
            )
        )
        return envelope

    async def _route(
        self, user_id: str, query: str, urls: list[str]
    ) -> tuple[ResultEnvelope, Worker | None, int]:
        text = query or ""
        try:
            _validate(user_id, text, urls)
        except InvalidRequest as exc:
            logger.info("dispatch.rejected user_id={} reason={}", user_id, exc)
            return ResultEnvelope.error(str(exc)), None, len(urls)

        if not text.strip():
            text = self.config.default_media_prompt

        decision = await self.decision_maker.decide(user_id, text)
        if urls:
            # Attachments are invisible to the oracle; the caller's list wins.
            decision.urls = list(urls)

        logger.info(
            "dispatch.decision user_id={} worker={} urls={}",
            user_id,
            decision.worker.value,
            len(decision.urls),
        )
        spec = self.registry.resolve(decision.worker)
        envelope, worker = await self._invoke(spec, user_id, decision)
        return envelope, worker, len(decision.urls)

    async def _invoke(
        self,
        spec: WorkerSpec,
        user_id: str,
        decision: Decision,
        *,
        allow_fallback: bool = True,
    ) -> tuple[ResultEnvelope, Worker]:
        try:
            spec.ensure_media(decision.urls)
        except MediaRequired as exc:
            logger.info("dispatch.media_required worker={} user_id={}", spec.worker.value, user_id)
            return ResultEnvelope.error(str(exc)), spec.worker

        if spec.adapter is None:
            if allow_fallback and spec.fallback is not None:
                logger.info(
                    "dispatch.fallback from={} to={} reason={}",
                    spec.worker.value,
                    spec.fallback.value,
                    spec.unavailable_reason,
                )
                fallback = self.registry.resolve(spec.fallback)
                return await self._invoke(fallback, user_id, decision, allow_fallback=False)
            logger.warning(
                "dispatch.unavailable worker={} reason={}", spec.worker.value, spec.unavailable_reason
            )
            return ResultEnvelope.error(f"{spec.label} is not available"), spec.worker

        try:
            envelope = await spec.adapter(user_id, decision.prompt, list(decision.urls))
        except Exception:
            logger.exception("dispatch.handler_failure worker={} user_id={}", spec.worker.value, user_id)
            return ResultEnvelope.error(spec.failure_message), spec.worker
        return envelope, spec.worker

    def _emit(self, trace: RouteTrace) -> None:
        if self._observer is None:
            return
        try:
            self._observer(trace)
        except Exception:
            logger.exception("dispatch.observer_failure trace_id={}", trace.trace_id)


def _validate(user_id: str, text: str, urls: list[str]) -> None:
    if not user_id or not user_id.strip():
        raise InvalidRequest("Query and user ID are required parameters")
    if not text.strip() and not urls:
        raise InvalidRequest("A text prompt or at least one media URL is required")
