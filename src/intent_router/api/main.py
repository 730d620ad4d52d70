"""FastAPI entrypoint for query/trace endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger
from pydantic import BaseModel, Field

from intent_router.bootstrap import build_dispatcher
from intent_router.brain.dispatcher import Dispatcher
from intent_router.brain.fallback import KeywordOracle
from intent_router.config import Settings
from intent_router.logging_utils import configure_logging
from intent_router.obs.tracing import TraceStore

_HOMEPAGE = """Intent router is running.

GET  /api/query?prompt={prompt}&uid={uid}
POST /api/query  {"prompt": "...", "uid": "...", "urls": ["..."]}
"""


class QueryRequest(BaseModel):
    prompt: str = ""
    uid: str = Field(min_length=1)
    urls: list[str] = Field(default_factory=list)


def create_app(
    dispatcher: Dispatcher | None = None,
    *,
    trace_store: TraceStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the app around one dispatcher created at startup."""
    settings = settings or Settings()
    configure_logging(settings.log_level)
    traces = trace_store or TraceStore()
    router = dispatcher or build_dispatcher(settings, observer=traces.record)

    app = FastAPI(title="Intent Router", version="0.1.0")

    async def _respond(prompt: str, uid: str, urls: list[str]) -> JSONResponse:
        try:
            envelope = await router.route(uid, prompt, urls)
        except Exception:
            logger.exception("api.query.error uid={}", uid)
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": "Internal server error"},
            )

        if envelope.success:
            return JSONResponse(envelope.to_payload())
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": envelope.message or "Something went wrong"},
        )

    @app.get("/", response_class=PlainTextResponse)
    def index() -> str:
        return _HOMEPAGE

    @app.get("/health")
    def health() -> dict[str, Any]:
        oracle = router.decision_maker.oracle
        return {
            "status": "ok",
            "oracle_mode": "keyword" if isinstance(oracle, KeywordOracle) else "llm",
            "workers": [worker.value for worker in router.registry.available()],
            "trace_count": len(traces.list_recent(limit=1000)),
        }

    @app.get("/api/query")
    async def query_get(prompt: str | None = None, uid: str | None = None) -> JSONResponse:
        if not prompt or not uid:
            return JSONResponse(
                status_code=400,
                content={
                    "success": False,
                    "message": "Both prompt and uid are required parameters",
                },
            )
        return await _respond(prompt, uid, [])

    @app.post("/api/query")
    async def query_post(request: QueryRequest) -> JSONResponse:
        return await _respond(request.prompt, request.uid, request.urls)

    @app.get("/traces")
    def list_traces(limit: int = 20) -> dict[str, Any]:
        return {"items": [asdict(record) for record in traces.list_recent(limit=limit)]}

    @app.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = traces.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return traces.summary()

    return app


app = create_app()
