"""Worker registry built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from pydantic import BaseModel, ConfigDict

from intent_router.errors import MediaRequired
from intent_router.types import ResultEnvelope, Worker

WorkerAdapter = Callable[[str, str, list[str]], Awaitable[ResultEnvelope]]


class WorkerSpec(BaseModel):
    """Invocation contract of one worker plus its adapter, when initialized."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    worker: Worker
    label: str
    failure_message: str
    media_required_message: str | None = None
    fallback: Worker | None = None
    adapter: WorkerAdapter | None = None
    unavailable_reason: str | None = None

    @property
    def available(self) -> bool:
        return self.adapter is not None

    @property
    def requires_media(self) -> bool:
        return self.media_required_message is not None

    def ensure_media(self, urls: list[str]) -> None:
        if self.media_required_message is not None and not urls:
            raise MediaRequired(self.media_required_message)


class _Contract(BaseModel):
    label: str
    failure_message: str
    media_required_message: str | None = None
    fallback: Worker | None = None


_CONTRACTS: dict[Worker, _Contract] = {
    Worker.TEXTGEN: _Contract(
        label="Text generation",
        failure_message="Failed to generate text response",
    ),
    Worker.THINKGEN: _Contract(
        label="Deep thinking",
        failure_message="Failed to generate deep thinking response",
        fallback=Worker.TEXTGEN,
    ),
    Worker.CODE: _Contract(
        label="Code generation",
        failure_message="Failed to generate code",
    ),
    Worker.AUDIO2TXT: _Contract(
        label="Audio processing",
        failure_message="Failed to process audio",
        media_required_message="Audio URL is required for audio processing",
    ),
    Worker.IMG2TXT: _Contract(
        label="Image analysis",
        failure_message="Failed to analyze image",
        media_required_message="Image URL is required for image analysis",
    ),
    Worker.VID2TXT: _Contract(
        label="Video analysis",
        failure_message="Failed to analyze video",
        media_required_message="Video URL is required for video analysis",
    ),
    Worker.YTB2TXT: _Contract(
        label="YouTube video analysis",
        failure_message="Failed to analyze YouTube video",
        media_required_message="YouTube URL is required for YouTube video analysis",
    ),
    Worker.GENIMG: _Contract(
        label="Image generation",
        failure_message="Failed to generate image",
    ),
    Worker.GENAI: _Contract(
        label="Image editing",
        failure_message="Failed to edit image",
        media_required_message="Image URL is required for image editing",
    ),
    Worker.CLEAR: _Contract(
        label="Conversation reset",
        failure_message="Failed to clear conversation history",
    ),
}


def worker_spec(
    worker: Worker,
    adapter: WorkerAdapter | None,
    *,
    unavailable_reason: str | None = None,
) -> WorkerSpec:
    """Build the spec for `worker` from its fixed invocation contract."""
    contract = _CONTRACTS[worker]
    return WorkerSpec(
        worker=worker,
        adapter=adapter,
        unavailable_reason=unavailable_reason,
        **contract.model_dump(),
    )


class WorkerRegistry:
    """Fixed mapping from worker name to its spec, built once at startup."""

    def __init__(self, specs: list[WorkerSpec] | None = None) -> None:
        self._specs: dict[Worker, WorkerSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: WorkerSpec) -> None:
        if spec.worker in self._specs:
            raise ValueError(f"Worker already registered: {spec.worker.value}")
        self._specs[spec.worker] = spec

    def get(self, worker: Worker) -> WorkerSpec | None:
        return self._specs.get(worker)

    def resolve(self, worker: Worker) -> WorkerSpec:
        """Spec for `worker`, falling back to general conversation."""
        spec = self._specs.get(worker) or self._specs.get(Worker.TEXTGEN)
        if spec is None:
            raise KeyError(f"Unknown worker and no textgen fallback: {worker.value}")
        return spec

    def specs(self) -> list[WorkerSpec]:
        return list(self._specs.values())

    def available(self) -> list[Worker]:
        return [spec.worker for spec in self._specs.values() if spec.available]

    def validate(self) -> None:
        """Check the invariants the dispatcher relies on."""
        if Worker.TEXTGEN not in self._specs:
            raise ValueError("Registry must contain the textgen worker")
        for spec in self._specs.values():
            if spec.fallback is not None and spec.fallback not in self._specs:
                raise ValueError(
                    f"Fallback {spec.fallback.value} of {spec.worker.value} is not registered"
                )
