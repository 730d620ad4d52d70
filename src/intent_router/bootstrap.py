"""Process-start wiring: oracle, handlers, registry and dispatcher."""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from intent_router.brain.decision import DecisionMaker
from intent_router.brain.dispatcher import Dispatcher, RouteObserver
from intent_router.brain.fallback import KeywordOracle
from intent_router.brain.oracle import ChatModelOracle, Oracle
from intent_router.config import RoutingConfig, Settings
from intent_router.errors import HandlerUnavailable
from intent_router.llm import create_chat_model, create_genai_client
from intent_router.types import Worker
from intent_router.workers import adapters, gemini, images
from intent_router.workers.history import ConversationStore, JsonFileConversationStore
from intent_router.workers.img2txt import create_img2txt
from intent_router.workers.media import MediaFetcher
from intent_router.workers.registry import WorkerAdapter, WorkerRegistry, worker_spec
from intent_router.workers.textgen import create_textgen, create_thinkgen
from intent_router.workers.uploader import AnonymousUploader


def build_oracle(settings: Settings) -> Oracle:
    llm = create_chat_model(
        settings, model=settings.oracle_model or settings.openai_model, temperature=0
    )
    if llm is None:
        logger.info("oracle.mode keyword (no OPENAI_API_KEY)")
        return KeywordOracle()
    return ChatModelOracle(llm)


def build_registry(
    settings: Settings,
    *,
    store: ConversationStore | None = None,
) -> WorkerRegistry:
    """Initialize every handler once; failures are recorded per worker."""
    store = store or JsonFileConversationStore(settings.data_dir)
    media_config = settings.media_config()
    fetcher = MediaFetcher(media_config)
    uploader = AnonymousUploader(media_config)
    genai_client = create_genai_client(settings)

    factories: dict[Worker, Callable[[], WorkerAdapter]] = {
        Worker.TEXTGEN: lambda: adapters.text_adapter(create_textgen(settings, store)),
        Worker.THINKGEN: lambda: adapters.text_adapter(create_thinkgen(settings, store)),
        Worker.CODE: lambda: adapters.text_adapter(
            gemini.create_code(settings, genai_client, store), envelope_type="code"
        ),
        Worker.AUDIO2TXT: lambda: adapters.first_media_adapter(
            gemini.create_audio2txt(settings, genai_client, fetcher, store)
        ),
        Worker.IMG2TXT: lambda: adapters.all_media_adapter(
            create_img2txt(settings, fetcher, store)
        ),
        Worker.VID2TXT: lambda: adapters.first_media_adapter(
            gemini.create_vid2txt(settings, genai_client, fetcher, store)
        ),
        Worker.YTB2TXT: lambda: adapters.first_media_adapter(
            gemini.create_ytb2txt(settings, genai_client, store)
        ),
        Worker.GENIMG: lambda: adapters.image_generation_adapter(
            images.create_genimg(settings, genai_client, uploader, store)
        ),
        Worker.GENAI: lambda: adapters.image_edit_adapter(
            images.create_genai(settings, genai_client, fetcher, uploader, store)
        ),
        Worker.CLEAR: lambda: adapters.clear_adapter(store),
    }

    registry = WorkerRegistry()
    for worker, factory in factories.items():
        try:
            adapter = factory()
        except HandlerUnavailable as exc:
            logger.warning("worker.unavailable worker={} reason={}", worker.value, exc)
            registry.register(worker_spec(worker, None, unavailable_reason=str(exc)))
            continue
        registry.register(worker_spec(worker, adapter))
        logger.info("worker.initialized worker={}", worker.value)
    return registry


def build_dispatcher(
    settings: Settings,
    *,
    observer: RouteObserver | None = None,
    store: ConversationStore | None = None,
) -> Dispatcher:
    config = RoutingConfig()
    return Dispatcher(
        decision_maker=DecisionMaker(build_oracle(settings), config),
        registry=build_registry(settings, store=store),
        config=config,
        observer=observer,
    )
