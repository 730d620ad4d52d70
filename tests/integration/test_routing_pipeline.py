import pytest
from langchain_core.messages import AIMessage

from intent_router.bootstrap import build_dispatcher, build_registry
from intent_router.brain.decision import DecisionMaker
from intent_router.brain.dispatcher import Dispatcher
from intent_router.brain.fallback import KeywordOracle
from intent_router.config import Settings
from intent_router.types import ResultEnvelope, Worker
from intent_router.workers import adapters
from intent_router.workers.history import InMemoryConversationStore, JsonFileConversationStore
from intent_router.workers.registry import WorkerRegistry, worker_spec
from intent_router.workers.textgen import ConversationalGenerator


class EchoLLM:
    async def ainvoke(self, messages):
        return AIMessage(content=f"echo({len(messages)}): {messages[-1].content}")


def _offline_settings(tmp_path, **overrides) -> Settings:
    values = {
        "openai_api_key": None,
        "gemini_api_key": None,
        "think_model": None,
        "data_dir": tmp_path / "data",
        "temp_dir": tmp_path / "temp",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.mark.asyncio
async def test_conversation_then_clear_is_idempotent(tmp_path) -> None:
    store = JsonFileConversationStore(tmp_path)
    registry = WorkerRegistry(
        [
            worker_spec(Worker.TEXTGEN, adapters.text_adapter(ConversationalGenerator(EchoLLM(), store))),
            worker_spec(Worker.CLEAR, adapters.clear_adapter(store)),
        ]
    )
    dispatcher = Dispatcher(decision_maker=DecisionMaker(KeywordOracle()), registry=registry)

    first = await dispatcher.route("u1", "hello")
    second = await dispatcher.route("u1", "and again")
    cleared = await dispatcher.route("u1", "please clear my chat history")
    repeated = await dispatcher.route("u1", "please clear my chat history")

    assert first.message == "echo(1): hello"
    assert second.message == "echo(3): and again"
    assert cleared.message == "Your conversation history has been cleared."
    assert repeated.message == "No conversation history found to clear."
    assert not store.path_for("u1").exists()


def test_registry_without_credentials_only_offers_clear(tmp_path) -> None:
    registry = build_registry(_offline_settings(tmp_path), store=InMemoryConversationStore())

    assert registry.available() == [Worker.CLEAR]
    assert len(registry.specs()) == len(Worker)
    assert registry.get(Worker.THINKGEN).unavailable_reason == "THINK_MODEL is not configured"


def test_registry_with_openai_key_enables_langchain_workers(tmp_path) -> None:
    settings = _offline_settings(tmp_path, openai_api_key="sk-test")
    registry = build_registry(settings, store=InMemoryConversationStore())

    assert set(registry.available()) == {Worker.TEXTGEN, Worker.IMG2TXT, Worker.CLEAR}


@pytest.mark.asyncio
async def test_unconfigured_workers_answer_with_unavailable_messages(tmp_path) -> None:
    dispatcher = build_dispatcher(_offline_settings(tmp_path), store=InMemoryConversationStore())

    assert isinstance(dispatcher.decision_maker.oracle, KeywordOracle)

    text = await dispatcher.route("u1", "hello")
    think = await dispatcher.route("u1", "think step by step: is 91 prime?")
    image = await dispatcher.route("u1", "draw a picture of a lighthouse")
    cleared = await dispatcher.route("u1", "reset the conversation")

    assert text.message == "Text generation is not available"
    assert think.message == "Text generation is not available"
    assert image.message == "Image generation is not available"
    assert cleared.success is True


@pytest.mark.asyncio
async def test_youtube_link_reaches_ytb2txt_unchanged() -> None:
    calls: list[tuple[str, str, list[str]]] = []

    async def _ytb2txt(user_id: str, prompt: str, urls: list[str]) -> ResultEnvelope:
        calls.append((user_id, prompt, urls))
        return ResultEnvelope(success=True, type="text", message="A music video.")

    async def _textgen(user_id: str, prompt: str, urls: list[str]) -> ResultEnvelope:
        raise AssertionError("textgen must not be called")

    registry = WorkerRegistry(
        [worker_spec(Worker.TEXTGEN, _textgen), worker_spec(Worker.YTB2TXT, _ytb2txt)]
    )
    dispatcher = Dispatcher(decision_maker=DecisionMaker(KeywordOracle()), registry=registry)

    envelope = await dispatcher.route(
        "u1", "What is this video about? https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    )

    assert envelope.message == "A music video."
    assert calls == [
        ("u1", "What is this video about?", ["https://www.youtube.com/watch?v=dQw4w9WgXcQ"])
    ]


@pytest.mark.asyncio
async def test_missing_audio_url_wins_over_missing_credentials(tmp_path) -> None:
    dispatcher = build_dispatcher(_offline_settings(tmp_path), store=InMemoryConversationStore())

    envelope = await dispatcher.route("u1", "transcribe this audio")

    assert envelope == ResultEnvelope.error("Audio URL is required for audio processing")
