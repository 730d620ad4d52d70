from types import SimpleNamespace

import pytest
from google.genai import types

from intent_router.errors import HandlerFailure
from intent_router.workers.gemini import (
    AudioTranscriber,
    CodeAssistant,
    VideoDescriber,
    YouTubeDescriber,
)
from intent_router.workers.history import InMemoryConversationStore
from intent_router.workers.media import MediaPayload


class _FakeModels:
    def __init__(self, responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        return self.responses.pop(0)


class FakeGenaiClient:
    def __init__(self, *responses) -> None:
        self.models = _FakeModels(responses)
        self.aio = SimpleNamespace(models=self.models)


class FakeFetcher:
    def __init__(self, mime_type: str) -> None:
        self.mime_type = mime_type
        self.kinds: list = []

    async def fetch(self, url, kind):
        self.kinds.append(kind)
        return MediaPayload(url=url, data=b"media-bytes", mime_type=self.mime_type)


def _reply(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


@pytest.mark.asyncio
async def test_audio_transcriber_sends_prompt_then_inline_audio() -> None:
    client = FakeGenaiClient(_reply(types.Part(text="A piano piece.")))
    store = InMemoryConversationStore()
    handler = AudioTranscriber(client, "gemini-test", FakeFetcher("audio/mp3"), store)

    reply = await handler.generate_response("u1", "", "https://a.test/song.mp3")

    contents = client.models.calls[0]["contents"]
    assert reply == "A piano piece."
    assert contents[0] == AudioTranscriber.DEFAULT_PROMPT
    assert contents[1].inline_data.mime_type == "audio/mp3"
    assert contents[1].inline_data.data == b"media-bytes"
    assert store.read("u1")[0].text == " : https://a.test/song.mp3"


@pytest.mark.asyncio
async def test_video_describer_sends_inline_video_then_prompt() -> None:
    client = FakeGenaiClient(_reply(types.Part(text="A dog runs.")))
    handler = VideoDescriber(
        client, "gemini-test", FakeFetcher("video/mp4"), InMemoryConversationStore()
    )

    await handler.generate_response("u1", "what happens?", "https://a.test/v.mp4")

    contents = client.models.calls[0]["contents"]
    assert contents[0].inline_data.mime_type == "video/mp4"
    assert contents[1] == "what happens?"


@pytest.mark.asyncio
async def test_youtube_describer_passes_link_as_file_uri() -> None:
    client = FakeGenaiClient(_reply(types.Part(text="A music video.")))
    handler = YouTubeDescriber(client, "gemini-test", InMemoryConversationStore())

    await handler.generate_response("u1", "summarize", "https://youtu.be/abc123")

    contents = client.models.calls[0]["contents"]
    assert contents[0].file_data.file_uri == "https://youtu.be/abc123"
    assert contents[1] == "summarize"


@pytest.mark.asyncio
async def test_code_assistant_formats_code_and_output() -> None:
    client = FakeGenaiClient(
        _reply(
            types.Part(text="Here you go:"),
            types.Part(
                executable_code=types.ExecutableCode(
                    code="print(1 + 1)", language=types.Language.PYTHON
                )
            ),
            types.Part(
                code_execution_result=types.CodeExecutionResult(
                    outcome=types.Outcome.OUTCOME_OK, output="2\n"
                )
            ),
        )
    )
    handler = CodeAssistant(client, "gemini-test", InMemoryConversationStore())

    reply = await handler.generate_response("u1", "add one and one")

    assert reply == "Here you go:\n```python\nprint(1 + 1)\n```\n**Output:**\n```\n2\n```"
    config = client.models.calls[0]["config"]
    assert config.tools[0].code_execution is not None


@pytest.mark.asyncio
async def test_empty_model_reply_is_a_failure() -> None:
    client = FakeGenaiClient(types.GenerateContentResponse(candidates=[]))
    store = InMemoryConversationStore()
    handler = YouTubeDescriber(client, "gemini-test", store)

    with pytest.raises(HandlerFailure):
        await handler.generate_response("u1", "summarize", "https://youtu.be/abc123")
    assert store.read("u1") == []
