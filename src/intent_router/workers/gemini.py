"""Handlers backed by the Google GenAI SDK.

Audio, video, YouTube and code-execution requests need Gemini-specific
request parts (inline media bytes, `file_data` URIs, the `code_execution`
tool), so they talk to `google.genai` directly instead of going through a
LangChain chat model.
"""

from __future__ import annotations

from typing import Any

from google.genai import types

from intent_router.config import Settings
from intent_router.errors import HandlerFailure, HandlerUnavailable
from intent_router.workers.history import ConversationStore
from intent_router.workers.media import MediaFetcher, MediaKind


class GeminiHandler:
    """Base class holding the async client, model name and history store."""

    def __init__(self, client: Any, model: str, store: ConversationStore) -> None:
        self.client = client
        self.model = model
        self.store = store

    async def _generate(
        self,
        contents: Any,
        config: types.GenerateContentConfig | None = None,
    ) -> Any:
        return await self.client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=config,
        )


def response_parts(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates or getattr(candidates[0], "content", None) is None:
        raise HandlerFailure("Model returned no candidates")
    return list(candidates[0].content.parts or [])


def response_text(response: Any) -> str:
    text = "".join(
        part.text
        for part in response_parts(response)
        if getattr(part, "text", None) and not getattr(part, "thought", False)
    ).strip()
    if not text:
        raise HandlerFailure("Model returned no text")
    return text


class AudioTranscriber(GeminiHandler):
    DEFAULT_PROMPT = "Describe the content of this audio"

    def __init__(
        self, client: Any, model: str, fetcher: MediaFetcher, store: ConversationStore
    ) -> None:
        super().__init__(client, model, store)
        self.fetcher = fetcher

    async def generate_response(self, user_id: str, prompt: str, url: str) -> str:
        audio = await self.fetcher.fetch(url, MediaKind.AUDIO)
        response = await self._generate(
            [
                prompt or self.DEFAULT_PROMPT,
                types.Part.from_bytes(data=audio.data, mime_type=audio.mime_type),
            ]
        )
        reply = response_text(response)
        self.store.store_exchange(user_id, f"{prompt} : {url}", reply)
        return reply


class VideoDescriber(GeminiHandler):
    def __init__(
        self, client: Any, model: str, fetcher: MediaFetcher, store: ConversationStore
    ) -> None:
        super().__init__(client, model, store)
        self.fetcher = fetcher

    async def generate_response(self, user_id: str, prompt: str, url: str) -> str:
        video = await self.fetcher.fetch(url, MediaKind.VIDEO)
        response = await self._generate(
            [types.Part.from_bytes(data=video.data, mime_type=video.mime_type), prompt]
        )
        reply = response_text(response)
        self.store.store_exchange(user_id, f"{prompt} : {url}", reply)
        return reply


class YouTubeDescriber(GeminiHandler):
    """Passes the YouTube link itself as a `file_data` URI; nothing is downloaded."""

    async def generate_response(self, user_id: str, prompt: str, url: str) -> str:
        response = await self._generate(
            [types.Part(file_data=types.FileData(file_uri=url)), prompt]
        )
        reply = response_text(response)
        self.store.store_exchange(user_id, f"{prompt} : {url}", reply)
        return reply


class CodeAssistant(GeminiHandler):
    """Code help with the model's sandboxed code-execution tool enabled."""

    async def generate_response(self, user_id: str, prompt: str) -> str:
        config = types.GenerateContentConfig(
            tools=[types.Tool(code_execution=types.ToolCodeExecution())]
        )
        response = await self._generate(prompt, config)
        reply = format_code_response(response_parts(response))
        self.store.store_exchange(user_id, prompt, reply)
        return reply


def format_code_response(parts: list[Any]) -> str:
    """Render text, executable code and execution output as markdown."""
    sections: list[str] = []
    for part in parts:
        if getattr(part, "text", None):
            sections.append(part.text.strip())
            continue

        code = getattr(part, "executable_code", None)
        if code is not None and code.code:
            language = getattr(code.language, "value", code.language) or ""
            sections.append(f"```{str(language).lower()}\n{code.code.rstrip()}\n```")
            continue

        result = getattr(part, "code_execution_result", None)
        if result is not None and result.output:
            sections.append(f"**Output:**\n```\n{result.output.rstrip()}\n```")

    formatted = "\n".join(section for section in sections if section)
    if not formatted:
        raise HandlerFailure("Model returned no code response")
    return formatted


def _require_client(client: Any) -> Any:
    if client is None:
        raise HandlerUnavailable("GEMINI_API_KEY is not configured")
    return client


def create_audio2txt(
    settings: Settings, client: Any, fetcher: MediaFetcher, store: ConversationStore
) -> AudioTranscriber:
    return AudioTranscriber(_require_client(client), settings.gemini_model, fetcher, store)


def create_vid2txt(
    settings: Settings, client: Any, fetcher: MediaFetcher, store: ConversationStore
) -> VideoDescriber:
    return VideoDescriber(_require_client(client), settings.gemini_model, fetcher, store)


def create_ytb2txt(settings: Settings, client: Any, store: ConversationStore) -> YouTubeDescriber:
    return YouTubeDescriber(_require_client(client), settings.gemini_model, store)


def create_code(settings: Settings, client: Any, store: ConversationStore) -> CodeAssistant:
    return CodeAssistant(_require_client(client), settings.gemini_model, store)
