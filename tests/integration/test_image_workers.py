import io
from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest
from google.genai import types
from PIL import Image

from intent_router.config import MediaConfig
from intent_router.errors import HandlerFailure
from intent_router.workers.history import InMemoryConversationStore
from intent_router.workers.images import ImageEditor, ImageGenerator
from intent_router.workers.media import MediaFetcher
from intent_router.workers.uploader import AnonymousUploader

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _image_bytes(fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color="red").save(buffer, format=fmt)
    return buffer.getvalue()


class _FakeModels:
    def __init__(self, response) -> None:
        self.response = response
        self.calls: list[dict] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        return self.response


def _client(*parts: types.Part) -> SimpleNamespace:
    response = types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )
    models = _FakeModels(response)
    return SimpleNamespace(aio=SimpleNamespace(models=models), models=models)


class FakeUploader:
    def __init__(self) -> None:
        self.uploaded: list[tuple[str, bytes]] = []

    async def upload(self, path: Path, *, content_type: str = "image/png") -> str:
        self.uploaded.append((path.name, path.read_bytes()))
        return f"https://files.test/{path.name}"


@pytest.mark.asyncio
async def test_generate_image_uploads_and_cleans_temp(tmp_path) -> None:
    image = _image_bytes("PNG")
    client = _client(
        types.Part(text="A fox at dawn."),
        types.Part(inline_data=types.Blob(data=image, mime_type="image/png")),
    )
    uploader, store = FakeUploader(), InMemoryConversationStore()
    generator = ImageGenerator(client, "gemini-image", uploader, store, tmp_path)

    result = await generator.generate_image("user/1", "a fox at dawn")

    assert uploader.uploaded[0][1] == image
    assert result.image_url.startswith("https://files.test/user_1_")
    assert result.text_response == "A fox at dawn."
    assert result.model_response == f"Here's ai generated image of your prompt: {result.image_url}"
    assert client.models.calls[0]["config"].response_modalities == ["TEXT", "IMAGE"]
    assert [turn.text for turn in store.read("user/1")] == ["a fox at dawn", result.model_response]
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_generate_image_without_image_part_fails_cleanly(tmp_path) -> None:
    generator = ImageGenerator(
        _client(types.Part(text="I cannot draw that.")),
        "gemini-image",
        FakeUploader(),
        InMemoryConversationStore(),
        tmp_path,
    )

    with pytest.raises(HandlerFailure, match="No image was generated"):
        await generator.generate_image("u1", "something")
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_edit_image_converts_source_to_png(tmp_path) -> None:
    source = _image_bytes("JPEG")
    edited = _image_bytes("PNG")
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, content=source, headers={"content-type": "image/jpeg"})
    )
    client = _client(types.Part(inline_data=types.Blob(data=edited, mime_type="image/png")))
    uploader, store = FakeUploader(), InMemoryConversationStore()
    editor = ImageEditor(
        client, "gemini-image", MediaFetcher(transport=transport), uploader, store, tmp_path
    )

    result = await editor.edit_image("u1", "https://a.test/cat.jpg", "make it blue")

    prompt, image_part = client.models.calls[0]["contents"]
    assert prompt == "make it blue"
    assert image_part.inline_data.mime_type == "image/png"
    assert image_part.inline_data.data.startswith(PNG_SIGNATURE)
    assert result.original_url == "https://a.test/cat.jpg"
    assert result.edited_image_url == f"https://files.test/{uploader.uploaded[0][0]}"
    assert store.read("u1")[0].text == "Edit this image: https://a.test/cat.jpg with prompt: make it blue"
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_edit_image_rejects_non_image_download(tmp_path) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html></html>"))
    client = _client(types.Part(text="unused"))
    editor = ImageEditor(
        client,
        "gemini-image",
        MediaFetcher(transport=transport),
        FakeUploader(),
        InMemoryConversationStore(),
        tmp_path,
    )

    with pytest.raises(HandlerFailure):
        await editor.edit_image("u1", "https://a.test/page", "make it blue")
    assert client.models.calls == []
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_uploader_posts_multipart_and_reads_url(tmp_path) -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json={"success": True, "files": [{"url": "https://h.test/abc.png"}]}
        )

    path = tmp_path / "out.png"
    path.write_bytes(PNG_SIGNATURE)
    uploader = AnonymousUploader(
        MediaConfig(upload_url="https://h.test/upload.php"), transport=httpx.MockTransport(_handler)
    )

    assert await uploader.upload(path) == "https://h.test/abc.png"
    assert seen[0].method == "POST"
    assert b'name="files[]"; filename="out.png"' in seen[0].content


@pytest.mark.asyncio
async def test_uploader_without_url_fails(tmp_path) -> None:
    path = tmp_path / "out.png"
    path.write_bytes(PNG_SIGNATURE)
    uploader = AnonymousUploader(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"success": False}))
    )

    with pytest.raises(HandlerFailure):
        await uploader.upload(path)
