from unittest.mock import AsyncMock

import pytest
from telegram.error import TelegramError

from intent_router.channels.telegram import (
    build_query,
    deliver,
    is_message_for_bot,
    strip_invocation,
)
from intent_router.types import ResultEnvelope


def test_private_chats_always_address_the_bot() -> None:
    assert is_message_for_bot("hello", "private", "RouterBot", "gemini")


def test_group_messages_need_command_or_mention() -> None:
    assert not is_message_for_bot("hello all", "group", "RouterBot", "gemini")
    assert is_message_for_bot("/gemini what is this", "group", "RouterBot", "gemini")
    assert is_message_for_bot("hey @routerbot, summarize", "supergroup", "RouterBot", "gemini")


def test_strip_invocation_removes_command_and_mention() -> None:
    assert strip_invocation("/gemini@RouterBot what is this", "RouterBot", "gemini") == "what is this"
    assert strip_invocation("@RouterBot draw a cat", "RouterBot", "gemini") == "draw a cat"


def test_build_query_defaults_prompt_for_media_only_messages() -> None:
    query = build_query("  ", "42", ["https://api.telegram.test/file/photo.jpg"], "Process this")

    assert query is not None
    assert query.text == "Process this"
    assert query.urls == ("https://api.telegram.test/file/photo.jpg",)
    assert build_query("", "42", [], "Process this") is None


@pytest.mark.asyncio
async def test_deliver_edits_status_for_text_results() -> None:
    message, status = AsyncMock(), AsyncMock()

    await deliver(message, status, ResultEnvelope(success=True, type="text", message="Hi!"))

    status.edit_text.assert_awaited_once()
    assert status.edit_text.await_args.args[0] == "Hi!"
    message.reply_photo.assert_not_awaited()


@pytest.mark.asyncio
async def test_deliver_replaces_status_with_photo() -> None:
    message, status = AsyncMock(), AsyncMock()
    envelope = ResultEnvelope(
        success=True,
        type="image",
        message="Here's the edited image: https://files.test/b.png",
        original_url="https://a.test/cat.png",
        edited_image_url="https://files.test/b.png",
    )

    await deliver(message, status, envelope)

    status.delete.assert_awaited_once()
    assert message.reply_photo.await_args.args[0] == "https://files.test/b.png"


@pytest.mark.asyncio
async def test_deliver_resends_when_edit_fails() -> None:
    message, status = AsyncMock(), AsyncMock()
    status.edit_text.side_effect = TelegramError("message is not modified")

    await deliver(message, status, ResultEnvelope.error("Failed to analyze image"))

    message.reply_text.assert_awaited_once_with("Failed to analyze image")
