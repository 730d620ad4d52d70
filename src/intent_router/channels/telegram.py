"""Telegram channel adapter using long polling mode."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from loguru import logger
from telegram import Message, Update
from telegram.constants import ChatType, ParseMode
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from intent_router.brain.dispatcher import Dispatcher
from intent_router.brain.fallback import extract_urls
from intent_router.config import RoutingConfig
from intent_router.types import Query, ResultEnvelope

PROCESSING_MESSAGE = "⏳ Processing your request..."


@dataclass(frozen=True)
class TelegramConfig:
    """Telegram adapter config."""

    token: str
    command: str = "gemini"


def is_message_for_bot(text: str, chat_type: str, bot_username: str | None, command: str) -> bool:
    """Private chats always; groups only for the command or an @mention."""
    if chat_type == ChatType.PRIVATE:
        return True
    if text.startswith(f"/{command}"):
        return True
    if bot_username:
        return f"@{bot_username}".lower() in text.lower()
    return False


def strip_invocation(text: str, bot_username: str | None, command: str) -> str:
    """Remove the leading `/command[@bot]` and any `@bot` mention."""
    suffix = f"(@{re.escape(bot_username)})?" if bot_username else ""
    text = re.sub(rf"^/{re.escape(command)}{suffix}\s*", "", text, flags=re.IGNORECASE)
    if bot_username:
        text = re.sub(rf"@{re.escape(bot_username)}", "", text, flags=re.IGNORECASE)
    return text.strip()


def build_query(text: str, user_id: str, urls: list[str], default_prompt: str) -> Query | None:
    """Reduce an inbound message to a `Query`; `None` when there is nothing to route."""
    text = text.strip()
    if urls and not text:
        text = default_prompt
    if not text and not urls:
        return None
    return Query(text=text, user_id=user_id, urls=tuple(urls))


class TelegramChannel:
    """Feeds Telegram messages to the dispatcher and renders the envelopes."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        config: TelegramConfig,
        routing: RoutingConfig | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.config = config
        self.routing = routing or dispatcher.config

    def build_application(self) -> Application:
        if not self.config.token:
            raise RuntimeError("TELEGRAM_BOT_TOKEN is not set")
        app = Application.builder().token(self.config.token).build()
        app.add_handler(CommandHandler("start", self._on_start))
        app.add_handler(
            MessageHandler(
                filters.TEXT | filters.PHOTO | filters.AUDIO | filters.VIDEO | filters.VOICE,
                self._on_message,
                block=False,
            )
        )
        return app

    def run(self) -> None:
        logger.info("telegram.channel.start command=/{}", self.config.command)
        self.build_application().run_polling(allowed_updates=["message"])

    async def _on_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None:
            return
        username = context.bot.username or "botusername"
        await message.reply_text(
            "Welcome! You can talk to me in group chats in two ways:\n"
            f"1. Mention me directly with @{username}\n"
            f"2. Use the /{self.config.command} command followed by your query"
        )

    async def _on_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None or message.from_user is None or message.from_user.is_bot:
            return

        bot_username = context.bot.username
        text = message.text or message.caption or ""
        if not is_message_for_bot(text, message.chat.type, bot_username, self.config.command):
            return
        if message.chat.type != ChatType.PRIVATE:
            text = strip_invocation(text, bot_username, self.config.command)

        urls = extract_urls(text)
        for source in (message, message.reply_to_message):
            if source is None:
                continue
            media_url = await _media_url(context.bot, source)
            if media_url:
                urls.append(media_url)

        query = build_query(
            text, str(message.from_user.id), urls, self.routing.default_media_prompt
        )
        if query is None:
            return

        logger.info(
            "telegram.inbound chat_id={} user_id={} urls={}",
            message.chat_id,
            query.user_id,
            len(query.urls),
        )
        status = await message.reply_text(PROCESSING_MESSAGE)
        envelope = await self.dispatcher.route(query.user_id, query.text, list(query.urls))
        await deliver(message, status, envelope)


async def deliver(message: Message, status: Message, envelope: ResultEnvelope) -> None:
    """Render an envelope, replacing the processing status message."""
    try:
        if envelope.success and envelope.type == "image":
            await status.delete()
            photo = envelope.image_url or envelope.edited_image_url
            if photo:
                caption = envelope.message or ("Edited image" if envelope.edited_image_url else "")
                await message.reply_photo(photo, caption=caption, parse_mode=ParseMode.MARKDOWN)
            return

        if envelope.success:
            text = envelope.message or "Response generated."
        else:
            text = envelope.message or "Something went wrong."
        await status.edit_text(text, parse_mode=ParseMode.MARKDOWN)
    except TelegramError as exc:
        logger.warning("telegram.outbound edit failed, resending error={}", exc)
        await message.reply_text(envelope.message or "Response processed.")


async def _media_url(bot: Any, message: Message) -> str | None:
    if message.photo:
        file_id = message.photo[-1].file_id
    elif message.audio:
        file_id = message.audio.file_id
    elif message.voice:
        file_id = message.voice.file_id
    elif message.video:
        file_id = message.video.file_id
    else:
        return None

    try:
        telegram_file = await bot.get_file(file_id)
    except TelegramError as exc:
        logger.warning("telegram.media lookup failed file_id={} error={}", file_id, exc)
        return None
    return telegram_file.file_path
