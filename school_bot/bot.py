"""python-telegram-bot wiring for the school bot.

:class:`SchoolTelegramBot` builds the PTB application, registers one handler
per update type and turns each update into an :class:`~school_bot.scenes.router.Event`
for the :class:`~school_bot.dispatcher.Dispatcher`.  Updates are processed
concurrently; ordering per user is guaranteed by the session locks.

As for any PTB bot we try to instantiate ``AIORateLimiter``.  When the
``rate-limiter`` extra is missing its constructor raises ``RuntimeError``;
we log a warning and run without it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from telegram import InlineKeyboardMarkup, ReplyKeyboardMarkup, Update
from telegram.error import TelegramError
from telegram.ext import (
    AIORateLimiter,
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from school_bot import messages
from school_bot.callbacks import CallbackCommand
from school_bot.config import BotConfig
from school_bot.database import Repository
from school_bot.dispatcher import Dispatcher, Services
from school_bot.menus import COMMANDS
from school_bot.scenes.router import Event, ReplyFn

LOGGER = logging.getLogger(__name__)


@dataclass
class SchoolTelegramBot:
    """Light-weight wrapper around the PTB application builder."""

    config: BotConfig
    repository: Optional[Repository] = None
    dispatcher: Optional[Dispatcher] = field(default=None, init=False)

    MESSAGE_LIMIT = 4096

    def __post_init__(self) -> None:
        if self.repository is None:
            self.repository = Repository(
                self.config.users_path, self.config.students_path, self.config.teachers_path
            )

    def build_application(self) -> Application:
        """Construct the PTB application."""

        builder = ApplicationBuilder().token(self.config.token).concurrent_updates(True)

        limiter = self._build_rate_limiter()
        if limiter is not None:
            builder = builder.rate_limiter(limiter)

        application = builder.post_init(self._bootstrap_admins).build()
        services = Services.create(self.repository, application.bot, self.config.admin_secret_code)
        self.dispatcher = Dispatcher(services)
        self._register_handlers(application)
        return application

    def _build_rate_limiter(self) -> Optional[AIORateLimiter]:
        """Return an ``AIORateLimiter`` instance when possible."""

        try:
            return AIORateLimiter()
        except RuntimeError as exc:  # pragma: no cover - depends on installation
            LOGGER.warning(
                "Failed to initialise the AIORateLimiter: %s. Running without a rate limiter.",
                exc,
            )
            return None

    async def _bootstrap_admins(self, application: Application) -> None:
        if not self.config.admin_ids:
            return
        await self.dispatcher.services.staff.bootstrap_admins(self.config.admin_ids)

    # ------------------------------------------------------------------
    # Handler registration helpers

    def _register_handlers(self, application: Application) -> None:
        for name in COMMANDS:
            application.add_handler(CommandHandler(name, self._command))
        application.add_handler(CallbackQueryHandler(self._callback))
        application.add_handler(MessageHandler(filters.Document.ALL, self._document))
        application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self._text))
        application.add_error_handler(self._on_error)

    def _sender(self, update: Update) -> ReplyFn:
        async def send(text: str, reply_markup: Optional[InlineKeyboardMarkup | ReplyKeyboardMarkup] = None) -> None:
            await self._reply(update, text, reply_markup=reply_markup)

        return send

    async def _command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        message = update.effective_message
        if user is None or message is None or not message.text:
            return
        name = message.text.split()[0].lstrip("/").split("@")[0].lower()
        await self.dispatcher.command(user.id, user.first_name, name, self._sender(update))

    async def _callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        query = update.callback_query
        if user is None or query is None:
            return
        command = CallbackCommand.parse(query.data)
        if command is None:
            LOGGER.info("Unparseable callback payload %r from %s", query.data, user.id)
        await self.dispatcher.handle(user.id, user.first_name, Event.callback(command), self._sender(update))

    async def _text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        message = update.effective_message
        if user is None or message is None:
            return
        await self.dispatcher.handle(
            user.id, user.first_name, Event.text_message(message.text or ""), self._sender(update)
        )

    async def _document(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        message = update.effective_message
        if user is None or message is None or message.document is None:
            return
        if not self.dispatcher.accepts_documents(user.id):
            await self._reply(update, messages.ERRORS["unknown_command"])
            return
        try:
            telegram_file = await message.document.get_file()
            payload = bytes(await telegram_file.download_as_bytearray())
        except TelegramError as exc:
            LOGGER.warning("Failed to download upload from %s: %s", user.id, exc)
            await self._reply(update, messages.ERRORS["upload_failed"])
            return
        await self.dispatcher.handle(user.id, user.first_name, Event.upload(payload), self._sender(update))

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        LOGGER.error("Unhandled error while processing %r", update, exc_info=context.error)

    # ------------------------------------------------------------------
    # Shared messaging helpers

    def _split_text(self, text: str) -> list[str]:
        if len(text) <= self.MESSAGE_LIMIT:
            return [text]
        chunks: list[str] = []
        current = ""
        for line in text.splitlines(keepends=True):
            while len(line) > self.MESSAGE_LIMIT:
                if current:
                    chunks.append(current)
                    current = ""
                chunks.append(line[: self.MESSAGE_LIMIT])
                line = line[self.MESSAGE_LIMIT :]
            if len(current) + len(line) > self.MESSAGE_LIMIT:
                chunks.append(current)
                current = ""
            current += line
        if current:
            chunks.append(current)
        return chunks

    async def _reply(
        self,
        update: Update,
        text: str,
        *,
        reply_markup: Optional[InlineKeyboardMarkup | ReplyKeyboardMarkup] = None,
    ) -> None:
        callback = update.callback_query
        if callback:
            try:
                await callback.answer()
            except TelegramError as exc:  # pragma: no cover - network/runtime specific
                LOGGER.debug("Unable to answer callback query: %s", exc)

        target = update.effective_message
        if target is None:
            return
        chunks = self._split_text(text)
        for index, chunk in enumerate(chunks):
            markup = reply_markup if index == len(chunks) - 1 else None
            try:
                await target.reply_text(chunk, reply_markup=markup)
            except TelegramError as exc:
                LOGGER.warning("Failed to reply to chat %s: %s", target.chat_id, exc)
                return


__all__ = ["SchoolTelegramBot"]
