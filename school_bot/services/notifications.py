from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from telegram import Bot, InlineKeyboardMarkup, ReplyKeyboardMarkup
from telegram.error import Forbidden, TelegramError

LOGGER = logging.getLogger(__name__)

ReplyMarkup = Optional[InlineKeyboardMarkup | ReplyKeyboardMarkup]


class Notifier:
    """Best-effort outbound messages.

    Delivery problems are logged and reported through the return value; no
    Telegram error ever escapes to the calling workflow.
    """

    def __init__(self, bot: Bot | Any) -> None:
        self.bot = bot

    async def send(self, chat_id: int, text: str, reply_markup: ReplyMarkup = None) -> bool:
        try:
            await self.bot.send_message(chat_id=chat_id, text=text, reply_markup=reply_markup)
        except Forbidden as exc:
            LOGGER.info("User %s has blocked the bot: %s", chat_id, exc)
            return False
        except TelegramError as exc:
            LOGGER.warning("Failed to deliver message to %s: %s", chat_id, exc)
            return False
        return True

    async def broadcast(
        self,
        chat_ids: Iterable[int],
        text: str,
        reply_markup: ReplyMarkup = None,
    ) -> int:
        sent = 0
        for chat_id in dict.fromkeys(chat_ids):
            if await self.send(chat_id, text, reply_markup=reply_markup):
                sent += 1
        return sent


__all__ = ["Notifier"]
