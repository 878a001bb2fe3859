"""Entrypoint for the school management Telegram bot."""

from __future__ import annotations

import asyncio
import logging
import sys

from telegram.error import InvalidToken as TelegramInvalidToken
from telegram.error import NetworkError as TelegramNetworkError
from telegram.error import TimedOut as TelegramTimedOut

from school_bot.bot import SchoolTelegramBot
from school_bot.config import BotConfig

LOGGER = logging.getLogger(__name__)


def main() -> None:  # pragma: no cover - thin wrapper
    """Entry point used by the ``school-bot`` console script."""

    if sys.platform.startswith("win"):
        # python-telegram-bot needs a selector event loop, which is not the
        # default on Windows.
        try:  # pragma: no cover - specific to Windows runtime
            asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
        except AttributeError:
            pass

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("telegram.ext").setLevel(logging.WARNING)

    try:
        config = BotConfig.load()
    except RuntimeError as exc:
        LOGGER.error("%s", exc)
        raise SystemExit(1) from exc

    bot = SchoolTelegramBot(config=config)
    application = bot.build_application()
    LOGGER.info("School bot started with data in %s", config.data_dir)
    try:
        application.run_polling()
    except TelegramInvalidToken as exc:  # pragma: no cover - network dependent
        LOGGER.error("Telegram rejected the bot token. Check SCHOOL_BOT_TOKEN.")
        raise SystemExit(1) from exc
    except TelegramTimedOut as exc:  # pragma: no cover - network dependent
        LOGGER.error("Timed out while connecting to Telegram (%s).", exc)
        LOGGER.error("Check the network connection, proxy settings or access to api.telegram.org.")
        raise SystemExit(1) from exc
    except TelegramNetworkError as exc:  # pragma: no cover - network dependent
        LOGGER.error("Network failure while talking to Telegram: %s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
