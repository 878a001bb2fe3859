import pytest
from telegram.error import NetworkError

from school_bot.services.notifications import Notifier

pytestmark = pytest.mark.anyio


async def test_send_reports_delivery(bot):
    notifier = Notifier(bot)

    assert await notifier.send(5, "hello") is True
    assert bot.texts_to(5) == ["hello"]


async def test_blocked_recipients_do_not_raise(bot):
    bot.blocked.add(5)
    notifier = Notifier(bot)

    assert await notifier.send(5, "hello") is False


async def test_network_errors_are_swallowed():
    class FlakyBot:
        async def send_message(self, chat_id, text, reply_markup=None):
            raise NetworkError("connection reset")

    assert await Notifier(FlakyBot()).send(5, "hello") is False


async def test_broadcast_counts_deliveries_once_per_chat(bot):
    bot.blocked.add(2)
    notifier = Notifier(bot)

    sent = await notifier.broadcast([1, 2, 3, 1], "news")

    assert sent == 2
    assert bot.texts_to(1) == ["news"]
