"""
Тесты для отправки сообщений в Telegram.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.error import BadRequest, Forbidden, NetworkError, TelegramError

from knowledge_bot.telegram_notifier import (
    TelegramNotifier,
    DestinationUnreachableError,
    InvalidDestinationError,
    NotifierResponseError,
    split_message
)


def make_notifier(side_effect=None, max_length=4096):
    bot = MagicMock()
    bot.send_message = AsyncMock(side_effect=side_effect)
    return TelegramNotifier(bot, max_message_length=max_length), bot


class TestTelegramNotifier:
    """Тесты для TelegramNotifier."""

    def test_split_message(self):
        assert split_message("abc", 5) == ["abc"]
        assert split_message("abcdefg", 3) == ["abc", "def", "g"]

    @pytest.mark.asyncio
    async def test_send_message(self):
        notifier, bot = make_notifier()

        parts = await notifier.send_message(42, "Привет")

        assert parts == 1
        bot.send_message.assert_awaited_once_with(chat_id=42, text="Привет", parse_mode=None)

    @pytest.mark.asyncio
    async def test_long_message_split(self):
        notifier, bot = make_notifier(max_length=10)

        parts = await notifier.send_message("42", "x" * 25)

        assert parts == 3
        assert bot.send_message.await_count == 3

    @pytest.mark.asyncio
    async def test_invalid_chat_id(self):
        notifier, bot = make_notifier()

        with pytest.raises(InvalidDestinationError):
            await notifier.send_message("not-a-chat", "текст")
        bot.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_chat_not_found(self):
        notifier, _ = make_notifier(BadRequest("Chat not found"))

        with pytest.raises(InvalidDestinationError):
            await notifier.send_message(42, "текст")

    @pytest.mark.asyncio
    async def test_other_bad_request(self):
        notifier, _ = make_notifier(BadRequest("Message text is empty"))

        with pytest.raises(NotifierResponseError):
            await notifier.send_message(42, "текст")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [Forbidden("bot was blocked by the user"), NetworkError("connection reset")])
    async def test_unreachable(self, error):
        notifier, _ = make_notifier(error)

        with pytest.raises(DestinationUnreachableError) as raised:
            await notifier.send_message(42, "текст")
        assert raised.value.chat_id == 42

    @pytest.mark.asyncio
    async def test_unexpected_telegram_error(self):
        notifier, _ = make_notifier(TelegramError("unknown"))

        with pytest.raises(NotifierResponseError):
            await notifier.send_message(42, "текст")
