"""
Отправка сообщений пользователям через Telegram Bot API
"""

import logging
from typing import List, Optional

from telegram import Bot
from telegram.error import BadRequest, Forbidden, NetworkError, RetryAfter, TelegramError

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096


class NotifierError(Exception):
    """Базовый класс ошибок доставки сообщений."""

    def __init__(self, message: str, chat_id=None):
        super().__init__(message)
        self.chat_id = chat_id


class DestinationUnreachableError(NotifierError):
    """Чат недоступен: бот заблокирован, сеть недоступна или лимит запросов."""
    pass


class InvalidDestinationError(NotifierError):
    """Некорректный идентификатор чата или чат не найден."""
    pass


class NotifierResponseError(NotifierError):
    """Telegram вернул неожиданную ошибку."""
    pass


def split_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Разбивает длинный текст на части допустимой длины.

    Args:
        text: Текст сообщения
        max_length: Максимальная длина одной части

    Returns:
        List[str]: Части сообщения
    """
    if len(text) <= max_length:
        return [text]
    return [text[i:i + max_length] for i in range(0, len(text), max_length)]


class TelegramNotifier:
    """
    Доставляет ответы ассистента в чаты Telegram.
    """

    def __init__(self, bot: Bot, max_message_length: int = MAX_MESSAGE_LENGTH,
                 parse_mode: Optional[str] = None):
        self.bot = bot
        self.max_message_length = max_message_length
        self.parse_mode = parse_mode

    async def send_message(self, chat_id, text: str) -> int:
        """
        Отправляет сообщение в чат.

        Args:
            chat_id: ID чата
            text: Текст сообщения

        Returns:
            int: Количество отправленных частей

        Raises:
            InvalidDestinationError: Если ID чата некорректен или чат не найден
            DestinationUnreachableError: Если чат недоступен
            NotifierResponseError: При прочих ошибках Telegram
        """
        try:
            chat_id = int(chat_id)
        except (TypeError, ValueError) as e:
            raise InvalidDestinationError(f"Некорректный ID чата: {chat_id!r}", chat_id) from e

        chunks = split_message(text, self.max_message_length)
        logger.info(f"Отправка сообщения в чат {chat_id}: {text[:50]}...")

        try:
            for chunk in chunks:
                await self.bot.send_message(chat_id=chat_id, text=chunk, parse_mode=self.parse_mode)
        except BadRequest as e:
            # BadRequest наследуется от NetworkError, поэтому проверяется первым
            logger.error(f"Telegram отклонил сообщение для чата {chat_id}: {e}")
            if "chat not found" in str(e).lower():
                raise InvalidDestinationError(str(e), chat_id) from e
            raise NotifierResponseError(str(e), chat_id) from e
        except (Forbidden, RetryAfter, NetworkError) as e:
            logger.error(f"Чат {chat_id} недоступен: {e}")
            raise DestinationUnreachableError(str(e), chat_id) from e
        except TelegramError as e:
            logger.error(f"Ошибка Telegram API для чата {chat_id}: {e}")
            raise NotifierResponseError(str(e), chat_id) from e

        logger.info(f"Сообщение успешно отправлено в чат {chat_id}")
        return len(chunks)
