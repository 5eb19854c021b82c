"""
Конфигурация бота управления знаниями
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Загружаем переменные окружения из .env-файла
load_dotenv()


def _get_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


# Текстовые сообщения
WELCOME_MESSAGE = """
👋 Привет! Я ассистент для управления персональными знаниями.

Я помню наш разговор и подскажу, какую важную информацию стоит сохранить.
Просто напишите мне сообщение, и я постараюсь помочь!

/suggest - показать, что стоит сохранить
/save - сохранить предложенное в базу знаний
/reset - сбросить диалог
/help - справка
"""

HELP_MESSAGE = """
🔍 Справка по использованию бота:

1. Просто напишите мне сообщение с вопросом или задачей
2. /suggest покажет важные сообщения, которые можно сохранить
3. /save сохранит предложения в базу знаний
4. Для сброса диалога используйте команду /reset
"""

RESET_MESSAGE = "🔄 Диалог сброшен. Можете начать новый разговор."
NO_SUGGESTIONS_MESSAGE = "Пока нечего сохранять в базу знаний."
SAVED_MESSAGE = "💾 Сохранено записей в базу знаний: {count}"
ERROR_MESSAGE = "❌ Произошла техническая ошибка. Попробуйте позже."
NETWORK_ERROR_MESSAGE = "📡 Проблема с сетевым соединением. Попробуйте позже."
QUOTA_ERROR_MESSAGE = "⏳ Превышен лимит запросов к модели. Попробуйте позже."
RESPONSE_ERROR_MESSAGE = "❌ Произошла ошибка обработки ответа. Попробуйте позже."


@dataclass
class Config:
    # Telegram
    TELEGRAM_BOT_TOKEN: str = ""
    MAX_MESSAGE_LENGTH: int = 4096

    # DeepSeek
    DEEPSEEK_API_KEY: str = ""
    DEEPSEEK_API_URL: str = "https://api.deepseek.com/v1/chat/completions"
    DEEPSEEK_MODEL: str = "deepseek-chat"
    DEFAULT_TEMPERATURE: float = 0.7
    DEFAULT_MAX_TOKENS: int = 1000
    REQUEST_TIMEOUT: int = 60

    # Память диалогов
    COMPRESSION_THRESHOLD: int = 20
    KEEP_RECENT_MESSAGES: int = 10
    CONTEXT_WINDOW_SIZE: int = 15
    SUGGESTION_LIMIT: int = 5

    # База знаний
    KNOWLEDGE_DIR: str = "data/knowledge"

    # Логирование
    LOG_DIRECTORY: str = "logs"
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    def validate(self) -> None:
        """
        Проверяет обязательные параметры.

        Raises:
            ValueError: Если не задан токен бота или ключ API
        """
        missing = [
            name for name in ("TELEGRAM_BOT_TOKEN", "DEEPSEEK_API_KEY")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"Не заданы обязательные переменные окружения: {', '.join(missing)}")


def load_config() -> Config:
    """
    Создает конфигурацию из переменных окружения.

    Returns:
        Config: Конфигурация
    """
    return Config(
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", os.getenv("TELEGRAM_TOKEN", "")),
        MAX_MESSAGE_LENGTH=int(os.getenv("MAX_MESSAGE_LENGTH", "4096")),
        DEEPSEEK_API_KEY=os.getenv("DEEPSEEK_API_KEY", ""),
        DEEPSEEK_API_URL=os.getenv("DEEPSEEK_API_URL", "https://api.deepseek.com/v1/chat/completions"),
        DEEPSEEK_MODEL=os.getenv("DEEPSEEK_MODEL", "deepseek-chat"),
        DEFAULT_TEMPERATURE=float(os.getenv("DEFAULT_TEMPERATURE", "0.7")),
        DEFAULT_MAX_TOKENS=int(os.getenv("DEFAULT_MAX_TOKENS", "1000")),
        REQUEST_TIMEOUT=int(os.getenv("REQUEST_TIMEOUT", "60")),
        COMPRESSION_THRESHOLD=int(os.getenv("COMPRESSION_THRESHOLD", "20")),
        KEEP_RECENT_MESSAGES=int(os.getenv("KEEP_RECENT_MESSAGES", "10")),
        CONTEXT_WINDOW_SIZE=int(os.getenv("CONTEXT_WINDOW_SIZE", "15")),
        SUGGESTION_LIMIT=int(os.getenv("SUGGESTION_LIMIT", "5")),
        KNOWLEDGE_DIR=os.getenv("KNOWLEDGE_DIR", "data/knowledge"),
        LOG_DIRECTORY=os.getenv("LOG_DIRECTORY", "logs"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        LOG_TO_FILE=_get_bool("LOG_TO_FILE", "True")
    )
