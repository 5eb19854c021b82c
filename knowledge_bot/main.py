"""
Основной файл для запуска Telegram-бота.
"""

import logging

from knowledge_bot.bot import create_application
from knowledge_bot.config import load_config
from knowledge_bot.logger import setup_logging

logger = logging.getLogger(__name__)


def main():
    """
    Основная функция для запуска бота
    """
    config = load_config()
    setup_logging(config)
    config.validate()

    application = create_application(config)

    logger.info("Бот запущен и готов к работе")
    application.run_polling()


if __name__ == "__main__":
    main()
