"""
Модуль для настройки логирования бота.
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name: str, log_file: Optional[str] = None, level: int = logging.INFO,
               log_dir: str = "logs") -> logging.Logger:
    """
    Создает и настраивает логгер с заданным именем.

    Args:
        name: Имя логгера
        log_file: Имя файла для записи логов (если None, то логи выводятся только в консоль)
        level: Уровень логирования
        log_dir: Директория для файлов логов

    Returns:
        logging.Logger: Настроенный логгер
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Если логгер уже имеет обработчики, не добавляем новые
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        os.makedirs(log_dir, exist_ok=True)
        file_path = os.path.join(log_dir, log_file)
        file_handler = RotatingFileHandler(file_path, maxBytes=10*1024*1024, backupCount=5, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def setup_logging(config) -> logging.Logger:
    """
    Настраивает корневой логгер пакета по конфигурации.

    Args:
        config: Объект Config

    Returns:
        logging.Logger: Логгер пакета knowledge_bot
    """
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    log_file = "knowledge_bot.log" if config.LOG_TO_FILE else None
    logger = get_logger("knowledge_bot", log_file=log_file, level=level, log_dir=config.LOG_DIRECTORY)

    # Библиотеки HTTP слишком подробно логируют на уровне INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logger
