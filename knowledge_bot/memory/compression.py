#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Политика сжатия истории диалога.

Когда история достигает порога, старые сообщения сворачиваются в одно
синтетическое сообщение с резюме, а последние сообщения сохраняются
без изменений. После каждого сжатия в истории остается не больше
keep_recent + 1 сообщений.
"""

import logging
from typing import Callable, Optional, Sequence

from knowledge_bot.memory.models import ConversationContext, ConversationMessage, ROLE_SYSTEM
from knowledge_bot.memory.summarizers import SummaryBuilder


logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 20
DEFAULT_KEEP_RECENT = 10

COMPRESSED_HISTORY_TAG = "[СЖАТАЯ ИСТОРИЯ]"


class CompressionPolicy:
    """
    Решает, когда сжимать историю, и выполняет сжатие.
    """

    def __init__(
        self,
        threshold: int = DEFAULT_THRESHOLD,
        keep_recent: int = DEFAULT_KEEP_RECENT,
        summarizer: Optional[Callable[[Sequence[ConversationMessage]], str]] = None
    ):
        """
        Инициализация политики сжатия.

        Args:
            threshold: Количество сообщений, при котором выполняется сжатие
            keep_recent: Количество последних сообщений, сохраняемых без сжатия
            summarizer: Функция построения резюме (по умолчанию SummaryBuilder)

        Raises:
            ValueError: Если параметры несовместимы
        """
        if keep_recent < 1:
            raise ValueError("keep_recent должен быть положительным")
        if threshold <= keep_recent:
            raise ValueError("threshold должен быть больше keep_recent")

        self.threshold = threshold
        self.keep_recent = keep_recent
        self.summarizer = summarizer or SummaryBuilder()

    def should_compress(self, context: ConversationContext) -> bool:
        """
        Проверяет, нужно ли сжимать контекст.

        Args:
            context: Контекст разговора

        Returns:
            bool: True, если количество сообщений достигло порога
        """
        should = context.message_count >= self.threshold
        if should:
            logger.info(f"Требуется сжатие контекста пользователя {context.user_id}, сообщений: {context.message_count}")
        return should

    def compress(self, context: ConversationContext) -> bool:
        """
        Сворачивает старые сообщения в резюме.

        Предыдущее сообщение с резюме заменяется новым и само в резюме
        не попадает.

        Args:
            context: Контекст разговора

        Returns:
            bool: True, если сжатие было выполнено
        """
        raw_messages = [message for message in context.messages if not message.is_compressed]
        fold_count = len(raw_messages) - self.keep_recent

        if fold_count <= 0:
            logger.debug(f"Нечего сжимать для пользователя {context.user_id}")
            return False

        to_fold = raw_messages[:fold_count]
        recent = raw_messages[fold_count:]

        summary = self.summarizer(to_fold)

        synthetic = ConversationMessage(
            role=ROLE_SYSTEM,
            content=f"{COMPRESSED_HISTORY_TAG}: {summary}",
            timestamp=to_fold[-1].timestamp,
            is_compressed=True
        )

        context.messages = [synthetic] + recent
        context.is_compressed = True
        context.compressed_summary = summary
        context.refresh_count()

        logger.info(
            f"Сжато {len(to_fold)} сообщений для пользователя {context.user_id}, "
            f"сохранено {len(recent)} последних"
        )
        return True

    def maybe_compress(self, context: ConversationContext) -> bool:
        if self.should_compress(context):
            return self.compress(context)
        return False
