#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Построение текстового резюме для сжатия истории диалога.

Резюме строится детерминированно, без обращения к модели: одинаковая
последовательность сообщений всегда дает одинаковый текст.
"""

import logging
from typing import List, Sequence

from knowledge_bot.memory.models import ConversationMessage, ROLE_USER


logger = logging.getLogger(__name__)


class SummaryBuilder:
    """
    Строит резюме пачки сообщений: количество, длительность, темы
    и первые запросы пользователя.
    """

    def __init__(self, max_topics: int = 5, max_queries: int = 3, query_length: int = 50):
        """
        Args:
            max_topics: Максимальное количество тем в резюме
            max_queries: Максимальное количество запросов пользователя
            query_length: Максимальная длина каждого запроса в символах
        """
        self.max_topics = max_topics
        self.max_queries = max_queries
        self.query_length = query_length

    def build(self, messages: Sequence[ConversationMessage]) -> str:
        """
        Создает резюме сообщений.

        Args:
            messages: Сообщения в хронологическом порядке

        Returns:
            str: Текст резюме (пустая строка для пустой пачки)
        """
        if not messages:
            return ""

        timestamps = [message.timestamp for message in messages]
        span_minutes = (max(timestamps) - min(timestamps)).total_seconds() / 60

        user_contents = [
            message.content for message in messages
            if message.role == ROLE_USER and message.has_content
        ]

        topics = self.collect_topics(messages)
        queries = [self._truncate(content) for content in user_contents[:self.max_queries]]

        summary = (
            f"Резюме диалога ({len(messages)} сообщений за {span_minutes:.0f} мин.): "
            f"Обсуждаемые темы: {', '.join(topics) or 'нет'}. "
            f"Пользователь спрашивал: {'; '.join(queries) or 'нет'}"
        )

        logger.debug(f"Создано резюме для {len(messages)} сообщений")
        return summary

    def collect_topics(self, messages: Sequence[ConversationMessage]) -> List[str]:
        """
        Собирает уникальные темы в порядке первого появления.

        Если у сообщений нет тем, в качестве тем берутся первые два
        слова длиннее трех символов из каждого запроса пользователя.
        """
        topics: List[str] = []
        for message in messages:
            for topic in message.topics:
                if topic not in topics:
                    topics.append(topic)

        if not topics:
            for message in messages:
                if message.role != ROLE_USER or not message.has_content:
                    continue
                words = [word for word in message.content.lower().split() if len(word) > 3][:2]
                for word in words:
                    if word not in topics:
                        topics.append(word)

        return topics[:self.max_topics]

    def _truncate(self, content: str) -> str:
        content = content.strip()
        if len(content) > self.query_length:
            return content[:self.query_length] + "..."
        return content

    def __call__(self, messages: Sequence[ConversationMessage]) -> str:
        return self.build(messages)
