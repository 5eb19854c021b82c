#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Предложения по сохранению важной информации в базу знаний.
"""

import logging
from typing import Dict, List, Optional

from knowledge_bot.memory.importance_analyzer import IMPORTANCE_THRESHOLD
from knowledge_bot.memory.models import ConversationContext, KnowledgeUpdateSuggestion, ROLE_USER


logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_LIMIT = 5

# Тема -> файл базы знаний
TOPIC_TARGETS: Dict[str, str] = {
    "проект": "projects.json",
    "встреча": "meetings.json",
    "задача": "tasks.json",
    "решение": "decisions.json",
    "клиент": "contacts.json",
    "договор": "contracts.json",
    "дедлайн": "deadlines.json",
    "идея": "ideas.json",
}


class SuggestionEngine:
    """
    Выбирает важные сообщения пользователя и предлагает, куда их сохранить.
    """

    def __init__(
        self,
        topic_targets: Optional[Dict[str, str]] = None,
        limit: int = DEFAULT_SUGGESTION_LIMIT,
        threshold: float = IMPORTANCE_THRESHOLD
    ):
        """
        Args:
            topic_targets: Таблица соответствия тем и файлов базы знаний
            limit: Сколько последних важных сообщений рассматривать
            threshold: Минимальная оценка важности (не включительно)
        """
        self.topic_targets = dict(topic_targets if topic_targets is not None else TOPIC_TARGETS)
        self.limit = limit
        self.threshold = threshold

    def target_for(self, topics: List[str]) -> Optional[str]:
        """Возвращает файл для первой темы, которая есть в таблице."""
        for topic in topics:
            if topic in self.topic_targets:
                return self.topic_targets[topic]
        return None

    def suggest(self, context: ConversationContext) -> List[KnowledgeUpdateSuggestion]:
        """
        Формирует предложения по обновлению базы знаний.

        Каждая тема сообщения, найденная в таблице, дает отдельное предложение.

        Args:
            context: Контекст разговора

        Returns:
            List[KnowledgeUpdateSuggestion]: Предложения в хронологическом порядке сообщений
        """
        important = [
            message for message in context.messages
            if message.role == ROLE_USER
            and message.importance_score is not None
            and message.importance_score > self.threshold
        ]
        if self.limit:
            important = important[-self.limit:]
        else:
            important = []

        suggestions = []
        for message in important:
            for topic in message.topics:
                target_file = self.topic_targets.get(topic)
                if target_file is None:
                    continue

                suggestions.append(KnowledgeUpdateSuggestion(
                    target_file=target_file,
                    update_type="create_entry",
                    data={
                        "content": message.content,
                        "timestamp": message.timestamp.isoformat()
                    },
                    reason=f"Обнаружена тема: {topic}",
                    confidence=message.importance_score
                ))

        logger.info(f"Сформировано {len(suggestions)} предложений для пользователя {context.user_id}")
        return suggestions
