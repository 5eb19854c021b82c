#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Сервис памяти диалогов.

Связывает оценку важности, хранилище, сжатие, сборку окна и предложения
в единую последовательность обработки сообщения пользователя:
оценка -> добавление пары -> сжатие при необходимости.
"""

import logging
from typing import Dict, List, Optional

from knowledge_bot.memory.compression import CompressionPolicy
from knowledge_bot.memory.conversation_store import ConversationStore
from knowledge_bot.memory.errors import StateCorruptionError
from knowledge_bot.memory.importance_analyzer import ImportanceAnalyzer
from knowledge_bot.memory.models import ConversationContext, KnowledgeUpdateSuggestion, MessageAnalysis
from knowledge_bot.memory.prompt_assembler import PromptAssembler
from knowledge_bot.memory.suggestions import SuggestionEngine


logger = logging.getLogger(__name__)


class TurnResult:
    """Результат сохранения одного обмена сообщениями."""

    def __init__(self, message_count: int, compressed: bool, analysis: MessageAnalysis):
        self.message_count = message_count
        self.compressed = compressed
        self.analysis = analysis


class ConversationService:
    """
    Управляет памятью диалогов всех пользователей.
    """

    def __init__(
        self,
        store: Optional[ConversationStore] = None,
        analyzer: Optional[ImportanceAnalyzer] = None,
        policy: Optional[CompressionPolicy] = None,
        assembler: Optional[PromptAssembler] = None,
        suggestion_engine: Optional[SuggestionEngine] = None
    ):
        self.store = store or ConversationStore()
        self.analyzer = analyzer or ImportanceAnalyzer()
        self.policy = policy or CompressionPolicy()
        self.assembler = assembler or PromptAssembler()
        self.suggestion_engine = suggestion_engine or SuggestionEngine()
        logger.info("Инициализирован сервис памяти диалогов")

    @classmethod
    def from_config(cls, config) -> 'ConversationService':
        """
        Создает сервис с параметрами из конфигурации.

        Args:
            config: Объект Config

        Returns:
            ConversationService: Настроенный сервис
        """
        return cls(
            policy=CompressionPolicy(
                threshold=config.COMPRESSION_THRESHOLD,
                keep_recent=config.KEEP_RECENT_MESSAGES
            ),
            assembler=PromptAssembler(window_size=config.CONTEXT_WINDOW_SIZE),
            suggestion_engine=SuggestionEngine(limit=config.SUGGESTION_LIMIT)
        )

    def _checked_context(self, user_id: int) -> ConversationContext:
        # Вызывается только внутри критической секции пользователя
        context = self.store.get_or_create(user_id)
        try:
            self.store.validate(context)
        except StateCorruptionError as e:
            logger.error(f"{e}. Контекст будет сброшен")
            context = self.store.reset(user_id)
        return context

    def get_context(self, user_id: int) -> ConversationContext:
        """
        Получает проверенный контекст пользователя.

        Поврежденный контекст сбрасывается в пустое состояние.

        Args:
            user_id: ID пользователя в Telegram

        Returns:
            ConversationContext: Контекст разговора
        """
        with self.store.locked(user_id):
            return self._checked_context(user_id)

    def analyze_message(self, text: Optional[str]) -> MessageAnalysis:
        """
        Оценивает важность сообщения и предлагает файл базы знаний.

        Args:
            text: Текст сообщения

        Returns:
            MessageAnalysis: Результат анализа
        """
        analysis = self.analyzer.analyze(text)
        if analysis.contains_important_info:
            analysis.suggested_knowledge_update = self.suggestion_engine.target_for(analysis.topics)
        return analysis

    def build_window(self, user_id: int, user_text: str) -> List[Dict[str, str]]:
        """
        Собирает сообщения для запроса к модели.

        Args:
            user_id: ID пользователя
            user_text: Новое сообщение пользователя

        Returns:
            List[Dict[str, str]]: Окно сообщений
        """
        with self.store.locked(user_id):
            context = self._checked_context(user_id)
            return self.assembler.build_window(context, user_text)

    def record_turn(self, user_id: int, user_text: str, ai_text: str) -> TurnResult:
        """
        Сохраняет обмен сообщениями и сжимает историю при необходимости.

        Добавление и сжатие выполняются в одной критической секции,
        поэтому параллельные сообщения одного пользователя не
        пересекаются.

        Args:
            user_id: ID пользователя
            user_text: Сообщение пользователя
            ai_text: Ответ ассистента

        Returns:
            TurnResult: Количество сообщений, факт сжатия и анализ
        """
        analysis = self.analyze_message(user_text)

        with self.store.locked(user_id):
            context = self._checked_context(user_id)
            self.store.append_pair(
                user_id,
                user_text,
                ai_text,
                importance=analysis.importance_score,
                topics=analysis.topics
            )
            compressed = self.policy.maybe_compress(context)
            message_count = context.message_count

        if analysis.contains_important_info:
            logger.info(f"Важное сообщение от пользователя {user_id}, оценка {analysis.importance_score}, темы: {analysis.topics}")

        return TurnResult(message_count, compressed, analysis)

    def get_suggestions(self, user_id: int) -> List[KnowledgeUpdateSuggestion]:
        """
        Формирует предложения по сохранению информации для пользователя.

        Args:
            user_id: ID пользователя

        Returns:
            List[KnowledgeUpdateSuggestion]: Предложения
        """
        with self.store.locked(user_id):
            context = self._checked_context(user_id)
            return self.suggestion_engine.suggest(context)

    def reset_conversation(self, user_id: int) -> None:
        self.store.reset(user_id)
