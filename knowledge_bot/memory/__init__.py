#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Система памяти диалогов - ядро бота, отвечающее за хранение контекста
разговоров, сжатие истории, оценку важности сообщений и сборку окна
сообщений для языковой модели.
"""

# Модели данных
from knowledge_bot.memory.models import (
    ConversationMessage,
    ConversationContext,
    MessageAnalysis,
    KnowledgeUpdateSuggestion,
    ROLE_USER,
    ROLE_ASSISTANT,
    ROLE_SYSTEM
)
from knowledge_bot.memory.errors import ConversationMemoryError, StateCorruptionError

# Компоненты памяти
from knowledge_bot.memory.importance_analyzer import ImportanceAnalyzer, ScoringRule, DEFAULT_RULES
from knowledge_bot.memory.summarizers import SummaryBuilder
from knowledge_bot.memory.conversation_store import ConversationStore
from knowledge_bot.memory.compression import CompressionPolicy
from knowledge_bot.memory.prompt_assembler import PromptAssembler
from knowledge_bot.memory.suggestions import SuggestionEngine, TOPIC_TARGETS
from knowledge_bot.memory.conversation_service import ConversationService, TurnResult

__all__ = [
    # Модели данных
    'ConversationMessage',
    'ConversationContext',
    'MessageAnalysis',
    'KnowledgeUpdateSuggestion',
    'ROLE_USER',
    'ROLE_ASSISTANT',
    'ROLE_SYSTEM',
    'ConversationMemoryError',
    'StateCorruptionError',

    # Компоненты памяти
    'ImportanceAnalyzer',
    'ScoringRule',
    'DEFAULT_RULES',
    'SummaryBuilder',
    'ConversationStore',
    'CompressionPolicy',
    'PromptAssembler',
    'SuggestionEngine',
    'TOPIC_TARGETS',

    # Сервис
    'ConversationService',
    'TurnResult'
]
