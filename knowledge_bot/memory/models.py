#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Модели данных системы памяти диалогов.

Определяет сообщения, контекст разговора пользователя, результат анализа
важности и предложения по обновлению базы знаний.
"""

from datetime import datetime, timezone
from typing import Dict, List, Any, Optional, Iterable


ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"

ROLES = (ROLE_USER, ROLE_ASSISTANT, ROLE_SYSTEM)


def utcnow() -> datetime:
    """Текущее время в UTC."""
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


class ConversationMessage:
    """
    Сообщение в истории диалога.

    Синтетическое сообщение с резюме, созданное при сжатии, помечается
    флагом is_compressed и никогда не сжимается повторно.
    """

    def __init__(
        self,
        role: str,
        content: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        is_compressed: bool = False,
        importance_score: Optional[float] = None,
        topics: Optional[Iterable[str]] = None
    ):
        """
        Инициализация сообщения.

        Args:
            role: Роль отправителя (user, assistant, system)
            content: Текст сообщения
            timestamp: Временная метка создания сообщения
            is_compressed: Является ли сообщение резюме сжатой истории
            importance_score: Оценка важности (только для сообщений пользователя)
            topics: Темы сообщения

        Raises:
            ValueError: Если роль неизвестна
        """
        if role not in ROLES:
            raise ValueError(f"Неизвестная роль сообщения: {role}")

        self.role = role
        self.content = content
        self.timestamp = timestamp or utcnow()
        self.is_compressed = is_compressed
        self.importance_score = importance_score
        self.topics: List[str] = []
        for topic in topics or []:
            if topic not in self.topics:
                self.topics.append(topic)

    @property
    def has_content(self) -> bool:
        """Есть ли у сообщения непустой текст."""
        return bool(self.content and self.content.strip())

    def to_dict(self) -> Dict[str, Any]:
        """
        Преобразует сообщение в словарь для сериализации.

        Returns:
            Dict[str, Any]: Словарь с данными сообщения
        """
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "is_compressed": self.is_compressed,
            "importance_score": self.importance_score,
            "topics": list(self.topics)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConversationMessage':
        """
        Создает сообщение из словаря.

        Args:
            data: Словарь с данными сообщения

        Returns:
            ConversationMessage: Созданное сообщение
        """
        return cls(
            role=data["role"],
            content=data.get("content"),
            timestamp=_parse_timestamp(data["timestamp"]),
            is_compressed=data.get("is_compressed", False),
            importance_score=data.get("importance_score"),
            topics=data.get("topics", [])
        )

    def __repr__(self) -> str:
        return f"ConversationMessage(role={self.role!r}, content={self.content!r}, is_compressed={self.is_compressed})"


class ConversationContext:
    """
    Полное состояние разговора одного пользователя.
    """

    def __init__(
        self,
        user_id: int,
        messages: Optional[List[ConversationMessage]] = None,
        created_at: Optional[datetime] = None,
        last_activity: Optional[datetime] = None,
        is_compressed: bool = False,
        compressed_summary: Optional[str] = None
    ):
        """
        Инициализация контекста разговора.

        Args:
            user_id: ID пользователя в Telegram
            messages: История сообщений в хронологическом порядке
            created_at: Время создания контекста
            last_activity: Время последней активности
            is_compressed: Выполнялось ли сжатие хотя бы раз
            compressed_summary: Текст последнего резюме
        """
        now = utcnow()
        self.user_id = user_id
        self.messages: List[ConversationMessage] = list(messages or [])
        self.created_at = created_at or now
        self.last_activity = last_activity or now
        self.message_count = len(self.messages)
        self.is_compressed = is_compressed
        self.compressed_summary = compressed_summary

    def touch(self) -> None:
        """Обновляет время последней активности."""
        self.last_activity = utcnow()

    def refresh_count(self) -> None:
        """Пересчитывает количество сообщений после изменения истории."""
        self.message_count = len(self.messages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "messages": [message.to_dict() for message in self.messages],
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
            "message_count": self.message_count,
            "is_compressed": self.is_compressed,
            "compressed_summary": self.compressed_summary
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConversationContext':
        context = cls(
            user_id=data["user_id"],
            messages=[ConversationMessage.from_dict(item) for item in data.get("messages", [])],
            created_at=_parse_timestamp(data["created_at"]),
            last_activity=_parse_timestamp(data["last_activity"]),
            is_compressed=data.get("is_compressed", False),
            compressed_summary=data.get("compressed_summary")
        )
        # Сохраненный счетчик восстанавливается как есть, расхождение выявит валидация
        context.message_count = data.get("message_count", len(context.messages))
        return context


class MessageAnalysis:
    """Результат анализа важности сообщения."""

    def __init__(
        self,
        importance_score: float = 0.0,
        topics: Optional[List[str]] = None,
        extracted_facts: Optional[List[str]] = None,
        contains_important_info: bool = False,
        suggested_knowledge_update: Optional[str] = None
    ):
        self.importance_score = importance_score
        self.topics = list(topics or [])
        self.extracted_facts = list(extracted_facts or [])
        self.contains_important_info = contains_important_info
        self.suggested_knowledge_update = suggested_knowledge_update

    def to_dict(self) -> Dict[str, Any]:
        return {
            "importance_score": self.importance_score,
            "topics": list(self.topics),
            "extracted_facts": list(self.extracted_facts),
            "contains_important_info": self.contains_important_info,
            "suggested_knowledge_update": self.suggested_knowledge_update
        }


class KnowledgeUpdateSuggestion:
    """
    Предложение по сохранению информации в базу знаний.

    Носит рекомендательный характер: сохранение выполняется только
    после подтверждения пользователем.
    """

    UPDATE_TYPES = ("add_section", "update_field", "create_entry")

    def __init__(
        self,
        target_file: str,
        update_type: str,
        data: Dict[str, Any],
        reason: str,
        confidence: float
    ):
        if update_type not in self.UPDATE_TYPES:
            raise ValueError(f"Неизвестный тип обновления: {update_type}")

        self.target_file = target_file
        self.update_type = update_type
        self.data = data
        self.reason = reason
        self.confidence = confidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_file": self.target_file,
            "update_type": self.update_type,
            "data": self.data,
            "reason": self.reason,
            "confidence": self.confidence
        }

    def __repr__(self) -> str:
        return f"KnowledgeUpdateSuggestion(target_file={self.target_file!r}, confidence={self.confidence})"
