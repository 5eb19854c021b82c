#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Хранилище контекстов разговоров пользователей.

Каждый пользователь владеет своим контекстом и своей блокировкой:
изменения одного контекста выполняются последовательно, а операции
с разными пользователями не блокируют друг друга.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Iterable

from knowledge_bot.memory.errors import StateCorruptionError
from knowledge_bot.memory.models import (
    ConversationContext,
    ConversationMessage,
    ROLE_ASSISTANT,
    ROLE_USER,
    utcnow
)


logger = logging.getLogger(__name__)


class ConversationStore:
    """
    Потокобезопасное хранилище контекстов в памяти процесса.
    """

    def __init__(self):
        self._contexts: Dict[int, ConversationContext] = {}
        self._locks: Dict[int, threading.RLock] = {}
        # Защищает только реестр блокировок, а не сами контексты
        self._registry_lock = threading.Lock()
        logger.info("Инициализировано хранилище контекстов разговоров")

    def _lock_for(self, user_id: int) -> threading.RLock:
        lock = self._locks.get(user_id)
        if lock is None:
            with self._registry_lock:
                lock = self._locks.setdefault(user_id, threading.RLock())
        return lock

    @contextmanager
    def locked(self, user_id: int) -> Iterator[None]:
        """
        Критическая секция для контекста одного пользователя.

        Блокировка реентерабельна, поэтому методы хранилища можно
        вызывать внутри секции.

        Args:
            user_id: ID пользователя
        """
        lock = self._lock_for(user_id)
        with lock:
            yield

    def get_or_create(self, user_id: int) -> ConversationContext:
        """
        Получает или создает контекст пользователя.

        Args:
            user_id: ID пользователя в Telegram

        Returns:
            ConversationContext: Контекст разговора
        """
        with self.locked(user_id):
            context = self._contexts.get(user_id)
            if context is None:
                context = ConversationContext(user_id)
                self._contexts[user_id] = context
                logger.info(f"Создан новый контекст для пользователя {user_id}")

            context.touch()
            logger.debug(f"Получен контекст пользователя {user_id}, сообщений: {context.message_count}")
            return context

    def append_pair(
        self,
        user_id: int,
        user_text: str,
        ai_text: str,
        importance: Optional[float] = None,
        topics: Optional[Iterable[str]] = None
    ) -> int:
        """
        Добавляет пару сообщений: пользователь, затем ассистент.

        Args:
            user_id: ID пользователя
            user_text: Текст сообщения пользователя
            ai_text: Текст ответа ассистента
            importance: Оценка важности сообщения пользователя
            topics: Темы сообщения пользователя

        Returns:
            int: Количество сообщений после добавления
        """
        with self.locked(user_id):
            context = self.get_or_create(user_id)
            now = utcnow()

            context.messages.append(ConversationMessage(
                role=ROLE_USER,
                content=user_text,
                timestamp=now,
                importance_score=importance,
                topics=topics
            ))
            context.messages.append(ConversationMessage(
                role=ROLE_ASSISTANT,
                content=ai_text,
                timestamp=now
            ))

            context.refresh_count()
            context.touch()

            logger.info(f"Добавлена пара сообщений для пользователя {user_id}, всего сообщений: {context.message_count}")
            return context.message_count

    def validate(self, context: ConversationContext) -> None:
        """
        Проверяет целостность контекста.

        Args:
            context: Контекст для проверки

        Raises:
            StateCorruptionError: Если счетчик сообщений расходится с историей
                или контекст помечен сжатым без резюме
        """
        if context.message_count != len(context.messages):
            raise StateCorruptionError(
                context.user_id,
                f"счетчик {context.message_count} не совпадает с длиной истории {len(context.messages)}"
            )

        if context.is_compressed and not context.compressed_summary:
            raise StateCorruptionError(context.user_id, "контекст помечен сжатым, но резюме отсутствует")

        synthetic = sum(1 for message in context.messages if message.is_compressed)
        if synthetic > 1:
            raise StateCorruptionError(context.user_id, f"найдено {synthetic} сообщений с резюме")

    def reset(self, user_id: int) -> ConversationContext:
        """
        Сбрасывает контекст пользователя в пустое несжатое состояние.

        Args:
            user_id: ID пользователя

        Returns:
            ConversationContext: Новый пустой контекст
        """
        with self.locked(user_id):
            context = ConversationContext(user_id)
            self._contexts[user_id] = context
            logger.info(f"Контекст пользователя {user_id} сброшен")
            return context

    def get(self, user_id: int) -> Optional[ConversationContext]:
        """Возвращает контекст без создания и без обновления активности."""
        return self._contexts.get(user_id)

    def user_ids(self) -> List[int]:
        return list(self._contexts)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._contexts

    def __len__(self) -> int:
        return len(self._contexts)
