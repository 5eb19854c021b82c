#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Исключения системы памяти диалогов.
"""

from typing import Optional


class ConversationMemoryError(Exception):
    """Базовый класс ошибок системы памяти."""
    pass


class StateCorruptionError(ConversationMemoryError):
    """Состояние контекста разговора нарушено."""

    def __init__(self, user_id: Optional[int], reason: str):
        super().__init__(f"Поврежден контекст пользователя {user_id}: {reason}")
        self.user_id = user_id
        self.reason = reason
