#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Сборка окна сообщений для запроса к языковой модели.
"""

import logging
from typing import Dict, List, Optional

from knowledge_bot.memory.models import ConversationContext, ROLE_SYSTEM, ROLE_USER


logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 15

PREVIOUS_CONTEXT_TAG = "[ПРЕДЫДУЩИЙ КОНТЕКСТ]"

DEFAULT_SYSTEM_PROMPT = """Ты умный AI-ассистент для персонального управления знаниями.

Твои возможности:
- Отвечаешь на вопросы пользователя, используя контекст предыдущих разговоров
- Помогаешь организовывать и находить информацию
- Предлагаешь сохранить важную информацию в базу знаний
- Общаешься естественно и дружелюбно на русском языке

Стиль общения: прямой, без лишних восторгов, техническая глубина когда нужно.

Если в разговоре появляется важная информация (проекты, задачи, решения, контакты), предложи пользователю сохранить её.

Отвечай кратко и по существу, но дружелюбно."""


class PromptAssembler:
    """
    Формирует ограниченную последовательность сообщений для модели.

    Окно состоит из системного промпта, резюме сжатой истории (если есть),
    последних window_size обычных сообщений и нового запроса пользователя,
    поэтому его длина не превышает window_size + 3.
    """

    def __init__(self, system_prompt: str = DEFAULT_SYSTEM_PROMPT, window_size: int = DEFAULT_WINDOW_SIZE):
        if window_size < 0:
            raise ValueError("window_size не может быть отрицательным")
        self.system_prompt = system_prompt
        self.window_size = window_size

    def build_window(
        self,
        context: ConversationContext,
        user_text: str,
        system_prompt: Optional[str] = None
    ) -> List[Dict[str, str]]:
        """
        Собирает сообщения для запроса к модели.

        Args:
            context: Контекст разговора пользователя
            user_text: Новое сообщение пользователя
            system_prompt: Системный промпт вместо промпта по умолчанию

        Returns:
            List[Dict[str, str]]: Сообщения в формате [{role: "", content: ""}, ...]
        """
        messages = [{"role": ROLE_SYSTEM, "content": system_prompt or self.system_prompt}]

        if context.compressed_summary:
            messages.append({
                "role": ROLE_SYSTEM,
                "content": f"{PREVIOUS_CONTEXT_TAG}: {context.compressed_summary}"
            })

        recent = [
            message for message in context.messages
            if not message.is_compressed and message.has_content
        ]
        if self.window_size:
            recent = recent[-self.window_size:]
        else:
            recent = []

        for message in recent:
            messages.append({"role": message.role, "content": message.content})

        messages.append({"role": ROLE_USER, "content": user_text})

        logger.info(f"Сформировано {len(messages)} сообщений для модели (из истории: {len(recent)})")
        return messages
