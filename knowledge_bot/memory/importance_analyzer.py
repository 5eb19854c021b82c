#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Модуль для оценки важности сообщений пользователя.

Оценка строится по декларативной таблице правил: каждое правило задает
условие срабатывания, вес и метку (тему или факт). Один цикл оценки
применяет таблицу к тексту, поэтому правила можно расширять и тестировать
независимо от самого алгоритма.
"""

import logging
import re
from typing import Callable, List, Optional, Sequence

from knowledge_bot.memory.models import MessageAnalysis


logger = logging.getLogger(__name__)

IMPORTANCE_THRESHOLD = 0.3

FACT_DATE = "содержит дату"
FACT_NUMERIC = "содержит числовые данные"

DATE_PATTERN = re.compile(r"(?<!\d)\d{1,2}[./-]\d{1,2}[./-]\d{2,4}(?!\d)")
NUMERIC_PATTERN = re.compile(
    r"\d+(?:[.,]\d+)?\s*(?:%|процент"
    r"|руб|₽|\$|€|usd|eur|долл|евро"
    r"|час|ч\b|hours?\b"
    r"|дн|день|дней|days?\b)",
    re.IGNORECASE
)


class ScoringRule:
    """
    Правило оценки важности.

    Правила с одинаковой меткой срабатывают не более одного раза за анализ.
    """

    def __init__(
        self,
        name: str,
        weight: float,
        matcher: Callable[[str], bool],
        topic: Optional[str] = None,
        fact: Optional[str] = None
    ):
        """
        Args:
            name: Имя правила
            weight: Вклад в оценку важности
            matcher: Функция, проверяющая текст
            topic: Тема, добавляемая при срабатывании
            fact: Факт, добавляемый при срабатывании
        """
        self.name = name
        self.weight = weight
        self.matcher = matcher
        self.topic = topic
        self.fact = fact

    @property
    def label(self) -> str:
        return self.topic or self.fact or self.name

    def matches(self, text: str) -> bool:
        return self.matcher(text)

    def __repr__(self) -> str:
        return f"ScoringRule({self.name!r}, weight={self.weight})"


def keyword_rule(topic: str, *keywords: str, weight: float = 0.1) -> ScoringRule:
    """
    Создает правило поиска ключевых слов без учета регистра.

    Args:
        topic: Тема, к которой относятся ключевые слова
        keywords: Подстроки для поиска (по умолчанию сама тема)
        weight: Вклад в оценку

    Returns:
        ScoringRule: Правило
    """
    needles = tuple(keyword.lower() for keyword in (keywords or (topic,)))

    def matcher(text: str) -> bool:
        lowered = text.lower()
        return any(needle in lowered for needle in needles)

    return ScoringRule(f"keyword:{topic}", weight, matcher, topic=topic)


def regex_rule(name: str, pattern: re.Pattern, weight: float, fact: str) -> ScoringRule:
    return ScoringRule(name, weight, lambda text: pattern.search(text) is not None, fact=fact)


def min_length_rule(length: int, weight: float = 0.1) -> ScoringRule:
    return ScoringRule(f"length>{length}", weight, lambda text: len(text) > length)


# Для коротких основ перечисляются словоформы: подстроки "цел" и "иде"
# встречаются в "в целом", "идет" и т.п.
GOAL_FORMS = ("цель", "цели", "целей", "целью", "целям", "целями", "целях")
IDEA_FORMS = ("идея", "идеи", "идей", "идею", "идеей", "идеям", "идеями", "идеях")

# Порядок правил определяет порядок тем в результате
DEFAULT_RULES: List[ScoringRule] = [
    keyword_rule("проект", "проект", "project"),
    keyword_rule("задача", "задач", "task"),
    keyword_rule("решение", "решени", "decision"),
    keyword_rule("дедлайн", "дедлайн", "срок", "deadline"),
    keyword_rule("клиент", "клиент", "client"),
    keyword_rule("договор", "договор", "контракт", "contract"),
    keyword_rule("срочно", "срочн", "urgent"),
    keyword_rule("план", "план", "plan"),
    keyword_rule("цель", *GOAL_FORMS, "goal"),
    keyword_rule("результат", "результат", "result"),
    keyword_rule("статус", "статус", "status"),
    keyword_rule("проблема", "проблем", "problem"),
    keyword_rule("идея", *IDEA_FORMS, "idea"),
    keyword_rule("встреча", "встреч", "meeting"),
    regex_rule("date", DATE_PATTERN, 0.2, FACT_DATE),
    regex_rule("numeric", NUMERIC_PATTERN, 0.15, FACT_NUMERIC),
    min_length_rule(100, 0.1),
]


class ImportanceAnalyzer:
    """
    Оценщик важности текста на основе таблицы правил.

    Не хранит состояния: одинаковый текст всегда дает одинаковый результат.
    """

    def __init__(self, rules: Optional[Sequence[ScoringRule]] = None, threshold: float = IMPORTANCE_THRESHOLD):
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)
        self.threshold = threshold

    def analyze(self, text: Optional[str]) -> MessageAnalysis:
        """
        Оценивает важность текста.

        Args:
            text: Текст сообщения

        Returns:
            MessageAnalysis: Оценка, темы и факты
        """
        if not text or not text.strip():
            return MessageAnalysis()

        score = 0.0
        topics: List[str] = []
        facts: List[str] = []
        applied = set()

        for rule in self.rules:
            if rule.label in applied or not rule.matches(text):
                continue

            applied.add(rule.label)
            score += rule.weight
            if rule.topic and rule.topic not in topics:
                topics.append(rule.topic)
            if rule.fact and rule.fact not in facts:
                facts.append(rule.fact)

        score = round(min(1.0, max(0.0, score)), 4)

        logger.debug(f"Оценка важности {score}, темы: {topics}, факты: {facts}")
        return MessageAnalysis(
            importance_score=score,
            topics=topics,
            extracted_facts=facts,
            contains_important_info=score > self.threshold
        )

    def score(self, text: Optional[str]) -> float:
        return self.analyze(text).importance_score
