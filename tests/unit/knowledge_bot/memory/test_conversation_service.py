#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Тесты для сервиса памяти диалогов.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from knowledge_bot.config import Config
from knowledge_bot.memory import (
    CompressionPolicy,
    ConversationMessage,
    ConversationService,
    PromptAssembler
)


class TestConversationService:
    """Тесты для ConversationService."""

    @pytest.fixture
    def service(self):
        return ConversationService(
            policy=CompressionPolicy(threshold=20, keep_recent=10),
            assembler=PromptAssembler(system_prompt="промпт", window_size=15)
        )

    def test_record_turn_scores_user_message(self, service):
        result = service.record_turn(1, "Встреча назначена на 15.08.2025, обсудим статус проекта", "Хорошо")

        context = service.get_context(1)
        user_message = context.messages[0]

        assert result.message_count == 2
        assert result.compressed is False
        assert result.analysis.contains_important_info is True
        assert user_message.importance_score == pytest.approx(0.5)
        assert "встреча" in user_message.topics
        assert context.messages[1].importance_score is None

    def test_no_compression_below_threshold(self, service):
        results = [service.record_turn(1, f"q{i}", f"a{i}") for i in range(9)]

        assert not any(result.compressed for result in results)
        assert service.get_context(1).message_count == 18

    def test_exactly_one_compression_at_threshold(self, service):
        results = [service.record_turn(1, f"q{i}", f"a{i}") for i in range(10)]

        assert [result.compressed for result in results].count(True) == 1
        assert results[-1].compressed is True
        assert results[-1].message_count == 11

    def test_twenty_five_pairs(self, service):
        for i in range(25):
            service.record_turn(1, f"q{i}", f"a{i}")

        context = service.get_context(1)
        assert len(context.messages) == 11
        assert context.is_compressed is True

    def test_concurrent_turns_same_user(self, service):
        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(lambda i: service.record_turn(5, f"q{i}", f"a{i}"), range(60)))

        context = service.get_context(5)
        assert context.message_count == len(context.messages)
        assert sum(1 for message in context.messages if message.is_compressed) == 1
        assert len(context.messages) < 20

    def test_corrupted_context_is_reset(self, service):
        service.record_turn(1, "q", "a")
        context = service.get_context(1)
        context.messages.append(ConversationMessage("user", "лишнее"))

        recovered = service.get_context(1)

        assert recovered is not context
        assert recovered.messages == []
        assert recovered.is_compressed is False

    def test_record_turn_after_corruption(self, service):
        context = service.get_context(1)
        context.is_compressed = True

        result = service.record_turn(1, "q", "a")

        assert result.message_count == 2
        assert service.get_context(1).is_compressed is False

    def test_build_window(self, service):
        service.record_turn(1, "q0", "a0")

        window = service.build_window(1, "новый")

        assert [entry["content"] for entry in window] == ["промпт", "q0", "a0", "новый"]

    def test_analyze_message_suggests_file(self, service):
        analysis = service.analyze_message("Срочно: задача по проекту к 01.09.2025")

        assert analysis.contains_important_info is True
        assert analysis.suggested_knowledge_update == "projects.json"

    def test_analyze_unimportant_message(self, service):
        analysis = service.analyze_message("проект")

        assert analysis.contains_important_info is False
        assert analysis.suggested_knowledge_update is None

    def test_get_suggestions(self, service):
        service.record_turn(1, "Встреча назначена на 15.08.2025, обсудим статус проекта", "Хорошо")
        service.record_turn(1, "Привет", "Привет!")

        suggestions = service.get_suggestions(1)

        assert {s.target_file for s in suggestions} == {"projects.json", "meetings.json"}

    def test_reset_conversation(self, service):
        service.record_turn(1, "q", "a")
        service.reset_conversation(1)

        assert service.get_context(1).messages == []

    def test_from_config(self):
        config = Config(COMPRESSION_THRESHOLD=30, KEEP_RECENT_MESSAGES=12, CONTEXT_WINDOW_SIZE=8, SUGGESTION_LIMIT=3)

        service = ConversationService.from_config(config)

        assert service.policy.threshold == 30
        assert service.policy.keep_recent == 12
        assert service.assembler.window_size == 8
        assert service.suggestion_engine.limit == 3
