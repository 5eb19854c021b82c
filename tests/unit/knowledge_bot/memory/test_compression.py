#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Тесты для политики сжатия истории.
"""

import pytest

from knowledge_bot.memory.compression import CompressionPolicy, COMPRESSED_HISTORY_TAG
from knowledge_bot.memory.conversation_store import ConversationStore


def fill(store, user_id, pairs, start=0):
    for i in range(start, start + pairs):
        store.append_pair(user_id, f"Вопрос {i}", f"Ответ {i}", importance=0.1, topics=["проект"])
    return store.get_or_create(user_id)


class TestCompressionPolicy:
    """Тесты для CompressionPolicy."""

    @pytest.fixture
    def store(self):
        return ConversationStore()

    @pytest.fixture
    def policy(self):
        return CompressionPolicy(threshold=20, keep_recent=10)

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            CompressionPolicy(threshold=10, keep_recent=10)
        with pytest.raises(ValueError):
            CompressionPolicy(threshold=10, keep_recent=0)

    def test_should_compress_threshold(self, store, policy):
        context = fill(store, 1, 9)
        assert policy.should_compress(context) is False

        fill(store, 1, 1, start=9)
        assert policy.should_compress(context) is True

    def test_compress_structure(self, store, policy):
        context = fill(store, 1, 10)
        kept = context.messages[-10:]

        assert policy.compress(context) is True

        assert len(context.messages) == 11
        assert context.message_count == 11
        summary_message = context.messages[0]
        assert summary_message.is_compressed is True
        assert summary_message.role == "system"
        assert summary_message.content.startswith(COMPRESSED_HISTORY_TAG)
        assert context.messages[1:] == kept
        assert context.is_compressed is True
        assert context.compressed_summary
        assert context.compressed_summary in summary_message.content
        store.validate(context)

    def test_summary_covers_folded_messages_only(self, store, policy):
        context = fill(store, 1, 10)

        policy.compress(context)

        assert "Вопрос 0" in context.compressed_summary
        assert "Вопрос 5" not in context.compressed_summary

    def test_compress_without_prefix_is_noop(self, store, policy):
        context = fill(store, 1, 5)
        before = list(context.messages)

        assert policy.compress(context) is False
        assert context.messages == before
        assert context.is_compressed is False

    def test_compress_twice_is_idempotent(self, store, policy):
        context = fill(store, 1, 10)
        policy.compress(context)
        after_first = list(context.messages)
        summary = context.compressed_summary

        assert policy.compress(context) is False
        assert context.messages == after_first
        assert context.compressed_summary == summary

    def test_new_fold_replaces_summary_message(self, store, policy):
        context = fill(store, 1, 10)
        policy.compress(context)
        first_summary = context.compressed_summary

        fill(store, 1, 5, start=10)
        policy.compress(context)

        synthetic = [message for message in context.messages if message.is_compressed]
        assert len(synthetic) == 1
        assert context.messages[0] is synthetic[0]
        assert len(context.messages) == 11
        assert context.compressed_summary != first_summary
        # Предыдущее резюме не сворачивается повторно
        assert COMPRESSED_HISTORY_TAG not in context.compressed_summary

    def test_bounded_after_many_cycles(self, store, policy):
        """После каждого сжатия длина истории не превышает keep_recent + 1."""
        for i in range(200):
            store.append_pair(1, f"q{i}", f"a{i}")
            context = store.get_or_create(1)
            if policy.maybe_compress(context):
                assert len(context.messages) == policy.keep_recent + 1
                assert sum(1 for message in context.messages if message.is_compressed) == 1
            assert len(context.messages) < policy.threshold

    def test_twenty_five_pairs(self, store, policy):
        """25 пар сообщений при пороге 20 и keep 10 дают 11 сообщений."""
        compressions = 0
        for i in range(25):
            store.append_pair(1, f"q{i}", f"a{i}")
            if policy.maybe_compress(store.get_or_create(1)):
                compressions += 1

        context = store.get_or_create(1)
        assert len(context.messages) == 11
        assert compressions == 4
        assert [message.content for message in context.messages[-2:]] == ["q24", "a24"]

    def test_chronological_order_preserved(self, store, policy):
        context = fill(store, 1, 10)
        policy.compress(context)

        timestamps = [message.timestamp for message in context.messages]
        assert timestamps == sorted(timestamps)
