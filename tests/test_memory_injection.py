"""Tests for memory formatting and prompt injection."""

from qdrant_memory.models.core import MemoryRecord, ScoredMemory, Speaker
from qdrant_memory.services.memory_injection import (
    MEMORY_HEADER,
    build_memory_entry,
    compute_insertion_index,
    format_memories,
    inject_memory_entry,
    truncate_text,
)


def _memory(text, speaker=Speaker.USER, score=0.9):
    record = MemoryRecord(id='1', text=text, speaker=speaker, character='Bob', created_at=0)
    return ScoredMemory(record=record, score=score)


class TestTruncate:
    """Tests for truncate_text."""

    def test_long_text_cut_to_150_plus_ellipsis(self):
        text = 'x' * 200
        assert truncate_text(text) == 'x' * 150 + '...'

    def test_short_text_unchanged(self):
        text = 'y' * 100
        assert truncate_text(text) == text

    def test_exactly_150_unchanged(self):
        text = 'z' * 150
        assert truncate_text(text) == text


class TestFormatMemories:
    """Tests for format_memories."""

    def test_empty(self):
        assert format_memories([]) == ''

    def test_header_and_bullets(self):
        formatted = format_memories([_memory('I love pizza'), _memory('Pizza is great', Speaker.CHARACTER)], 'Bob')
        lines = formatted.strip('\n').split('\n')
        assert lines == [MEMORY_HEADER, '• You said: "I love pizza"', '• Bob said: "Pizza is great"']

    def test_default_character_label(self):
        assert '• Character said: "Pizza is great"' in format_memories([_memory('Pizza is great', Speaker.CHARACTER)])

    def test_keeps_given_order(self):
        """Memories are listed in rank order, not re-sorted by score."""
        formatted = format_memories([_memory('first', score=0.4), _memory('second', score=0.8)])
        assert formatted.index('first') < formatted.index('second')

    def test_truncates_long_memories(self):
        formatted = format_memories([_memory('a' * 200)])
        assert f'"{"a" * 150}..."' in formatted
        assert 'a' * 151 not in formatted


class TestInsertion:
    """Tests for compute_insertion_index and inject_memory_entry."""

    def test_index_from_end(self):
        assert compute_insertion_index(10, 2) == 8

    def test_index_never_negative(self):
        assert compute_insertion_index(1, 5) == 0
        assert compute_insertion_index(0, 2) == 0

    def test_inject_returns_copy(self):
        messages = [{'mes': str(i)} for i in range(4)]
        original = list(messages)
        entry = build_memory_entry('memories', send_date=123)

        result = inject_memory_entry(messages, entry, 2)

        assert messages == original
        assert result[2] is entry
        assert len(result) == 5

    def test_memory_entry_shape(self):
        entry = build_memory_entry('memories', send_date=123)
        assert entry == {'name': 'System', 'is_user': False, 'is_system': True, 'mes': 'memories', 'send_date': 123}

    def test_memory_entry_defaults_send_date_to_now(self):
        assert build_memory_entry('memories')['send_date'] > 0
