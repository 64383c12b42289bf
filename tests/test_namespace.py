"""Tests for collection naming."""

import pytest

from qdrant_memory.services.namespace import resolve_collection_name, sanitize_character_name
from qdrant_memory.utils.config import MemorySettings


class TestSanitizeCharacterName:
    """Tests for sanitize_character_name."""

    @pytest.mark.parametrize('name, expected', [
        ('Dr. Smith', 'dr_smith'),
        ('Neko-chan!', 'neko_chan'),
        ('  __Alice__  ', 'alice'),
        ('Bob', 'bob'),
        ('R2D2', 'r2d2'),
        ('a___b', 'a_b'),
        ('Zoë', 'zo'),
        ('', ''),
        ('!!!', ''),
    ])
    def test_sanitizes(self, name, expected):
        assert sanitize_character_name(name) == expected

    @pytest.mark.parametrize('name', ['Dr. Smith', 'Neko-chan!', '__x__y__', 'ÄÖÜ test', 'already_clean', ''])
    def test_idempotent(self, name):
        """Sanitizing twice gives the same result as once."""
        once = sanitize_character_name(name)
        assert sanitize_character_name(once) == once

    def test_none_is_empty(self):
        assert sanitize_character_name(None) == ''


class TestResolveCollectionName:
    """Tests for resolve_collection_name."""

    def test_per_character_mode(self):
        settings = MemorySettings(collection_name='mem', per_character_collections=True)
        assert resolve_collection_name(settings, 'Dr. Smith') == 'mem_dr_smith'
        assert resolve_collection_name(settings, 'Neko-chan!') == 'mem_neko_chan'

    def test_shared_mode_ignores_character(self):
        settings = MemorySettings(collection_name='mem', per_character_collections=False)
        assert resolve_collection_name(settings, 'Dr. Smith') == 'mem'
        assert resolve_collection_name(settings, 'Bob') == 'mem'

    def test_empty_character_degenerates_to_base(self):
        settings = MemorySettings(collection_name='mem', per_character_collections=True)
        assert resolve_collection_name(settings, '') == 'mem_'

    def test_deterministic(self):
        settings = MemorySettings(collection_name='mem')
        assert resolve_collection_name(settings, 'Bob') == resolve_collection_name(settings, 'Bob')
