"""
Collection naming for shared and per-character memory storage.
"""

import re

from ..utils.config import MemorySettings

_DISALLOWED = re.compile(r'[^a-z0-9_]')
_UNDERSCORE_RUNS = re.compile(r'_+')


def sanitize_character_name(name: str) -> str:
    """Turn a character name into a collection-safe suffix.

    Lowercases, replaces anything outside [a-z0-9_] (hyphens included) with '_', collapses runs of '_'
    and strips leading/trailing '_'. Applying it twice gives the same result.
    """
    sanitized = _DISALLOWED.sub('_', (name or '').lower())
    sanitized = _UNDERSCORE_RUNS.sub('_', sanitized)
    return sanitized.strip('_')


def resolve_collection_name(settings: MemorySettings, character_name: str) -> str:
    """Collection that stores a character's memories.

    In shared mode every character uses the base collection; otherwise the base name gets
    the sanitized character name appended.
    """
    if not settings.per_character_collections:
        return settings.collection_name
    return f'{settings.collection_name}_{sanitize_character_name(character_name)}'
