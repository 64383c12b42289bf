"""
Rendering retrieved memories into a synthetic chat entry and placing it in the prompt.
"""

from typing import Any, Dict, List, Optional

from ..models.core import ScoredMemory, Speaker
from ..utils.timestamp_utils import now_ms

MEMORY_HEADER = '[Retrieved from past conversations]'
MAX_MEMORY_CHARS = 150
ELLIPSIS = '...'


def truncate_text(text: str, limit: int = MAX_MEMORY_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def format_memories(memories: List[ScoredMemory], character_name: Optional[str] = None) -> str:
    """Render memories as a bullet list, in the order given.

    Args:
        memories: Retrieved memories, best first
        character_name: Label for the character's lines (defaults to 'Character')

    Returns:
        The formatted block, or an empty string when there are no memories
    """
    if not memories:
        return ''

    character_label = character_name or 'Character'
    lines = ['', MEMORY_HEADER]
    for memory in memories:
        record = memory.record
        speaker = 'You' if record.speaker == Speaker.USER else character_label
        lines.append(f'• {speaker} said: "{truncate_text(record.text)}"')
    return '\n'.join(lines) + '\n'


def compute_insertion_index(length: int, offset_from_end: int) -> int:
    """Index at which to insert an entry offset_from_end messages before the end, never negative."""
    return max(0, length - offset_from_end)


def build_memory_entry(text: str, send_date: Optional[int] = None) -> Dict[str, Any]:
    """System message carrying the memory block. It is never saved to chat history."""
    return {
        'name': 'System',
        'is_user': False,
        'is_system': True,
        'mes': text,
        'send_date': send_date if send_date is not None else now_ms()
    }


def inject_memory_entry(messages: List[Dict[str, Any]], entry: Dict[str, Any], offset_from_end: int) -> List[Dict[str, Any]]:
    """Copy of messages with entry spliced in; the given list is left untouched.

    Args:
        messages: Messages about to be sent for generation
        entry: The memory entry
        offset_from_end: How many messages from the end to insert it

    Returns:
        A new list containing the entry
    """
    working_copy = list(messages)
    working_copy.insert(compute_insertion_index(len(working_copy), offset_from_end), entry)
    return working_copy
