"""
Canonical identity for chat messages and the vector point ids derived from it.
"""

import uuid
from typing import Any, Optional

POINT_ID_NAMESPACE = uuid.NAMESPACE_URL


def make_message_id(character_name: str, send_date: Any, index: int) -> str:
    """Identity of a chat message: character, send date and position in the chat.

    Every message source uses this one scheme, so the save queue deduplicates the same
    message no matter which event reported it.
    """
    return f'{character_name}_{send_date}_{index}'


def to_point_id(message_id: Optional[str]) -> str:
    """Vector point id for a message.

    Qdrant only accepts UUIDs and unsigned integers as ids. Ids that already are one are
    kept, other message ids map to a stable uuid5, and a missing id gets a random uuid4.
    """
    if message_id is None or message_id == '':
        return str(uuid.uuid4())

    message_id = str(message_id)
    if message_id.isdigit():
        return message_id
    try:
        return str(uuid.UUID(message_id))
    except ValueError:
        return str(uuid.uuid5(POINT_ID_NAMESPACE, f'qdrant-memory:{message_id}'))
