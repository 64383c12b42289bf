"""
Core data models for the conversation memory system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Speaker(str, Enum):
    """Who wrote a remembered message."""
    USER = 'user'
    CHARACTER = 'character'


@dataclass
class MemoryRecord:
    """A single remembered chat message stored as a vector point.

    The vector and character are fixed once the point is written; rewriting the same id
    replaces the whole point.
    """
    id: str
    text: str
    speaker: Speaker
    character: str  # Logical owner, kept even in a shared collection for filtering
    created_at: int  # Milliseconds since epoch
    vector: List[float] = field(default_factory=list)
    message_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Payload stored next to the vector."""
        return {
            'text': self.text,
            'speaker': self.speaker.value,
            'character': self.character,
            'timestamp': self.created_at,
            'message_id': self.message_id
        }

    @classmethod
    def from_payload(cls, point_id: Any, payload: Dict[str, Any]) -> 'MemoryRecord':
        """Rebuild a record from a search hit. Vectors are not requested back."""
        try:
            speaker = Speaker(payload.get('speaker', Speaker.CHARACTER.value))
        except ValueError:
            speaker = Speaker.CHARACTER
        return cls(id=str(point_id),
                   text=str(payload.get('text', '')),
                   speaker=speaker,
                   character=str(payload.get('character', '')),
                   created_at=int(payload.get('timestamp') or 0),
                   message_id=payload.get('message_id'))


@dataclass
class ScoredMemory:
    """A memory record paired with its cosine similarity to the query."""
    record: MemoryRecord
    score: float


@dataclass(frozen=True)
class SaveQueueItem:
    """A pending request to persist one chat message."""
    text: str
    character: str
    speaker: Speaker
    message_id: Optional[str] = None

    @property
    def key(self):
        return (self.message_id, self.character)


@dataclass
class CollectionInfo:
    """Point counts reported by the vector store for one collection."""
    points_count: int
    vectors_count: int
    status: str = 'unknown'


@dataclass
class ChatContext:
    """Snapshot of the host chat: its messages and the active character, if any."""
    messages: List[Dict[str, Any]] = field(default_factory=list)
    character_name: Optional[str] = None
