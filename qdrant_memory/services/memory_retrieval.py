"""
Retrieval of past conversation snippets relevant to the current message.
"""

from typing import Any, Dict, List, Optional

from ..models.core import ScoredMemory
from ..utils.config import MemorySettings
from ..utils.embeddings import EmbeddingProvider
from ..utils.logging_config import get_logger
from ..utils.qdrant_client import QdrantClient
from .namespace import resolve_collection_name

logger = get_logger(__name__)


def find_query_message(messages: List[Dict[str, Any]]) -> Optional[str]:
    """Text of the last user message with content, or None.

    Args:
        messages: Chat messages in host format ('mes', 'is_user', ...)
    """
    for message in reversed(messages):
        if message.get('is_user') and (message.get('mes') or '').strip():
            return message['mes']
    return None


class MemoryRetrievalService:
    """Finds the stored memories most similar to a query."""

    def __init__(self, settings: MemorySettings, store: QdrantClient, embedder: EmbeddingProvider):
        """
        Initialize the retrieval service.

        Args:
            settings: Shared MemorySettings instance
            store: Vector store client
            embedder: Embedding provider
        """
        self.settings = settings
        self.store = store
        self.embedder = embedder

    async def retrieve(self, query: str, character_name: Optional[str]) -> List[ScoredMemory]:
        """Search a character's memories.

        Infrastructure failures never propagate: a missing collection, failed embedding or
        failed search all return an empty list so generation can proceed without memories.

        Args:
            query: Text to search for
            character_name: Character whose memories are searched

        Returns:
            Memories with score >= score_threshold, best first, at most memory_limit of them
        """
        if not self.settings.enabled:
            return []

        # Without a character the shared collection would be searched unfiltered
        if not character_name:
            logger.debug('No character given, skipping memory retrieval')
            return []

        try:
            collection_name = resolve_collection_name(self.settings, character_name)
            if not await self.store.ensure_collection(collection_name, self.embedder.dimension):
                logger.error(f'Collection {collection_name} unavailable, skipping memory retrieval')
                return []

            query_vector = await self.embedder.embed(query)
            if query_vector is None:
                return []

            # Per-character collections are already isolated
            character_filter = None if self.settings.per_character_collections else character_name
            memories = await self.store.search(collection_name,
                                               query_vector,
                                               limit=self.settings.memory_limit,
                                               score_threshold=self.settings.score_threshold,
                                               character=character_filter)

            logger.debug(f'Found {len(memories)} memories for {character_name} in {collection_name}')
            return memories

        except Exception as e:
            logger.error(f'Unexpected error retrieving memories for {character_name}: {e}')
            return []
