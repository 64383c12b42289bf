"""
Memory Management Service wiring retrieval, injection and saving to the host chat.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models.core import ChatContext, CollectionInfo, ScoredMemory, Speaker
from ..utils.config import MemorySettings
from ..utils.embeddings import EmbeddingProvider
from ..utils.health_check import get_health_status, get_system_info
from ..utils.logging_config import get_logger
from ..utils.qdrant_client import QdrantClient
from ..utils.settings import SettingsManager
from .memory_injection import build_memory_entry, compute_insertion_index, format_memories, inject_memory_entry
from .memory_retrieval import MemoryRetrievalService, find_query_message
from .message_identity import make_message_id
from .namespace import resolve_collection_name
from .save_queue import SaveQueue

logger = get_logger(__name__)


class MemoryManagementService:
    """Unified service for memory retrieval, prompt injection and saving.

    The host calls intercept_generation before each generation and on_message_appended
    whenever a message is added to the chat. Neither of them ever raises.
    """

    def __init__(self,
                 settings_manager: Optional[SettingsManager] = None,
                 store: Optional[QdrantClient] = None,
                 embedder: Optional[EmbeddingProvider] = None,
                 get_context: Optional[Callable[[], ChatContext]] = None):
        """
        Initialize the memory management service.

        Args:
            settings_manager: Owner of the shared settings (a default manager if None)
            store: Vector store client (built from settings if None)
            embedder: Embedding provider (built from settings if None)
            get_context: Callable returning the host's current chat state
        """
        self.settings_manager = settings_manager or SettingsManager()
        self.settings: MemorySettings = self.settings_manager.settings
        self.store = store or QdrantClient(self.settings)
        self.embedder = embedder or EmbeddingProvider(self.settings)
        self.get_context = get_context or ChatContext
        self.retrieval = MemoryRetrievalService(self.settings, self.store, self.embedder)
        self.save_queue = SaveQueue(self.settings, self.store, self.embedder)

        logger.info('Initialized MemoryManagementService')

    def _current_context(self) -> ChatContext:
        try:
            return self.get_context()
        except Exception as e:
            logger.error(f'Failed to read chat context: {e}')
            return ChatContext()

    async def search(self, query: str, character_name: str) -> List[ScoredMemory]:
        """Memories of a character relevant to query, best first."""
        return await self.retrieval.retrieve(query, character_name)

    def save_message(self, text: str, character_name: str, speaker: Speaker, message_id: Optional[str] = None) -> bool:
        """Queue a message to be saved; see SaveQueue.enqueue."""
        return self.save_queue.enqueue(text, character_name, speaker, message_id)

    async def intercept_generation(self,
                                   chat: List[Dict[str, Any]],
                                   context_size: Optional[int] = None,
                                   abort: Optional[Callable[..., Any]] = None,
                                   generation_type: Optional[str] = None) -> int:
        """Insert relevant memories into the messages about to be generated from.

        The host passes the working copy of the chat built for this generation; the entry
        is spliced into that list only and never reaches the saved history. Errors are
        logged and generation continues without memories.

        Args:
            chat: Working copy of the outgoing messages, modified in place
            context_size: Host's context budget (unused)
            abort: Host's cancellation handle (never called)
            generation_type: Host's generation type, logged in debug mode

        Returns:
            Number of memories injected
        """
        if not self.settings.enabled:
            logger.debug('Memory extension disabled, skipping')
            return 0

        try:
            character_name = self._current_context().character_name
            if not character_name:
                logger.debug('No character selected, skipping')
                return 0

            query = find_query_message(chat)
            if not query:
                logger.debug('No user message found, skipping')
                return 0

            logger.debug(f'Generation interceptor triggered (type={generation_type}, context size={context_size})')
            logger.debug(f'Searching memories of {character_name} for: {query}')

            memories = await self.retrieval.retrieve(query, character_name)
            if not memories:
                logger.debug('No relevant memories found')
                return 0

            entry = build_memory_entry(format_memories(memories, character_name))
            insert_index = compute_insertion_index(len(chat), self.settings.memory_position)
            chat[:] = inject_memory_entry(chat, entry, self.settings.memory_position)

            logger.info(f'Injected {len(memories)} memories at position {insert_index}')
            return len(memories)

        except Exception as e:
            logger.error(f'Error in generation interceptor: {e}')
            return 0

    def on_message_appended(self, message: Dict[str, Any], index: int, character_name: Optional[str] = None) -> bool:
        """Queue a newly appended chat message for saving.

        Args:
            message: Host chat message ('mes', 'is_user', 'is_system', 'send_date')
            index: Position of the message in the chat
            character_name: Owning character (the active character if None)

        Returns:
            True if the message was queued
        """
        try:
            if message.get('is_system'):
                return False

            character_name = character_name or self._current_context().character_name
            if not character_name:
                logger.debug('No character selected, message not saved')
                return False

            speaker = Speaker.USER if message.get('is_user') else Speaker.CHARACTER
            message_id = make_message_id(character_name, message.get('send_date', ''), index)
            return self.save_queue.enqueue(message.get('mes') or '', character_name, speaker, message_id)

        except Exception as e:
            logger.error(f'Error queueing message for saving: {e}')
            return False

    async def collection_info(self, character_name: str) -> Optional[CollectionInfo]:
        """Point counts of the collection holding a character's memories."""
        return await self.store.get_collection_info(resolve_collection_name(self.settings, character_name))

    async def test_connection(self, character_name: str) -> Tuple[bool, str]:
        """
        Check that the character's collection is reachable.

        Args:
            character_name: Character whose collection is checked

        Returns:
            Tuple of (connected, human-readable status)
        """
        info = await self.collection_info(character_name)
        if info is None:
            return False, 'Connection failed. Check URL and collection name.'
        return True, f'Connected! Collection has {info.points_count} memories.'

    async def delete_memories(self, character_name: str) -> bool:
        """Irreversibly delete the collection holding a character's memories.

        In shared mode this removes every character's memories.
        """
        collection_name = resolve_collection_name(self.settings, character_name)
        logger.warning(f'Deleting collection {collection_name}')
        return await self.store.delete_collection(collection_name)

    async def health_status(self) -> Dict[str, Any]:
        """
        Check the vector store and the embedding service.

        Returns:
            Dictionary with the overall result under 'healthy' and per-component details
        """
        components = await get_health_status(self.store, self.embedder)
        healthy = all(status.get('healthy', False) for status in components.values())
        if healthy:
            logger.info('All system components are healthy')
        else:
            logger.warning('Some system components are unhealthy')
        return {'healthy': healthy, 'components': components}

    def system_info(self) -> Dict[str, Any]:
        return get_system_info(self.settings)

    def update_settings(self, **changes: Any) -> MemorySettings:
        """Apply a settings update; see SettingsManager.update."""
        return self.settings_manager.update(**changes)

    def save_settings(self) -> bool:
        return self.settings_manager.save()

    async def close(self) -> None:
        """Stop background saving, dropping queued messages."""
        await self.save_queue.close()
