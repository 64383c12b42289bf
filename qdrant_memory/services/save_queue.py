"""
Save queue that persists chat messages as memories in the background.
"""

import asyncio
from typing import Optional, Set, Tuple, Union

from ..models.core import MemoryRecord, SaveQueueItem, Speaker
from ..utils.config import MemorySettings
from ..utils.embeddings import EmbeddingProvider
from ..utils.logging_config import get_logger
from ..utils.qdrant_client import QdrantClient
from ..utils.timestamp_utils import now_ms
from .message_identity import to_point_id
from .namespace import resolve_collection_name

logger = get_logger(__name__)


class SaveQueue:
    """Accepts save requests without blocking and writes them one at a time, in order.

    A single consumer task owns the queue. It is started by the first enqueue and exits
    once the queue is empty; items enqueued while it runs are picked up before it exits.
    A message (message_id, character) is held in the queue at most once, from enqueue
    until its write attempt has finished. Queued items are not persisted across restarts.
    """

    def __init__(self, settings: MemorySettings, store: QdrantClient, embedder: EmbeddingProvider):
        """
        Initialize the save queue.

        Args:
            settings: Shared MemorySettings instance
            store: Vector store client
            embedder: Embedding provider
        """
        self.settings = settings
        self.store = store
        self.embedder = embedder
        self._queue: asyncio.Queue = asyncio.Queue()
        self._pending_keys: Set[Tuple[str, str]] = set()
        self._worker: Optional[asyncio.Task] = None

    @property
    def pending_count(self) -> int:
        """Number of items waiting to be written, excluding the one in flight."""
        return self._queue.qsize()

    @property
    def is_draining(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def _rejection_reason(self, text: str, speaker: Speaker) -> Optional[str]:
        if not self.settings.auto_save_memories:
            return 'auto-save disabled'
        if not self.embedder.has_credentials():
            return 'no embedding credentials configured'
        if not text or len(text) < self.settings.min_message_length:
            return 'message shorter than minimum length'
        if speaker == Speaker.USER and not self.settings.save_user_messages:
            return 'user messages are not saved'
        if speaker == Speaker.CHARACTER and not self.settings.save_character_messages:
            return 'character messages are not saved'
        return None

    def enqueue(self,
                text: str,
                character_name: str,
                speaker: Union[Speaker, str],
                message_id: Optional[str] = None) -> bool:
        """
        Queue a message for saving. Never blocks or suspends.

        Args:
            text: Message content
            character_name: Character owning the memory
            speaker: Who wrote the message
            message_id: Canonical message id (a random point id is used if None)

        Returns:
            True if the message was queued, False if it was dropped
        """
        try:
            speaker = Speaker(speaker)
        except ValueError:
            logger.warning(f'Unknown speaker {speaker!r}, message not saved')
            return False

        reason = self._rejection_reason(text, speaker)
        if reason:
            logger.debug(f'Skipping save for {character_name}: {reason}')
            return False

        item = SaveQueueItem(text=text, character=character_name, speaker=speaker, message_id=message_id)
        if message_id is not None and item.key in self._pending_keys:
            logger.debug(f'Message {message_id} for {character_name} is already queued')
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning('No running event loop, message not saved')
            return False

        self._queue.put_nowait(item)
        if message_id is not None:
            self._pending_keys.add(item.key)

        if not self.is_draining:
            self._worker = loop.create_task(self._drain())
        logger.debug(f'Queued message for {character_name} ({self.pending_count} pending)')
        return True

    async def _drain(self) -> None:
        """Write queued items until the queue is empty."""
        while not self._queue.empty():
            item = self._queue.get_nowait()
            try:
                await self.save(item)
            except Exception as e:
                logger.error(f'Unexpected error saving message for {item.character}: {e}')
            finally:
                self._pending_keys.discard(item.key)
                self._queue.task_done()

    async def save(self, item: SaveQueueItem) -> bool:
        """
        Write one queued message to the vector store.

        Any failing step drops only this item.

        Args:
            item: The queued message

        Returns:
            True if the memory was stored, False otherwise
        """
        collection_name = resolve_collection_name(self.settings, item.character)
        dimensions = self.embedder.dimension

        if not await self.store.ensure_collection(collection_name, dimensions):
            logger.error(f'Collection {collection_name} unavailable, dropping message for {item.character}')
            return False

        vector = await self.embedder.embed(item.text)
        if vector is None:
            logger.error(f'No embedding for message from {item.character}, dropping it')
            return False

        if len(vector) != dimensions:
            logger.error(f'Embedding has {len(vector)} dimensions but {collection_name} expects {dimensions}, dropping message')
            return False

        record = MemoryRecord(id=to_point_id(item.message_id),
                              text=item.text,
                              speaker=item.speaker,
                              character=item.character,
                              created_at=now_ms(),
                              vector=vector,
                              message_id=item.message_id)

        saved = await self.store.upsert_point(collection_name, record)
        if saved:
            logger.debug(f'Saved {item.speaker.value} message for {item.character} in {collection_name}')
        return saved

    async def join(self) -> None:
        """Wait until every queued item has been attempted."""
        await self._queue.join()

    async def close(self) -> None:
        """Stop the consumer task, discarding anything still queued."""
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
        self._pending_keys.clear()
