"""
MCP Interface Layer using fastmcp for agent hosts.
"""
from typing import Any, Dict, List, Optional, Tuple

from fastmcp import FastMCP

from qdrant_memory.models.core import Speaker
from qdrant_memory.services.memory_management import MemoryManagementService
from qdrant_memory.utils.config import config
from qdrant_memory.utils.logging_config import get_logger
from qdrant_memory.utils.settings import SettingsManager
from qdrant_memory.utils.timestamp_utils import to_datetime

logger = get_logger(__name__)

# Initialize FastMCP application
mcp = FastMCP('Qdrant Memory')
settings_manager = SettingsManager()
settings_manager.load()
memory_service = MemoryManagementService(settings_manager)


@mcp.tool()
async def search_memories(character: str, query: str) -> List[Tuple[float, str, str, str]]:
    """Search a character's past conversation memories.

    Args:
        character: Character name
        query: Natural language query

    Returns:
        List of tuples (score, speaker, text, created_at), best match first
    """
    if not character or not character.strip():
        raise ValueError('Character is required')

    if not query or not query.strip():
        return []

    memories = await memory_service.search(query, character)
    result = [(round(memory.score, 4), memory.record.speaker.value, memory.record.text,
               to_datetime(memory.record.created_at).isoformat()) for memory in memories]

    logger.debug(f'MCP search returned {len(result)} memories for {character}')
    return result


@mcp.tool()
async def save_message(character: str, text: str, speaker: str = 'user', message_id: Optional[str] = None) -> bool:
    """Queue a chat message to be saved as a memory.

    Args:
        character: Character owning the memory
        text: Message content
        speaker: 'user' or 'character'
        message_id: Optional stable message id; re-saving the same id replaces the memory

    Returns:
        True if the message was queued, False if the save policy dropped it
    """
    try:
        speaker_value = Speaker(speaker)
    except ValueError:
        raise ValueError(f"Invalid speaker '{speaker}'. Valid: {[s.value for s in Speaker]}")
    return memory_service.save_message(text, character, speaker_value, message_id)


@mcp.tool()
async def collection_info(character: str) -> Dict[str, Any]:
    """Report how many memories are stored for a character.

    Args:
        character: Character name

    Returns:
        Connection status and point counts
    """
    info = await memory_service.collection_info(character)
    return {
        'connected': info is not None,
        'status': info.status if info else 'unreachable',
        'points_count': info.points_count if info else 0,
        'vectors_count': info.vectors_count if info else 0
    }


@mcp.tool()
async def delete_memories(character: str) -> bool:
    """Permanently delete the collection holding a character's memories.

    Args:
        character: Character name

    Returns:
        True if the collection was deleted
    """
    return await memory_service.delete_memories(character)


@mcp.tool()
async def health() -> Dict[str, Any]:
    """Report the health of the vector store and the embedding service."""
    return await memory_service.health_status()


@mcp.tool()
async def system_info() -> Dict[str, Any]:
    """Report the service version and configuration, without credentials."""
    return memory_service.system_info()


if __name__ == '__main__':
    transport = config.mcp.transport
    host = config.mcp.host
    port = config.mcp.port
    mcp.run(transport=transport, host=host, port=port)
