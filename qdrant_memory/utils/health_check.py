"""
Health check utilities for the application.
"""

from typing import Any, Dict

from .config import MemorySettings
from .embeddings import EmbeddingProvider
from .logging_config import get_logger
from .qdrant_client import QdrantClient

logger = get_logger(__name__)


async def get_health_status(store: QdrantClient, embedder: EmbeddingProvider) -> Dict[str, Any]:
    """Get detailed health status of all components.

    Returns:
        Dictionary with health status of each component
    """
    health_status = {}

    # Check Qdrant
    try:
        health_status['qdrant'] = {
            'healthy': await store.health_check(),
            'service': 'Qdrant',
            'endpoint': store.settings.qdrant_url
        }
    except Exception as e:
        logger.error(f'Qdrant health check failed: {e}')
        health_status['qdrant'] = {'healthy': False, 'service': 'Qdrant', 'error': str(e)}

    # Check embeddings
    try:
        health_status['embeddings'] = {
            'healthy': await embedder.health_check(),
            'service': 'Embeddings',
            'model': embedder.settings.embedding_model
        }
    except Exception as e:
        logger.error(f'Embeddings health check failed: {e}')
        health_status['embeddings'] = {'healthy': False, 'service': 'Embeddings', 'error': str(e)}

    return health_status


def get_system_info(settings: MemorySettings) -> Dict[str, Any]:
    """Get system information and configuration.

    Credentials are reported as configured or not, never echoed.

    Returns:
        Dictionary with system information
    """
    return {
        'service_name': 'qdrant-memory',
        'version': '2.0.0',
        'configuration': {
            'qdrant_url': settings.qdrant_url,
            'collection_name': settings.collection_name,
            'embedding_model': settings.embedding_model,
            'per_character_collections': settings.per_character_collections,
            'auto_save_memories': settings.auto_save_memories,
            'openai_api_key_set': bool(settings.openai_api_key),
            'qdrant_api_key_set': bool(settings.qdrant_api_key)
        }
    }
