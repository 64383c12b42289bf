"""
Embedding provider that routes each model identifier to the service hosting it.
"""

import asyncio
from typing import Any, List, Optional

import httpx

from .bedrock_embed import BedrockEmbed, BedrockEmbedError, is_bedrock_model
from .config import MemorySettings
from .logging_config import get_logger
from .openai_embed import OpenAIEmbed, OpenAIEmbedError

logger = get_logger(__name__)

DEFAULT_EMBEDDING_DIMENSION = 1536

EMBEDDING_DIMENSIONS = {
    'text-embedding-3-large': 3072,
    'text-embedding-3-small': 1536,
    'text-embedding-ada-002': 1536,
    'amazon.titan-embed-text-v2:0': 1024,
    'amazon.titan-embed-text-v1': 1536,
    'cohere.embed-english-v3': 1024,
    'cohere.embed-multilingual-v3': 1024,
}


def get_embedding_dimension(model_id: str) -> int:
    """Vector size produced by a model; unknown models are assumed to be 1536."""
    return EMBEDDING_DIMENSIONS.get(model_id, DEFAULT_EMBEDDING_DIMENSION)


class EmbeddingProvider:
    """Turns text into vectors, returning None instead of raising on any failure."""

    def __init__(self,
                 settings: MemorySettings,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 bedrock_client: Optional[Any] = None):
        """
        Initialize the embedding provider.

        Args:
            settings: Shared MemorySettings instance
            transport: Optional httpx transport for the OpenAI client
            bedrock_client: Optional pre-built bedrock-runtime client
        """
        self.settings = settings
        self.openai = OpenAIEmbed(settings, transport=transport)
        self.bedrock = BedrockEmbed(settings, client=bedrock_client)

    @property
    def dimension(self) -> int:
        """Vector size of the currently configured model."""
        return get_embedding_dimension(self.settings.embedding_model)

    def has_credentials(self, model_id: Optional[str] = None) -> bool:
        """Whether credentials are configured for the model's service."""
        model_id = model_id or self.settings.embedding_model
        if is_bedrock_model(model_id):
            return self.bedrock.has_credentials()
        return self.openai.has_credentials()

    async def embed(self, text: str, model_id: Optional[str] = None) -> Optional[List[float]]:
        """
        Generate an embedding for text.

        Args:
            text: Text to embed
            model_id: Model identifier (uses the configured model if None)

        Returns:
            List of embedding values, or None if no embedding could be produced
        """
        model_id = model_id or self.settings.embedding_model

        # The first Bedrock credential lookup may block, so it runs off the loop
        if is_bedrock_model(model_id):
            has_credentials = await asyncio.to_thread(self.bedrock.has_credentials)
        else:
            has_credentials = self.openai.has_credentials()
        if not has_credentials:
            logger.error(f'No credentials configured for embedding model {model_id}')
            return None

        if not text or not text.strip():
            logger.warning('Empty text provided for embedding')
            return None

        try:
            if is_bedrock_model(model_id):
                return await self.bedrock.embed(text, model_id, get_embedding_dimension(model_id))
            return await self.openai.embed(text, model_id)
        except (OpenAIEmbedError, BedrockEmbedError) as e:
            logger.error(f'Error generating embedding: {e}')
            return None
        except Exception as e:
            logger.error(f'Unexpected error generating embedding: {e}')
            return None

    async def health_check(self) -> bool:
        """
        Perform a health check on the embedding service.

        Returns:
            True if service is healthy, False otherwise
        """
        embedding = await self.embed('test')
        return embedding is not None and len(embedding) == self.dimension
