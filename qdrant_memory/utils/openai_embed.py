"""
OpenAI-compatible embeddings API client.
"""

from typing import List, Optional

import httpx

from .config import MemorySettings
from .logging_config import get_logger

logger = get_logger(__name__)


class OpenAIEmbedError(Exception):
    """Custom exception for OpenAI embedding errors."""
    pass


class OpenAIEmbed:
    """Client for any endpoint speaking the OpenAI embeddings wire format."""

    def __init__(self, settings: MemorySettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize OpenAI embedding client.

        Args:
            settings: Shared MemorySettings instance (endpoint and key are read on every call)
            transport: Optional httpx transport, used to route requests in tests
        """
        self.settings = settings
        self._transport = transport

    def has_credentials(self) -> bool:
        return bool(self.settings.openai_api_key)

    async def embed(self, text: str, model_id: str) -> List[float]:
        """
        Generate an embedding for text.

        Args:
            text: Text to embed
            model_id: Embedding model name

        Returns:
            List of embedding values

        Raises:
            OpenAIEmbedError: If the request fails or the response has no embedding
        """
        headers = {'Content-Type': 'application/json', 'Authorization': f'Bearer {self.settings.openai_api_key}'}
        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout, transport=self._transport) as client:
                response = await client.post(self.settings.embeddings_url,
                                             json={'model': model_id, 'input': text},
                                             headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise OpenAIEmbedError(f'Embedding request failed: {e}')

        if not response.is_success:
            raise OpenAIEmbedError(f'Embedding API returned HTTP {response.status_code}: {response.text[:200]}')

        try:
            embedding = response.json()['data'][0]['embedding']
            if not embedding:
                raise OpenAIEmbedError(f'Empty embedding returned by {model_id}')
            return [float(value) for value in embedding]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise OpenAIEmbedError(f'Invalid embedding response: {e}')
