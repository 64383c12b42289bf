"""
Amazon Bedrock embedding client wrapper with error handling.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import MemorySettings
from .logging_config import get_logger

logger = get_logger(__name__)

BEDROCK_MODEL_PREFIXES = ('amazon.titan-embed', 'cohere.embed')


class BedrockEmbedError(Exception):
    """Custom exception for Bedrock embedding errors."""
    pass


def is_bedrock_model(model_id: str) -> bool:
    """Whether a model identifier is served by Amazon Bedrock."""
    return model_id.lower().startswith(BEDROCK_MODEL_PREFIXES)


class BedrockEmbed:
    """Amazon Bedrock embedding client.

    boto3 is synchronous, so calls run in a worker thread to keep the event loop free.
    """

    def __init__(self, settings: MemorySettings, client: Optional[Any] = None):
        """
        Initialize Bedrock embedding client.

        Args:
            settings: Shared MemorySettings instance (region is read on every call)
            client: Optional pre-built bedrock-runtime client
        """
        self.settings = settings
        self._client = client
        self._client_region = settings.bedrock_region if client is not None else None
        # region -> whether the credential chain resolved
        self._credentials: Dict[str, bool] = {}

    def _get_client(self) -> Any:
        if self._client is None or self._client_region != self.settings.bedrock_region:
            self._client = boto3.client(service_name='bedrock-runtime', region_name=self.settings.bedrock_region)
            self._client_region = self.settings.bedrock_region
            logger.info(f'Initialized Bedrock Embed client in region: {self._client_region}')
        return self._client

    def has_credentials(self) -> bool:
        """Whether the boto3 credential chain resolves to any credentials.

        Resolved once per region and cached, since the chain may query instance metadata
        over the network.
        """
        region = self.settings.bedrock_region
        if region not in self._credentials:
            try:
                self._credentials[region] = boto3.Session(region_name=region).get_credentials() is not None
            except BotoCoreError as e:
                logger.error(f'Failed to resolve AWS credentials: {e}')
                self._credentials[region] = False
        return self._credentials[region]

    def _invoke(self, model_id: str, data: dict) -> dict:
        """
        Make a Bedrock API call.

        Args:
            model_id: Bedrock model identifier
            data: Request data dictionary

        Returns:
            Response dictionary from Bedrock API

        Raises:
            BedrockEmbedError: If the call fails
        """
        try:
            response = self._get_client().invoke_model(body=json.dumps(data),
                                                       modelId=model_id,
                                                       accept='application/json',
                                                       contentType='application/json')
            return json.loads(response.get('body').read())
        except (ClientError, BotoCoreError) as e:
            raise BedrockEmbedError(f'Bedrock Embed request failed: {e}')
        except (AttributeError, ValueError) as e:
            raise BedrockEmbedError(f'Invalid Bedrock Embed response: {e}')

    def _embed_sync(self, text: str, model_id: str, dimensions: int) -> List[float]:
        if 'titan' in model_id.lower():
            data = {'inputText': text}
            if 'v2' in model_id.lower():
                data['dimensions'] = dimensions
            response = self._invoke(model_id, data)
            embedding = response.get('embedding')
        else:
            data = {'input_type': 'search_document', 'texts': [text]}
            response = self._invoke(model_id, data)
            embeddings = response.get('embeddings') or [None]
            embedding = embeddings[0]

        if not embedding:
            raise BedrockEmbedError(f'Empty embedding returned by {model_id}')
        return [float(value) for value in embedding]

    async def embed(self, text: str, model_id: str, dimensions: int) -> List[float]:
        """
        Generate an embedding for text.

        Args:
            text: Text to embed
            model_id: Bedrock model identifier
            dimensions: Expected vector size for the model

        Returns:
            List of embedding values

        Raises:
            BedrockEmbedError: If embedding generation fails
        """
        return await asyncio.to_thread(self._embed_sync, text, model_id, dimensions)
