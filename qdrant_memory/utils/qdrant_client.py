"""
Qdrant REST client wrapper for collection management and vector similarity search.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from ..models.core import CollectionInfo, MemoryRecord, ScoredMemory
from .config import MemorySettings
from .logging_config import get_logger

logger = get_logger(__name__)


class QdrantError(Exception):
    """Custom exception for Qdrant errors."""
    pass


class QdrantClient:
    """Qdrant client with error handling.

    Every public operation turns failures into a return value (False, None or an empty list)
    and logs them, so callers never handle exceptions for an unreachable store.
    """

    def __init__(self, settings: MemorySettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize Qdrant client.

        Args:
            settings: Shared MemorySettings instance with connection parameters
            transport: Optional httpx transport, used to route requests in tests
        """
        self.settings = settings
        self._transport = transport
        self._ensure_locks: Dict[str, asyncio.Lock] = {}

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.settings.qdrant_api_key:
            headers['api-key'] = self.settings.qdrant_api_key
        return headers

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send one request to Qdrant.

        Args:
            method: HTTP method
            path: Path relative to the configured Qdrant URL
            body: Optional JSON body

        Returns:
            Decoded JSON response

        Raises:
            QdrantError: On network failure, non-success status or an undecodable body
        """
        url = f"{self.settings.qdrant_url.rstrip('/')}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout, transport=self._transport) as client:
                response = await client.request(method, url, json=body, headers=self._headers())
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise QdrantError(f'{method} {path} failed: {e}')

        if not response.is_success:
            raise QdrantError(f'{method} {path} returned HTTP {response.status_code}: {response.text[:200]}')

        try:
            data = response.json()
        except ValueError as e:
            raise QdrantError(f'{method} {path} returned invalid JSON: {e}')
        if not isinstance(data, dict):
            raise QdrantError(f'{method} {path} returned unexpected body: {type(data).__name__}')
        return data

    async def collection_exists(self, collection_name: str) -> bool:
        """
        Check whether a collection exists.

        Args:
            collection_name: Name of the collection

        Returns:
            True if the collection exists, False if it is missing or the store is unreachable
        """
        try:
            await self._request('GET', f'/collections/{collection_name}')
            return True
        except QdrantError as e:
            logger.debug(f'Collection {collection_name} not available: {e}')
            return False

    async def create_collection(self, collection_name: str, dimensions: int) -> bool:
        """
        Create (or replace) a collection with cosine distance.

        Args:
            collection_name: Name of the collection
            dimensions: Vector size of the embedding model

        Returns:
            True if the collection was created, False otherwise
        """
        body = {'vectors': {'size': dimensions, 'distance': 'Cosine'}}
        try:
            await self._request('PUT', f'/collections/{collection_name}', body)
            logger.info(f'Created collection {collection_name} with {dimensions} dimensions')
            return True
        except QdrantError as e:
            logger.error(f'Error creating collection {collection_name}: {e}')
            return False

    async def ensure_collection(self, collection_name: str, dimensions: int) -> bool:
        """
        Create the collection if it doesn't exist.

        Concurrent calls for the same collection are serialized, so only one of them
        issues the create request.

        Args:
            collection_name: Name of the collection
            dimensions: Vector size used if the collection has to be created

        Returns:
            True if the collection exists afterwards, False otherwise
        """
        lock = self._ensure_locks.setdefault(collection_name, asyncio.Lock())
        async with lock:
            if await self.collection_exists(collection_name):
                logger.debug(f'Collection {collection_name} already exists')
                return True
            return await self.create_collection(collection_name, dimensions)

    async def upsert_point(self, collection_name: str, record: MemoryRecord) -> bool:
        """
        Write one point, replacing any point with the same id.

        Args:
            collection_name: Name of the collection
            record: MemoryRecord carrying id, vector and payload

        Returns:
            True if the point was stored, False otherwise (including dimension mismatch)
        """
        # Unsigned integer ids must be sent as JSON numbers
        point_id = int(record.id) if record.id.isdigit() else record.id
        body = {'points': [{'id': point_id, 'vector': record.vector, 'payload': record.to_payload()}]}
        try:
            await self._request('PUT', f'/collections/{collection_name}/points?wait=true', body)
            logger.debug(f'Upserted point {record.id} in {collection_name}')
            return True
        except QdrantError as e:
            logger.error(f'Error upserting point {record.id} in {collection_name}: {e}')
            return False

    async def search(self,
                     collection_name: str,
                     query_vector: List[float],
                     limit: int,
                     score_threshold: float,
                     character: Optional[str] = None) -> List[ScoredMemory]:
        """
        Perform vector similarity search.

        Args:
            collection_name: Name of the collection
            query_vector: Query vector for similarity search
            limit: Maximum number of results
            score_threshold: Minimum cosine similarity
            character: Optional character name to filter results (shared collection mode)

        Returns:
            Scored memories ordered by descending score, empty on failure
        """
        search_body: Dict[str, Any] = {
            'vector': query_vector,
            'limit': limit,
            'score_threshold': score_threshold,
            'with_payload': True
        }
        if character is not None:
            search_body['filter'] = {'must': [{'key': 'character', 'match': {'value': character}}]}

        try:
            response = await self._request('POST', f'/collections/{collection_name}/points/search', search_body)
        except QdrantError as e:
            logger.error(f'Error searching {collection_name}: {e}')
            return []

        results = []
        for hit in response.get('result') or []:
            try:
                record = MemoryRecord.from_payload(hit['id'], hit.get('payload') or {})
                results.append(ScoredMemory(record=record, score=float(hit['score'])))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f'Skipping malformed search hit in {collection_name}: {e}')

        logger.debug(f'Vector search returned {len(results)} results from {collection_name}')
        return results

    async def get_collection_info(self, collection_name: str) -> Optional[CollectionInfo]:
        """
        Get point counts for a collection.

        Args:
            collection_name: Name of the collection

        Returns:
            CollectionInfo, or None if the collection can't be read
        """
        try:
            response = await self._request('GET', f'/collections/{collection_name}')
            result = response.get('result') or {}
            return CollectionInfo(points_count=int(result.get('points_count') or 0),
                                  vectors_count=int(result.get('vectors_count') or result.get('indexed_vectors_count') or 0),
                                  status=str(result.get('status', 'unknown')))
        except (QdrantError, AttributeError, TypeError, ValueError) as e:
            logger.error(f'Error getting info for collection {collection_name}: {e}')
            return None

    async def delete_collection(self, collection_name: str) -> bool:
        """
        Delete a collection and every point in it.

        Args:
            collection_name: Name of the collection

        Returns:
            True if deletion was successful, False otherwise
        """
        try:
            await self._request('DELETE', f'/collections/{collection_name}')
            logger.info(f'Deleted collection {collection_name}')
            return True
        except QdrantError as e:
            logger.error(f'Error deleting collection {collection_name}: {e}')
            return False

    async def health_check(self) -> bool:
        """
        Perform a health check on the Qdrant service.

        Returns:
            True if service is healthy, False otherwise
        """
        try:
            await self._request('GET', '/collections')
            return True
        except QdrantError as e:
            logger.error(f'Qdrant health check failed: {e}')
            return False
