"""Shared fixtures: an in-memory Qdrant behind httpx.MockTransport and a fake embedder."""

import asyncio
import json
import math
from typing import Any, Dict, List, Optional

import httpx
import pytest

from qdrant_memory.utils.config import MemorySettings
from qdrant_memory.utils.qdrant_client import QdrantClient


def _cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def unit_vector_with_score(score: float) -> List[float]:
    """A 3-d unit vector whose cosine similarity to [1, 0, 0] is score."""
    return [score, math.sqrt(1 - score * score), 0.0]


class FakeQdrant:
    """Just enough of the Qdrant REST API to exercise the client."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.upserts: List[Dict[str, Any]] = []
        self.searches: List[Dict[str, Any]] = []
        self.fail = False

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def add_collection(self, name: str, size: int) -> None:
        self.collections[name] = {'size': size, 'points': {}}

    def add_point(self, collection: str, point_id: Any, vector: List[float], payload: Dict[str, Any]) -> None:
        self.collections[collection]['points'][point_id] = (vector, payload)

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            return httpx.Response(503, json={'status': {'error': 'service unavailable'}})

        parts = request.url.path.strip('/').split('/')
        body = json.loads(request.content) if request.content else None

        if parts == ['collections'] and request.method == 'GET':
            return httpx.Response(200, json={'result': {'collections': [{'name': n} for n in self.collections]}})

        name = parts[1]
        collection = self.collections.get(name)

        if len(parts) == 2:
            if request.method == 'PUT':
                self.add_collection(name, body['vectors']['size'])
                return httpx.Response(200, json={'result': True, 'status': 'ok'})
            if collection is None:
                return httpx.Response(404, json={'status': {'error': f'Collection `{name}` doesn\'t exist!'}})
            if request.method == 'GET':
                count = len(collection['points'])
                return httpx.Response(200, json={'result': {'status': 'green', 'points_count': count, 'vectors_count': count}})
            if request.method == 'DELETE':
                del self.collections[name]
                return httpx.Response(200, json={'result': True, 'status': 'ok'})

        if collection is None:
            return httpx.Response(404, json={'status': {'error': 'Not found'}})

        if parts[2:] == ['points'] and request.method == 'PUT':
            for point in body['points']:
                if len(point['vector']) != collection['size']:
                    return httpx.Response(400, json={'status': {'error': 'Wrong input: Vector dimension error'}})
            for point in body['points']:
                self.upserts.append(point)
                self.add_point(name, point['id'], point['vector'], point['payload'])
            return httpx.Response(200, json={'result': {'status': 'completed'}, 'status': 'ok'})

        if parts[2:] == ['points', 'search'] and request.method == 'POST':
            self.searches.append(body)
            hits = []
            for point_id, (vector, payload) in collection['points'].items():
                conditions = (body.get('filter') or {}).get('must', [])
                if any(payload.get(c['key']) != c['match']['value'] for c in conditions):
                    continue
                score = _cosine(body['vector'], vector)
                if score >= body.get('score_threshold', -1.0):
                    hits.append({'id': point_id, 'score': score, 'payload': payload})
            hits.sort(key=lambda hit: hit['score'], reverse=True)
            return httpx.Response(200, json={'result': hits[:body['limit']], 'status': 'ok'})

        return httpx.Response(404, json={'status': {'error': 'Not found'}})


class FakeEmbedder:
    """Embedding provider double with per-text vectors and delays."""

    def __init__(self,
                 settings: MemorySettings,
                 vectors: Optional[Dict[str, List[float]]] = None,
                 default: Optional[List[float]] = None,
                 dimension: int = 3,
                 delays: Optional[Dict[str, float]] = None):
        self.settings = settings
        self.vectors = vectors or {}
        self.default = default if default is not None else [1.0, 0.0, 0.0]
        self._dimension = dimension
        self.delays = delays or {}
        self.credentials = True
        self.calls: List[str] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    def has_credentials(self, model_id: Optional[str] = None) -> bool:
        return self.credentials

    async def embed(self, text: str, model_id: Optional[str] = None) -> Optional[List[float]]:
        self.calls.append(text)
        if text in self.delays:
            await asyncio.sleep(self.delays[text])
        return self.vectors.get(text, self.default)


@pytest.fixture
def settings() -> MemorySettings:
    """Settings pointing at the fake store, with per-character collections on."""
    return MemorySettings(qdrant_url='http://qdrant.test',
                          collection_name='mem',
                          openai_api_key='sk-test',
                          memory_limit=10,
                          score_threshold=0.3,
                          min_message_length=10)


@pytest.fixture
def fake_qdrant() -> FakeQdrant:
    return FakeQdrant()


@pytest.fixture
def store(settings: MemorySettings, fake_qdrant: FakeQdrant) -> QdrantClient:
    return QdrantClient(settings, transport=fake_qdrant.transport)


@pytest.fixture
def embedder(settings: MemorySettings) -> FakeEmbedder:
    return FakeEmbedder(settings)
