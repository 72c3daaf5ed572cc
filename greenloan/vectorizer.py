"""
Feature vectorization for Green Loan Evaluation.

LocalVectorizer is a pure, deterministic lexical "pseudo-embedding" and is
always available. RemoteEmbeddingProvider calls an embedding service and
falls back to the local vectorizer for a whole batch whenever the service
fails, so two vectors being compared always come from the same source.
"""

import logging
import threading
from collections import OrderedDict
from typing import List, NamedTuple, Optional, Protocol, Sequence

import numpy as np
import requests

from greenloan.keywords import CONTEXT_THEMES, RED_FLAG_THEMES, SPECIFICITY_SIGNALS

logger = logging.getLogger(__name__)

# Three or more hits saturate a theme
SATURATION_HITS = 3

VECTOR_LABELS = (
    [name for name, _, _ in CONTEXT_THEMES]
    + [name for name, _ in SPECIFICITY_SIGNALS]
    + [name for name, _, _ in RED_FLAG_THEMES]
)


class EmbeddingServiceError(RuntimeError):
    """The embedding service could not produce vectors."""


def count_context_score(text_lower: str, terms) -> float:
    """Occurrences of the terms in the text, scaled so three saturate at 1."""
    hits = sum(text_lower.count(term) for term in terms)
    return min(hits / SATURATION_HITS, 1.0)


def vectorize(text: str) -> np.ndarray:
    """
    Compute the fixed-length lexical feature vector for a text.

    One dimension per context theme, then the binary specificity signals,
    then the red-flag themes (scaled by their weight, fossil mentions
    negatively).
    """
    text_lower = (text or '').lower()
    features = []

    for _, terms, scale in CONTEXT_THEMES:
        features.append(count_context_score(text_lower, terms) * scale)

    for _, pattern in SPECIFICITY_SIGNALS:
        features.append(1.0 if pattern.search(text_lower) else 0.0)

    for _, terms, scale in RED_FLAG_THEMES:
        features.append(count_context_score(text_lower, terms) * scale)

    return np.array(features, dtype=float)


class EmbeddingBatch(NamedTuple):
    """Vectors for a batch of texts and the source that produced all of them."""

    vectors: List[np.ndarray]
    method: str


class EmbeddingProvider(Protocol):
    """Capability the similarity matcher is written against."""

    method: str

    def embed(self, text: str) -> np.ndarray:
        ...

    def embed_batch(self, texts: Sequence[str]) -> EmbeddingBatch:
        ...

    def embed_many(self, texts: Sequence[str]) -> List[np.ndarray]:
        ...


class EmbeddingCache:
    """Bounded LRU cache of vectors keyed by the full text."""

    def __init__(self, maxsize: int = 256):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.maxsize = maxsize
        self._entries = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: str) -> bool:
        return text in self._entries

    def get(self, text: str) -> Optional[np.ndarray]:
        with self._lock:
            vector = self._entries.get(text)
            if vector is not None:
                self._entries.move_to_end(text)
            return vector

    def put(self, text: str, vector: np.ndarray):
        with self._lock:
            self._entries[text] = vector
            self._entries.move_to_end(text)
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)

class LocalVectorizer:
    """Deterministic lexical embedding provider."""

    method = 'local_semantic'

    def __init__(self, cache_size: int = 256):
        self.cache = EmbeddingCache(cache_size)

    def embed(self, text: str) -> np.ndarray:
        vector = self.cache.get(text)
        if vector is None:
            vector = vectorize(text)
            self.cache.put(text, vector)
        return vector

    def embed_batch(self, texts: Sequence[str]) -> EmbeddingBatch:
        return EmbeddingBatch([self.embed(text) for text in texts], self.method)

    def embed_many(self, texts: Sequence[str]) -> List[np.ndarray]:
        return self.embed_batch(texts).vectors


class RemoteEmbeddingProvider:
    """
    Embedding provider backed by an OpenAI-compatible /embeddings endpoint.

    Any failure (timeout, HTTP error, malformed payload) is logged and the
    whole batch is recomputed with the local vectorizer.
    """

    method = 'remote_embedding'

    def __init__(self, api_key: str, url: str, model: str, timeout: float = 10.0,
                 cache_size: int = 256, fallback: Optional[LocalVectorizer] = None):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.timeout = timeout
        self.cache = EmbeddingCache(cache_size)
        self.fallback = fallback or LocalVectorizer(cache_size)

    def _request(self, texts: Sequence[str]) -> List[np.ndarray]:
        try:
            response = requests.post(
                self.url,
                json={'model': self.model, 'input': list(texts)},
                headers={'Authorization': f'Bearer {self.api_key}', 'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()['data']
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise EmbeddingServiceError(f"Embedding request failed: {e}") from e

        if len(data) != len(texts):
            raise EmbeddingServiceError(f"Expected {len(texts)} embeddings, got {len(data)}")

        try:
            ordered = sorted(data, key=lambda item: item.get('index', 0))
            return [np.array(item['embedding'], dtype=float) for item in ordered]
        except (KeyError, TypeError, ValueError) as e:
            raise EmbeddingServiceError(f"Malformed embedding payload: {e}") from e

    def embed_batch(self, texts: Sequence[str]) -> EmbeddingBatch:
        """
        Embed a batch, reporting which source produced it.

        The cache only ever holds remote vectors; a fallback batch is
        computed locally in full and never mixed with cached entries.
        """
        cached = [self.cache.get(text) for text in texts]
        pending = [text for text, vector in zip(texts, cached) if vector is None]

        if pending:
            try:
                fresh = dict(zip(pending, self._request(pending)))
            except EmbeddingServiceError as e:
                logger.warning("Falling back to local vectors: %s", e)
                return self.fallback.embed_batch(texts)
            for text, vector in fresh.items():
                self.cache.put(text, vector)
            cached = [vector if vector is not None else fresh[text] for text, vector in zip(texts, cached)]

        return EmbeddingBatch(cached, self.method)

    def embed_many(self, texts: Sequence[str]) -> List[np.ndarray]:
        return self.embed_batch(texts).vectors

    def embed(self, text: str) -> np.ndarray:
        return self.embed_many([text])[0]
