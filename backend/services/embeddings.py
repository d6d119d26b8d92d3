"""Embedding providers for timeline events.

Providers:
    sentence_transformers  SentenceTransformer model, loaded on first use
    hash                   deterministic vectors from a text hash (no model; dev and tests)
"""

import hashlib
import logging
from abc import ABC, abstractmethod

import numpy as np

from services.errors import EmbeddingError

logger = logging.getLogger(__name__)


class BaseEmbedder(ABC):
    """Base class for embedding providers.

    Subclasses must implement:
        - provider_name: identifier used in settings.embed_provider
        - load(): load model artifacts into memory
        - _encode(text): return the raw vector for one text
    """

    provider_name: str = ""
    _loaded: bool = False

    @abstractmethod
    def load(self) -> None:
        """Load model weights/artifacts. Called once by ensure_loaded()."""

    @abstractmethod
    def _encode(self, text: str) -> list[float]:
        """Embed a single text."""

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def ensure_loaded(self) -> None:
        if not self._loaded:
            logger.info("Loading embedder: %s", self.provider_name)
            self.load()
            self._loaded = True
            logger.info("Embedder loaded: %s", self.provider_name)

    def embed(self, text: str) -> list[float]:
        """Embed one event text. Raises EmbeddingError when no vector comes back."""
        self.ensure_loaded()
        vector = self._encode(text)
        if vector is None or len(vector) == 0:
            raise EmbeddingError(f"No embedding returned by {self.provider_name}")
        return vector


class SentenceTransformerEmbedder(BaseEmbedder):
    provider_name = "sentence_transformers"

    def __init__(self, model_name: str = "BAAI/bge-base-en-v1.5") -> None:
        self.model_name = model_name
        self._model = None

    def load(self) -> None:
        try:
            from sentence_transformers import SentenceTransformer

            self._model = SentenceTransformer(self.model_name)
            logger.info("%s model loaded successfully", self.model_name)
        except Exception as e:
            logger.warning("Failed to load %s model: %s", self.model_name, e)
            raise EmbeddingError(f"Could not load embedding model {self.model_name}: {e}") from e

    def _encode(self, text: str) -> list[float]:
        if self._model is None:
            raise EmbeddingError(f"Embedding model {self.model_name} is unavailable")
        try:
            vector = self._model.encode(text, convert_to_numpy=True)
        except Exception as e:
            raise EmbeddingError(f"Encoding failed: {e}") from e
        return vector.tolist()


class HashEmbedder(BaseEmbedder):
    """Deterministic pseudo-embeddings seeded from a SHA-256 of the normalized text.

    Equal texts map to equal vectors; different texts are near-orthogonal in
    high dimensions. There is no semantic similarity beyond that.
    """

    provider_name = "hash"

    def __init__(self, dimension: int = 768) -> None:
        self.dimension = dimension

    def load(self) -> None:
        pass

    def _encode(self, text: str) -> list[float]:
        normalized = " ".join(text.lower().split())
        if not normalized:
            return []
        seed = int.from_bytes(hashlib.sha256(normalized.encode("utf-8")).digest()[:8], "big")
        rng = np.random.default_rng(seed)
        vector = rng.standard_normal(self.dimension)
        return (vector / np.linalg.norm(vector)).tolist()


def get_embedder(provider: str, model_name: str = "", dimension: int = 768) -> BaseEmbedder:
    """Factory: create an embedding provider by name."""
    if provider == "sentence_transformers":
        return SentenceTransformerEmbedder(model_name or "BAAI/bge-base-en-v1.5")
    elif provider == "hash":
        return HashEmbedder(dimension)
    else:
        raise ValueError(f"Unknown embed provider: {provider}")
