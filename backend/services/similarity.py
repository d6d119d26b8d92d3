"""Cosine similarity over embedding vectors."""

import logging
from collections.abc import Sequence

import numpy as np

from services.errors import AlignmentPreconditionError

logger = logging.getLogger(__name__)

# Keeps the denominator positive when either vector is all zeros
EPSILON = 1e-8


def as_matrix(vectors: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Convert an event sequence into a 2-D float64 array (one row per event)."""
    matrix = np.asarray(vectors, dtype=np.float64)
    if matrix.ndim != 2:
        raise AlignmentPreconditionError(
            f"Expected a 2-D sequence of vectors, got shape {matrix.shape}"
        )
    return matrix


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """dot(a, b) / (|a| * |b| + eps). Vectors must have equal length."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.ndim != 1 or va.shape != vb.shape:
        raise AlignmentPreconditionError(
            f"Vector length mismatch: {va.shape} vs {vb.shape}"
        )
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb)) + EPSILON
    return float(np.dot(va, vb) / denom)


def cosine_similarity_matrix(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Pairwise cosine similarity between the rows of x (m, d) and y (n, d).

    Same formula as cosine_similarity(), vectorised. Returns an (m, n) array.
    """
    if x.shape[1] != y.shape[1]:
        raise AlignmentPreconditionError(
            f"Embedding dimension mismatch: {x.shape[1]} vs {y.shape[1]}"
        )
    norms = np.outer(np.linalg.norm(x, axis=1), np.linalg.norm(y, axis=1))
    return (x @ y.T) / (norms + EPSILON)
