"""Soft-DTW alignment between two ordered sequences of event embeddings.

Forward pass (smoothed):
    D[i][j] = 1 - cos(X[i], Y[j])
    R[0][0] = 0, R[i][0] = R[0][j] = +inf
    R[i][j] = D[i-1][j-1] + softmin_gamma(R[i-1][j], R[i][j-1], R[i-1][j-1])

Traceback (hard): from (m, n), step to the smallest of the diagonal, up and
left predecessors (ties resolved in that order) until (1, 1). Because the
forward pass is smoothed and the traceback is not, the reported path is an
approximation of the alignment that produced the distance, not a guaranteed
optimal path.
"""

import logging
import math
from collections.abc import Sequence

import numpy as np

from models.schemas.alignment import AlignmentResult, AlignmentStep
from services.errors import AlignmentPreconditionError
from services.similarity import as_matrix, cosine_similarity_matrix

logger = logging.getLogger(__name__)

DEFAULT_GAMMA = 0.1

# Predecessor offsets in tie-break order: diagonal, up, left
_MOVES = ((1, 1), (1, 0), (0, 1))


def _softmin(a: float, b: float, c: float, gamma: float) -> float:
    """-gamma * log(sum(exp(-v / gamma))), shifted by the minimum to avoid underflow."""
    rmin = min(a, b, c)
    if math.isinf(rmin):
        return math.inf
    total = (
        math.exp(-(a - rmin) / gamma)
        + math.exp(-(b - rmin) / gamma)
        + math.exp(-(c - rmin) / gamma)
    )
    return rmin - gamma * math.log(total)


def cost_matrix(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Pairwise cosine distance 1 - cos, floored at zero."""
    return np.maximum(1.0 - cosine_similarity_matrix(x, y), 0.0)


def accumulated_cost(cost: np.ndarray, gamma: float) -> np.ndarray:
    m, n = cost.shape
    r = np.full((m + 1, n + 1), np.inf)
    r[0, 0] = 0.0
    for i in range(1, m + 1):
        for j in range(1, n + 1):
            r[i, j] = cost[i - 1, j - 1] + _softmin(
                r[i - 1, j], r[i, j - 1], r[i - 1, j - 1], gamma
            )
    return r


def traceback(r: np.ndarray, cost: np.ndarray) -> list[AlignmentStep]:
    i, j = r.shape[0] - 1, r.shape[1] - 1
    steps: list[AlignmentStep] = []
    while True:
        steps.append(
            AlignmentStep(
                user_index=i - 1,
                candidate_index=j - 1,
                pair_distance=float(cost[i - 1, j - 1]),
            )
        )
        if i == 1 and j == 1:
            break
        best = None
        for di, dj in _MOVES:
            value = r[i - di, j - dj]
            if best is None or value < best[0]:
                best = (value, di, dj)
        i -= best[1]
        j -= best[2]
    steps.reverse()
    return steps


def soft_dtw(
    x: Sequence[Sequence[float]] | np.ndarray,
    y: Sequence[Sequence[float]] | np.ndarray,
    gamma: float = DEFAULT_GAMMA,
    with_path: bool = False,
) -> AlignmentResult:
    """Align two event sequences and return the Soft-DTW distance.

    Args:
        x: User sequence, m vectors.
        y: Candidate sequence, n vectors of the same dimension.
        gamma: Smoothing parameter, must be > 0. Smaller values approach hard DTW.
        with_path: Also compute the hard-argmin alignment trace.

    Returns:
        AlignmentResult with distance clamped to >= 0 (the soft minimum can
        undershoot the hard minimum by up to gamma * ln 3 per cell) and the
        path when requested, otherwise an empty path.

    Raises:
        AlignmentPreconditionError: empty sequences, gamma <= 0, or mismatched
            embedding dimensions.
    """
    if gamma <= 0:
        raise AlignmentPreconditionError(f"gamma must be > 0, got {gamma}")
    if len(x) == 0 or len(y) == 0:
        raise AlignmentPreconditionError("Cannot align an empty sequence")
    xm = as_matrix(x)
    ym = as_matrix(y)

    cost = cost_matrix(xm, ym)
    r = accumulated_cost(cost, gamma)
    distance = max(0.0, float(r[-1, -1]))
    path = traceback(r, cost) if with_path else []
    return AlignmentResult(distance=distance, path=path)


def distance_to_similarity(distance: float) -> float:
    """Map a distance in [0, inf) to a similarity in (0, 1]."""
    return 1.0 / (1.0 + max(0.0, distance))
