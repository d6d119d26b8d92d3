"""Alignment engine output: Soft-DTW distance and optional trace."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AlignmentStep(BaseModel):
    """One matched (user event, candidate event) pair on the alignment path."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    user_index: int
    candidate_index: int
    pair_distance: float  # 1 - cosine similarity of the pair


class AlignmentResult(BaseModel):
    """Soft-DTW distance (>= 0, smaller is closer) and the hard-argmin trace.

    path is empty unless the trace was requested.
    """
    model_config = ConfigDict(frozen=True)

    distance: float = 0.0
    path: list[AlignmentStep] = []
