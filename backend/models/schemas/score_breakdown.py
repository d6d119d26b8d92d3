"""Score blender output: per-signal scores and their weighted blend."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ScoreBreakdown(BaseModel):
    """All fields are in [0, 1]."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    career_similarity: float = 0.0  # 1 / (1 + soft-DTW distance)
    institution_similarity: float = 0.0
    organization_proximity: float = 0.0
    blended: float = 0.0
