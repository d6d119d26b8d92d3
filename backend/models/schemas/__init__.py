"""Internal Pydantic contracts shared by the scoring services."""

from models.schemas.alignment import AlignmentResult, AlignmentStep
from models.schemas.score_breakdown import ScoreBreakdown
from models.schemas.tables import ProximityTables

__all__ = [
    "AlignmentResult",
    "AlignmentStep",
    "ScoreBreakdown",
    "ProximityTables",
]
