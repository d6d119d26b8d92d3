"""Score blender: fixed-weight combination of the three ranking signals."""

from dataclasses import dataclass

from models.schemas.score_breakdown import ScoreBreakdown


@dataclass(frozen=True)
class BlendWeights:
    career: float = 0.4
    institution: float = 0.4
    organization: float = 0.2

    def __post_init__(self) -> None:
        values = (self.career, self.institution, self.organization)
        if any(w < 0 for w in values):
            raise ValueError(f"Blend weights must be non-negative: {values}")
        if abs(sum(values) - 1.0) > 1e-6:
            raise ValueError(f"Blend weights must sum to 1, got {sum(values):.6f}")


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


def blend(
    career_similarity: float,
    institution_similarity: float,
    organization_proximity: float,
    weights: BlendWeights = BlendWeights(),
) -> ScoreBreakdown:
    """Clamp each signal to [0, 1] and return it with the weighted sum."""
    career = _clamp(career_similarity)
    institution = _clamp(institution_similarity)
    organization = _clamp(organization_proximity)
    blended = (
        weights.career * career
        + weights.institution * institution
        + weights.organization * organization
    )
    return ScoreBreakdown(
        career_similarity=career,
        institution_similarity=institution,
        organization_proximity=organization,
        blended=_clamp(blended),
    )
