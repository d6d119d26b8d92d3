from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from models.schemas.alignment import AlignmentStep
from models.schemas.score_breakdown import ScoreBreakdown


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class RerankResult(_CamelModel):
    model_config = ConfigDict(frozen=True)

    candidate_id: str
    score: float = 0.0
    breakdown: ScoreBreakdown = ScoreBreakdown()
    alignment: list[AlignmentStep] | None = None
    degraded: bool = False  # candidate data could not be loaded, score forced to 0


class Timings(_CamelModel):
    embed_ms: float = 0.0
    score_ms: float = 0.0
    total_ms: float = 0.0


class RerankResponse(_CamelModel):
    results: list[RerankResult] = []
    cached: bool = False
    correlation_id: str = ""
    timings: Timings | None = None


class ErrorResponse(_CamelModel):
    error: str  # opaque code: embedding_failed | timeout | internal_error
    correlation_id: str


class Counters(_CamelModel):
    total_requests: int = 0
    cache_hits: int = 0
    reranks: int = 0
    errors: int = 0


class HealthResponse(BaseModel):
    status: str = "ok"
    embed_provider: str = ""
    cache_entries: int = 0
