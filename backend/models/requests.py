from collections import Counter

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from services.soft_dtw import DEFAULT_GAMMA


class TimelineEvent(BaseModel):
    """One raw career event, embedded by the service before alignment."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    role: str | None = Field(None, max_length=500)
    organization: str | None = Field(None, max_length=500)
    period_label: str | None = Field(None, max_length=100, description="e.g. 'sophomore', '2021'")

    @model_validator(mode="after")
    def _require_content(self):
        if not (self.role or self.organization or self.period_label):
            raise ValueError("Timeline event needs at least one of role, organization, period_label")
        return self

    def to_text(self) -> str:
        """Text sent to the embedding provider, e.g. 'SWE intern at Google (junior)'."""
        text = " at ".join(p for p in (self.role, self.organization) if p)
        if self.period_label:
            text = f"{text} ({self.period_label})" if text else self.period_label
        return text


class Goal(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    target_organization: str | None = Field(None, max_length=500)
    target_period: str | None = Field(None, max_length=100)


class Profile(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    institution: str | None = Field(None, max_length=500)
    field: str | None = Field(None, max_length=500)


class RerankRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    user_events: list[TimelineEvent] = Field(default=[], alias="userEvents", max_length=200)
    candidate_ids: list[str] = Field(default=[], alias="candidateIds", max_length=1000)
    gamma: float = Field(DEFAULT_GAMMA, gt=0, description="Soft-DTW smoothing")
    goal: Goal = Goal()
    profile: Profile = Profile()
    include_alignment: bool = Field(False, alias="includeAlignment")
    top_n: int | None = Field(None, alias="topN", ge=1, description="Truncate the sorted results")

    @field_validator("candidate_ids")
    @classmethod
    def _unique_ids(cls, value: list[str]) -> list[str]:
        dupes = sorted(cid for cid, n in Counter(value).items() if n > 1)
        if dupes:
            raise ValueError(f"Duplicate candidate ids: {dupes}")
        return value
