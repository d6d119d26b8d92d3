"""Static lookup tables for the heuristic scorers (organization graph, institution aliases)."""

from pydantic import BaseModel, field_validator


def _norm(value: str) -> str:
    return " ".join(value.lower().split())


class ProximityTables(BaseModel):
    """Versioned, swappable scoring tables.

    Keys and members are normalized to lowercase with collapsed whitespace on
    load, so lookups only need to normalize the query side.
    """
    version: str = "0"
    organization_neighbors: dict[str, set[str]] = {}
    major_employers: set[str] = set()
    institution_aliases: dict[str, str] = {}  # abbreviation -> full name

    @field_validator("organization_neighbors", mode="before")
    @classmethod
    def _normalize_neighbors(cls, value):
        if not value:
            return {}
        return {_norm(k): {_norm(n) for n in (v or [])} for k, v in value.items()}

    @field_validator("major_employers", mode="before")
    @classmethod
    def _normalize_employers(cls, value):
        return {_norm(v) for v in (value or [])}

    @field_validator("institution_aliases", mode="before")
    @classmethod
    def _normalize_aliases(cls, value):
        if not value:
            return {}
        return {_norm(k): _norm(v) for k, v in value.items()}
