"""Shared test configuration, pytest markers and fakes for the reranker collaborators."""

import pytest

from models.schemas.tables import ProximityTables
from services.embeddings import BaseEmbedder
from services.errors import EmbeddingError
from services.sequence_store import CandidateRecord, InMemorySequenceStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: loads a real embedding model (slow, downloads weights)"
    )


class FakeEmbedder(BaseEmbedder):
    """Maps event text to a fixed vector; unknown texts get the default vector."""

    provider_name = "fake"

    def __init__(self, vectors=None, default=None, fail_on=()):
        self.vectors = dict(vectors or {})
        self.default = default if default is not None else [1.0, 0.0, 0.0]
        self.fail_on = set(fail_on)
        self.calls: list[str] = []

    def load(self) -> None:
        pass

    def _encode(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.fail_on:
            raise EmbeddingError(f"no vector for {text!r}")
        return list(self.vectors.get(text, self.default))


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def tables() -> ProximityTables:
    return ProximityTables(
        version="test",
        organization_neighbors={"google": ["youtube", "deepmind"], "meta": ["instagram"]},
        major_employers=["google", "meta", "apple"],
        institution_aliases={"uiuc": "university of illinois urbana-champaign"},
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def store() -> InMemorySequenceStore:
    return InMemorySequenceStore([
        CandidateRecord(
            candidate_id="match",
            events=[[1.0, 0.0, 0.0]],
            organizations=["Google"],
            institutions=["UIUC", "BS Computer Science"],
        ),
        CandidateRecord(
            candidate_id="far",
            events=[[0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
            organizations=["RandoCorp"],
            institutions=["Some College"],
        ),
        CandidateRecord(
            candidate_id="empty",
            events=[],
            organizations=["Meta"],
            institutions=[],
        ),
    ])
