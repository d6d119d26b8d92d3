"""Read-only access to stored candidate timelines.

The reranker only needs a projection of each candidate: its event embeddings
in timeline order, the organizations it worked at, and its education strings.
"""

import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from services.errors import StorageLoadError

logger = logging.getLogger(__name__)


class CandidateRecord(BaseModel):
    candidate_id: str
    events: list[list[float]] = []  # one embedding per event, timeline order
    organizations: list[str] = []
    institutions: list[str] = []  # school, degree and similar strings
    url: str = ""


class SequenceStore(Protocol):
    def load_sequence(self, candidate_id: str) -> list[list[float]]: ...

    def load_organizations(self, candidate_id: str) -> list[str]: ...

    def load_institutions(self, candidate_id: str) -> list[str]: ...


class InMemorySequenceStore:
    """Dict-backed store. Unknown ids raise StorageLoadError."""

    def __init__(self, records: list[CandidateRecord] | None = None) -> None:
        self._records: dict[str, CandidateRecord] = {}
        for record in records or []:
            self.add(record)

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemorySequenceStore":
        """Load records from a JSON file holding a list of CandidateRecord objects."""
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
        store = cls([CandidateRecord(**item) for item in raw])
        logger.info("Loaded %d candidates from %s", len(store), path)
        return store

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: CandidateRecord) -> None:
        self._records[record.candidate_id] = record

    def _get(self, candidate_id: str) -> CandidateRecord:
        record = self._records.get(candidate_id)
        if record is None:
            raise StorageLoadError(candidate_id, f"Unknown candidate {candidate_id!r}")
        return record

    def load_sequence(self, candidate_id: str) -> list[list[float]]:
        return list(self._get(candidate_id).events)

    def load_organizations(self, candidate_id: str) -> list[str]:
        return list(self._get(candidate_id).organizations)

    def load_institutions(self, candidate_id: str) -> list[str]:
        return list(self._get(candidate_id).institutions)
