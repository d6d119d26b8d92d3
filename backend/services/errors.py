"""Exception taxonomy for the reranking pipeline."""


class RerankError(Exception):
    """Base class for reranking failures."""

    code: str = "internal_error"  # opaque code returned to clients


class EmbeddingError(RerankError):
    """The embedding provider failed or returned no vector. Aborts the request."""

    code = "embedding_failed"


class StorageLoadError(RerankError):
    """A candidate's stored sequence, organizations or institutions could not be loaded."""

    def __init__(self, candidate_id: str, message: str = "") -> None:
        self.candidate_id = candidate_id
        super().__init__(message or f"Could not load candidate {candidate_id!r}")


class AlignmentPreconditionError(RerankError, ValueError):
    """Caller passed vectors or sequences the alignment engine cannot accept."""


class CacheUnavailableError(RerankError):
    """The result cache cannot serve reads or writes (treated as a miss)."""
