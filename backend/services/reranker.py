"""Rerank orchestrator: scores candidate timelines against the user's timeline.

Flow (per request, serialized per service instance):
    RerankRequest
      ├─ fingerprint_request()          → cache key
      ├─ ResultCache.get()              → hit: return cached=True
      │
      ├─ embedder.embed(event) × m      → user sequence (any failure aborts)
      ├─ for each candidate id:
      │     store.load_*()              → sequence, organizations, institutions
      │     soft_dtw()                  → career similarity
      │     institution_similarity()    → institution similarity
      │     organization_proximity()    → organization proximity
      │     blend()                     → RerankResult
      ├─ stable sort by score desc
      └─ ResultCache.put()              → return cached=False
"""

import asyncio
import logging
import time
import uuid

from models.requests import RerankRequest, TimelineEvent
from models.responses import Counters, ErrorResponse, RerankResponse, RerankResult, Timings
from models.schemas.tables import ProximityTables
from services.blender import BlendWeights, blend
from services.cache import ResultCache, fingerprint_request
from services.embeddings import BaseEmbedder
from services.errors import CacheUnavailableError, EmbeddingError, RerankError, StorageLoadError
from services.heuristics import institution_similarity, organization_proximity
from services.sequence_store import SequenceStore
from services.soft_dtw import distance_to_similarity, soft_dtw

logger = logging.getLogger(__name__)


def _elapsed_ms(since: float) -> float:
    return round((time.perf_counter() - since) * 1000, 2)


class RerankService:
    """Owns the result cache and counters for one logical reranker.

    All requests against an instance run one at a time under an asyncio.Lock,
    so the cache and counters need no locking of their own. Running several
    processes against the same logical reranker needs an external lock per
    cache key.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        store: SequenceStore,
        cache: ResultCache,
        tables: ProximityTables,
        weights: BlendWeights = BlendWeights(),
        timeout_seconds: float = 30.0,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.cache = cache
        self.tables = tables
        self.weights = weights
        self.timeout_seconds = timeout_seconds
        self._lock = asyncio.Lock()
        self._counters = {"total_requests": 0, "cache_hits": 0, "reranks": 0, "errors": 0}

    def metrics(self) -> Counters:
        return Counters(**self._counters)

    def close(self) -> None:
        self.cache.close()

    async def rerank(self, request: RerankRequest) -> RerankResponse | ErrorResponse:
        """Score and sort candidates, serving from the cache when possible."""
        correlation_id = uuid.uuid4().hex
        started = time.perf_counter()
        self._counters["total_requests"] += 1

        async with self._lock:
            key = fingerprint_request(request)

            cached = self._cache_get(key, correlation_id)
            if cached is not None:
                self._counters["cache_hits"] += 1
                logger.info("[%s] cache hit for %s", correlation_id, key[:12])
                return RerankResponse(
                    results=_truncate(cached, request.top_n),
                    cached=True,
                    correlation_id=correlation_id,
                    timings=Timings(total_ms=_elapsed_ms(started)),
                )

            try:
                results, timings = await asyncio.wait_for(
                    self._compute(request), timeout=self.timeout_seconds
                )
            except EmbeddingError as e:
                logger.error("[%s] embedding failed: %s", correlation_id, e)
                return self._fail(e.code, correlation_id)
            except asyncio.TimeoutError:
                logger.error(
                    "[%s] rerank exceeded %.1fs deadline", correlation_id, self.timeout_seconds
                )
                return self._fail("timeout", correlation_id)
            except Exception:
                logger.exception("[%s] rerank failed", correlation_id)
                return self._fail(RerankError.code, correlation_id)

            self._counters["reranks"] += 1
            if any(r.degraded for r in results):
                logger.info("[%s] not caching: result set has degraded candidates", correlation_id)
            else:
                self._cache_put(key, results, correlation_id)

            timings.total_ms = _elapsed_ms(started)
            logger.info(
                "[%s] reranked %d candidates in %.1fms",
                correlation_id,
                len(results),
                timings.total_ms,
            )
            return RerankResponse(
                results=_truncate(results, request.top_n),
                cached=False,
                correlation_id=correlation_id,
                timings=timings,
            )

    async def _compute(self, request: RerankRequest) -> tuple[list[RerankResult], Timings]:
        # --- Stage 1: embed the user's timeline, in order ---
        t0 = time.perf_counter()
        user_sequence = [await self._embed(event) for event in request.user_events]
        embed_ms = _elapsed_ms(t0)

        # --- Stage 2: score every candidate ---
        t1 = time.perf_counter()
        results = []
        for candidate_id in request.candidate_ids:
            results.append(await self._score_candidate(candidate_id, user_sequence, request))

        # list.sort is stable, so ties keep candidate input order
        results.sort(key=lambda r: r.score, reverse=True)
        return results, Timings(embed_ms=embed_ms, score_ms=_elapsed_ms(t1))

    async def _embed(self, event: TimelineEvent) -> list[float]:
        try:
            return await asyncio.to_thread(self.embedder.embed, event.to_text())
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Embedding call failed: {e}") from e

    async def _load(self, loader, candidate_id: str):
        try:
            return await asyncio.to_thread(loader, candidate_id)
        except StorageLoadError:
            raise
        except Exception as e:
            raise StorageLoadError(candidate_id, f"{type(e).__name__}: {e}") from e

    async def _score_candidate(
        self,
        candidate_id: str,
        user_sequence: list[list[float]],
        request: RerankRequest,
    ) -> RerankResult:
        try:
            sequence = await self._load(self.store.load_sequence, candidate_id)
            organizations = await self._load(self.store.load_organizations, candidate_id)
            institutions = await self._load(self.store.load_institutions, candidate_id)
        except StorageLoadError as e:
            logger.warning("Candidate %s isolated with score 0: %s", candidate_id, e)
            return RerankResult(candidate_id=candidate_id, degraded=True)

        career = 0.0
        path = None
        if user_sequence and sequence:
            # blocking m x n loop
            alignment = await asyncio.to_thread(
                soft_dtw,
                user_sequence,
                sequence,
                gamma=request.gamma,
                with_path=request.include_alignment,
            )
            career = distance_to_similarity(alignment.distance)
            if request.include_alignment:
                path = alignment.path

        breakdown = blend(
            career,
            institution_similarity(request.profile.institution, institutions, self.tables),
            organization_proximity(organizations, request.goal.target_organization, self.tables),
            self.weights,
        )
        return RerankResult(
            candidate_id=candidate_id,
            score=breakdown.blended,
            breakdown=breakdown,
            alignment=path,
        )

    def _cache_get(self, key: str, correlation_id: str) -> list[RerankResult] | None:
        try:
            return self.cache.get(key)
        except CacheUnavailableError as e:
            logger.warning("[%s] cache read skipped: %s", correlation_id, e)
            return None

    def _cache_put(self, key: str, results: list[RerankResult], correlation_id: str) -> None:
        try:
            self.cache.put(key, results)
        except CacheUnavailableError as e:
            logger.warning("[%s] cache write skipped: %s", correlation_id, e)

    def _fail(self, code: str, correlation_id: str) -> ErrorResponse:
        self._counters["errors"] += 1
        return ErrorResponse(error=code, correlation_id=correlation_id)


def _truncate(results: list[RerankResult], top_n: int | None) -> list[RerankResult]:
    return list(results[:top_n]) if top_n else list(results)


def build_reranker(settings) -> RerankService:
    """Wire a RerankService from application settings."""
    from services.embeddings import get_embedder
    from services.heuristics import load_tables
    from services.sequence_store import InMemorySequenceStore

    store = (
        InMemorySequenceStore.from_json(settings.candidate_store_path)
        if settings.candidate_store_path
        else InMemorySequenceStore()
    )
    return RerankService(
        embedder=get_embedder(
            settings.embed_provider, settings.embedding_model, settings.embedding_dim
        ),
        store=store,
        cache=ResultCache(settings.cache_max_entries, settings.cache_ttl_seconds),
        tables=load_tables(settings.proximity_tables_path or None),
        weights=BlendWeights(
            career=settings.weight_career,
            institution=settings.weight_institution,
            organization=settings.weight_organization,
        ),
        timeout_seconds=settings.request_timeout_seconds,
    )
