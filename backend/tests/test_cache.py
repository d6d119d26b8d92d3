"""Tests for the LRU + TTL result cache and request fingerprinting."""

import pytest

from conftest import FakeClock
from models.requests import Goal, RerankRequest, TimelineEvent
from models.responses import RerankResult
from services.cache import ResultCache, fingerprint_request
from services.errors import CacheUnavailableError


def _results(*ids: str) -> list[RerankResult]:
    return [RerankResult(candidate_id=cid, score=0.5) for cid in ids]


class TestEviction:
    def test_overflow_evicts_exactly_one_lru_entry(self, clock):
        cache = ResultCache(max_entries=3, ttl_seconds=60, clock=clock)
        for key in ("a", "b", "c", "d"):
            cache.put(key, _results(key))
        assert len(cache) == 3
        assert "a" not in cache
        assert all(k in cache for k in ("b", "c", "d"))

    def test_read_touch_protects_entry(self, clock):
        cache = ResultCache(max_entries=2, ttl_seconds=60, clock=clock)
        cache.put("a", _results("a"))
        cache.put("b", _results("b"))
        assert cache.get("a") is not None
        cache.put("c", _results("c"))
        assert "a" in cache
        assert "b" not in cache

    def test_overwrite_at_capacity_keeps_other_entries(self, clock):
        cache = ResultCache(max_entries=2, ttl_seconds=60, clock=clock)
        cache.put("a", _results("a"))
        cache.put("b", _results("b"))
        cache.put("a", _results("x"))
        assert len(cache) == 2
        assert cache.get("a")[0].candidate_id == "x"
        assert "b" in cache


class TestExpiry:
    def test_entry_expires_after_ttl(self, clock):
        cache = ResultCache(max_entries=4, ttl_seconds=300, clock=clock)
        cache.put("a", _results("a"))
        clock.advance(301)
        assert cache.get("a") is None
        assert "a" not in cache

    def test_entry_valid_at_ttl_boundary(self, clock):
        cache = ResultCache(max_entries=4, ttl_seconds=300, clock=clock)
        cache.put("a", _results("a"))
        clock.advance(300)
        assert cache.get("a") is not None

    def test_hit_does_not_refresh_timestamp(self, clock):
        cache = ResultCache(max_entries=4, ttl_seconds=300, clock=clock)
        cache.put("a", _results("a"))
        clock.advance(200)
        assert cache.get("a") is not None
        clock.advance(150)
        assert cache.get("a") is None

    def test_put_purges_expired_entries(self, clock):
        cache = ResultCache(max_entries=4, ttl_seconds=10, clock=clock)
        cache.put("old1", _results("a"))
        cache.put("old2", _results("b"))
        clock.advance(11)
        cache.put("new", _results("c"))
        assert len(cache) == 1
        assert "new" in cache

    def test_default_clock_works(self):
        cache = ResultCache(max_entries=2, ttl_seconds=60)
        cache.put("a", _results("a"))
        assert [r.candidate_id for r in cache.get("a")] == ["a"]


class TestLifecycle:
    def test_miss_returns_none(self, clock):
        assert ResultCache(clock=clock).get("missing") is None

    def test_get_returns_a_copy(self, clock):
        cache = ResultCache(clock=clock)
        cache.put("a", _results("a", "b"))
        first = cache.get("a")
        first.pop()
        assert len(cache.get("a")) == 2

    def test_closed_cache_is_unavailable(self, clock):
        cache = ResultCache(clock=clock)
        cache.put("a", _results("a"))
        cache.close()
        assert len(cache) == 0
        with pytest.raises(CacheUnavailableError):
            cache.get("a")
        with pytest.raises(CacheUnavailableError):
            cache.put("b", _results("b"))

    @pytest.mark.parametrize("max_entries,ttl", [(0, 60), (2, 0)])
    def test_invalid_config(self, max_entries, ttl):
        with pytest.raises(ValueError):
            ResultCache(max_entries=max_entries, ttl_seconds=ttl, clock=FakeClock())


class TestFingerprint:
    def _request(self, **overrides) -> RerankRequest:
        data = {
            "userEvents": [{"role": "SWE intern", "organization": "Google"}],
            "candidateIds": ["c1", "c2"],
            "goal": {"target_organization": "Google"},
        }
        data.update(overrides)
        return RerankRequest(**data)

    def test_deterministic(self):
        assert fingerprint_request(self._request()) == fingerprint_request(self._request())

    def test_hex_sha256(self):
        key = fingerprint_request(self._request())
        assert len(key) == 64
        int(key, 16)

    def test_sensitive_to_every_scoring_field(self):
        base = fingerprint_request(self._request())
        variants = [
            self._request(candidateIds=["c2", "c1"]),
            self._request(gamma=0.2),
            self._request(includeAlignment=True),
            self._request(goal={"target_organization": "Meta"}),
            self._request(profile={"institution": "UIUC"}),
            self._request(userEvents=[{"role": "SWE intern", "organization": "Meta"}]),
        ]
        keys = {fingerprint_request(v) for v in variants}
        assert base not in keys
        assert len(keys) == len(variants)

    def test_ignores_top_n(self):
        assert fingerprint_request(self._request(topN=1)) == fingerprint_request(self._request())

    def test_whitespace_is_normalized(self):
        padded = RerankRequest(
            user_events=[TimelineEvent(role="  SWE intern ", organization="Google ")],
            candidate_ids=["c1", "c2"],
            goal=Goal(target_organization=" Google"),
        )
        assert fingerprint_request(padded) == fingerprint_request(self._request())
