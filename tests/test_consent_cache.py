"""Tests for ConsentCache."""

from __future__ import annotations

import pytest

from datanet.consent.cache import ConsentCache
from datanet.core.errors import ConfigurationError
from tests.fixtures.entities import make_consent


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestConsentCache:
    def test_miss_then_hit(self, clock: FakeClock) -> None:
        cache = ConsentCache(ttl_seconds=60, clock=clock)
        record = make_consent()

        assert cache.get("t-1") == (False, None)
        cache.put("t-1", record)
        assert cache.get("t-1") == (True, record)

    def test_caches_absent_record(self, clock: FakeClock) -> None:
        cache = ConsentCache(clock=clock)
        cache.put("t-1", None)

        assert cache.get("t-1") == (True, None)

    def test_expiry(self, clock: FakeClock) -> None:
        cache = ConsentCache(ttl_seconds=60, clock=clock)
        cache.put("t-1", make_consent())

        clock.now += 59
        assert cache.get("t-1")[0] is True
        clock.now += 1
        assert cache.get("t-1") == (False, None)
        assert len(cache) == 0

    def test_lru_eviction(self, clock: FakeClock) -> None:
        cache = ConsentCache(max_entries=2, clock=clock)
        cache.put("a", make_consent())
        cache.put("b", make_consent())
        cache.get("a")
        cache.put("c", make_consent())

        assert cache.get("a")[0] is True
        assert cache.get("b")[0] is False
        assert cache.get("c")[0] is True

    def test_invalidate(self, clock: FakeClock) -> None:
        cache = ConsentCache(clock=clock)
        cache.put("t-1", make_consent())

        assert cache.invalidate("t-1") is True
        assert cache.invalidate("t-1") is False
        assert cache.get("t-1")[0] is False

    def test_stale_put_discarded(self, clock: FakeClock) -> None:
        """A lookup that started before an invalidation must not re-cache."""
        cache = ConsentCache(clock=clock)
        generation = cache.generation

        cache.invalidate("t-1")

        assert cache.put("t-1", make_consent(), generation=generation) is False
        assert cache.get("t-1")[0] is False
        assert cache.put("t-1", make_consent(), generation=cache.generation) is True

    @pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_entries": 0}])
    def test_invalid_config(self, kwargs: dict) -> None:
        with pytest.raises(ConfigurationError):
            ConsentCache(**kwargs)
