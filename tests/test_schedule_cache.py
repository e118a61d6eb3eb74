"""
Test the schedule memoization cache.
"""
from models.schemas import ScheduleResult
from service.schedule_cache import ScheduleCache, build_fingerprint


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_fingerprint_ignores_key_order():
    assert build_fingerprint({"a": 1, "b": [1, 2]}) == build_fingerprint({"b": [1, 2], "a": 1})
    assert build_fingerprint({"a": 1}) != build_fingerprint({"a": 2})


def test_get_returns_copy():
    cache = ScheduleCache()
    cache.set("key", ScheduleResult(total_hours=2.0))

    hit = cache.get("key")
    hit.total_hours = 99

    assert cache.get("key").total_hours == 2.0
    assert cache.get("missing") is None


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = ScheduleCache(ttl_seconds=120, clock=clock)
    cache.set("key", ScheduleResult())

    clock.now = 120
    assert cache.get("key") is not None

    clock.now = 121
    assert cache.get("key") is None
    assert len(cache) == 0


def test_least_recently_used_is_evicted():
    cache = ScheduleCache(max_entries=2)
    cache.set("a", ScheduleResult(total_hours=1))
    cache.set("b", ScheduleResult(total_hours=2))
    cache.get("a")
    cache.set("c", ScheduleResult(total_hours=3))

    assert cache.get("b") is None
    assert cache.get("a").total_hours == 1
    assert cache.get("c").total_hours == 3


def test_last_writer_wins():
    cache = ScheduleCache()
    cache.set("key", ScheduleResult(total_hours=1))
    cache.set("key", ScheduleResult(total_hours=2))

    assert len(cache) == 1
    assert cache.get("key").total_hours == 2

    cache.clear()
    assert len(cache) == 0
