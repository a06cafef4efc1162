from datetime import UTC, datetime, timedelta

import pytest

from verwatch.errors import LockError
from verwatch.services.cache import VersionCache


class _Clock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self):
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


def test_entry_expires_after_ttl():
    clock = _Clock()
    cache = VersionCache(30, clock=clock)
    cache.set("item", "1.2.3")

    clock.advance(30)
    entry = cache.get("item")
    assert entry is not None
    assert entry.latest_version == "1.2.3"

    clock.advance(1)
    assert cache.get("item") is None


def test_set_ttl_applies_to_new_entries_only():
    clock = _Clock()
    cache = VersionCache(30, clock=clock)
    cache.set("old", "1.0.0")
    cache.set_ttl(5)
    cache.set("new", "2.0.0")

    clock.advance(10)
    assert cache.get("old") is not None
    assert cache.get("new") is None
    assert cache.default_ttl == 5


def test_invalidate_and_clear():
    cache = VersionCache(30)
    cache.set("a", "1.0.0")
    cache.set("b", "1.0.0")
    assert len(cache) == 2

    cache.invalidate("a")
    cache.invalidate("missing")
    assert cache.get("a") is None
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_read_times_out_while_writer_holds_lock():
    cache = VersionCache(30, lock_timeout=0.05)
    with cache._lock.write():
        with pytest.raises(LockError):
            cache.get("item")
