from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from verwatch.errors import LockError

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    latest_version: str
    published_at: datetime | None
    cached_at: datetime
    ttl_minutes: int

    def is_expired(self, now: datetime) -> bool:
        return now - self.cached_at > timedelta(minutes=self.ttl_minutes)


class ReadWriteLock:
    """Many readers or one writer. Writers wait for active readers to drain."""

    def __init__(self, timeout: float | None = None):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._timeout = timeout

    def _wait_for(self, predicate: Callable[[], bool]) -> None:
        if not self._cond.wait_for(predicate, timeout=self._timeout):
            raise LockError("Timed out waiting for the version cache lock")

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            self._wait_for(lambda: not self._writer)
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._wait_for(lambda: not self._writer and self._readers == 0)
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class VersionCache:
    """Latest remote lookup per tracked item with a per-entry TTL.

    Expired entries are reported as absent but stay in memory until they are
    overwritten, invalidated or cleared.
    """

    def __init__(
        self,
        default_ttl_minutes: int = 30,
        *,
        clock: Callable[[], datetime] = _now,
        lock_timeout: float | None = None,
    ):
        self._entries: dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl_minutes
        self._clock = clock
        self._lock = ReadWriteLock(timeout=lock_timeout)

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    def get(self, key: str) -> CacheEntry | None:
        with self._lock.read():
            entry = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry

    def set(self, key: str, latest_version: str, published_at: datetime | None = None) -> CacheEntry:
        with self._lock.write():
            entry = CacheEntry(
                key=key,
                latest_version=latest_version,
                published_at=published_at,
                cached_at=self._clock(),
                ttl_minutes=self._default_ttl,
            )
            self._entries[key] = entry
        return entry

    def invalidate(self, key: str) -> None:
        with self._lock.write():
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock.write():
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cleared %d cached version lookups", count)

    def set_ttl(self, ttl_minutes: int) -> None:
        """Change the TTL for entries created from now on; existing entries keep theirs."""
        with self._lock.write():
            self._default_ttl = ttl_minutes

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)
