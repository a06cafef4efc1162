from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from verwatch.config import get_settings
from verwatch.services.app_settings import load_app_settings
from verwatch.services.cache import VersionCache
from verwatch.services.check_types import AppSettings, CheckResult
from verwatch.services.checker import CheckContext, VersionChecker
from verwatch.services.scheduler import Scheduler


@dataclass
class BatchRecorder:
    """Batch listener that keeps the most recent results for the UI."""

    checked_at: datetime | None = None
    results: list[CheckResult] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __call__(self, results: list[CheckResult]) -> None:
        with self._lock:
            self.checked_at = datetime.now(UTC)
            self.results = list(results)

    def snapshot(self) -> tuple[datetime | None, list[CheckResult]]:
        with self._lock:
            return self.checked_at, list(self.results)


@dataclass(frozen=True)
class AppContainer:
    session_factory: Callable[[], Session]
    cache: VersionCache
    checker: VersionChecker
    scheduler: Scheduler
    last_batch: BatchRecorder


def scheduler_interval(settings: AppSettings) -> int:
    if not settings.cache.auto_refresh_enabled:
        return 0
    return settings.cache.auto_refresh_interval


def build_container(session_factory: Callable[[], Session]) -> AppContainer:
    settings = get_settings()
    with session_factory() as db:
        runtime_settings = load_app_settings(db)

    cache = VersionCache(runtime_settings.cache.ttl_minutes, lock_timeout=settings.lock_timeout_seconds)
    checker = VersionChecker(
        CheckContext.build(
            session_factory,
            cache,
            max_concurrency=settings.max_concurrent_fetches,
            fetch_timeout=settings.fetch_timeout_seconds,
            probe_timeout=settings.probe_timeout_seconds,
        )
    )
    recorder = BatchRecorder()
    checker.add_listener(recorder)
    return AppContainer(
        session_factory=session_factory,
        cache=cache,
        checker=checker,
        scheduler=Scheduler(checker.run_cycle),
        last_batch=recorder,
    )


_CONTAINER: AppContainer | None = None


def set_container(container: AppContainer | None) -> None:
    global _CONTAINER
    _CONTAINER = container


def get_container() -> AppContainer:
    if _CONTAINER is None:
        raise RuntimeError("Application container is not initialized")
    return _CONTAINER
