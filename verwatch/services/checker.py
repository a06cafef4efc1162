"""One batch version check from start to finish.

A cycle lists the enabled tracked items, resolves them through the fetch
orchestrator, writes the results back one item at a time, runs the
notification policy for items with an update and finally hands the results to
every registered batch listener. :class:`VersionChecker` is driven by the
scheduler and also serves on-demand checks from the API.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from verwatch.errors import NotificationError, VerwatchError
from verwatch.services import app_settings, tracked_items
from verwatch.services.cache import VersionCache
from verwatch.services.check_types import AppSettings, CheckResult, TrackedItem
from verwatch.services.notifications import format_notification, should_notify
from verwatch.services.notifier import send_notification
from verwatch.services.orchestrator import (
    DEFAULT_MAX_CONCURRENCY,
    Fetcher,
    Prober,
    default_fetcher,
    default_prober,
    fetch_all,
    probe_local_version,
)
from verwatch.services.versioning import has_update

logger = logging.getLogger(__name__)

BatchListener = Callable[[list[CheckResult]], None]


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class CheckContext:
    """Everything a check needs, passed in rather than looked up globally."""

    session_factory: Callable[[], Session]
    cache: VersionCache
    fetcher: Fetcher
    prober: Prober
    notifier: Callable[[str, str], None] = send_notification
    settings_loader: Callable[[Session], AppSettings] = app_settings.load_app_settings
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    clock: Callable[[], datetime] = _now
    listeners: list[BatchListener] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        session_factory: Callable[[], Session],
        cache: VersionCache,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        fetch_timeout: float = 10.0,
        probe_timeout: float = 10.0,
    ) -> "CheckContext":
        return cls(
            session_factory=session_factory,
            cache=cache,
            fetcher=default_fetcher(fetch_timeout),
            prober=default_prober(probe_timeout),
            max_concurrency=max_concurrency,
        )


class VersionChecker:
    def __init__(self, context: CheckContext):
        self.context = context
        self._listeners_lock = threading.Lock()

    def add_listener(self, listener: BatchListener) -> None:
        with self._listeners_lock:
            self.context.listeners.append(listener)

    def remove_listener(self, listener: BatchListener) -> None:
        with self._listeners_lock:
            if listener in self.context.listeners:
                self.context.listeners.remove(listener)

    def _emit(self, results: list[CheckResult]) -> None:
        with self._listeners_lock:
            listeners = list(self.context.listeners)
        for listener in listeners:
            try:
                listener(results)
            except Exception:  # noqa: BLE001
                logger.exception("Batch listener %r failed", listener)

    def run_cycle(self) -> list[CheckResult]:
        """Check every enabled item once. Store and lock errors abort only this cycle."""
        ctx = self.context
        with ctx.session_factory() as db:
            settings = ctx.settings_loader(db)
            items = tracked_items.list_snapshots(db, enabled_only=True)
            if not items:
                logger.info("No enabled tracked items; nothing to check")
                self._emit([])
                return []

            batch = fetch_all(
                items,
                cache=ctx.cache,
                token=settings.github_token,
                fetcher=ctx.fetcher,
                prober=ctx.prober,
                max_concurrency=ctx.max_concurrency,
            )
            logger.info(
                "Version check finished: %d results (%d cached, %d fetched, %d failed)",
                len(batch.results),
                batch.cache_hits,
                batch.remote_lookups,
                len(batch.errors),
            )

            self._persist(db, batch.results)
            self._notify(db, settings, {item.id: item for item in items}, batch.results)

        self._emit(batch.results)
        return batch.results

    def check_all(self) -> list[CheckResult]:
        return self.run_cycle()

    def check_one(self, item_id: str, *, force_refresh: bool = False) -> CheckResult:
        """Check a single item now; raises ``NotFoundError`` or ``RemoteApiError``."""
        ctx = self.context
        with ctx.session_factory() as db:
            settings = ctx.settings_loader(db)
            item = TrackedItem.from_record(tracked_items.get_item(db, item_id))

            entry = None if force_refresh else ctx.cache.get(item.id)
            if entry is not None:
                latest_version, published_at = entry.latest_version, entry.published_at
            else:
                remote = ctx.fetcher(item.source, settings.github_token)
                latest_version, published_at = remote.version, remote.published_at
                ctx.cache.set(item.id, latest_version, published_at)

            local_version = probe_local_version(item, ctx.prober)
            result = CheckResult(
                item_id=item.id,
                latest_version=latest_version,
                local_version=local_version,
                published_at=published_at,
                has_update=has_update(latest_version, local_version),
            )
            self._persist(db, [result])
            self._notify(db, settings, {item.id: item}, [result])

        self._emit([result])
        return result

    def _persist(self, db: Session, results: list[CheckResult]) -> None:
        checked_at = self.context.clock()
        for result in results:
            try:
                tracked_items.apply_check_result(db, result, checked_at=checked_at)
            except VerwatchError as exc:
                logger.warning("Could not store result for %s: %s", result.item_id, exc)

    def _notify(
        self,
        db: Session,
        settings: AppSettings,
        items: dict[str, TrackedItem],
        results: list[CheckResult],
    ) -> None:
        config = settings.notification
        if not (config.enabled or config.test_mode):
            return

        now = self.context.clock().astimezone()
        for result in results:
            if not config.test_mode and not result.has_update:
                continue
            item = items.get(result.item_id)
            if item is None:
                continue

            # item is the pre-cycle snapshot, so latest_version is still the previously seen one
            decision = should_notify(config, item, result.latest_version, now=now)
            if not decision.should_notify:
                logger.info("Skip notification for %s: %s", item.name, decision.reason)
                continue

            logger.info("Sending notification for %s %s (%s)", item.name, result.latest_version, decision.reason)
            title, body = format_notification(item.name, result.latest_version, result.local_version)
            try:
                self.context.notifier(title, body)
            except NotificationError as exc:
                logger.warning("Failed to send notification for %s: %s", item.name, exc)
                continue

            try:
                tracked_items.record_notification(db, item.id, result.latest_version, notified_at=self.context.clock())
            except VerwatchError as exc:
                logger.warning("Could not record notification for %s: %s", item.name, exc)
