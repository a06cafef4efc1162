from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from threading import BoundedSemaphore

from verwatch.errors import LockError, VerwatchError
from verwatch.services.cache import CacheEntry, VersionCache
from verwatch.services.check_types import CheckResult, LocalProbeConfig, RemoteVersion, SourceConfig, TrackedItem
from verwatch.services.local_version import run_local_version
from verwatch.services.providers import fetch_latest
from verwatch.services.versioning import has_update

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5

Fetcher = Callable[[SourceConfig, str | None], RemoteVersion]
Prober = Callable[[LocalProbeConfig], str]


@dataclass
class ItemOutcome:
    item_id: str
    item_name: str
    result: CheckResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass
class BatchOutcome:
    results: list[CheckResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    cache_hits: int = 0
    remote_lookups: int = 0


def default_fetcher(timeout: float) -> Fetcher:
    return partial(fetch_latest, timeout=timeout)


def default_prober(timeout: float) -> Prober:
    def _probe(config: LocalProbeConfig) -> str:
        return run_local_version(config.command, config.version_arg, timeout=timeout)

    return _probe


def probe_local_version(item: TrackedItem, prober: Prober) -> str | None:
    if item.local_probe is None:
        return None
    return prober(item.local_probe)


def _failure(item: TrackedItem, exc: Exception) -> ItemOutcome:
    return ItemOutcome(item_id=item.id, item_name=item.name, error=f"Error checking {item.name}: {exc}")


def _resolve_cached(item: TrackedItem, entry: CacheEntry, prober: Prober) -> ItemOutcome:
    try:
        local_version = probe_local_version(item, prober)
    except VerwatchError as exc:
        return _failure(item, exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected failure while probing %s", item.name)
        return _failure(item, exc)
    return ItemOutcome(
        item_id=item.id,
        item_name=item.name,
        result=CheckResult(
            item_id=item.id,
            latest_version=entry.latest_version,
            local_version=local_version,
            published_at=entry.published_at,
            has_update=has_update(entry.latest_version, local_version),
        ),
    )


def _fetch_one(
    item: TrackedItem,
    token: str | None,
    fetcher: Fetcher,
    prober: Prober,
    semaphore: BoundedSemaphore,
) -> ItemOutcome:
    with semaphore:
        try:
            remote = fetcher(item.source, token)
            local_version = probe_local_version(item, prober)
        except VerwatchError as exc:
            return _failure(item, exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure while checking %s", item.name)
            return _failure(item, exc)

    return ItemOutcome(
        item_id=item.id,
        item_name=item.name,
        result=CheckResult(
            item_id=item.id,
            latest_version=remote.version,
            local_version=local_version,
            published_at=remote.published_at,
            has_update=has_update(remote.version, local_version),
        ),
    )


def fetch_all(
    items: Sequence[TrackedItem],
    *,
    cache: VersionCache,
    token: str | None = None,
    fetcher: Fetcher | None = None,
    prober: Prober | None = None,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    fetch_timeout: float = 10.0,
    probe_timeout: float = 10.0,
) -> BatchOutcome:
    """Resolve every item from the cache or its registry.

    At most ``max_concurrency`` remote lookups run at once. A failing item is
    logged and left out of the results without affecting the others.
    """
    fetcher = fetcher or default_fetcher(fetch_timeout)
    prober = prober or default_prober(probe_timeout)
    batch = BatchOutcome()

    outcomes: list[ItemOutcome] = []
    need_fetch: list[TrackedItem] = []
    for item in items:
        entry = cache.get(item.id)
        if entry is None:
            need_fetch.append(item)
            continue
        batch.cache_hits += 1
        outcomes.append(_resolve_cached(item, entry, prober))

    fetched: list[ItemOutcome] = []
    if need_fetch:
        limit = max(1, max_concurrency)
        semaphore = BoundedSemaphore(limit)
        logger.info("Fetching %d of %d items from remote registries", len(need_fetch), len(items))
        with ThreadPoolExecutor(max_workers=min(len(need_fetch), limit), thread_name_prefix="verwatch-fetch") as pool:
            futures = [pool.submit(_fetch_one, item, token, fetcher, prober, semaphore) for item in need_fetch]
            fetched = [future.result() for future in futures]
        batch.remote_lookups = len(need_fetch)

    for outcome in fetched:
        if outcome.result is None:
            continue
        try:
            cache.set(outcome.item_id, outcome.result.latest_version, outcome.result.published_at)
        except LockError as exc:
            logger.warning("Could not cache %s: %s", outcome.item_name, exc)

    for outcome in outcomes + fetched:
        if outcome.ok:
            batch.results.append(outcome.result)
        else:
            logger.warning(outcome.error)
            batch.errors.append(outcome.error)
    return batch
