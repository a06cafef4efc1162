import sys
import threading
import time

from verwatch.errors import ProbeError, RemoteApiError
from verwatch.services.cache import VersionCache
from verwatch.services.check_types import LocalProbeConfig, RemoteVersion, SourceConfig, SourceKind, TrackedItem
from verwatch.services.orchestrator import default_prober, fetch_all


def _item(item_id: str, probe: bool = True) -> TrackedItem:
    return TrackedItem(
        id=item_id,
        name=f"tool-{item_id}",
        source=SourceConfig(kind=SourceKind.NPM, identifier=item_id),
        local_probe=LocalProbeConfig(command=item_id) if probe else None,
    )


class _Fetcher:
    def __init__(self, version: str = "1.10.0", fail_for: set[str] | None = None, delay: float = 0.0):
        self.version = version
        self.fail_for = fail_for or set()
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def __call__(self, source: SourceConfig, token):  # noqa: ARG002
        with self._lock:
            self.calls.append(source.identifier)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if source.identifier in self.fail_for:
                raise RemoteApiError(f"npm API error: 500 for {source.identifier}")
            return RemoteVersion(version=self.version)
        finally:
            with self._lock:
                self.active -= 1


def _prober(config: LocalProbeConfig) -> str:  # noqa: ARG001
    return "1.9.0"


def test_only_uncached_items_are_fetched():
    cache = VersionCache(30)
    cache.set("a", "2.0.0")
    cache.set("b", "2.0.0")
    fetcher = _Fetcher()

    batch = fetch_all([_item(x) for x in "abcde"], cache=cache, fetcher=fetcher, prober=_prober)

    assert sorted(fetcher.calls) == ["c", "d", "e"]
    assert batch.cache_hits == 2
    assert batch.remote_lookups == 3
    assert len(batch.results) == 5
    assert cache.get("c").latest_version == "1.10.0"


def test_concurrency_is_capped():
    fetcher = _Fetcher(delay=0.05)
    batch = fetch_all(
        [_item(str(i)) for i in range(8)],
        cache=VersionCache(30),
        fetcher=fetcher,
        prober=_prober,
        max_concurrency=2,
    )
    assert len(batch.results) == 8
    assert fetcher.max_active <= 2


def test_one_failure_does_not_affect_others():
    cache = VersionCache(30)
    batch = fetch_all(
        [_item("a"), _item("b"), _item("c")],
        cache=cache,
        fetcher=_Fetcher(fail_for={"b"}),
        prober=_prober,
    )
    assert sorted(result.item_id for result in batch.results) == ["a", "c"]
    assert len(batch.errors) == 1
    assert "tool-b" in batch.errors[0]
    assert cache.get("b") is None


def test_unexpected_exception_is_isolated():
    def _fetcher(source, token):  # noqa: ARG001
        if source.identifier == "a":
            raise KeyError("boom")
        return RemoteVersion(version="1.0.0")

    batch = fetch_all([_item("a"), _item("b")], cache=VersionCache(30), fetcher=_fetcher, prober=_prober)
    assert [result.item_id for result in batch.results] == ["b"]
    assert len(batch.errors) == 1


def test_probe_failure_excludes_item():
    def _bad_prober(config: LocalProbeConfig) -> str:
        if config.command == "a":
            raise ProbeError("a: command not found")
        return "1.9.0"

    batch = fetch_all([_item("a"), _item("b")], cache=VersionCache(30), fetcher=_Fetcher(), prober=_bad_prober)
    assert [result.item_id for result in batch.results] == ["b"]
    assert "command not found" in batch.errors[0]


def test_item_without_probe_has_no_local_version():
    batch = fetch_all([_item("a", probe=False)], cache=VersionCache(30), fetcher=_Fetcher(), prober=_prober)
    result = batch.results[0]
    assert result.local_version is None
    assert result.has_update is False


def test_cached_result_survives_unreachable_registry():
    cache = VersionCache(30)
    items = [_item("a")]

    first = fetch_all(items, cache=cache, fetcher=_Fetcher(), prober=_prober)
    second = fetch_all(items, cache=cache, fetcher=_Fetcher(fail_for={"a"}), prober=_prober)

    assert first.results[0].has_update
    assert second.errors == []
    assert second.results[0].latest_version == "1.10.0"
    assert second.results[0].has_update


def test_unexpected_probe_error_on_cache_hit_is_isolated():
    cache = VersionCache(30)
    cache.set("a", "2.0.0")
    cache.set("b", "2.0.0")

    def _prober_breaks_on_a(config: LocalProbeConfig) -> str:
        if config.command == "a":
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        return "1.9.0"

    batch = fetch_all([_item("a"), _item("b")], cache=cache, fetcher=_Fetcher(), prober=_prober_breaks_on_a)

    assert [result.item_id for result in batch.results] == ["b"]
    assert batch.cache_hits == 2
    assert len(batch.errors) == 1
    assert "tool-a" in batch.errors[0]


def test_cached_item_with_undecodable_probe_output(tmp_path):
    script = tmp_path / "tool.py"
    script.write_text("import sys\nsys.stdout.buffer.write(b'tool \\xff 1.9.0\\n')\n")
    cache = VersionCache(30)
    cache.set("a", "2.0.0")
    cache.set("b", "2.0.0")
    items = [
        TrackedItem(
            id="a",
            name="tool-a",
            source=SourceConfig(kind=SourceKind.NPM, identifier="a"),
            local_probe=LocalProbeConfig(command=sys.executable, version_arg=str(script)),
        ),
        _item("b", probe=False),
    ]

    batch = fetch_all(items, cache=cache, fetcher=_Fetcher(), prober=default_prober(10.0))

    assert batch.errors == []
    assert {result.item_id: result.local_version for result in batch.results} == {"a": "1.9.0", "b": None}
