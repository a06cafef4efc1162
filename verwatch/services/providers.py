from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from urllib.parse import quote

import httpx

from verwatch.errors import RemoteApiError
from verwatch.services.check_types import RemoteVersion, SourceConfig, SourceKind
from verwatch.version import user_agent

GITHUB_API = "https://api.github.com"
HOMEBREW_API = "https://formulae.brew.sh/api/formula"
NPM_REGISTRY = "https://registry.npmjs.org"
PYPI_API = "https://pypi.org/pypi"
CRATES_API = "https://crates.io/api/v1/crates"
DEFAULT_TIMEOUT = 10.0

Fetcher = Callable[..., RemoteVersion]


def parse_timestamp(value: object) -> datetime | None:
    """Parse an RFC 3339 / ISO 8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _get_json(label: str, url: str, *, timeout: float, headers: dict[str, str] | None = None) -> object:
    request_headers = {"User-Agent": user_agent(), "Accept": "application/json"}
    request_headers.update(headers or {})
    try:
        with httpx.Client(timeout=timeout) as client:
            res = client.get(url, headers=request_headers)
            res.raise_for_status()
            return res.json()
    except httpx.HTTPStatusError as exc:
        raise RemoteApiError(f"{label} API error: {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise RemoteApiError(f"{label} request failed: {exc}") from exc
    except ValueError as exc:
        raise RemoteApiError(f"Failed to parse {label} response: {exc}") from exc


def _github_headers(token: str | None) -> dict[str, str]:
    headers = {"Accept": "application/vnd.github.v3+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _require_str(label: str, value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise RemoteApiError(f"{label} response is missing {field}")
    return value.strip()


def fetch_github_release(repo: str, token: str | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> RemoteVersion:
    payload = _get_json(
        "GitHub",
        f"{GITHUB_API}/repos/{repo}/releases/latest",
        timeout=timeout,
        headers=_github_headers(token),
    )
    if not isinstance(payload, dict):
        raise RemoteApiError("GitHub release response is not an object")
    version = _require_str("GitHub", payload.get("tag_name"), "tag_name")
    return RemoteVersion(version=version, published_at=parse_timestamp(payload.get("published_at")))


def fetch_github_tag(repo: str, token: str | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> RemoteVersion:
    payload = _get_json(
        "GitHub",
        f"{GITHUB_API}/repos/{repo}/tags",
        timeout=timeout,
        headers=_github_headers(token),
    )
    if not isinstance(payload, list):
        raise RemoteApiError("GitHub tags response is not a list")
    if not payload:
        raise RemoteApiError(f"No tags found for {repo}")
    first = payload[0] if isinstance(payload[0], dict) else {}
    return RemoteVersion(version=_require_str("GitHub", first.get("name"), "tag name"))


def fetch_homebrew(formula: str, token: str | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> RemoteVersion:  # noqa: ARG001
    payload = _get_json("Homebrew", f"{HOMEBREW_API}/{quote(formula)}.json", timeout=timeout)
    versions = payload.get("versions") if isinstance(payload, dict) else None
    if not isinstance(versions, dict):
        raise RemoteApiError("Homebrew response is missing versions")
    return RemoteVersion(version=_require_str("Homebrew", versions.get("stable"), "versions.stable"))


def fetch_npm(package: str, token: str | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> RemoteVersion:  # noqa: ARG001
    payload = _get_json("npm", f"{NPM_REGISTRY}/{quote(package, safe='@')}", timeout=timeout)
    if not isinstance(payload, dict):
        raise RemoteApiError("npm response is not an object")
    dist_tags = payload.get("dist-tags") if isinstance(payload.get("dist-tags"), dict) else {}
    version = _require_str("npm", dist_tags.get("latest"), "dist-tags.latest")
    times = payload.get("time") if isinstance(payload.get("time"), dict) else {}
    return RemoteVersion(version=version, published_at=parse_timestamp(times.get(version)))


def fetch_pypi(package: str, token: str | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> RemoteVersion:  # noqa: ARG001
    payload = _get_json("PyPI", f"{PYPI_API}/{quote(package)}/json", timeout=timeout)
    if not isinstance(payload, dict):
        raise RemoteApiError("PyPI response is not an object")
    info = payload.get("info") if isinstance(payload.get("info"), dict) else {}
    version = _require_str("PyPI", info.get("version"), "info.version")

    published_at = None
    releases = payload.get("releases") if isinstance(payload.get("releases"), dict) else {}
    files = releases.get(version)
    if isinstance(files, list) and files and isinstance(files[0], dict):
        published_at = parse_timestamp(files[0].get("upload_time_iso_8601") or files[0].get("upload_time"))
    return RemoteVersion(version=version, published_at=published_at)


def fetch_cargo(crate: str, token: str | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> RemoteVersion:  # noqa: ARG001
    payload = _get_json("crates.io", f"{CRATES_API}/{quote(crate)}", timeout=timeout)
    info = payload.get("crate") if isinstance(payload, dict) else None
    if not isinstance(info, dict):
        raise RemoteApiError("crates.io response is missing crate")
    version = _require_str("crates.io", info.get("max_version"), "crate.max_version")
    return RemoteVersion(version=version, published_at=parse_timestamp(info.get("updated_at")))


_FETCHERS: dict[SourceKind, Fetcher] = {
    SourceKind.GITHUB_RELEASE: fetch_github_release,
    SourceKind.GITHUB_TAGS: fetch_github_tag,
    SourceKind.HOMEBREW: fetch_homebrew,
    SourceKind.NPM: fetch_npm,
    SourceKind.PYPI: fetch_pypi,
    SourceKind.CARGO: fetch_cargo,
}


def fetch_latest(source: SourceConfig, token: str | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> RemoteVersion:
    """Look up the newest published version of ``source`` on its registry."""
    identifier = source.identifier.strip()
    if not identifier:
        raise RemoteApiError(f"Empty identifier for {source.kind.value} source")
    return _FETCHERS[source.kind](identifier, token, timeout=timeout)
