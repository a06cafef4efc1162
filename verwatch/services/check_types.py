from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from verwatch.models import TrackedItemRecord


class SourceKind(str, Enum):
    GITHUB_RELEASE = "github-release"
    GITHUB_TAGS = "github-tags"
    HOMEBREW = "homebrew"
    NPM = "npm"
    PYPI = "pypi"
    CARGO = "cargo"


@dataclass(frozen=True)
class SourceConfig:
    kind: SourceKind
    identifier: str


@dataclass(frozen=True)
class LocalProbeConfig:
    command: str
    version_arg: str | None = None


@dataclass(frozen=True)
class RemoteVersion:
    version: str
    published_at: datetime | None = None


@dataclass(frozen=True)
class TrackedItem:
    """Read-only snapshot of a tracked item, safe to hand to worker threads."""

    id: str
    name: str
    source: SourceConfig
    local_probe: LocalProbeConfig | None = None
    latest_version: str | None = None
    local_version: str | None = None
    published_at: datetime | None = None
    last_checked_at: datetime | None = None
    enabled: bool = True
    last_notified_version: str | None = None
    last_notified_at: datetime | None = None

    @classmethod
    def from_record(cls, row: "TrackedItemRecord") -> "TrackedItem":
        probe = None
        if row.local_command:
            probe = LocalProbeConfig(command=row.local_command, version_arg=row.local_version_arg or None)
        return cls(
            id=row.id,
            name=row.name,
            source=SourceConfig(kind=SourceKind(row.source_type), identifier=row.source_identifier),
            local_probe=probe,
            latest_version=row.latest_version,
            local_version=row.local_version,
            published_at=row.published_at,
            last_checked_at=row.last_checked_at,
            enabled=bool(row.enabled),
            last_notified_version=row.last_notified_version,
            last_notified_at=row.last_notified_at,
        )


@dataclass
class CheckResult:
    item_id: str
    latest_version: str
    local_version: str | None
    published_at: datetime | None
    has_update: bool


@dataclass
class NotificationConfig:
    enabled: bool = True
    notify_on_major: bool = True
    notify_on_minor: bool = True
    notify_on_patch: bool = False
    notify_on_prerelease: bool = False
    quiet_start_hour: int | None = 22
    quiet_end_hour: int | None = 8
    test_mode: bool = False


@dataclass
class CacheConfig:
    ttl_minutes: int = 30
    auto_refresh_enabled: bool = True
    auto_refresh_interval: int = 60


@dataclass
class AppSettings:
    cache: CacheConfig = field(default_factory=CacheConfig)
    github_token: str | None = None
    notification: NotificationConfig = field(default_factory=NotificationConfig)
