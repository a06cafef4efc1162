from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from verwatch.services.check_types import SourceKind


class SourceConfigView(BaseModel):
    type: SourceKind
    identifier: str = Field(min_length=1, max_length=512)


class LocalProbeView(BaseModel):
    command: str = Field(min_length=1, max_length=512)
    version_arg: str | None = None


class TrackedItemForm(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    source: SourceConfigView
    local_probe: LocalProbeView | None = None


class ToggleRequest(BaseModel):
    enabled: bool


class TrackedItemView(BaseModel):
    id: str
    name: str
    source: SourceConfigView
    local_probe: LocalProbeView | None = None
    latest_version: str | None = None
    local_version: str | None = None
    published_at: datetime | None = None
    last_checked_at: datetime | None = None
    enabled: bool
    last_notified_version: str | None = None
    last_notified_at: datetime | None = None
    has_update: bool = False


class CheckResultView(BaseModel):
    item_id: str
    latest_version: str
    local_version: str | None = None
    published_at: datetime | None = None
    has_update: bool


class BatchCheckResponse(BaseModel):
    checked_at: datetime | None = None
    results: list[CheckResultView] = Field(default_factory=list)


class CacheConfigView(BaseModel):
    ttl_minutes: int = Field(default=30, ge=1)
    auto_refresh_enabled: bool = True
    auto_refresh_interval: int = Field(default=60, ge=0)


class NotificationConfigView(BaseModel):
    enabled: bool = True
    notify_on_major: bool = True
    notify_on_minor: bool = True
    notify_on_patch: bool = False
    notify_on_prerelease: bool = False
    quiet_start_hour: int | None = Field(default=22, ge=0, le=23)
    quiet_end_hour: int | None = Field(default=8, ge=0, le=23)
    test_mode: bool = False


class AppSettingsView(BaseModel):
    cache: CacheConfigView = Field(default_factory=CacheConfigView)
    github_token: str | None = None
    notification: NotificationConfigView = Field(default_factory=NotificationConfigView)


class SchedulerStatusView(BaseModel):
    running: bool
    interval_minutes: float | None = None
