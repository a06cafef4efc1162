from __future__ import annotations

import re
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from verwatch.config import get_settings
from verwatch.models import SettingRecord
from verwatch.schemas import AppSettingsView, CacheConfigView, NotificationConfigView
from verwatch.services.check_types import AppSettings, CacheConfig, NotificationConfig
from verwatch.services.tracked_items import store_guard

_CLEAR_SENTINEL = "__DELETE__"


def _to_bool(value: str, default: bool) -> bool:
    lowered = value.strip().lower()
    if lowered in {"true", "1", "yes", "on"}:
        return True
    if lowered in {"false", "0", "no", "off"}:
        return False
    return default


def _to_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _to_hour(value: str, default: int | None) -> int | None:
    if not value.strip():
        return None
    hour = _to_int(value, -1)
    return hour if 0 <= hour <= 23 else default


def default_app_settings() -> AppSettings:
    settings = get_settings()
    return AppSettings(
        cache=CacheConfig(
            ttl_minutes=settings.cache_ttl_minutes,
            auto_refresh_enabled=settings.auto_refresh_enabled,
            auto_refresh_interval=settings.auto_refresh_interval,
        ),
        github_token=settings.github_token or None,
        notification=NotificationConfig(),
    )


def get_all_settings(db: Session) -> dict[str, str]:
    with store_guard(db):
        rows = db.scalars(select(SettingRecord)).all()
    return {row.key: row.value for row in rows}


def upsert_setting(db: Session, key: str, value: str, *, commit: bool = True) -> None:
    with store_guard(db):
        row = db.get(SettingRecord, key)
        if row is None:
            db.add(SettingRecord(key=key, value=value, updated_at=datetime.now(UTC)))
        else:
            row.value = value
            row.updated_at = datetime.now(UTC)
        if commit:
            db.commit()


def load_app_settings(db: Session) -> AppSettings:
    result = default_app_settings()
    values = get_all_settings(db)
    cache = result.cache
    notify = result.notification

    for key, value in values.items():
        if key == "cache_ttl_minutes":
            cache.ttl_minutes = max(1, _to_int(value, cache.ttl_minutes))
        elif key == "auto_refresh_enabled":
            cache.auto_refresh_enabled = _to_bool(value, cache.auto_refresh_enabled)
        elif key == "auto_refresh_interval":
            cache.auto_refresh_interval = max(0, _to_int(value, cache.auto_refresh_interval))
        elif key == "github_token":
            result.github_token = value or None
        elif key == "notify_enabled":
            notify.enabled = _to_bool(value, notify.enabled)
        elif key == "notify_on_major":
            notify.notify_on_major = _to_bool(value, notify.notify_on_major)
        elif key == "notify_on_minor":
            notify.notify_on_minor = _to_bool(value, notify.notify_on_minor)
        elif key == "notify_on_patch":
            notify.notify_on_patch = _to_bool(value, notify.notify_on_patch)
        elif key == "notify_on_prerelease":
            notify.notify_on_prerelease = _to_bool(value, notify.notify_on_prerelease)
        elif key == "quiet_start_hour":
            notify.quiet_start_hour = _to_hour(value, notify.quiet_start_hour)
        elif key == "quiet_end_hour":
            notify.quiet_end_hour = _to_hour(value, notify.quiet_end_hour)
        elif key == "notify_test_mode":
            notify.test_mode = _to_bool(value, notify.test_mode)
    return result


def save_app_settings(db: Session, settings: AppSettings) -> AppSettings:
    def _bool(value: bool) -> str:
        return "true" if value else "false"

    def _hour(value: int | None) -> str:
        return "" if value is None else str(value)

    notify = settings.notification
    values = {
        "cache_ttl_minutes": str(settings.cache.ttl_minutes),
        "auto_refresh_enabled": _bool(settings.cache.auto_refresh_enabled),
        "auto_refresh_interval": str(settings.cache.auto_refresh_interval),
        "notify_enabled": _bool(notify.enabled),
        "notify_on_major": _bool(notify.notify_on_major),
        "notify_on_minor": _bool(notify.notify_on_minor),
        "notify_on_patch": _bool(notify.notify_on_patch),
        "notify_on_prerelease": _bool(notify.notify_on_prerelease),
        "quiet_start_hour": _hour(notify.quiet_start_hour),
        "quiet_end_hour": _hour(notify.quiet_end_hour),
        "notify_test_mode": _bool(notify.test_mode),
    }
    # A blank token keeps the stored one; the sentinel removes it.
    if settings.github_token == _CLEAR_SENTINEL:
        values["github_token"] = ""
    elif settings.github_token and not _looks_masked(settings.github_token):
        values["github_token"] = settings.github_token

    for key, value in values.items():
        upsert_setting(db, key, value, commit=False)
    with store_guard(db):
        db.commit()
    return load_app_settings(db)


def _looks_masked(value: str) -> bool:
    return bool(re.fullmatch(r"\*{4,}[A-Za-z0-9_]{0,4}", value))


def _mask_value(value: str) -> str:
    if len(value) <= 4:
        return "*" * len(value)
    return f"{'*' * (len(value) - 4)}{value[-4:]}"


def to_view(settings: AppSettings) -> AppSettingsView:
    return AppSettingsView(
        cache=CacheConfigView(**vars(settings.cache)),
        github_token=_mask_value(settings.github_token) if settings.github_token else None,
        notification=NotificationConfigView(**vars(settings.notification)),
    )


def from_view(view: AppSettingsView) -> AppSettings:
    return AppSettings(
        cache=CacheConfig(**view.cache.model_dump()),
        github_token=view.github_token,
        notification=NotificationConfig(**view.notification.model_dump()),
    )
