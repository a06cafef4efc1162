from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from verwatch.services.check_types import NotificationConfig, TrackedItem
from verwatch.services.versioning import classify_change, is_prerelease

NOTIFICATION_TITLE = "Software update available"


@dataclass(frozen=True)
class NotificationDecision:
    should_notify: bool
    reason: str


def is_quiet_hour(config: NotificationConfig, hour: int) -> bool:
    start = config.quiet_start_hour
    end = config.quiet_end_hour
    if start is None or end is None:
        return False
    if start <= end:
        return start <= hour < end
    return hour >= start or hour < end


def should_notify(
    config: NotificationConfig,
    item: TrackedItem,
    candidate_version: str,
    *,
    now: datetime | None = None,
) -> NotificationDecision:
    """Decide whether ``candidate_version`` of ``item`` deserves an alert.

    Rules are checked in order and the first one that applies decides. ``now``
    defaults to the local wall clock and only feeds the quiet-hour check.
    """
    if config.test_mode:
        return NotificationDecision(True, "test mode")

    if not config.enabled:
        return NotificationDecision(False, "notifications disabled")

    hour = (now or datetime.now()).hour
    if is_quiet_hour(config, hour):
        return NotificationDecision(
            False,
            f"quiet hours ({config.quiet_start_hour:02d}:00-{config.quiet_end_hour:02d}:00)",
        )

    if item.last_notified_version is not None and item.last_notified_version == candidate_version:
        return NotificationDecision(False, f"already notified about {candidate_version}")

    if is_prerelease(candidate_version) and not config.notify_on_prerelease:
        return NotificationDecision(False, "prerelease notifications disabled")

    if item.latest_version:
        change = classify_change(item.latest_version, candidate_version)
        toggles = {
            "major": config.notify_on_major,
            "minor": config.notify_on_minor,
            "patch": config.notify_on_patch,
        }
        if change is not None and not toggles[change]:
            return NotificationDecision(False, f"{change} update notifications disabled")
        if change is not None:
            return NotificationDecision(True, f"{change} update {item.latest_version} -> {candidate_version}")

    return NotificationDecision(True, "new version available")


def format_notification(item_name: str, latest_version: str, local_version: str | None) -> tuple[str, str]:
    lines = [f"{item_name} has a new version available", f"Latest: {latest_version}"]
    if local_version:
        lines.append(f"Installed: {local_version}")
    return NOTIFICATION_TITLE, "\n".join(lines)
