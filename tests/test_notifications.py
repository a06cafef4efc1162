from datetime import datetime

from verwatch.services.check_types import NotificationConfig, SourceConfig, SourceKind, TrackedItem
from verwatch.services.notifications import format_notification, is_quiet_hour, should_notify


def _item(latest: str | None = "1.2.3", notified: str | None = None) -> TrackedItem:
    return TrackedItem(
        id="item1",
        name="tool",
        source=SourceConfig(kind=SourceKind.NPM, identifier="tool"),
        latest_version=latest,
        last_notified_version=notified,
    )


def _at(hour: int) -> datetime:
    return datetime(2026, 3, 1, hour, 30)


def test_test_mode_bypasses_every_rule():
    config = NotificationConfig(enabled=False, test_mode=True)
    decision = should_notify(config, _item(notified="1.2.4"), "1.2.4", now=_at(23))
    assert decision.should_notify
    assert decision.reason == "test mode"


def test_disabled_notifications():
    decision = should_notify(NotificationConfig(enabled=False), _item(), "2.0.0", now=_at(12))
    assert not decision.should_notify


def test_quiet_hours_wrap_past_midnight():
    config = NotificationConfig(quiet_start_hour=22, quiet_end_hour=8)
    assert is_quiet_hour(config, 23)
    assert is_quiet_hour(config, 22)
    assert is_quiet_hour(config, 5)
    assert not is_quiet_hour(config, 8)
    assert not is_quiet_hour(config, 12)

    decision = should_notify(config, _item(), "2.0.0", now=_at(23))
    assert not decision.should_notify
    assert decision.reason.startswith("quiet hours")


def test_quiet_hours_within_one_day_and_unset():
    assert is_quiet_hour(NotificationConfig(quiet_start_hour=9, quiet_end_hour=17), 12)
    assert not is_quiet_hour(NotificationConfig(quiet_start_hour=9, quiet_end_hour=17), 18)
    assert not is_quiet_hour(NotificationConfig(quiet_start_hour=None, quiet_end_hour=None), 23)


def test_patch_updates_are_off_by_default():
    decision = should_notify(NotificationConfig(), _item("1.2.3"), "1.2.4", now=_at(12))
    assert not decision.should_notify
    assert decision.reason == "patch update notifications disabled"


def test_minor_and_major_updates_notify():
    assert should_notify(NotificationConfig(), _item("1.2.3"), "1.3.0", now=_at(12)).should_notify
    assert should_notify(NotificationConfig(), _item("1.2.3"), "2.0.0", now=_at(12)).should_notify


def test_same_version_is_not_announced_twice():
    decision = should_notify(NotificationConfig(), _item("1.2.3", notified="1.3.0"), "1.3.0", now=_at(12))
    assert not decision.should_notify
    assert "already notified" in decision.reason


def test_prereleases_need_opt_in():
    config = NotificationConfig()
    assert not should_notify(config, _item("1.2.3"), "1.3.0-rc.1", now=_at(12)).should_notify

    config.notify_on_prerelease = True
    assert should_notify(config, _item("1.2.3"), "1.3.0-rc.1", now=_at(12)).should_notify


def test_first_sighting_and_opaque_versions_notify():
    first = should_notify(NotificationConfig(), _item(latest=None), "1.0.0", now=_at(12))
    assert first.should_notify
    assert first.reason == "new version available"
    assert should_notify(NotificationConfig(), _item("build-41"), "build-42", now=_at(12)).should_notify


def test_format_notification():
    title, body = format_notification("tool", "1.10.0", "1.9.0")
    assert title == "Software update available"
    assert "Latest: 1.10.0" in body
    assert "Installed: 1.9.0" in body
    assert "Installed" not in format_notification("tool", "1.10.0", None)[1]
