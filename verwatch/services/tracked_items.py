from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from verwatch.errors import LockError, NotFoundError
from verwatch.models import TrackedItemRecord
from verwatch.schemas import LocalProbeView, SourceConfigView, TrackedItemForm, TrackedItemView
from verwatch.services.check_types import CheckResult, TrackedItem
from verwatch.services.versioning import has_update


def _now() -> datetime:
    return datetime.now(UTC)


@contextmanager
def store_guard(db: Session) -> Iterator[None]:
    """Turn SQLite lock contention into ``LockError``."""
    try:
        yield
    except OperationalError as exc:
        db.rollback()
        if "locked" in str(exc).lower():
            raise LockError(f"Record store is locked: {exc.orig}") from exc
        raise


def list_items(db: Session, *, enabled_only: bool = False) -> list[TrackedItemRecord]:
    stmt = select(TrackedItemRecord).order_by(TrackedItemRecord.name, TrackedItemRecord.id)
    if enabled_only:
        stmt = stmt.where(TrackedItemRecord.enabled.is_(True))
    with store_guard(db):
        return list(db.scalars(stmt).all())


def list_snapshots(db: Session, *, enabled_only: bool = False) -> list[TrackedItem]:
    return [TrackedItem.from_record(row) for row in list_items(db, enabled_only=enabled_only)]


def get_item(db: Session, item_id: str) -> TrackedItemRecord:
    with store_guard(db):
        row = db.get(TrackedItemRecord, item_id)
    if row is None:
        raise NotFoundError(f"Tracked item not found: {item_id}")
    return row


def _apply_form(row: TrackedItemRecord, form: TrackedItemForm) -> None:
    row.name = form.name.strip()
    row.source_type = form.source.type.value
    row.source_identifier = form.source.identifier.strip()
    if form.local_probe is not None:
        row.local_command = form.local_probe.command.strip()
        row.local_version_arg = (form.local_probe.version_arg or "").strip() or None
    else:
        row.local_command = None
        row.local_version_arg = None


def create_item(db: Session, form: TrackedItemForm) -> TrackedItemRecord:
    row = TrackedItemRecord(id=uuid4().hex, enabled=True)
    _apply_form(row, form)
    with store_guard(db):
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


def update_item(db: Session, item_id: str, form: TrackedItemForm) -> TrackedItemRecord:
    row = get_item(db, item_id)
    _apply_form(row, form)
    with store_guard(db):
        db.commit()
        db.refresh(row)
    return row


def delete_item(db: Session, item_id: str) -> None:
    row = get_item(db, item_id)
    with store_guard(db):
        db.delete(row)
        db.commit()


def toggle_item(db: Session, item_id: str, enabled: bool) -> TrackedItemRecord:
    row = get_item(db, item_id)
    row.enabled = enabled
    with store_guard(db):
        db.commit()
        db.refresh(row)
    return row


def apply_check_result(db: Session, result: CheckResult, *, checked_at: datetime | None = None) -> TrackedItemRecord:
    row = get_item(db, result.item_id)
    row.latest_version = result.latest_version
    row.local_version = result.local_version
    row.published_at = result.published_at
    row.last_checked_at = checked_at or _now()
    with store_guard(db):
        db.commit()
    return row


def record_notification(
    db: Session,
    item_id: str,
    version: str,
    *,
    notified_at: datetime | None = None,
) -> TrackedItemRecord:
    row = get_item(db, item_id)
    row.last_notified_version = version
    row.last_notified_at = notified_at or _now()
    with store_guard(db):
        db.commit()
    return row


def to_view(row: TrackedItemRecord) -> TrackedItemView:
    probe = None
    if row.local_command:
        probe = LocalProbeView(command=row.local_command, version_arg=row.local_version_arg)
    return TrackedItemView(
        id=row.id,
        name=row.name,
        source=SourceConfigView(type=row.source_type, identifier=row.source_identifier),
        local_probe=probe,
        latest_version=row.latest_version,
        local_version=row.local_version,
        published_at=row.published_at,
        last_checked_at=row.last_checked_at,
        enabled=row.enabled,
        last_notified_version=row.last_notified_version,
        last_notified_at=row.last_notified_at,
        has_update=bool(row.latest_version) and has_update(row.latest_version, row.local_version),
    )
