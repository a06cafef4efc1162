import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

pytest.importorskip("pydantic_settings")

from verwatch.db import Base
from verwatch.errors import LockError, NotFoundError
from verwatch.schemas import LocalProbeView, SourceConfigView, TrackedItemForm
from verwatch.services import tracked_items
from verwatch.services.check_types import CheckResult, SourceKind


@pytest.fixture
def db_session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _form(name: str, kind: SourceKind = SourceKind.PYPI, command: str | None = None) -> TrackedItemForm:
    return TrackedItemForm(
        name=name,
        source=SourceConfigView(type=kind, identifier=f" {name.lower()} "),
        local_probe=LocalProbeView(command=command, version_arg=" ") if command else None,
    )


def test_create_and_list_items_sorted_by_name(db_session: Session):
    tracked_items.create_item(db_session, _form("zeta"))
    created = tracked_items.create_item(db_session, _form("Alpha", command="alpha"))

    names = [row.name for row in tracked_items.list_items(db_session)]
    assert names == ["Alpha", "zeta"]
    assert created.enabled is True
    assert created.source_identifier == "alpha"
    assert created.local_command == "alpha"
    assert created.local_version_arg is None


def test_update_toggle_and_delete(db_session: Session):
    row = tracked_items.create_item(db_session, _form("tool", command="tool"))

    updated = tracked_items.update_item(db_session, row.id, _form("tool", kind=SourceKind.CARGO))
    assert updated.source_type == "cargo"
    assert updated.local_command is None

    tracked_items.toggle_item(db_session, row.id, False)
    assert tracked_items.list_items(db_session, enabled_only=True) == []

    tracked_items.delete_item(db_session, row.id)
    with pytest.raises(NotFoundError):
        tracked_items.get_item(db_session, row.id)


def test_apply_check_result_updates_view(db_session: Session):
    row = tracked_items.create_item(db_session, _form("tool", command="tool"))
    tracked_items.apply_check_result(
        db_session,
        CheckResult(item_id=row.id, latest_version="1.10.0", local_version="1.9.0", published_at=None, has_update=True),
    )
    tracked_items.record_notification(db_session, row.id, "1.10.0")

    view = tracked_items.to_view(tracked_items.get_item(db_session, row.id))
    assert view.has_update is True
    assert view.latest_version == "1.10.0"
    assert view.last_notified_version == "1.10.0"
    assert view.last_checked_at is not None
    assert view.local_probe.command == "tool"

    snapshot = tracked_items.list_snapshots(db_session)[0]
    assert snapshot.source.kind is SourceKind.PYPI
    assert snapshot.local_probe.version_arg is None


def test_store_guard_maps_lock_contention():
    class _Db:
        rolled_back = False

        def rollback(self):
            self.rolled_back = True

    db = _Db()
    with pytest.raises(LockError):
        with tracked_items.store_guard(db):
            raise OperationalError("UPDATE tracked_items", {}, Exception("database is locked"))
    assert db.rolled_back

    with pytest.raises(OperationalError):
        with tracked_items.store_guard(db):
            raise OperationalError("SELECT 1", {}, Exception("no such table"))
