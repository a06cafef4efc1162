from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from verwatch.config import get_settings


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str, *, lock_timeout: float = 5.0) -> Engine:
    """Create the store engine.

    SQLite connections are shared with the scheduler and fetch threads and wait
    at most ``lock_timeout`` seconds on a locked database before SQLAlchemy
    raises the ``OperationalError`` that the store turns into ``LockError``.
    In-memory databases keep a single connection so every session sees the
    same tables.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    options = {"connect_args": {"check_same_thread": False, "timeout": lock_timeout}}
    if database_url in {"sqlite://", "sqlite:///:memory:"}:
        options["poolclass"] = StaticPool
    engine = create_engine(database_url, **options)

    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute(f"PRAGMA busy_timeout = {int(lock_timeout * 1000)}")
        cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


_settings = get_settings()
engine = build_engine(_settings.database_url, lock_timeout=_settings.lock_timeout_seconds)
SessionLocal = build_session_factory(engine)


def init_db(bind: Engine | None = None) -> None:
    from verwatch import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Generator[Session, None, None]:
    with SessionLocal() as db:
        yield db
