import logging
from pathlib import Path

from fastapi import Depends, FastAPI
from sqlalchemy.orm import Session

from verwatch.config import get_settings
from verwatch.db import SessionLocal, get_db, init_db
from verwatch.logging_config import setup_logging
from verwatch.routers.check_router import router as check_router
from verwatch.routers.items_router import router as items_router
from verwatch.routers.settings_router import router as settings_router
from verwatch.runtime import build_container, get_container, scheduler_interval, set_container
from verwatch.services import tracked_items
from verwatch.services.app_settings import load_app_settings
from verwatch.services.notifier import backend_name
from verwatch.version import get_app_version

logger = logging.getLogger(__name__)

app = FastAPI(title=get_settings().app_name)


@app.on_event("startup")
def on_startup() -> None:
    settings = get_settings()
    setup_logging(Path(settings.log_dir), settings.log_level)
    init_db()

    container = build_container(SessionLocal)
    set_container(container)
    if settings.scheduler_enabled:
        with SessionLocal() as db:
            interval = scheduler_interval(load_app_settings(db))
        container.scheduler.start(interval)
    logger.info("%s %s started", settings.app_name, get_app_version())


@app.on_event("shutdown")
def on_shutdown() -> None:
    try:
        container = get_container()
    except RuntimeError:
        return
    container.scheduler.stop()
    set_container(None)


@app.get("/api/health")
def health(db: Session = Depends(get_db)):
    try:
        container = get_container()
    except RuntimeError:
        container = None
    items = tracked_items.list_items(db)
    return {
        "status": "ok" if container is not None else "starting",
        "app_version": get_app_version(),
        "tracked_items": len(items),
        "enabled_items": sum(1 for row in items if row.enabled),
        "cached_entries": len(container.cache) if container is not None else 0,
        "scheduler_running": container.scheduler.is_running if container is not None else False,
        "notifier_backend": backend_name(),
    }


app.include_router(items_router)
app.include_router(check_router)
app.include_router(settings_router)
