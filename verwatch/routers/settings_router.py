from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from verwatch.config import get_settings
from verwatch.db import get_db
from verwatch.errors import VerwatchError
from verwatch.routers.common import http_error, require_container
from verwatch.runtime import AppContainer, scheduler_interval
from verwatch.schemas import AppSettingsView
from verwatch.services import app_settings

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=AppSettingsView)
def get_app_settings(db: Session = Depends(get_db)) -> AppSettingsView:
    try:
        return app_settings.to_view(app_settings.load_app_settings(db))
    except VerwatchError as exc:
        raise http_error(exc) from exc


@router.put("", response_model=AppSettingsView)
def put_app_settings(
    body: AppSettingsView,
    db: Session = Depends(get_db),
    container: AppContainer = Depends(require_container),
) -> AppSettingsView:
    try:
        saved = app_settings.save_app_settings(db, app_settings.from_view(body))
    except VerwatchError as exc:
        raise http_error(exc) from exc

    container.cache.set_ttl(saved.cache.ttl_minutes)
    if get_settings().scheduler_enabled:
        container.scheduler.restart(scheduler_interval(saved))
    return app_settings.to_view(saved)
