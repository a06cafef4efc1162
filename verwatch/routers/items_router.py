from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from verwatch.db import get_db
from verwatch.errors import VerwatchError
from verwatch.routers.common import http_error, require_container
from verwatch.runtime import AppContainer
from verwatch.schemas import CheckResultView, ToggleRequest, TrackedItemForm, TrackedItemView
from verwatch.services import tracked_items

router = APIRouter(prefix="/api/items", tags=["items"])


@router.get("", response_model=list[TrackedItemView])
def list_tracked_items(db: Session = Depends(get_db)) -> list[TrackedItemView]:
    try:
        return [tracked_items.to_view(row) for row in tracked_items.list_items(db)]
    except VerwatchError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=TrackedItemView, status_code=201)
def create_tracked_item(form: TrackedItemForm, db: Session = Depends(get_db)) -> TrackedItemView:
    try:
        return tracked_items.to_view(tracked_items.create_item(db, form))
    except VerwatchError as exc:
        raise http_error(exc) from exc


@router.put("/{item_id}", response_model=TrackedItemView)
def update_tracked_item(
    item_id: str,
    form: TrackedItemForm,
    db: Session = Depends(get_db),
    container: AppContainer = Depends(require_container),
) -> TrackedItemView:
    try:
        row = tracked_items.update_item(db, item_id, form)
    except VerwatchError as exc:
        raise http_error(exc) from exc
    container.cache.invalidate(item_id)
    return tracked_items.to_view(row)


@router.delete("/{item_id}", status_code=204)
def delete_tracked_item(
    item_id: str,
    db: Session = Depends(get_db),
    container: AppContainer = Depends(require_container),
) -> None:
    try:
        tracked_items.delete_item(db, item_id)
    except VerwatchError as exc:
        raise http_error(exc) from exc
    container.cache.invalidate(item_id)


@router.post("/{item_id}/toggle", response_model=TrackedItemView)
def toggle_tracked_item(item_id: str, body: ToggleRequest, db: Session = Depends(get_db)) -> TrackedItemView:
    try:
        return tracked_items.to_view(tracked_items.toggle_item(db, item_id, body.enabled))
    except VerwatchError as exc:
        raise http_error(exc) from exc


@router.post("/{item_id}/check", response_model=CheckResultView)
def check_tracked_item(
    item_id: str,
    force_refresh: bool = Query(default=False),
    container: AppContainer = Depends(require_container),
) -> CheckResultView:
    try:
        result = container.checker.check_one(item_id, force_refresh=force_refresh)
    except VerwatchError as exc:
        raise http_error(exc) from exc
    return CheckResultView(**vars(result))
