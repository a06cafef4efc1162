from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from verwatch.errors import VerwatchError
from verwatch.routers.common import http_error, require_container
from verwatch.runtime import AppContainer
from verwatch.schemas import BatchCheckResponse, CheckResultView, SchedulerStatusView
from verwatch.services.check_types import CheckResult

router = APIRouter(prefix="/api", tags=["checks"])


def _batch_view(checked_at: datetime | None, results: list[CheckResult]) -> BatchCheckResponse:
    return BatchCheckResponse(
        checked_at=checked_at,
        results=[CheckResultView(**vars(result)) for result in results],
    )


@router.post("/check", response_model=BatchCheckResponse)
def check_all_items(container: AppContainer = Depends(require_container)) -> BatchCheckResponse:
    try:
        results = container.checker.check_all()
    except VerwatchError as exc:
        raise http_error(exc) from exc
    return _batch_view(datetime.now(UTC), results)


@router.get("/check/last", response_model=BatchCheckResponse)
def last_batch(container: AppContainer = Depends(require_container)) -> BatchCheckResponse:
    return _batch_view(*container.last_batch.snapshot())


@router.delete("/cache", status_code=204)
def clear_cache(container: AppContainer = Depends(require_container)) -> None:
    container.cache.clear()


@router.get("/scheduler", response_model=SchedulerStatusView)
def scheduler_status(container: AppContainer = Depends(require_container)) -> SchedulerStatusView:
    scheduler = container.scheduler
    return SchedulerStatusView(running=scheduler.is_running, interval_minutes=scheduler.interval_minutes)
