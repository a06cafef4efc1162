from fastapi import HTTPException

from verwatch.errors import LockError, NotFoundError, RemoteApiError, VerwatchError
from verwatch.runtime import AppContainer, get_container


def http_error(exc: VerwatchError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, RemoteApiError):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, LockError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def require_container() -> AppContainer:
    try:
        return get_container()
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail="Version checker is still starting") from exc
