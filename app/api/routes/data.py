"""Data route - single query-parameter driven endpoint.

| query            | response                                        |
|------------------|-------------------------------------------------|
| f=preCacheAll    | rebuild the cache (no access gate)              |
| t=<name>         | one dataset's normalized records                |
| f=listDatasets   | dataset names                                   |
| (none)           | all datasets + feed transactions                |
| anything else    | {"status": true}                                |

``id_token`` is a credential transport and never affects dispatch.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.deps import get_access_gate, get_data_service
from app.core.logging import get_logger
from app.schemas.api import ErrorResponse, PreCacheResponse, StatusResponse
from app.services.auth_service import AccessGate, AuthError
from app.services.data_service import DataService

router = APIRouter(tags=["data"])
log = get_logger("data_routes")

PRE_CACHE_ALL = "preCacheAll"
LIST_DATASETS = "listDatasets"
CREDENTIAL_PARAM = "id_token"


def _error_response(status_code: int, message: str) -> JSONResponse:
    body = ErrorResponse(status=status_code, error=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _check_access(gate: AccessGate, request: Request) -> JSONResponse | None:
    try:
        result = gate.authorize(request)
    except AuthError as exc:
        log.info(f"Access denied ({exc.status_code}): {exc.reason}")
        return _error_response(exc.status_code, exc.reason)
    except Exception:  # noqa: BLE001
        log.exception("Unexpected access gate failure")
        return _error_response(401, "unauthorized")
    log.debug(f"Access granted to {result.email}")
    return None


@router.get("/")
def handle(
    request: Request,
    service: DataService = Depends(get_data_service),
    gate: AccessGate = Depends(get_access_gate),
):
    """Dispatch on query parameters; see the module docstring."""
    params = {k: v for k, v in request.query_params.items() if k != CREDENTIAL_PARAM}

    if params.get("f") == PRE_CACHE_ALL:
        cached_keys = service.pre_cache_all()
        return PreCacheResponse(status=True, cached_keys=cached_keys).model_dump(by_alias=True)

    denied = _check_access(gate, request)
    if denied is not None:
        return denied

    if params.get("t"):
        return service.get_dataset(params["t"])

    if params.get("f") == LIST_DATASETS:
        return service.list_datasets()

    if not params:
        return service.get_all()

    return StatusResponse().model_dump()
