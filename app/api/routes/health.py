"""Health routes - liveness check for load balancers."""

from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_cache_backend, get_data_folder
from app.core.cache import CacheBackend
from app.ingestion.folder import DataFolder
from app.schemas.api import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health(
    folder: DataFolder = Depends(get_data_folder),
    cache: Optional[CacheBackend] = Depends(get_cache_backend),
):
    """Reports whether the cache is enabled and the data folder is reachable."""
    return HealthResponse(
        status="ok",
        cache_enabled=cache is not None,
        data_dir_exists=folder.exists(),
    )
