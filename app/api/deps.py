"""API dependencies"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends

from app.core.cache import CacheBackend, InMemoryCache
from app.core.config import settings
from app.ingestion.folder import DataFolder
from app.services.auth_service import AccessGate
from app.services.data_service import DataService


@lru_cache(maxsize=1)
def get_cache_backend() -> Optional[CacheBackend]:
    """Process-wide cache backend; None when caching is disabled."""
    if not settings.CACHE_ENABLED:
        return None
    return InMemoryCache()


def get_data_folder() -> DataFolder:
    return DataFolder(settings.DATA_DIR)


def get_data_service(
    folder: DataFolder = Depends(get_data_folder),
    cache: Optional[CacheBackend] = Depends(get_cache_backend),
) -> DataService:
    return DataService(folder, cache)


def get_access_gate() -> AccessGate:
    return AccessGate.from_settings()
