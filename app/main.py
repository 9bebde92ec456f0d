from contextlib import asynccontextmanager
import asyncio
from typing import Optional

from fastapi import FastAPI

from app.api.deps import get_cache_backend, get_data_folder
from app.api.routes import data_router, health_router
from app.core.config import settings
from app.core.logging import get_logger
from app.services.data_service import DataService


log = get_logger("app")

# Background task handle
_precache_task: Optional[asyncio.Task] = None


def run_precache() -> list[str]:
    """Rebuild both cache families from the data folder."""
    service = DataService(get_data_folder(), get_cache_backend())
    return service.pre_cache_all()


async def scheduled_precache_task() -> None:
    """Background task that refreshes the cache before entries expire."""
    interval = settings.PRECACHE_INTERVAL_SECONDS
    log.info(f"Scheduled pre-cache task started (interval: {interval}s)")

    while True:
        try:
            keys = await asyncio.to_thread(run_precache)
            log.info(f"Scheduled pre-cache wrote {len(keys)} keys")
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            log.info("Scheduled pre-cache task cancelled")
            break
        except Exception as exc:
            log.exception(f"Scheduled pre-cache error: {exc}")
            await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _precache_task

    log.info(f"Starting application in {settings.ENV.upper()} mode")
    log.info(f"Serving data folder: {settings.DATA_DIR}")
    if settings.AUTH_DEBUG_BYPASS:
        log.warning("AUTH_DEBUG_BYPASS is enabled: access gate will accept every request")
    if not settings.CACHE_ENABLED:
        log.info("Cache disabled (CACHE_ENABLED=false); every request is computed live")

    if settings.PRECACHE_ENABLED:
        log.info("Starting scheduled pre-cache background task...")
        _precache_task = asyncio.create_task(scheduled_precache_task())
    else:
        log.info("Scheduled pre-cache is disabled (PRECACHE_ENABLED=false)")

    yield

    if _precache_task:
        log.info("Cancelling scheduled pre-cache task...")
        _precache_task.cancel()
        try:
            await _precache_task
        except asyncio.CancelledError:
            pass
        _precache_task = None

    log.info("Application shutdown complete")


app = FastAPI(
    title="Ledger Data API",
    description="Read-only JSON API over dataset CSVs and monthly transaction feeds",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
    debug=settings.debug_enabled,
)


app.include_router(data_router)
app.include_router(health_router)
