from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from camsync import __version__
from camsync.config import Settings, get_settings
from camsync.log import setup_logging
from camsync.routes import router
from camsync.scheduler import PeriodicRefresher
from camsync.service import SyncService, build_service


def create_app(settings: Optional[Settings] = None, service: Optional[SyncService] = None) -> FastAPI:
    settings = settings or get_settings()
    service = service or build_service(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        refresher = None
        if settings.refresh_interval_seconds > 0:
            refresher = PeriodicRefresher(service, settings.refresh_interval_seconds)
            refresher.start()
        app.state.refresher = refresher
        yield
        if refresher is not None:
            await refresher.stop()
        await service.close()

    app = FastAPI(
        title="camsync",
        description="Live traffic-camera feed synchronization with relay failover.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service
    app.include_router(router)
    return app
