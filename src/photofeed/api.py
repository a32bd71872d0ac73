"""FastAPI application entry point."""

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from threading import Lock
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from photofeed.errors import PhotoServiceError
from photofeed.gateway import CompanyCamGateway
from photofeed.ratelimit import limiter
from photofeed.routers import photos, tags
from photofeed.settings import Settings, settings

logger = logging.getLogger(__name__)


async def photo_service_error_handler(request: Request, exc: PhotoServiceError) -> JSONResponse:
    if exc.status >= 500:
        logger.error("Photo service failure on %s: %s", request.url.path, exc.message)
    else:
        logger.warning("Photo service error on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status, content=exc.to_dict())


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    app.state.executor.shutdown(wait=True, cancel_futures=True)
    if app.state.owns_gateway and app.state.gateway is not None:
        app.state.gateway.close()


def create_app(
    app_settings: Optional[Settings] = None,
    gateway: Optional[CompanyCamGateway] = None,
) -> FastAPI:
    """Build the API app.

    The gateway is held on ``app.state``; when none is passed it is built
    from settings on the first request that needs it. One upstream worker
    pool on ``app.state`` serves every request, so ``tag_fetch_workers``
    bounds upstream concurrency for the whole process.
    """
    app_settings = app_settings or settings
    app = FastAPI(
        title="photofeed",
        description="Curated construction-photo gallery feed backed by CompanyCam",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.state.settings = app_settings
    app.state.gateway = gateway
    app.state.owns_gateway = gateway is None
    app.state.gateway_lock = Lock()
    app.state.executor = ThreadPoolExecutor(
        max_workers=app_settings.tag_fetch_workers,
        thread_name_prefix="photofeed-upstream",
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(PhotoServiceError, photo_service_error_handler)

    _allowed_origins = []
    if app_settings.is_development:
        _allowed_origins += [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(photos.router)
    app.include_router(tags.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "photofeed.api:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.debug
    )
