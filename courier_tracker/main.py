"""
FastAPI application for the courier tracker.

The registry, directions client and order service are created per app and
stored on `app.state`; handlers receive them through dependencies.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from courier_tracker import __version__
from courier_tracker.api import couriers_router
from courier_tracker.api.couriers import MISSING_ADDRESS_ERROR, ORDER_PATH
from courier_tracker.config import config
from courier_tracker.config.directions import directions_config
from courier_tracker.models.tracking import HealthResponse
from courier_tracker.services.courier_registry import CourierRegistry
from courier_tracker.services.directions_service import DirectionsService
from courier_tracker.services.order_service import OrderService

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 60


async def _cleanup_loop(registry: CourierRegistry, interval: float = CLEANUP_INTERVAL_SECONDS) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            registry.cleanup()
        except Exception as exc:
            logger.error(f"[App] Registry cleanup failed: {exc}", exc_info=True)


def create_app(
    registry: Optional[CourierRegistry] = None,
    directions: Optional[DirectionsService] = None,
    order_service: Optional[OrderService] = None,
    client_dist_dir: Optional[str] = None,
) -> FastAPI:
    if order_service is not None:
        registry = order_service.registry
        directions = order_service.directions
    if registry is None:
        registry = CourierRegistry(arrived_ttl_seconds=config.ARRIVED_TTL_SECONDS)
    if directions is None:
        directions = DirectionsService()
    if order_service is None:
        order_service = OrderService(registry, directions)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cleanup_task = None
        if config.ARRIVED_TTL_SECONDS > 0:
            cleanup_task = asyncio.create_task(_cleanup_loop(registry))
        logger.info(f"[App] Courier tracker started: {config.get_config_dict()}")
        logger.info(f"[App] Directions: {directions_config.get_config_dict()}")
        if not directions_config.has_api_key():
            logger.warning("[App] OPENROUTE_API_KEY is not set; orders will fail to geocode")
        try:
            yield
        finally:
            if cleanup_task is not None:
                cleanup_task.cancel()
                try:
                    await cleanup_task
                except asyncio.CancelledError:
                    pass
            await directions.close()

    app = FastAPI(title="Courier Tracker API", version=__version__, lifespan=lifespan)
    app.state.registry = registry
    app.state.directions = directions
    app.state.order_service = order_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"[App] Invalid request body for {request.url.path}: {exc.errors()}")
        if request.url.path == ORDER_PATH:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": MISSING_ADDRESS_ERROR},
            )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Invalid request"},
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            registry=registry.stats(),
            directions=directions.get_stats(),
        )

    app.include_router(couriers_router)

    dist_dir = Path(client_dist_dir or config.CLIENT_DIST_DIR).resolve()
    if (dist_dir / "index.html").is_file():
        _mount_client(app, dist_dir)
    else:
        logger.info(f"[App] No built client at {dist_dir}; serving API only")

    return app


def _mount_client(app: FastAPI, dist_dir: Path) -> None:
    """Serve the built tracking client; unknown paths fall back to index.html."""
    index_file = dist_dir / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def client_app(full_path: str) -> FileResponse:
        candidate = (dist_dir / full_path).resolve()
        if full_path and candidate.is_file() and dist_dir in candidate.parents:
            return FileResponse(candidate)
        return FileResponse(index_file)


app = create_app()


def run() -> None:
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Server is running on port {config.PORT}")
    uvicorn.run(
        "courier_tracker.main:app",
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
