"""FastAPI application for the face watch service.

Run with ``uvicorn facewatch.main:app``. The service container is built in
the lifespan, so models and database connections exist only while the
application is serving.
"""
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from facewatch.api import router as api_v1_router
from facewatch.core.config import settings
from facewatch.core.container import ServiceContainer, container
from facewatch.core.exceptions import ServiceNotInitializedError
from facewatch.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _lifespan(services: ServiceContainer) -> Callable[[FastAPI], AsyncContextManager[None]]:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting face watch API", version=settings.VERSION, environment=settings.ENVIRONMENT)
        await services.initialize()
        try:
            yield
        finally:
            await services.cleanup()
            logger.info("Face watch API stopped")

    return lifespan


async def _service_unavailable(request: Request, exc: ServiceNotInitializedError) -> JSONResponse:
    logger.error("Services unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def create_app(services: ServiceContainer = container) -> FastAPI:
    """Build the API around a service container.

    Args:
        services: Container initialized on startup and cleaned up on shutdown
    """
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
        lifespan=_lifespan(services),
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(api_v1_router, prefix=settings.API_V1_STR)
    application.add_exception_handler(ServiceNotInitializedError, _service_unavailable)

    @application.get("/health")
    async def health_check() -> dict:
        """Liveness plus whether the recognition services are up."""
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "services_initialized": services.is_initialized,
        }

    return application


setup_logging()
app = create_app()
