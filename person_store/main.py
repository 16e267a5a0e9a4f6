"""
Person Store - Main Application.

HTTP surface over the person repository. The document store connection is
opened in the lifespan and closed on shutdown; routers receive the
repository through dependency injection.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from . import __version__
from .config import settings
from .database import open_connection
from .domain.exceptions import (
    InvalidIdException,
    PersonStoreException,
    StoreException,
    ValidationException,
)
from .logging_config import setup_logging
from .metrics import metrics_endpoint, track_request_metrics
from .metrics_middleware import PrometheusMiddleware
from .repositories.mongo_repository import MongoPersonRepository
from .routers.people_router import router as people_router

setup_logging(
    log_level=settings.LOG_LEVEL,
    service_name=settings.SERVICE_NAME,
    use_json=settings.LOG_JSON,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Person Store", version=__version__)
    connection = await open_connection()
    app.state.connection = connection
    app.state.person_repository = MongoPersonRepository(
        connection.collection(settings.PERSON_COLLECTION)
    )
    logger.info("Person Store started", collection=settings.PERSON_COLLECTION)

    yield

    logger.info("Shutting down Person Store")
    app.state.person_repository = None
    await connection.close()
    logger.info("Person Store stopped")


app = FastAPI(
    title="Person Store",
    description="CRUD and chained queries over a MongoDB person collection",
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(PrometheusMiddleware, track_func=track_request_metrics)
app.include_router(people_router)


def _error_response(status_code: int, exc: PersonStoreException) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "error_code": type(exc).__name__,
            "retryable": exc.retryable,
        },
    )


@app.exception_handler(ValidationException)
async def validation_exception_handler(request: Request, exc: ValidationException):
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(InvalidIdException)
async def invalid_id_exception_handler(request: Request, exc: InvalidIdException):
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(StoreException)
async def store_exception_handler(request: Request, exc: StoreException):
    logger.error(
        "Document store unavailable",
        path=request.url.path,
        method=request.method,
        error=exc.message,
    )
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


@app.exception_handler(PersonStoreException)
async def person_store_exception_handler(request: Request, exc: PersonStoreException):
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return await metrics_endpoint()


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint; pings the document store."""
    connection = getattr(request.app.state, "connection", None)
    store_status = "unavailable"
    if connection is not None and not connection.closed:
        try:
            await connection.ping()
            store_status = "connected"
        except StoreException as e:
            logger.warning("Health check ping failed", error=e.message)

    healthy = store_status == "connected"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "degraded",
            "service": settings.SERVICE_NAME,
            "version": __version__,
            "store": store_status,
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "person_store.main:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
