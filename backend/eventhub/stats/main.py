"""
Statistics service - application entry point.

Records endpoint hits and answers aggregate view-count queries. Runs as its
own process (uvicorn eventhub.stats.main:app) with its own database URL.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from eventhub.api.errors import register_exception_handlers
from eventhub.api.middleware import RequestLoggingMiddleware
from eventhub.core.config import get_settings
from eventhub.core.logging import get_logger, setup_logging
from eventhub.core.metrics import metrics_endpoint
from eventhub.stats.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger = get_logger(__name__)
    logger.info(
        "stats_service_starting",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )
    yield
    logger.info("stats_service_shutdown")


app = FastAPI(
    title=f"{settings.APP_NAME} Statistics",
    version=settings.APP_VERSION,
    description="Hit ingestion and view aggregation",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app, validation_status_400=True)
app.include_router(router)


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()
