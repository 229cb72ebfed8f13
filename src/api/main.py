"""FastAPI application main module.

This module defines the main FastAPI application instance and core API endpoints
for the MarketRec recommendation service. It provides health, status and
metrics endpoints and serves as the entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from src import __version__, config
from src.api.exceptions import MarketRecException
from src.api.logging_config import RequestLoggingMiddleware, setup_logging
from src.api.metrics import metrics_service
from src.api.routes import recommend
from src.recommender.scheduler import TrainingScheduler
from src.recommender.service import RecommendationService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)
    service = recommend.get_service()

    scheduler = None
    if config.ENABLE_SCHEDULER:
        scheduler = TrainingScheduler(service.trainer)
        scheduler.start()
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()


# Create FastAPI application instance
app = FastAPI(
    title="MarketRec API",
    description="Marketplace product recommendation service",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)


@app.exception_handler(MarketRecException)
async def marketrec_exception_handler(request: Request, exc: MarketRecException) -> JSONResponse:
    """Render service errors as JSON with their HTTP status code."""
    logger.warning(
        exc.message,
        extra={"path": str(request.url.path), "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Dictionary with status key set to "ok".

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/status")
def status(
    service: RecommendationService = Depends(recommend.get_service),
) -> Dict[str, Any]:
    """Model status: whether a model is served and how large it is."""
    return service.status()


@app.get("/metrics")
def metrics() -> Dict[str, Any]:
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
