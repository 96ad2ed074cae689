"""
Freight Pipeline Analytics API Main Application
"""

import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import structlog

from .core.config import settings
from .core.database import init_db, close_db
from .core.logging import configure_logging
from .api import health, deals

configure_logging(settings.log_level, json_logs=not settings.debug)

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup and release the engine on shutdown"""
    logger.info("Starting Freight Pipeline Analytics API", version=settings.version)
    await init_db()

    yield

    logger.info("Shutting down Freight Pipeline Analytics API")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Win rates, stage breakdowns and revenue forecasts for freight deals",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.middleware("http")
async def observability_middleware(request: Request, call_next):
    """Log each request and record Prometheus metrics for it"""
    start_time = time.time()
    path = request.url.path
    method = request.method

    request_logger = logger.bind(method=method, path=path)
    request_logger.debug(
        "Request started",
        client_ip=request.client.host if request.client else "unknown"
    )

    response = await call_next(request)

    duration = time.time() - start_time
    REQUEST_COUNT.labels(method=method, endpoint=path, status_code=str(response.status_code)).inc()
    REQUEST_DURATION.labels(method=method, endpoint=path).observe(duration)
    response.headers["X-Response-Time"] = f"{duration:.3f}s"

    request_logger.info(
        "Request completed",
        status_code=response.status_code,
        duration_ms=round(duration * 1000, 2)
    )

    return response


app.include_router(health.router)
app.include_router(deals.router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.app_name,
        "version": settings.version,
        "status": "operational",
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    if not settings.prometheus_enabled:
        return {"detail": "Metrics not enabled"}

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "freightpipe.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
