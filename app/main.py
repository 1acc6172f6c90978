from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from app.api import fares
from app.core.config import settings
from app.core.exceptions import FareError, ProviderError
from app.core.redis import init_redis, close_redis, get_redis
from app.core.metrics import request_count, request_duration, fare_errors, redis_connected, get_metrics_text
from app.services.maps import init_maps_client, close_maps_client
import time
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code
            ).inc()

            request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(duration)

            return response
        except Exception:
            duration = time.time() - start_time
            request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=500
            ).inc()
            request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(duration)
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")

    await init_maps_client()
    logger.info("Maps provider client ready")

    try:
        if await init_redis() is not None:
            redis_connected.set(1)
    except Exception as e:
        logger.error(f"Redis connection failed, continuing without region cache: {e}")
        redis_connected.set(0)

    yield

    logger.info("Application shutting down...")
    await close_maps_client()
    await close_redis()
    redis_connected.set(0)
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan
)

app.add_middleware(MetricsMiddleware)

app.include_router(fares.router)


@app.exception_handler(FareError)
async def fare_error_handler(request: Request, exc: FareError):
    fare_errors.labels(error=type(exc).__name__).inc()
    if isinstance(exc, ProviderError):
        logger.error(f"{request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info(f"{request.url.path} rejected malformed body: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Start and destination must be text"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    fare_errors.labels(error=type(exc).__name__).inc()
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(status_code=500, content={"error": ProviderError.default_message})


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@app.get("/health", tags=["monitoring"])
async def health_check():
    redis = get_redis()

    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "dependencies": {
            "redis": "connected" if redis is not None else "disabled",
        }
    }


@app.get("/", tags=["root"])
async def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics"
    }
