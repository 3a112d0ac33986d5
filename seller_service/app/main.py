import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from seller_service.app.api import sellers
from seller_service.app.api.deps import get_session, get_user_client
from seller_service.app.core.exceptions import ServiceError
from seller_service.app.core.logging import setup_logging, get_logger
from seller_service.app.core.metrics import PrometheusMiddleware, get_metrics_response
from seller_service.app.core.settings import get_settings
from seller_service.app.services.cache import CacheService
from seller_service.app.services.users import UserServiceClient

APP_VERSION = "1.0.0"

# Load and validate settings
try:
    settings = get_settings()
except ValueError as e:
    print(f"Configuration error: {e}", file=sys.stderr)
    sys.exit(1)

# JSON logs in production, console renderer otherwise
setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=settings.is_production
)

logger = get_logger(__name__)

logger.info(
    "Application configuration loaded",
    environment=settings.ENVIRONMENT,
    db_host=settings.DB_HOST,
    redis_host=settings.REDIS_HOST,
    cache_enabled=settings.CACHE_ENABLED,
    user_service_url=settings.USER_SERVICE_URL,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    - Shutdown: close the shared Redis connection
    """
    logger.info("Application starting up", version=APP_VERSION)
    yield
    logger.info("Application shutting down")
    await CacheService.close()


app = FastAPI(title="Seller Service", version=APP_VERSION, lifespan=lifespan)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Convert service exceptions to JSON error responses."""
    if exc.status_code >= 500:
        logger.error("Service error", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("Request rejected", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


ALLOWED_ORIGINS = settings.allowed_origins_list
if not ALLOWED_ORIGINS:
    if settings.is_production:
        logger.error("ALLOWED_ORIGINS must be set in production environment")
        raise ValueError("ALLOWED_ORIGINS environment variable is required in production")
    ALLOWED_ORIGINS = ["*"]
    logger.warning("CORS: Allowing all origins (development mode). Set ALLOWED_ORIGINS in production!")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)

# Added after CORS so it runs first on the response path
app.add_middleware(PrometheusMiddleware)

app.include_router(sellers.router, prefix="/sellers", tags=["sellers"])


@app.get("/")
async def root():
    return {"status": "ok", "service": "seller-service"}


@app.get("/health")
async def health_check(
    session: AsyncSession = Depends(get_session),
    user_client: UserServiceClient = Depends(get_user_client),
):
    """
    Health check endpoint for monitoring and orchestration.
    Database is required; Redis and the User Service only degrade the status.
    """
    health_status = {
        "status": "healthy",
        "version": APP_VERSION,
        "checks": {
            "database": "ok",
            "redis": "ok",
            "user_service": "ok",
        }
    }

    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = f"error: {str(e)}"

    if not settings.CACHE_ENABLED:
        health_status["checks"]["redis"] = "disabled"
    else:
        try:
            redis = await CacheService.get_redis()
            await redis.ping()
        except Exception as e:
            logger.warning("Redis health check failed", error=str(e))
            if health_status["status"] == "healthy":
                health_status["status"] = "degraded"
            health_status["checks"]["redis"] = f"error: {str(e)}"

    if not await user_client.health_check():
        if health_status["status"] == "healthy":
            health_status["status"] = "degraded"
        health_status["checks"]["user_service"] = "unreachable"

    return health_status


@app.get("/metrics")
async def metrics_endpoint(openmetrics: bool = False):
    """Prometheus metrics endpoint (OpenMetrics format when requested)."""
    return get_metrics_response(openmetrics=openmetrics)
