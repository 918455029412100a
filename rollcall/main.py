"""Main FastAPI application."""
from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text

from rollcall.api.v1.router import api_router
from rollcall.api.deps import get_db
from rollcall.core.config import settings
from rollcall.core.exceptions import DomainError, RateLimitedError
from rollcall.core.rate_limit import limiter
from rollcall.core.logging_config import setup_logging, get_logger
from rollcall.core.cache import key_index_cache
from rollcall.db.session import engine
from rollcall.middleware import LoggingMiddleware
from rollcall.schemas import ErrorResponse

# Initialize structured logging
setup_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
logger = get_logger(__name__)

if settings.ENVIRONMENT == "production":
    settings.validate_production_config()

logger.info(
    "application_starting",
    app_title=settings.APP_TITLE,
    app_version=settings.APP_VERSION,
    environment=settings.ENVIRONMENT,
)

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render service-layer failures as the standard error body."""
    body = ErrorResponse.from_error(exc)
    headers = {}
    if isinstance(exc, RateLimitedError) and exc.retry_after is not None:
        headers["Retry-After"] = str(exc.retry_after)
    if exc.status_code >= 500:
        logger.error("domain_error", code=exc.code, message=exc.message)
    else:
        logger.info("domain_error", code=exc.code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True), headers=headers)


# Add logging middleware (must be added before other middleware for proper request tracking)
app.add_middleware(LoggingMiddleware)


@app.middleware("http")
async def add_api_version_header(request: Request, call_next):
    """Add X-API-Version header to all responses for version tracking."""
    response = await call_next(request)
    response.headers["X-API-Version"] = settings.APP_VERSION
    return response

# CORS middleware - configured for cookie-based auth
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check with key-index cache statistics and database status.

    Returns 503 if the database is unreachable.
    """
    health_status = {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "cache": key_index_cache.get_stats(),
        "database": {
            "status": "connected",
            "pool": engine.pool.status(),
        },
    }

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        health_status["status"] = "unhealthy"
        health_status["database"]["status"] = f"error: {str(e)}"
        logger.error("health_check_failed", error=str(e))
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
