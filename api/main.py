"""
Monte Everest API - Main Application

FastAPI application entry point for the Monte Everest services marketplace.
Handles professional subscriptions, contact quotas, reviews, rankings and
the professional notification feed.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import OperationalError

from core.config import get_settings
from core.logger import get_logger, setup_logging
from core.database import init_db
from api.middleware.rate_limit import limiter, _rate_limit_exceeded_handler
from api.routes import (
    auth, payments, contacts, reviews, professionals, notifications,
    ranking, plans, categories, admin, subscription_jobs,
)

setup_logging()
logger = get_logger(__name__)

settings = get_settings()

# SECURITY: Disable API docs in production to prevent exposing admin endpoints
app = FastAPI(
    title=settings.APP_NAME,
    description="Services marketplace - professional subscriptions, quotas and rankings",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Service-Token"],
)


MAX_REQUEST_SIZE = settings.MAX_REQUEST_SIZE_MB * 1024 * 1024


@app.middleware("http")
async def limit_request_size(request: Request, call_next):
    """
    Reject requests whose Content-Length exceeds MAX_REQUEST_SIZE_MB.

    Chunked bodies without Content-Length are left to the reverse proxy.
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_SIZE:
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(
            f"Request rejected: Content-Length {content_length} bytes exceeds limit {MAX_REQUEST_SIZE} bytes. "
            f"IP: {client_ip}, Path: {request.url.path}"
        )
        return JSONResponse(
            status_code=413,
            content={
                "detail": f"Request body too large. Maximum size is {settings.MAX_REQUEST_SIZE_MB}MB",
                "error_code": "payload_too_large",
                "max_size_mb": settings.MAX_REQUEST_SIZE_MB
            }
        )

    return await call_next(request)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all HTTP responses."""
    response = await call_next(request)

    if settings.ENVIRONMENT == "production":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    return response


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint to verify API is running.

    Returns:
        dict: Status and version information
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "health": f"{settings.API_URL}/health"
    }


app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(payments.router, prefix="/api/v1/payments", tags=["Payments"])
app.include_router(contacts.router, prefix="/api/v1/contacts", tags=["Contacts"])
app.include_router(reviews.router, prefix="/api/v1/reviews", tags=["Reviews"])
app.include_router(professionals.router, prefix="/api/v1/professionals", tags=["Professionals"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["Notifications"])
app.include_router(ranking.router, prefix="/api/v1/ranking", tags=["Ranking"])
app.include_router(plans.router, prefix="/api/v1/plans", tags=["Plans"])
app.include_router(categories.router, prefix="/api/v1/categories", tags=["Categories"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])
app.include_router(subscription_jobs.router, prefix="/api/v1/subscription-jobs", tags=["Subscription Jobs"])


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    """The database could not be reached; nothing was committed."""
    logger.error(f"Database unavailable on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=503,
        content={
            "detail": "Service temporarily unavailable",
            "error_code": "store_unavailable"
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    Returns:
        JSONResponse: Error response with details
    """
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


@app.on_event("startup")
async def startup_event():
    """
    Application startup event handler.
    """
    # SECURITY: Fail fast if DEBUG is enabled in production
    if settings.ENVIRONMENT == "production" and settings.DEBUG:
        logger.critical("SECURITY ERROR: DEBUG=True in production environment!")
        raise RuntimeError("DEBUG must be False in production. Check your environment variables.")

    logger.info(f"Starting {settings.APP_NAME} API v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Operating timezone: {settings.OPERATING_TIMEZONE}")

    if settings.AUTO_INIT_DB:
        logger.info("Creating tables and seeding default plans...")
        init_db(seed=True)
    else:
        logger.info("Skipping table creation (run `alembic upgrade head` or set AUTO_INIT_DB=true)")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME} API")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=5000,
        reload=settings.DEBUG
    )
