from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.logging_config import get_logger, setup_logging
from app.core.middleware import (
    SecurityHeadersMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware
)
from app.core.secure_logging import safe_log_config
from app.routers import auth, crypto, market, portfolio, stock
from app.services.holdings_service import HoldingStoreError, check_connection
from app.services.market_data.price_service import fetch_watchlist_prices
from app.services.price_refresher import PriceRefresher

setup_logging(json_format=settings.log_json, level=settings.LOG_LEVEL)
logger = get_logger(__name__)


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Portfolio dashboard API: holdings, valuation and market prices",
    docs_url=f"{settings.API_PREFIX}/docs",
    openapi_url=f"{settings.API_PREFIX}/openapi.json"
)

app.state.price_refresher = PriceRefresher(
    fetch_watchlist_prices,
    interval_seconds=settings.PRICE_REFRESH_INTERVAL_SECONDS,
)

# CORS Middleware - Configure allowed origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
    max_age=3600,  # Cache preflight requests for 1 hour
)

# Security Middleware
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    calls=settings.RATE_LIMIT_PER_MINUTE,
    period=60
)
app.add_middleware(RequestLoggingMiddleware)


# Include routers
for module in (auth, portfolio, crypto, stock, market):
    app.include_router(module.router, prefix=settings.API_PREFIX)


@app.on_event("startup")
async def startup():
    logger.info(
        "Starting %s",
        settings.PROJECT_NAME,
        extra={"config": safe_log_config(settings.model_dump(include={
            "API_PREFIX", "AWS_REGION", "DYNAMODB_ENDPOINT", "HOLDINGS_TABLE", "USERS_TABLE",
            "ALPHA_VANTAGE_API_KEY", "JWT_SECRET", "PRICE_REFRESH_ENABLED",
            "PRICE_REFRESH_INTERVAL_SECONDS",
        }))},
    )
    if settings.PRICE_REFRESH_ENABLED:
        app.state.price_refresher.start()


@app.on_event("shutdown")
async def shutdown():
    await app.state.price_refresher.stop()


# Health check endpoints (no auth required)
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for monitoring"""
    return {"status": "healthy", "service": settings.PROJECT_NAME}


@app.get("/health/db", tags=["Health"])
def health_check_db():
    """Verify the holdings table is reachable."""
    try:
        if check_connection():
            return {"success": True, "message": "Database connection successful"}
    except HoldingStoreError:
        pass
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "error": "Database connection failed"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error in the {success, error} envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": message},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to prevent information leakage.
    Never expose internal errors to clients.
    """
    logger.exception("Unhandled exception", extra={"path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An internal error occurred. Please try again later.",
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True  # Disable in production
    )
