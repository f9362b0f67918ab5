import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, SECURITY_HEADERS_ENABLED
from .database import Base, engine, get_db
from .domain.accounts.router import router as accounts_router
from .domain.availability.router import router as availability_router
from .domain.bookings.router import router as bookings_router
from .domain.branches.router import router as branches_router
from .domain.dashboard.router import router as dashboard_router
from .domain.payments.router import router as payments_router
from .domain.seating.router import router as seating_router
from .domain.support.router import router as support_router
from .security_headers import SecurityHeadersMiddleware
from .shared.responses import error_body

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        # Several workers may race to create the same tables
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Coworks API", version=__version__, lifespan=lifespan)


# ============================================================================
# ERROR HANDLERS
# ============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors in the {success, message, data} envelope"""
    if isinstance(exc.detail, dict):
        extra = dict(exc.detail)
        message = extra.pop("message", "Request failed")
        body = error_body(message, data=extra or None)
    else:
        body = error_body(str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Validation failures become 400s; a missing or malformed Authorization
    header is reported as 401 instead
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content=error_body("Not authenticated. Please provide a valid Bearer token."),
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content=error_body("Validation error", errors=exc.errors()))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


# ============================================================================
# MIDDLEWARE
# ============================================================================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    duration_ms = (time.perf_counter() - start) * 1000
    message = f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)"
    if duration_ms > 1000:
        logger.warning(f"🐢 Slow request: {message}")
    else:
        logger.info(message)
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(accounts_router)
app.include_router(branches_router)
app.include_router(seating_router)
app.include_router(availability_router)
app.include_router(bookings_router)
app.include_router(payments_router)
app.include_router(support_router)
app.include_router(dashboard_router)


@app.get("/")
def root():
    return {"success": True, "message": "Coworks API is running", "data": {"version": __version__}}


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"❌ Health check database ping failed: {e}")
        return JSONResponse(
            status_code=503,
            content=error_body("Database unavailable", data={"status": "unhealthy", "database": False}),
        )
    return {
        "success": True,
        "message": "Service is healthy",
        "data": {"status": "healthy", "database": True, "version": __version__},
    }


@app.get("/health/redis")
async def redis_health_check():
    """Check Redis connectivity for monitoring"""
    from redis.exceptions import RedisError

    from .rate_limiter import get_redis_client

    try:
        redis_client = get_redis_client()
        start_time = time.time()
        redis_client.ping()
        response_time = (time.time() - start_time) * 1000
        info = redis_client.info()
    except (RedisError, ConnectionError) as e:
        return {"success": False, "message": "Redis unavailable", "data": {"connected": False, "error": str(e)}}

    return {
        "success": True,
        "message": "Redis is healthy",
        "data": {
            "connected": True,
            "response_time_ms": round(response_time, 2),
            "version": info.get("redis_version", "unknown"),
            "connected_clients": info.get("connected_clients", 0),
        },
    }
