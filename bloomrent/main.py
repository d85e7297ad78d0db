"""
BloomRent API - Main Application
FastAPI application with CORS, error handling, middleware, and logging
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bloomrent.api.routes import invites_router, properties_router, tenants_router
from bloomrent.core.config import settings
from bloomrent.database import close_db_connection, init_db, test_connection


# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ==================== STARTUP & SHUTDOWN ====================


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 70)
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info("=" * 70)
    logger.info(f"Environment: {'Production' if not settings.DEBUG else 'Development'}")
    logger.info(f"Frontend URL: {settings.FRONTEND_URL}")

    if test_connection():
        logger.info("[OK] Database connection successful!")
    else:
        logger.warning("[WARN] Database connection failed - continuing in degraded mode")

    # Schema is owned by Alembic in production; create_all only for local SQLite
    if settings.is_sqlite and not settings.TESTING:
        if init_db():
            logger.info("[OK] Database initialization complete!")
        else:
            logger.warning("[WARN] Database init returned False - tables may not exist")

    logger.info("[OK] Application startup complete!")
    yield

    logger.info("Shutting down application...")
    close_db_connection()
    logger.info("Application shutdown complete")


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.PROJECT_DESCRIPTION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)


# ==================== MIDDLEWARE ====================


# Compression: GZip responses
app.add_middleware(GZipMiddleware, minimum_size=1000)


# CORS: Cross-Origin Resource Sharing
allowed_origins = list(dict.fromkeys([settings.FRONTEND_URL, *settings.ALLOWED_ORIGINS]))

if settings.DEBUG:
    allowed_origins.extend([
        "http://localhost:8000",
        "http://127.0.0.1:3000",
    ])

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    max_age=3600,
)


# ==================== ROUTERS ====================


app.include_router(properties_router, prefix="/api/properties", tags=["Properties"])
app.include_router(tenants_router, prefix="/api/tenants", tags=["Tenants"])
app.include_router(invites_router, prefix="/api/invites", tags=["Invites"])


# ==================== ERROR HANDLERS ====================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Service failures and routing errors share the same envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed response"""
    logger.warning(f"Validation error on {request.url}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "detail": "Validation error",
            "errors": jsonable_errors(exc),
        }
    )


def jsonable_errors(exc: RequestValidationError):
    # ctx may hold the raw ValueError from a field validator
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")

    # Don't expose internal errors in production
    error_message = str(exc) if settings.DEBUG else "Internal server error"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "detail": error_message,
            "timestamp": _now(),
        }
    )


# ==================== HEALTH & STATUS ENDPOINTS ====================


@app.get("/", tags=["System"])
async def root():
    """Root endpoint - API information"""
    return {
        "success": True,
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "docs": "/api/docs",
        "status": "operational",
        "environment": "production" if not settings.DEBUG else "development",
    }


@app.get("/health", tags=["System"])
def health_check():
    """Health check endpoint for monitoring"""
    connection_ok = test_connection()
    return {
        "success": True,
        "status": "healthy" if connection_ok else "degraded",
        "database": "connected" if connection_ok else "disconnected",
        "timestamp": _now(),
    }


# ==================== REQUEST LOGGING ====================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests"""
    # Skip logging for health checks
    if request.url.path == "/health":
        return await call_next(request)

    start_time = datetime.now(timezone.utc)
    logger.info(f">> {request.method} {request.url.path}")

    try:
        response = await call_next(request)
    except Exception as e:
        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.error(f"[ERROR] {request.method} {request.url.path} - Error: {str(e)} ({duration:.2f}s)")
        raise

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(f"<< {request.method} {request.url.path} - {response.status_code} ({duration:.2f}s)")
    return response
