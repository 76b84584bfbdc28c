"""
Main FastAPI application
Enrollment, progress tracking, grading and completion certificates for secondary schools
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import logging
import time

from lms.config import settings
from lms.database import SessionLocal, init_db
from lms.api import analytics, certificates, courses, grading, notifications, progress, quizzes
from lms.api.errors import register_exception_handlers
from lms.utils.cache import cache_service
from lms.utils.rate_limiter import rate_limiter

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

UNLIMITED_PATHS = {"/", "/health", "/docs", "/redoc", "/openapi.json"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Course enrollment, progress tracking, assignment grading and completion certificates",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Reject callers over their per-minute or per-hour budget with 429"""
    if request.url.path not in UNLIMITED_PATHS:
        try:
            await rate_limiter.check_rate_limit(request)
        except HTTPException as e:
            return JSONResponse(status_code=e.status_code, content=e.detail)

    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.3f}s)")
    return response


@app.get("/health")
async def health_check():
    """
    Liveness plus dependency status

    The cache is optional; a failing database marks the service degraded.
    """
    database = "ok"
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check database failure: {e}")
        database = "unavailable"
    finally:
        db.close()

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": database,
        "cache": "enabled" if cache_service.enabled else "disabled",
        "timestamp": time.time()
    }


@app.get("/")
async def root():
    return {
        "message": f"{settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


for module in (courses, progress, quizzes, grading, certificates, notifications, analytics):
    app.include_router(module.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "lms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
