"""
FastAPI application entry point.
Wires middleware, routers, static media and health checks.
"""
from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import logging
import os

from app.config import settings
from app.database import get_db, init_db, close_db
from app.errors import register_exception_handlers
from app.services.storage import StorageError, get_storage
from app.utils.rate_limit import limiter
from app.routes import admin, contact, gallery, uploads

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)

app.state.limiter = limiter
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,  # admin_token cookie
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    method, path = request.method, request.url.path
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Error processing {method} {path}: {str(e)} ({type(e).__name__})", exc_info=True)
        raise
    logger.info(f"{method} {path} -> {response.status_code}")
    return response


for module, tag in ((gallery, "gallery"), (uploads, "uploads"), (contact, "contact"), (admin, "admin")):
    app.include_router(module.router, prefix="/api", tags=[tag])

if settings.STORAGE_BACKEND == "local":
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
async def root():
    return {
        "message": settings.API_TITLE,
        "status": "healthy",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Run SELECT 1 against the configured database."""
    try:
        result = await db.execute(text("SELECT 1"))
        return {"database": "connected", "status": "healthy", "result": result.scalar()}
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}", exc_info=True)
        return {"database": "error", "status": "unhealthy", "error": "Database connection failed"}


@app.get("/health/storage")
async def health_check_storage():
    """Report which storage backend is active and whether it could be built."""
    try:
        storage = get_storage()
    except StorageError as e:
        logger.error(f"Storage health check failed: {str(e)}")
        return {"storage": settings.STORAGE_BACKEND, "status": "unhealthy", "error": str(e)}
    return {"storage": storage.name, "status": "healthy", "cdnBaseUrl": settings.CDN_BASE_URL or None}


@app.on_event("startup")
async def startup_event():
    """
    Prepare the upload directory and database.
    The app still starts if the database is unreachable; database endpoints fail until it is.
    """
    logger.info(f"CORS allowed origins: {settings.CORS_ORIGINS}")
    if settings.STORAGE_BACKEND == "local":
        os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

    try:
        await init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database on startup: {str(e)}")


@app.on_event("shutdown")
async def shutdown_event():
    try:
        await close_db()
    except Exception as e:
        logger.warning(f"Error during database shutdown: {str(e)}")
