"""
Used-car listings API.

Serves stored listings (search, detail, price history, CSV export,
statistics) and runs the extraction pipeline over submitted pages.

Run with: uvicorn api.main:app
"""
import logging
import sqlite3
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import config
from .database import get_db_connection, init_database
from .routes import extract_router, listings_router, stats_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    if config.LOG_FILE:
        handlers.append(logging.FileHandler(config.LOG_FILE))
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.validate()
    init_database()
    logger.info(f"Listings API {config.API_VERSION} ready, database at {config.DB_PATH}")
    yield
    logger.info("Listings API stopped")


def create_app() -> FastAPI:
    """Build the application with middleware, error handlers and routers."""
    application = FastAPI(
        title=config.API_TITLE,
        version=config.API_VERSION,
        description=config.API_DESCRIPTION,
        lifespan=lifespan
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=config.CORS_ALLOW_METHODS,
        allow_headers=config.CORS_ALLOW_HEADERS,
    )

    @application.exception_handler(sqlite3.Error)
    async def database_error_handler(request: Request, exc: sqlite3.Error):
        logger.error(f"Database error on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Database unavailable"})

    @application.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @application.get("/health")
    async def health_check():
        """Liveness plus a round trip to the listings table."""
        try:
            with get_db_connection() as conn:
                listings = conn.execute("SELECT COUNT(*) FROM listings").fetchone()[0]
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            raise HTTPException(status_code=503, detail="Service unavailable")
        return {"status": "healthy", "version": config.API_VERSION, "database": "connected", "listings": listings}

    for router in (listings_router, extract_router, stats_router):
        application.include_router(router)
    return application


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, log_level=config.LOG_LEVEL.lower())
