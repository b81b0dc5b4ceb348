from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from dotenv import load_dotenv
from moviecatalog.database import init_db
from moviecatalog.exceptions import CatalogError
from moviecatalog.routes import movies, ratings, watchlist
from moviecatalog.utils.cache import get_cache_service
import os
import logging

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: record the process start time used by /health, create tables
    unless AUTO_CREATE_TABLES=false.
    Shutdown: drop cached entries.
    """
    app.state.started_at = datetime.now(timezone.utc)
    if os.getenv("AUTO_CREATE_TABLES", "true").lower() == "true":
        init_db()
    logger.info("=" * 60)
    logger.info("Movie Catalog API starting")
    logger.info(f"   Environment: {os.getenv('ENVIRONMENT', 'development')}")
    logger.info(f"   Cache invalidation mode: {get_cache_service().invalidation_mode}")
    logger.info("=" * 60)

    yield

    logger.info("Movie Catalog API shutting down")
    get_cache_service().reset()


app = FastAPI(
    title="Movie Catalog API",
    description="Movie catalog with cached listings, ratings and watchlists",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS - Whitelist allowed origins
allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
if production_url := os.getenv("FRONTEND_URL"):
    allowed_origins.append(production_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ============================================
# Exception Handlers
# ============================================

@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """NotFoundError -> 404, ConflictError -> 409"""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ============================================
# Routes
# ============================================

@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check with uptime and cache statistics"""
    now = datetime.now(timezone.utc)
    started_at = getattr(request.app.state, "started_at", now)
    return {
        "status": "ok",
        "api_version": API_VERSION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "timestamp": now.isoformat(),
        "uptime": int((now - started_at).total_seconds()),
        "cache": get_cache_service().stats(),
    }


app.include_router(movies.router)
app.include_router(ratings.router)
app.include_router(watchlist.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
