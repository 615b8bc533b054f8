from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from backoffice import __version__
from backoffice.auth.routes import router as auth_router
from backoffice.cache.manager import CacheManager
from backoffice.database.connection import create_tables, get_redis, SessionLocal
from backoffice.gis.config import GISScraperConfig
from backoffice.gis.lifecycle import run_cleanup_loop
from backoffice.gis.orchestrator import GISScrapeOrchestrator
from backoffice.routes.crm import router as crm_router
from backoffice.routes.gis_scraper import router as gis_scraper_router, gis_validation_error_handler
from backoffice.routes.inventory import router as inventory_router
from backoffice.routes.leads import router as leads_router
from backoffice.routes.transactions import router as transactions_router
from backoffice.services.registry import DataServiceRegistry
import asyncio
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Back-office API",
    version=__version__,
    description="CRM, leads, bookkeeping, inventory and GIS property search for small businesses"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        os.getenv("FRONTEND_URL", "")
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Per-process state; tests replace these between cases
app.state.data_services = DataServiceRegistry(SessionLocal)
app.state.gis_orchestrator = GISScrapeOrchestrator()
app.state.cleanup_task = None

@app.on_event("startup")
async def startup_event():
    """Initialize database and background jobs on startup"""
    try:
        create_tables()

        if get_redis():
            logger.info("Redis connection established")
        else:
            logger.warning("Redis not available - shared cache disabled")

        if GISScraperConfig.CLEANUP_INTERVAL_HOURS > 0:
            app.state.cleanup_task = asyncio.create_task(
                run_cleanup_loop(SessionLocal, GISScraperConfig.CLEANUP_INTERVAL_HOURS)
            )
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

@app.on_event("shutdown")
async def shutdown_event():
    task = app.state.cleanup_task
    if task:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        app.state.cleanup_task = None

# Include routers
app.include_router(auth_router)
app.include_router(crm_router)
app.include_router(leads_router)
app.include_router(transactions_router)
app.include_router(inventory_router)
app.include_router(gis_scraper_router)

app.add_exception_handler(RequestValidationError, gis_validation_error_handler)

@app.get("/")
def root():
    return {
        "message": "Back-office API",
        "version": __version__,
        "status": "running"
    }

@app.get("/health")
def health_check():
    """Health check endpoint for monitoring"""
    cache_health = CacheManager(get_redis()).health_check()

    return {
        "status": "healthy",
        "database": "connected",
        "redis": "connected" if cache_health["redis_available"] else "disconnected",
        "cache": cache_health,
        "version": __version__
    }
