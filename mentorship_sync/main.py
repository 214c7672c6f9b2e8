# mentorship_sync/main.py
import logging
from fastapi import FastAPI
from sqlalchemy import text

from .config import get_settings
from .database import create_db_and_tables, create_session_factory, get_engine
from .store import SqlRecordStore
from .routers import auth_router, mentorship_router, profile_router

settings = get_settings()

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Mentorship Request API",
    description="Mentorship request lifecycle with capacity-checked accepts and live request feeds.",
    version="1.0.0",
)

# Include routers
app.include_router(auth_router.router)
app.include_router(mentorship_router.router)
app.include_router(profile_router.router)

@app.on_event("startup")
async def startup_event():
    """Initialize application on startup"""
    logger.info("Application startup event triggered.")
    engine = get_engine()
    create_db_and_tables(engine)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.record_store = SqlRecordStore(app.state.session_factory)
    logger.info("Startup sequence completed successfully.")

@app.on_event("shutdown")
async def shutdown_event():
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        engine.dispose()

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    try:
        with app.state.session_factory() as db:
            db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "live_subscriptions": app.state.record_store.feed.listener_count,
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}
