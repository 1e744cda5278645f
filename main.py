"""
Event Messenger - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from event_messenger.core.config import settings
from event_messenger.core.db import engine, Base, SessionLocal
from event_messenger.core.wiring import build_scheduler
from event_messenger.api import routes_admin, routes_contributor, routes_public

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")

    scheduler = build_scheduler(SessionLocal, settings)
    app.state.scheduler = scheduler
    if settings.SCHEDULER_ENABLED:
        await scheduler.start()
    else:
        logger.info("Scheduler disabled, notifications only run when triggered by an admin")

    yield

    await scheduler.stop()
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Event Messenger",
    description="Collects messages for an event and emails them to the recipient on the day",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_contributor.router, tags=["contributor"])
app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])

# Note: Run this ASGI app directly with Uvicorn. The scheduler lives in the
# application process, so run a single worker.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
