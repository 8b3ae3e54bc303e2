"""
Cat Flap Presence Service
Main FastAPI application
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging

from catflap.api.routes import events as event_routes
from catflap.api.routes import reports as report_routes
from catflap.core import config
from catflap.core.database import init_db

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='[%(asctime)s] %(name)s %(levelname)s: %(message)s'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"Local offset: UTC{config.LOCAL_OFFSET_HOURS:+g}h")
    yield


# Create FastAPI app
app = FastAPI(
    title="Cat Flap Presence",
    description="Presence timeline and reports from cat flap camera events",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(report_routes.router)
app.include_router(event_routes.router)


@app.get("/")
async def root():
    return {
        "service": "Cat Flap Presence",
        "status": "running",
        "version": "0.1.0",
        "local_offset_hours": config.LOCAL_OFFSET_HOURS,
        "modules": ["reports", "events"]
    }


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "modules": ["reports", "events"]
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
