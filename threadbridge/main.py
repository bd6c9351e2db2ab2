"""Main FastAPI application"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from threadbridge import __version__
from threadbridge.api import webhooks
from threadbridge.bootstrap import build_runtime
from threadbridge.config import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Starting ThreadBridge")
    runtime = build_runtime(settings)
    await runtime.start()
    app.state.runtime = runtime
    yield
    # Shutdown
    logger.info("Stopping ThreadBridge")
    app.state.runtime = None
    await runtime.aclose()


app = FastAPI(
    title="ThreadBridge",
    description="Mirror Discord forum threads and GitHub issues",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(webhooks.router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    runtime = getattr(app.state, "runtime", None)
    return {
        "status": "healthy",
        "service": "ThreadBridge",
        "threads": len(runtime.store.threads) if runtime else 0,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "threadbridge.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
