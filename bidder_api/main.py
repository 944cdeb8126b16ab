"""
Marketplace Bidder Control API - main application.

Wraps one in-process bidder worker: start it, stop it, read its counters and
the tail of its activity log.
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bidder import BidderConfig

from .config import config
from .routes import control_router, status_router
from .routes.control import get_control

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL),
    format=config.LOG_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def current_control():
    """The control state, honouring dependency overrides installed by tests."""
    return app.dependency_overrides.get(get_control, get_control)()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Bidder Control API...")
    try:
        config.validate()
        bidder_defaults = BidderConfig.from_env()
        bidder_defaults.validate()
        logger.info(f"Bidder target: {bidder_defaults.listing_url}")
        yield
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise
    finally:
        # a worker left running would keep the browser open after exit
        state = current_control()
        if state.running:
            logger.info("Stopping bidder before shutdown...")
            state.stop()
        logger.info("Bidder Control API stopped")


app = FastAPI(
    title=config.API_TITLE,
    version=config.API_VERSION,
    description=config.API_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=config.CORS_ALLOW_METHODS,
    allow_headers=config.CORS_ALLOW_HEADERS,
)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
async def health_check():
    """Liveness plus whether a bidder worker is active."""
    return {
        "status": "healthy",
        "version": config.API_VERSION,
        "bidder": "running" if current_control().running else "idle",
    }


@app.get("/metrics")
async def metrics():
    """Counters of the current (or last) run."""
    state = current_control()
    return {
        "running": state.running,
        "discovered": state.discovered,
        "successful_bids": state.successful_bids,
        "log_lines_buffered": len(state.lines),
        "api_version": config.API_VERSION,
    }


app.include_router(control_router)
app.include_router(status_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bidder_api.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
