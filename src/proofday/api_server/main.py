# src/proofday/api_server/main.py
"""
Main FastAPI application for the proofday API server.

The lifespan hook loads configuration, configures logging and builds the
GoalLifecycleController, which is attached to ``app.state.controller``.
If initialization fails the server still starts, and every goal route
answers 503 until it is restarted with a working configuration.

Run with:
    uvicorn proofday.api_server.main:app
or:
    proofday-server
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import load_config
from ..exceptions import ConfigError, ProofDayError
from ..lifecycle import GoalLifecycleController
from ..logging_config import configure_logging, log_display
from .errors import register_exception_handlers
from .routes import diagnostics_router, feed_router, goals_router, users_router

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "PROOFDAY_CONFIG"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages the lifecycle of the FastAPI application.

    Startup builds the lifecycle controller from configuration; shutdown
    closes its collaborators.
    """
    logger.info("API Server starting up...")
    try:
        config = load_config(config_path=os.environ.get(CONFIG_PATH_ENV) or None)
        configure_logging(app_name="proofday-api", config=config.logging)
        app.state.controller = GoalLifecycleController.from_config(config)
        log_display(logger, logging.INFO, "proofday API ready (store=%s, judge=%s, attestor=%s)",
                    config.store.type, config.judge.type, config.attestor.type)
    except (ConfigError, ProofDayError, ImportError) as e:
        logger.critical("Fatal error during proofday initialization: %s", e, exc_info=True)
        app.state.controller = None
        logger.warning("API server will start but the goal service will be unavailable")

    yield

    logger.info("API Server shutting down...")
    controller = getattr(app.state, "controller", None)
    if controller is not None:
        await controller.close()
        logger.info("Lifecycle controller closed")
    app.state.controller = None
    logger.info("API Server shutdown complete")


app = FastAPI(
    title="proofday API",
    description="Daily goals, verified by a judge, disputable by social proof, attested on-chain",
    version=__version__,
    lifespan=lifespan,
)


def _cors_origins() -> List[str]:
    try:
        return load_config(config_path=os.environ.get(CONFIG_PATH_ENV) or None).server.cors_origins
    except ConfigError as e:
        logger.warning("Could not read CORS origins from configuration, allowing all: %s", e)
        return ["*"]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(goals_router, prefix="/api/v1", tags=["goals_v1"])
app.include_router(feed_router, prefix="/api/v1", tags=["feed_v1"])
app.include_router(users_router, prefix="/api/v1", tags=["users_v1"])
app.include_router(diagnostics_router, prefix="/api/v1", tags=["diagnostics_v1"])


@app.get("/")
async def root() -> Dict[str, str]:
    """Root endpoint providing basic service information."""
    return {
        "message": "proofday API is running",
        "version": __version__,
        "docs_url": "/docs",
    }


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint for monitoring."""
    controller = getattr(app.state, "controller", None)
    if controller is None:
        return {"status": "degraded", "controller_available": False}
    components = await controller.health()
    status = "healthy" if components.get("store") == "ok" else "degraded"
    return {"status": status, "controller_available": True, **components}


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured host and port."""
    import uvicorn

    config = load_config(config_path=os.environ.get(CONFIG_PATH_ENV) or None)
    uvicorn.run("proofday.api_server.main:app", host=config.server.host, port=config.server.port)
