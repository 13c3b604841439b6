"""FastAPI application serving the configured project with live reload."""
import logging
import os
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from watchdog.observers import Observer

from ..config import Config, get_config
from ..ports import PortNegotiator
from .routers import page, setup
from .state import build_state


def setup_logging():
    """Configure logging for the application."""
    # Get log level from environment or default to INFO
    log_level = os.getenv('LIVESERVE_LOG_LEVEL', 'INFO').upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
        ]
    )

    # Page loads and asset fetches are noisy
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.error').setLevel(logging.INFO)
    logging.getLogger('watchdog').setLevel(logging.WARNING)

    logging.getLogger('liveserve').setLevel(getattr(logging, log_level, logging.INFO))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    setup_logging()
    logger = logging.getLogger(__name__)

    live = app.state.live
    logger.info(f"Starting liveserve on port {live.session.active_port}")

    yield

    # Shutdown
    await live.coordinator.close()
    await live.hub.close()
    logger.info("liveserve stopped")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors, reported as 400."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app(config: Optional[Config] = None, port: Optional[int] = None,
               observer_factory: Callable = Observer) -> FastAPI:
    """Build a server application with its own session, watcher and hub."""
    config = config or get_config()

    app = FastAPI(title="liveserve", lifespan=lifespan)
    app.state.live = build_state(config, port=port, observer_factory=observer_factory)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(setup.router, tags=["setup"])
    # Page router last: it ends with the catch-all static route
    app.include_router(page.router, tags=["page"])

    return app


def negotiate_port(config: Config, override: Optional[int] = None) -> int:
    """Pick the listening port: the override alone, or configured candidates."""
    if override is not None:
        candidates = [override]
    else:
        candidates = [config.server.port, *config.server.fallback_ports]
    return PortNegotiator(candidates, host=config.server.host).acquire()


def run_server(port: Optional[int] = None, config: Optional[Config] = None):
    """Negotiate a port and run the server until interrupted.

    Raises:
        PortUnavailableError: no candidate port could be bound
    """
    config = config or get_config()
    chosen = negotiate_port(config, port)
    app = create_app(config, port=chosen)
    uvicorn.run(app, host=config.server.host, port=chosen)
