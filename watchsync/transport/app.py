"""
watchsync Application

FastAPI application with a WebSocket endpoint for the playback relay.
This is the main entry point for running the relay.

Components are built once per application in the lifespan and stored on
`app.state`; the SessionRegistry is created there and handed to the
WebSocketHandler (and through it to the ConnectionRouter).

Configuration comes from environment variables, see watchsync.config.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from watchsync import __version__
from watchsync.config import LOG_FORMAT, RelaySettings
from watchsync.session import SessionRegistry
from watchsync.transport.handler import WebSocketHandler
from watchsync.transport.queue import ConnectionQueueManager

logger = logging.getLogger(__name__)


def create_app(settings: RelaySettings | None = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Relay settings (default: read from the environment)
    """
    settings = settings or RelaySettings.from_env()

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Initializes and tears down the relay components.
        """
        logger.info("Starting watchsync relay...")

        registry = SessionRegistry(session_id_length=settings.session_id_length)
        queue_manager = ConnectionQueueManager(max_queue_size=settings.max_queue_size)
        handler = WebSocketHandler(registry=registry, queue_manager=queue_manager)

        app.state.registry = registry
        app.state.queue_manager = queue_manager
        app.state.handler = handler

        logger.info("watchsync relay started")

        yield

        logger.info("Shutting down watchsync relay...")
        await queue_manager.shutdown()
        app.state.handler = None
        logger.info("watchsync relay stopped")

    app = FastAPI(
        title="watchsync",
        description="Two-party session relay for synchronized playback",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.handler = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        WebSocket endpoint for participants.

        Every session event flows through this endpoint.
        """
        handler = websocket.app.state.handler
        if handler is None:
            await websocket.close(code=1011, reason="Relay not initialized")
            return

        await handler.handle_connection(websocket)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        state = request.app.state
        registry: SessionRegistry | None = getattr(state, "registry", None)
        handler: WebSocketHandler | None = state.handler
        return {
            "status": "healthy",
            "sessions": registry.session_count if registry else 0,
            "paired_sessions": registry.paired_count if registry else 0,
            "connections": handler.connection_count if handler else 0,
        }

    return app
