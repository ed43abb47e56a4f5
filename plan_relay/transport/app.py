"""
Plan Relay Application

FastAPI application exposing the relay:
- WS /ws: browser-extension connection (see WebSocketHandler)
- GET /health: liveness plus connection counts

Configuration comes from environment variables (see plan_relay.config),
optionally loaded from a .env file.

If the plan generator cannot be constructed (e.g., missing API key) the
server still starts and answers plan requests with "service unavailable".
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from plan_relay import __version__
from plan_relay.config import RelaySettings, load_settings
from plan_relay.planning import PlanGenerator, create_plan_generator
from plan_relay.registry import ConnectionRegistry
from plan_relay.session import SessionProtocol
from plan_relay.transport.handler import WebSocketHandler

logger = logging.getLogger(__name__)

# Max time to let in-flight plan requests finish on shutdown
SHUTDOWN_GRACE_SECONDS = 10.0

PlanGeneratorFactory = Callable[[RelaySettings], "PlanGenerator | None"]


def _log_unhandled(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Last-resort handler for errors nothing else caught: log and keep serving."""
    exc = context.get("exception")
    logger.error(f"Unhandled error in event loop: {context.get('message')} ({exc!r})")


def create_app(
    settings: RelaySettings | None = None,
    plan_generator_factory: PlanGeneratorFactory = create_plan_generator,
) -> FastAPI:
    """
    Create the relay application.

    Each app owns its own registry and protocol (built in the lifespan),
    so several apps can run side by side.

    Args:
        settings: Relay settings (default: loaded from the environment)
        plan_generator_factory: Builds the plan generator at startup; may return None

    Returns:
        Configured FastAPI application
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Plan Relay...")

        loop = asyncio.get_running_loop()
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(_log_unhandled)

        registry = ConnectionRegistry()
        plan_generator = plan_generator_factory(settings)
        if plan_generator is None:
            logger.warning("No plan generator available; plan requests will be refused")

        protocol = SessionProtocol(registry, plan_generator)

        app.state.settings = settings
        app.state.registry = registry
        app.state.protocol = protocol
        app.state.handler = WebSocketHandler(protocol, settings)

        logger.info("Plan Relay started")

        yield

        logger.info("Shutting down Plan Relay...")
        if protocol.inflight_count:
            logger.info(f"Waiting for {protocol.inflight_count} in-flight plan requests")
            try:
                await asyncio.wait_for(protocol.wait_idle(), timeout=SHUTDOWN_GRACE_SECONDS)
            except asyncio.TimeoutError:
                logger.warning("In-flight plan requests did not finish before shutdown")
        loop.set_exception_handler(previous_handler)
        logger.info("Plan Relay stopped")

    app = FastAPI(
        title="Plan Relay",
        description="Relay between a browser extension and an LLM task planner",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for browser-extension clients."""
        await websocket.app.state.handler.handle_connection(websocket)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        protocol: SessionProtocol = request.app.state.protocol
        registry: ConnectionRegistry = request.app.state.registry
        return {
            "status": "ok" if protocol.planner_available else "degraded",
            "planner": "available" if protocol.planner_available else "unavailable",
            "connections": registry.count(),
            "sessions": registry.session_count(),
            "inflight_plans": protocol.inflight_count,
        }

    return app
