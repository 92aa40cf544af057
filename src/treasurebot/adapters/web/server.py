"""Read-only status endpoint for a running bot.

This module exposes the status and reward reports over HTTP so they can be
polled by a chat relay or a dashboard while the loop runs.
"""

import time
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, status
from fastapi.responses import PlainTextResponse

from treasurebot.core.orchestrator import Orchestrator
from treasurebot.utils.errors import NotConnectedError
from treasurebot.utils.telemetry import get_logger


def create_status_app(bot: Orchestrator) -> FastAPI:
    """Create the status application for ``bot``.

    Args:
        bot: Orchestrator whose state is reported

    Returns:
        FastAPI application
    """
    logger = get_logger("treasurebot.adapters.web")
    app = FastAPI(
        title="treasurebot status",
        description="Status and reward reports of a running treasurebot",
        version="1.0.0",
    )

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "running": bot.should_run,
            "connected": bot.client.is_connected,
        }

    @app.get("/status", response_class=PlainTextResponse)
    async def get_status() -> str:
        return bot.render_status_report()

    @app.get("/rewards", response_class=PlainTextResponse)
    async def get_rewards() -> str:
        try:
            return await bot.render_reward_report()
        except NotConnectedError as e:
            logger.info("Reward report requested before login")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)
            ) from e

    return app


async def serve_status(
    bot: Orchestrator, host: str = "127.0.0.1", port: int = 8080, log_level: str = "info"
) -> None:
    """Serve the status application until cancelled."""
    server_config = uvicorn.Config(
        create_status_app(bot), host=host, port=port, log_level=log_level.lower()
    )
    server = uvicorn.Server(server_config)
    await server.serve()
