"""Server Lifecycle — owns the uvicorn server, its signals and fatal-error shutdown.

Invariants:
    - Exactly one owner of the server handle: ServerLifecycle (no module-level server)
    - SIGTERM/SIGINT → stop accepting connections, drain in-flight requests, exit
    - An exception nobody awaited on the event loop is fatal: logged, drained, exit code 1
    - request_shutdown is idempotent; the highest exit code requested wins
"""

import asyncio
import logging
import signal
import sys
from types import FrameType
from typing import Any

import uvicorn
from fastapi import FastAPI

from carbon_api.config import Settings, get_settings
from carbon_api.main import create_app

logger = logging.getLogger(__name__)


class _LifecycleServer(uvicorn.Server):
    """uvicorn.Server that reports captured signals to its lifecycle."""

    def __init__(self, config: uvicorn.Config, lifecycle: "ServerLifecycle"):
        super().__init__(config)
        self.lifecycle = lifecycle

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        self.lifecycle.handle_signal(sig)
        super().handle_exit(sig, frame)


class ServerLifecycle:
    """Runs one app on uvicorn and coordinates graceful shutdown."""

    def __init__(self, app: FastAPI | str, settings: Settings):
        self.settings = settings
        self.exit_code = 0
        config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            # logging is configured by the app lifespan, not uvicorn
            log_config=None,
        )
        self.server = _LifecycleServer(config, self)

    @property
    def shutting_down(self) -> bool:
        return self.server.should_exit

    def request_shutdown(self, reason: str, exit_code: int = 0) -> None:
        """Stop accepting connections and let in-flight requests finish."""
        self.exit_code = max(self.exit_code, exit_code)
        if self.server.should_exit:
            return
        logger.info(f"{reason}. Shutting down gracefully...")
        self.server.should_exit = True

    def handle_signal(self, signum: int) -> None:
        logger.info(f"{signal.Signals(signum).name} received")

    def handle_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any],
    ) -> None:
        """Event-loop exception handler: unobserved failures are fatal."""
        exc = context.get("exception")
        logger.critical(
            f"Unhandled error: {context.get('message', 'unknown')}",
            exc_info=exc,
        )
        self.request_shutdown("Unhandled error", exit_code=1)

    async def serve(self) -> None:
        asyncio.get_running_loop().set_exception_handler(self.handle_loop_exception)
        logger.info(
            f"Server running in {self.settings.environment} mode "
            f"on port {self.settings.port}",
        )
        await self.server.serve()
        logger.info("Process terminated")

    def run(self) -> int:
        asyncio.run(self.serve())
        return self.exit_code


def main() -> None:
    """Console entry point: serve carbon_api.main:app with the environment settings."""
    settings = get_settings()
    lifecycle = ServerLifecycle(create_app(settings), settings)
    sys.exit(lifecycle.run())


if __name__ == "__main__":
    main()
