"""FastAPI application factory and startup."""

from typing import Callable

from fastapi import FastAPI

from hookrelay.adapters.web.hook_routes import hooks_router
from hookrelay.config import AppConfig, __version__
from hookrelay.delivery import DeliveryQueue, DeliveryWorker, exit_process
from hookrelay.ports.outbound import ChatSenderPort


def create_app(
    config: AppConfig,
    sender: ChatSenderPort,
    on_fatal: Callable[[BaseException], None] = exit_process,
) -> FastAPI:
    """Build the relay app around one config snapshot and one chat sender."""
    app = FastAPI(title="Keybase Webhook Relay", version=__version__)
    app.include_router(hooks_router)

    queue = DeliveryQueue()
    app.state.config = config
    app.state.delivery_queue = queue
    app.state.worker = DeliveryWorker(queue, sender, on_fatal=on_fatal)

    @app.on_event("startup")
    async def startup_event():
        """Start the delivery worker on the server's event loop"""
        app.state.worker.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        await app.state.worker.stop()

    return app
