"""Server entrypoint: binds the relay and serves until a shutdown signal."""
import asyncio
import logging
import signal
import sys

from websockets.asyncio.server import serve

from .config import Settings
from .game_ws import GameRelay
from .http import make_static_handler

logger = logging.getLogger(__name__)


async def start_server(settings: Settings, relay: GameRelay):
    """Start listening; returns the websockets Server."""
    return await serve(
        relay.handle_client,
        settings.host,
        settings.port,
        process_request=make_static_handler(settings.static_dir),
    )


async def main(settings: Settings):
    shutdown_event = asyncio.Event()

    def signal_handler(signum, frame):
        logger.info(f"🛑 Received signal {signum}, initiating graceful shutdown...")
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    if sys.platform != 'win32':
        signal.signal(signal.SIGTERM, signal_handler)

    relay = GameRelay(password=settings.password)
    server = None
    try:
        server = await start_server(settings, relay)
        logger.info(f"Server listening on {settings.host}:{settings.port}")
        logger.info(f"🌐 Static files served from {settings.static_dir}")
        if settings.password:
            logger.info("🔒 Password required to join")
        await shutdown_event.wait()
        logger.info("👋 Starting graceful shutdown...")
    finally:
        if server:
            await relay.close_all()
            server.close()
            await server.wait_closed()
        logger.info("✅ Server shutdown complete")
