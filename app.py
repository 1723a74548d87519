# Launcher for the voxel relay server
import asyncio
import logging
import sys

# Environment may be supplied through a .env file
from dotenv import load_dotenv

from voxel_relay.config import load_settings
from voxel_relay.main import main

logger = logging.getLogger(__name__)


def configure_logging(level_name):
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format='%(asctime)s - %(message)s')
    # Ensure root logger and all handlers use the selected level (some libraries preconfigure handlers)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)
    # websockets logs every handshake failure at INFO/ERROR; keep it quieter than ours
    if level > logging.DEBUG:
        logging.getLogger('websockets').setLevel(logging.WARNING)


def run(argv=None):
    load_dotenv()
    settings = load_settings(argv)
    configure_logging(settings.log_level)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except OSError as e:
        logger.error(f"Error starting server: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(run())
