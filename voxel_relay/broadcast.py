"""Fan-out of server events to connected players."""
import logging

import websockets
from websockets.protocol import State

from .protocol import encode_event

logger = logging.getLogger(__name__)


def is_open(connection) -> bool:
    return getattr(connection.websocket, 'state', None) is State.OPEN


class Broadcaster:
    """Delivers events to the connections held in a SessionRegistry."""

    def __init__(self, registry):
        self.registry = registry

    async def broadcast_except(self, event, excluded=None) -> int:
        """Send ``event`` to every open, authenticated connection except ``excluded``.

        The payload is serialized once so every recipient gets the same text.
        Connections that are closed, or close while we are sending, are skipped.
        """
        payload = encode_event(event)
        delivered = 0
        for connection in self.registry.connections():
            if connection is excluded or not is_open(connection):
                continue
            try:
                await connection.websocket.send(payload)
                delivered += 1
            except websockets.exceptions.ConnectionClosed:
                logger.debug(f"Skipped closed connection {connection!r} during broadcast")
        logger.debug(f"📡 {event.get('type')} delivered to {delivered} client(s)")
        return delivered

    async def send_to(self, connection, event) -> bool:
        if not is_open(connection):
            return False
        try:
            await connection.websocket.send(encode_event(event))
        except websockets.exceptions.ConnectionClosed:
            logger.debug(f"Could not send {event.get('type')} to closed connection {connection!r}")
            return False
        return True
