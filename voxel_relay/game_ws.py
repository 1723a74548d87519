"""Game client WebSocket handler: authentication, dispatch and join/leave notices."""
import logging

import websockets

from .broadcast import Broadcaster
from .protocol import (
    BlockChange, ChatMessage, Hello, ProtocolError, StateUpdate, block_change_event, chat_event,
    decode_message, error_event, join_event, leave_event, server_chat_event, state_event,
    welcome_event,
)
from .session import Connection, SessionRegistry

logger = logging.getLogger(__name__)

INVALID_PASSWORD = 'invalid password'


class GameRelay:
    """Owns the session registry and relays events between players.

    A connection starts unauthenticated; the only message acted on before
    authentication is ``hello``. Once authenticated its state/blockChange/chat
    messages are relayed to every other player. Nothing is ever echoed back
    to the sender.
    """

    def __init__(self, password='', registry=None):
        self.password = password or ''
        self.registry = registry or SessionRegistry()
        self.broadcaster = Broadcaster(self.registry)
        # Every live connection, authenticated or not
        self.connections = set()

    async def handle_client(self, websocket):
        connection = Connection(websocket)
        self.connections.add(connection)
        logger.info(f"🔌 Client connected from {connection.address}")
        try:
            async for message in websocket:
                await self.on_message(connection, message)
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self.connections.discard(connection)
            await self.on_close(connection)

    async def on_message(self, connection: Connection, raw):
        if connection.closed:
            return
        try:
            msg = decode_message(raw)
        except ProtocolError as e:
            logger.warning(f"Dropped malformed message from {connection.address}: {e}")
            return

        if not connection.authenticated:
            if isinstance(msg, Hello):
                await self._authenticate(connection, msg)
            return

        player = self.registry.lookup(connection)
        if player is None:
            return

        if isinstance(msg, StateUpdate):
            player.move_to(msg.x, msg.y, msg.z, msg.yaw)
            await self.broadcaster.broadcast_except(state_event(player), connection)
        elif isinstance(msg, BlockChange):
            logger.debug(f"🧱 {player.name} changed block at ({msg.x}, {msg.y}, {msg.z}) to {msg.blockType}")
            await self.broadcaster.broadcast_except(block_change_event(msg), connection)
        elif isinstance(msg, ChatMessage):
            logger.info(f"💬 Chat from {player.name}: {msg.text}")
            await self.broadcaster.broadcast_except(chat_event(player, msg.text), connection)
        else:
            logger.debug(f"Ignored {type(msg).__name__} from {player.name}")

    async def _authenticate(self, connection: Connection, hello: Hello):
        if self.password and hello.password != self.password:
            logger.warning(f"🔒 Rejected client {connection.address}: invalid password")
            await self.broadcaster.send_to(connection, error_event(INVALID_PASSWORD))
            connection.closed = True
            await connection.websocket.close()
            return

        async with self.registry.membership_lock:
            player, roster = self.registry.admit(connection, hello.name, hello.team)
            logger.info(f"🎯 {player.name} joined as #{player.id} (team {player.team}), {len(roster)} online")
            await self.broadcaster.send_to(connection, welcome_event(player.id, roster))
            await self.broadcaster.broadcast_except(join_event(player), connection)
            await self.broadcaster.broadcast_except(server_chat_event(f"{player.name} connected"), connection)

    async def on_close(self, connection: Connection):
        connection.closed = True
        if connection not in self.registry:
            logger.info(f"🔌 Client {connection.address} disconnected")
            return
        async with self.registry.membership_lock:
            player = self.registry.unregister(connection)
            if player is None:
                return
            logger.info(f"👋 {player.name} (#{player.id}) disconnected, {len(self.registry)} online")
            await self.broadcaster.broadcast_except(leave_event(player.id))
            await self.broadcaster.broadcast_except(server_chat_event(f"{player.name} disconnected"))

    async def close_all(self, code=1001, reason='Server shutting down'):
        """Close every live connection; used during graceful shutdown."""
        for connection in list(self.connections):
            try:
                await connection.websocket.close(code=code, reason=reason)
            except Exception as e:
                logger.error(f"Error closing websocket {connection.address}: {e}")
