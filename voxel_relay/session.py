"""Connection records and the session registry of authenticated players."""
import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from .state import IdAllocator, PlayerState

logger = logging.getLogger(__name__)


class AlreadyRegisteredError(RuntimeError):
    """A connection tried to authenticate twice."""


class Connection:
    """One live transport link and what the server knows about it."""

    def __init__(self, websocket):
        self.websocket = websocket
        self.authenticated = False
        self.closed = False
        self.player: Optional[PlayerState] = None
        try:
            host, port = websocket.remote_address[:2]
            self.address = f"{host}:{port}"
        except Exception:
            self.address = 'unknown'

    def __repr__(self):
        who = self.player.name if self.player else 'unauthenticated'
        return f"<Connection {self.address} {who}>"


class SessionRegistry:
    """Maps each authenticated connection to its PlayerState.

    A connection is present only between a successful hello and its
    disconnect. Registry calls are synchronous, so each one is atomic on the
    event loop; ``membership_lock`` is held by callers across a whole join or
    leave sequence (mutation plus the sends that announce it) so two
    membership changes never interleave.

    The lock is held while those sends are awaited, so a peer that stops
    reading delays every join and leave until its transport is closed
    (websockets' keepalive ping times out after about 40 seconds by default).
    Position, block and chat relays never take the lock.
    """

    def __init__(self, ids: Optional[IdAllocator] = None):
        self._players: Dict[Connection, PlayerState] = {}
        self._ids = ids or IdAllocator()
        self.membership_lock = asyncio.Lock()

    def register(self, connection: Connection, state: PlayerState) -> None:
        if connection in self._players:
            raise AlreadyRegisteredError(f"{connection!r} is already registered")
        self._players[connection] = state
        logger.debug(f"Registered {connection.address} as #{state.id}")
        connection.player = state
        connection.authenticated = True

    def admit(self, connection: Connection, name=None, team=None) -> Tuple[PlayerState, List[PlayerState]]:
        """Allocate an id, register the new player and snapshot the roster in one step.

        The returned roster always contains the new player itself.
        """
        state = PlayerState.spawn(self._ids.next_id(), name, team)
        self.register(connection, state)
        return state, self.snapshot()

    def lookup(self, connection: Connection) -> Optional[PlayerState]:
        return self._players.get(connection)

    def unregister(self, connection: Connection) -> Optional[PlayerState]:
        state = self._players.pop(connection, None)
        connection.authenticated = False
        return state

    def snapshot(self) -> List[PlayerState]:
        return list(self._players.values())

    def connections(self) -> List[Connection]:
        return list(self._players)

    def __contains__(self, connection):
        return connection in self._players

    def __len__(self):
        return len(self._players)
