"""Wire protocol: JSON text frames, each an object with a 'type' field.

Client -> server:
  hello        { password?, name?, team? }
  state        { x, y, z, yaw }
  blockChange  { x, y, z, blockType }
  chat         { text }

Server -> client:
  welcome      { id, players: [PlayerState, ...] }   (only to the new player)
  error        { text }                              (then the socket is closed)
  join         { player: PlayerState }
  leave        { id }
  state        { id, x, y, z, yaw }
  blockChange  { x, y, z, blockType }
  chat         { id?, name, text }                   (server messages omit id)
"""
import json
import math
from dataclasses import dataclass
from typing import Any, Optional, Union

SERVER_NAME = 'Server'


class ProtocolError(ValueError):
    """Raised when an inbound frame is not a well-formed message."""


@dataclass(frozen=True)
class Hello:
    password: Optional[str] = None
    name: Optional[str] = None
    team: Optional[str] = None


@dataclass(frozen=True)
class StateUpdate:
    x: Any = None
    y: Any = None
    z: Any = None
    yaw: Any = None


@dataclass(frozen=True)
class BlockChange:
    x: Any = None
    y: Any = None
    z: Any = None
    blockType: Any = None


@dataclass(frozen=True)
class ChatMessage:
    text: Any = None


@dataclass(frozen=True)
class UnknownMessage:
    type: str


ClientMessage = Union[Hello, StateUpdate, BlockChange, ChatMessage, UnknownMessage]


def _optional_str(value):
    # hello fields fall back to their defaults for any falsy value
    if not value:
        return None
    return str(value)


def _reject_constant(name):
    raise ProtocolError(f"{name} is not a JSON value")


def _finite_float(text):
    # Numbers too large for a double become null, as a browser would re-serialize them
    value = float(text)
    return value if math.isfinite(value) else None


def decode_message(raw) -> ClientMessage:
    """Parse one inbound frame into its message variant.

    Raises ProtocolError for anything that is not a JSON object with a string
    ``type``. Unrecognised types come back as UnknownMessage so the caller can
    ignore them explicitly.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ProtocolError(f"frame is not valid UTF-8: {e}") from e
    try:
        msg = json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"frame is not valid JSON: {e}") from e
    if not isinstance(msg, dict):
        raise ProtocolError(f"expected a JSON object, got {type(msg).__name__}")
    msg_type = msg.get('type')
    if not isinstance(msg_type, str):
        raise ProtocolError("message has no string 'type' field")

    if msg_type == 'hello':
        return Hello(password=msg.get('password'),
                     name=_optional_str(msg.get('name')),
                     team=_optional_str(msg.get('team')))
    if msg_type == 'state':
        return StateUpdate(x=msg.get('x'), y=msg.get('y'), z=msg.get('z'), yaw=msg.get('yaw'))
    if msg_type == 'blockChange':
        return BlockChange(x=msg.get('x'), y=msg.get('y'), z=msg.get('z'), blockType=msg.get('blockType'))
    if msg_type == 'chat':
        return ChatMessage(text=msg.get('text'))
    return UnknownMessage(type=msg_type)


def encode_event(event: dict) -> str:
    return json.dumps(event, separators=(',', ':'), allow_nan=False)


# Server events

def welcome_event(player_id, players):
    return {'type': 'welcome', 'id': player_id, 'players': [p.to_dict() for p in players]}


def error_event(text):
    return {'type': 'error', 'text': text}


def join_event(player):
    return {'type': 'join', 'player': player.to_dict()}


def leave_event(player_id):
    return {'type': 'leave', 'id': player_id}


def state_event(player):
    return {'type': 'state', 'id': player.id, 'x': player.x, 'y': player.y, 'z': player.z, 'yaw': player.yaw}


def block_change_event(change: BlockChange):
    return {'type': 'blockChange', 'x': change.x, 'y': change.y, 'z': change.z, 'blockType': change.blockType}


def chat_event(player, text):
    return {'type': 'chat', 'id': player.id, 'name': player.name, 'text': text}


def server_chat_event(text):
    return {'type': 'chat', 'name': SERVER_NAME, 'text': text}
