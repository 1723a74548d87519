"""Per-player runtime state and identity allocation."""
import itertools
from dataclasses import dataclass, asdict
from typing import Optional

DEFAULT_TEAM = 'red'
SPAWN_POSITION = (0.0, 70.0, 0.0)
SPAWN_YAW = 0.0


@dataclass
class PlayerState:
    id: int
    name: str
    team: str = DEFAULT_TEAM
    x: float = SPAWN_POSITION[0]
    y: float = SPAWN_POSITION[1]
    z: float = SPAWN_POSITION[2]
    yaw: float = SPAWN_YAW

    @classmethod
    def spawn(cls, player_id: int, name: Optional[str] = None, team: Optional[str] = None) -> 'PlayerState':
        """Build a fresh player at the spawn point, filling in name/team defaults."""
        return cls(id=player_id, name=name or f"Player{player_id}", team=team or DEFAULT_TEAM)

    def move_to(self, x, y, z, yaw):
        # Values are taken as sent; the relay does not validate movement
        self.x, self.y, self.z, self.yaw = x, y, z, yaw

    def to_dict(self):
        return asdict(self)


class IdAllocator:
    """Hands out player ids 1, 2, 3... ids are never reused for the life of the process."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def next_id(self) -> int:
        return next(self._counter)
