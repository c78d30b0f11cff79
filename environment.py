"""
Environment interface for the Wumpus Q-learning agent.

This module contains what the agent needs from a Wumpus World simulator:
- World: query/command surface the agent consumes
- Action commands and the learnable action indices
- WorldSnapshot: the "before" picture used for reward computation
"""

from dataclasses import dataclass
from typing import Tuple, FrozenSet, Protocol

#===============================================================================
# Commands and Actions
#===============================================================================

A_MOVE = 'm'
A_SHOOT = 's'
A_TURN_LEFT = 'l'
A_TURN_RIGHT = 'r'
A_GRAB = 'g'
A_CLIMB = 'c'

DIR_RIGHT = 0
DIR_UP = 1
DIR_LEFT = 2
DIR_DOWN = 3
DIRECTION_COUNT = 4

# Cell offset in front of the player for each heading
DIRECTION_OFFSETS = {
    DIR_RIGHT: (1, 0),
    DIR_UP: (0, 1),
    DIR_LEFT: (-1, 0),
    DIR_DOWN: (0, -1),
}

# Actions the agent learns values for, in table order
ACTION_MOVE = 0
ACTION_SHOOT = 1
ACTION_TURN_LEFT = 2
ACTION_TURN_RIGHT = 3
ACTION_COUNT = 4

ACTION_COMMANDS = (A_MOVE, A_SHOOT, A_TURN_LEFT, A_TURN_RIGHT)
ACTION_NAMES = ('move', 'shoot', 'turn-left', 'turn-right')


def action_command(action):
    """Map a learnable action index to the world command."""
    return ACTION_COMMANDS[action]

#===============================================================================
# World Interface
#===============================================================================

class World(Protocol):
    """Query/command surface of a Wumpus World simulator."""

    def get_player_x(self) -> int: ...
    def get_player_y(self) -> int: ...
    def get_direction(self) -> int: ...

    def has_glitter(self, x: int, y: int) -> bool: ...
    def has_pit(self, x: int, y: int) -> bool: ...
    def has_wumpus(self, x: int, y: int) -> bool: ...
    def has_breeze(self, x: int, y: int) -> bool: ...
    def has_stench(self, x: int, y: int) -> bool: ...
    def is_valid_position(self, x: int, y: int) -> bool: ...
    def is_unknown(self, x: int, y: int) -> bool: ...

    def has_arrow(self) -> bool: ...
    def wumpus_alive(self) -> bool: ...
    def has_gold(self) -> bool: ...
    def game_over(self) -> bool: ...
    def get_score(self) -> int: ...

    def do_action(self, command: str) -> None: ...

#===============================================================================
# World Snapshot
#===============================================================================

@dataclass(frozen=True)
class WorldSnapshot:
    """Lightweight copy of the world facts a single action can change.

    After one action the player is either on the same cell or on the cell
    that was ahead of it, so only those two cells are recorded.
    """
    x: int
    y: int
    direction: int
    has_arrow: bool
    wumpus_alive: bool
    has_gold: bool
    in_pit: bool
    unknown_cells: FrozenSet[Tuple[int, int]] = frozenset()

    @classmethod
    def capture(cls, world):
        x = world.get_player_x()
        y = world.get_player_y()
        direction = world.get_direction()
        dx, dy = DIRECTION_OFFSETS[direction]

        unknown_cells = set()
        for cx, cy in ((x, y), (x + dx, y + dy)):
            if world.is_valid_position(cx, cy) and world.is_unknown(cx, cy):
                unknown_cells.add((cx, cy))

        return cls(
            x=x,
            y=y,
            direction=direction,
            has_arrow=bool(world.has_arrow()),
            wumpus_alive=bool(world.wumpus_alive()),
            has_gold=bool(world.has_gold()),
            in_pit=bool(world.has_pit(x, y)),
            unknown_cells=frozenset(unknown_cells),
        )

    @property
    def position(self):
        return (self.x, self.y)

    def was_unknown(self, x, y):
        return (x, y) in self.unknown_cells
