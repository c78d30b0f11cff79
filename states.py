"""
State encoding for the Wumpus Q-learning agent.

This module provides:
- State: immutable, hashable description of what the agent has observed
- encode_state: builds a State from the world at a given coordinate
"""

from dataclasses import dataclass
from typing import Tuple

from environment import DIRECTION_COUNT

#===============================================================================
# Encoding Constants
#===============================================================================

PERCEPT_BREEZE = 1
PERCEPT_STENCH = 2

HAZARD_WUMPUS = 1
HAZARD_PIT = 2

CELL_NORMAL = 0
CELL_UNKNOWN = 1
CELL_WALL = 2
CELL_TYPE_COUNT = 3

# Both bitmasks hold two flags
BITMASK_LIMIT = 4

NEIGHBOUR_OFFSETS = ((1, 0), (0, 1), (-1, 0), (0, -1))

# Cells at taxicab distance 2, counter-clockwise from (2, 0)
SECOND_RING_OFFSETS = (
    (2, 0), (1, 1), (0, 2), (-1, 1),
    (-2, 0), (-1, -1), (0, -2), (1, -1),
)

#===============================================================================
# State
#===============================================================================

def _as_byte_tuple(values, length, name):
    values = tuple(int(v) for v in values)
    if len(values) != length:
        raise ValueError(f"{name} needs {length} entries, got {len(values)}")
    return values


@dataclass(frozen=True)
class State:
    """Discrete key of the value table.

    Sequence fields are stored as tuples of ints, so a State built from numpy
    arrays equals (and hashes like) one built from lists or tuples.
    """
    direction: int
    percepts: int
    hazards: int
    wumpus_alive: bool
    has_arrow: bool
    neighbour_type: Tuple[int, ...]
    neighbour_hazards: Tuple[int, ...]
    n2n_type: Tuple[int, ...]
    n2n_percepts: Tuple[int, ...]

    def __post_init__(self):
        n, m = len(NEIGHBOUR_OFFSETS), len(SECOND_RING_OFFSETS)
        object.__setattr__(self, 'direction', int(self.direction))
        object.__setattr__(self, 'percepts', int(self.percepts))
        object.__setattr__(self, 'hazards', int(self.hazards))
        object.__setattr__(self, 'wumpus_alive', bool(self.wumpus_alive))
        object.__setattr__(self, 'has_arrow', bool(self.has_arrow))
        object.__setattr__(self, 'neighbour_type', _as_byte_tuple(self.neighbour_type, n, 'neighbour_type'))
        object.__setattr__(self, 'neighbour_hazards', _as_byte_tuple(self.neighbour_hazards, n, 'neighbour_hazards'))
        object.__setattr__(self, 'n2n_type', _as_byte_tuple(self.n2n_type, m, 'n2n_type'))
        object.__setattr__(self, 'n2n_percepts', _as_byte_tuple(self.n2n_percepts, m, 'n2n_percepts'))

    def validate(self):
        """Raise ValueError if any field is outside its encoding range."""
        if not 0 <= self.direction < DIRECTION_COUNT:
            raise ValueError(f"direction out of range: {self.direction}")
        if not 0 <= self.percepts < BITMASK_LIMIT:
            raise ValueError(f"percepts out of range: {self.percepts}")
        if not 0 <= self.hazards < BITMASK_LIMIT:
            raise ValueError(f"hazards out of range: {self.hazards}")

        rings = (
            ('neighbour', self.neighbour_type, self.neighbour_hazards),
            ('n2n', self.n2n_type, self.n2n_percepts),
        )
        for name, types, bits in rings:
            for cell_type, mask in zip(types, bits):
                if not 0 <= cell_type < CELL_TYPE_COUNT:
                    raise ValueError(f"{name} cell type out of range: {cell_type}")
                if not 0 <= mask < BITMASK_LIMIT:
                    raise ValueError(f"{name} bitmask out of range: {mask}")
                if cell_type != CELL_NORMAL and mask != 0:
                    raise ValueError(f"{name} bitmask set on a non-normal cell")
        return self

#===============================================================================
# State Encoder
#===============================================================================

def hazard_bits(world, x, y):
    bits = 0
    if world.has_pit(x, y):
        bits |= HAZARD_PIT
    if world.has_wumpus(x, y):
        bits |= HAZARD_WUMPUS
    return bits


def percept_bits(world, x, y):
    bits = 0
    if world.has_breeze(x, y):
        bits |= PERCEPT_BREEZE
    if world.has_stench(x, y):
        bits |= PERCEPT_STENCH
    return bits


def classify_cell(world, x, y):
    """Return CELL_WALL, CELL_UNKNOWN or CELL_NORMAL for a coordinate."""
    if not world.is_valid_position(x, y):
        return CELL_WALL
    if world.is_unknown(x, y):
        return CELL_UNKNOWN
    return CELL_NORMAL


def encode_state(world, x, y):
    """Encode what the agent has observed around (x, y) as a State.

    Hazards and percepts of surrounding cells are only read for cells the
    agent has already revealed; unobserved and off-grid cells carry no bits.
    """
    neighbour_type = []
    neighbour_hazards = []
    for dx, dy in NEIGHBOUR_OFFSETS:
        nx, ny = x + dx, y + dy
        cell_type = classify_cell(world, nx, ny)
        neighbour_type.append(cell_type)
        neighbour_hazards.append(hazard_bits(world, nx, ny) if cell_type == CELL_NORMAL else 0)

    n2n_type = []
    n2n_percepts = []
    for dx, dy in SECOND_RING_OFFSETS:
        nx, ny = x + dx, y + dy
        cell_type = classify_cell(world, nx, ny)
        n2n_type.append(cell_type)
        n2n_percepts.append(percept_bits(world, nx, ny) if cell_type == CELL_NORMAL else 0)

    return State(
        direction=world.get_direction(),
        percepts=percept_bits(world, x, y),
        hazards=hazard_bits(world, x, y),
        wumpus_alive=world.wumpus_alive(),
        has_arrow=world.has_arrow(),
        neighbour_type=tuple(neighbour_type),
        neighbour_hazards=tuple(neighbour_hazards),
        n2n_type=tuple(n2n_type),
        n2n_percepts=tuple(n2n_percepts),
    )
