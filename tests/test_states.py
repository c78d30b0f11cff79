import numpy as np
import pytest

from environment import DIR_RIGHT, DIR_UP
from states import (
    State, encode_state,
    CELL_NORMAL, CELL_UNKNOWN, CELL_WALL,
    HAZARD_PIT, HAZARD_WUMPUS, PERCEPT_BREEZE, PERCEPT_STENCH,
)
from fake_world import FakeWorld


def make_state(**overrides):
    fields = dict(
        direction=DIR_RIGHT, percepts=0, hazards=0,
        wumpus_alive=True, has_arrow=True,
        neighbour_type=(CELL_UNKNOWN, CELL_UNKNOWN, CELL_WALL, CELL_WALL),
        neighbour_hazards=(0, 0, 0, 0),
        n2n_type=(CELL_UNKNOWN,) * 8,
        n2n_percepts=(0,) * 8,
    )
    fields.update(overrides)
    return State(**fields)


def test_encoder_is_deterministic():
    world = FakeWorld(pits={(2, 2)}, wumpus=(3, 1), known={(2, 1)})
    assert encode_state(world, 1, 1) == encode_state(world, 1, 1)
    assert hash(encode_state(world, 1, 1)) == hash(encode_state(world, 1, 1))


def test_corner_classification():
    world = FakeWorld(size=4, player=(1, 1))
    s = encode_state(world, 1, 1)

    # Offsets (1,0), (0,1), (-1,0), (0,-1)
    assert s.neighbour_type == (CELL_UNKNOWN, CELL_UNKNOWN, CELL_WALL, CELL_WALL)
    assert s.neighbour_hazards == (0, 0, 0, 0)
    # (2,0) and (0,2) are on the grid, everything with a negative offset is off it
    assert s.n2n_type == (CELL_UNKNOWN, CELL_UNKNOWN, CELL_UNKNOWN, CELL_WALL,
                          CELL_WALL, CELL_WALL, CELL_WALL, CELL_WALL)
    assert s.direction == DIR_RIGHT
    assert s.has_arrow and not s.wumpus_alive


def test_unobserved_hazard_is_not_reported():
    world = FakeWorld(player=(1, 1), pits={(2, 1)})
    s = encode_state(world, 1, 1)
    assert s.neighbour_type[0] == CELL_UNKNOWN
    assert s.neighbour_hazards[0] == 0

    world.known.add((2, 1))
    s = encode_state(world, 1, 1)
    assert s.neighbour_type[0] == CELL_NORMAL
    assert s.neighbour_hazards[0] == HAZARD_PIT


def test_second_ring_reports_percepts_of_known_cells():
    world = FakeWorld(player=(1, 1), pits={(4, 1)}, wumpus=(3, 2), known={(3, 1)})
    s = encode_state(world, 1, 1)
    assert s.n2n_type[0] == CELL_NORMAL
    assert s.n2n_percepts[0] == PERCEPT_BREEZE | PERCEPT_STENCH


def test_local_hazards_and_percepts():
    world = FakeWorld(player=(2, 2), pits={(2, 2), (3, 2)}, wumpus=(2, 3))
    s = encode_state(world, 2, 2)
    assert s.hazards == HAZARD_PIT
    assert s.percepts == PERCEPT_BREEZE | PERCEPT_STENCH

    world.wumpus = (2, 2)
    assert encode_state(world, 2, 2).hazards == HAZARD_PIT | HAZARD_WUMPUS


def test_single_field_change_gives_unequal_state():
    world = FakeWorld(player=(2, 2))
    before = encode_state(world, 2, 2)

    world.known.add((3, 2))
    assert encode_state(world, 2, 2) != before

    world = FakeWorld(player=(2, 2))
    world.direction = DIR_UP
    assert encode_state(world, 2, 2) != before

    world = FakeWorld(player=(2, 2), arrow=False)
    assert encode_state(world, 2, 2) != before


def test_array_and_tuple_fields_are_equal():
    from_tuples = make_state()
    from_arrays = make_state(
        direction=np.uint8(DIR_RIGHT),
        wumpus_alive=np.bool_(True),
        neighbour_type=np.array([CELL_UNKNOWN, CELL_UNKNOWN, CELL_WALL, CELL_WALL], dtype=np.uint8),
        neighbour_hazards=[0, 0, 0, 0],
        n2n_type=np.full(8, CELL_UNKNOWN),
        n2n_percepts=np.zeros(8, dtype=np.uint8),
    )
    assert from_tuples == from_arrays
    assert hash(from_tuples) == hash(from_arrays)
    assert len({from_tuples, from_arrays}) == 1


def test_wrong_ring_length_is_rejected():
    with pytest.raises(ValueError):
        make_state(neighbour_type=(0, 0, 0))


@pytest.mark.parametrize("overrides", [
    {'direction': 4},
    {'percepts': 4},
    {'hazards': 7},
    {'neighbour_type': (3, 0, 0, 0)},
    {'neighbour_type': (CELL_UNKNOWN, 0, 0, 0), 'neighbour_hazards': (HAZARD_PIT, 0, 0, 0)},
    {'n2n_type': (CELL_WALL,) + (CELL_NORMAL,) * 7, 'n2n_percepts': (PERCEPT_STENCH,) + (0,) * 7},
])
def test_validate_rejects_out_of_range_fields(overrides):
    with pytest.raises(ValueError):
        make_state(**overrides).validate()


def test_validate_accepts_encoded_state():
    world = FakeWorld(pits={(2, 2)}, wumpus=(3, 1), known={(2, 1), (2, 2)})
    state = encode_state(world, 1, 1)
    assert state.validate() is state
