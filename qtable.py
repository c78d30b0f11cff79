"""
Value table for the Wumpus Q-learning agent.

This module contains:
- QTable: State -> action-value vector mapping, grown lazily
- Binary persistence of the table (fixed-width records, no header)
"""

import os

import numpy as np
import filelock

import config
from environment import ACTION_COUNT
from states import State, NEIGHBOUR_OFFSETS, SECOND_RING_OFFSETS

#===============================================================================
# Record Layout
#===============================================================================

FLAG_WUMPUS_ALIVE = 1
FLAG_HAS_ARROW = 2

# Packed little-endian record: state fields followed by one float per action
RECORD_DTYPE = np.dtype([
    ('direction', 'u1'),
    ('percepts', 'u1'),
    ('hazards', 'u1'),
    ('flags', 'u1'),
    ('neighbour_type', 'u1', (len(NEIGHBOUR_OFFSETS),)),
    ('neighbour_hazards', 'u1', (len(NEIGHBOUR_OFFSETS),)),
    ('n2n_type', 'u1', (len(SECOND_RING_OFFSETS),)),
    ('n2n_percepts', 'u1', (len(SECOND_RING_OFFSETS),)),
    ('q', '<f8', (ACTION_COUNT,)),
])


class CorruptTableError(ValueError):
    """Raised when a persisted value table cannot be decoded."""

#===============================================================================
# Value Table
#===============================================================================

class QTable:
    """Mapping from State to a mutable vector of ACTION_COUNT action-values."""

    def __init__(self, entries=None):
        self._values = {}
        if entries:
            for state, q_values in dict(entries).items():
                self.set(state, q_values)

    def get_or_create(self, state):
        """Return the vector for state, inserting zeros first if it is new."""
        q_values = self._values.get(state)
        if q_values is None:
            q_values = np.zeros(ACTION_COUNT, dtype=np.float64)
            self._values[state] = q_values
        return q_values

    def get(self, state, default=None):
        return self._values.get(state, default)

    def set(self, state, q_values):
        q_values = np.array(q_values, dtype=np.float64)
        if q_values.shape != (ACTION_COUNT,):
            raise ValueError(f"Expected {ACTION_COUNT} action-values, got shape {q_values.shape}")
        self._values[state] = q_values

    def items(self):
        return self._values.items()

    def states(self):
        return self._values.keys()

    def __len__(self):
        return len(self._values)

    def __contains__(self, state):
        return state in self._values

    def __iter__(self):
        return iter(self._values)

    def __eq__(self, other):
        if not isinstance(other, QTable):
            return NotImplemented
        if self._values.keys() != other._values.keys():
            return False
        return all(np.array_equal(q, other._values[s]) for s, q in self._values.items())

    def __repr__(self):
        return f"QTable({len(self)} states)"

    @classmethod
    def load(cls, path=None):
        return read_q_table(path)

    def save(self, path=None):
        return write_q_table(self, path)

#===============================================================================
# Encoding
#===============================================================================

def encode_records(table):
    """Pack a QTable into a structured array of RECORD_DTYPE."""
    rows = []
    for state, q_values in table.items():
        flags = 0
        if state.wumpus_alive:
            flags |= FLAG_WUMPUS_ALIVE
        if state.has_arrow:
            flags |= FLAG_HAS_ARROW
        rows.append((
            state.direction, state.percepts, state.hazards, flags,
            state.neighbour_type, state.neighbour_hazards,
            state.n2n_type, state.n2n_percepts,
            tuple(float(v) for v in q_values),
        ))
    return np.array(rows, dtype=RECORD_DTYPE)


def decode_records(data):
    """Rebuild a QTable from raw bytes, raising CorruptTableError on any defect."""
    if len(data) % RECORD_DTYPE.itemsize != 0:
        raise CorruptTableError(
            f"Truncated table: {len(data)} bytes is not a multiple of {RECORD_DTYPE.itemsize}"
        )
    if not data:
        return QTable()

    records = np.frombuffer(data, dtype=RECORD_DTYPE)
    table = QTable()

    for i, record in enumerate(records):
        flags = int(record['flags'])
        if flags & ~(FLAG_WUMPUS_ALIVE | FLAG_HAS_ARROW):
            raise CorruptTableError(f"Record {i}: unknown flag bits {flags:#04x}")

        try:
            state = State(
                direction=record['direction'],
                percepts=record['percepts'],
                hazards=record['hazards'],
                wumpus_alive=flags & FLAG_WUMPUS_ALIVE,
                has_arrow=flags & FLAG_HAS_ARROW,
                neighbour_type=record['neighbour_type'],
                neighbour_hazards=record['neighbour_hazards'],
                n2n_type=record['n2n_type'],
                n2n_percepts=record['n2n_percepts'],
            ).validate()
        except ValueError as e:
            raise CorruptTableError(f"Record {i}: {e}") from e

        q_values = np.array(record['q'], dtype=np.float64)
        if not np.all(np.isfinite(q_values)):
            raise CorruptTableError(f"Record {i}: non-finite action-value")
        if state in table:
            raise CorruptTableError(f"Record {i}: duplicate state")

        table.set(state, q_values)

    return table

#===============================================================================
# Persistence
#===============================================================================

def _lock_for(path):
    return filelock.FileLock(path + '.lock', timeout=config.LOCK_TIMEOUT)


def read_q_table(path=None):
    """Load the persisted table, or return an empty one.

    A missing file is the normal first-run case. A truncated or malformed file
    is discarded as a whole. Any other I/O error is raised, so a caller never
    goes on to overwrite a good table it could not read.

    Writers swap the file in with os.replace, so the read takes no lock.
    """
    path = path or config.TABLE_PATH

    if not os.path.exists(path):
        print(f"No value table at {path} - starting fresh")
        return QTable()

    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        print(f"[ERROR] Could not read value table {path}: {e}")
        raise

    try:
        table = decode_records(data)
    except CorruptTableError as e:
        print(f"[WARNING] Discarding corrupt value table {path}: {e}")
        return QTable()

    print(f"Loaded {len(table)} states from {path}")
    return table


def write_q_table(table, path=None):
    """Overwrite the persisted table with the full in-memory table.

    Returns True on success. Failures are reported and leave the previously
    persisted file untouched.
    """
    path = path or config.TABLE_PATH
    tmp_path = path + '.tmp'

    try:
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        data = encode_records(table).tobytes()
        with _lock_for(path):
            try:
                with open(tmp_path, 'wb') as f:
                    f.write(data)
                os.replace(tmp_path, path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        return True
    except (OSError, filelock.Timeout) as e:
        print(f"[ERROR] Could not save value table {path}: {e}")
        return False
