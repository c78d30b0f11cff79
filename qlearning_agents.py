"""
Q-Learning Agent for the Wumpus World.

This module provides:
- td_update: one-step temporal-difference update of a single action-value
- QLearningAgent: reads the world, picks an action, executes it and learns
  from the resulting transition, one action cycle per do_action() call
"""

import random
from datetime import datetime

import numpy as np

import config
from config import TABLE_MODES
from environment import (
    A_GRAB, A_CLIMB, ACTION_NAMES, WorldSnapshot, action_command
)
from policy import select_action
from qtable import read_q_table, write_q_table
from rewards import compute_reward
from states import encode_state

#===============================================================================
# Learning Rule
#===============================================================================

def td_update(q_values, action, reward, next_q_values, alpha=None, gamma=None):
    """Q(s,a) <- Q(s,a) + alpha * (r + gamma * max Q(s') - Q(s,a)).

    Mutates q_values[action] only and returns the new value. alpha and gamma
    default to config.ALPHA and config.GAMMA.
    """
    alpha = config.ALPHA if alpha is None else alpha
    gamma = config.GAMMA if gamma is None else gamma
    old_value = q_values[action]
    next_max = np.max(next_q_values)
    new_value = old_value + alpha * (reward + gamma * next_max - old_value)
    q_values[action] = new_value
    return float(new_value)

#===============================================================================
# Q-Learning Agent
#===============================================================================

class QLearningAgent:
    """Tabular Q-learning agent acting on a single world.

    Two table lifecycles are supported:
      'borrow'           -- q_table is supplied and owned by the caller, who
                            decides when to save it
      'load-and-persist' -- the table is loaded from table_path here and
                            written back by close()
    """

    def __init__(self, world, q_table=None, table_path=None, mode=None,
                 alpha=None, gamma=None, optimal_chance=None,
                 rewards=None, rng=None, verbose=False):
        mode = mode or config.TABLE_MODE
        if mode not in TABLE_MODES:
            raise ValueError(f"Unknown table mode {mode!r}, expected one of {TABLE_MODES}")

        self.world = world
        self.mode = mode
        self.alpha = config.ALPHA if alpha is None else alpha
        self.gamma = config.GAMMA if gamma is None else gamma
        self.optimal_chance = config.OPTIMAL_CHANCE if optimal_chance is None else optimal_chance
        self.rewards = rewards
        self.rng = rng or random
        self.verbose = verbose
        self.total_reward = 0.0
        self.closed = False

        if mode == 'borrow':
            if q_table is None:
                raise ValueError("mode='borrow' needs a q_table owned by the caller")
            self.table_path = None
            self.Q = q_table
        else:
            self.table_path = table_path or config.TABLE_PATH
            self.Q = q_table if q_table is not None else read_q_table(self.table_path)

    def debug_log(self, msg):
        if self.verbose:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            print(f"[DEBUG {timestamp}] {msg}", flush=True)

    def do_action(self):
        """Run one action cycle and return what happened as a dict."""
        w = self.world
        x, y = w.get_player_x(), w.get_player_y()

        # Grab the gold as soon as we stand on it; nothing to learn from that.
        if w.has_glitter(x, y):
            w.do_action(A_GRAB)
            self.debug_log(f"({x},{y}) glitter -> grab")
            return {'command': A_GRAB, 'action': None, 'reward': None, 'rule': None,
                    'state': None, 'next_state': None, 'q_values': None}

        # Climb out before choosing the real action.
        if w.has_pit(x, y):
            w.do_action(A_CLIMB)
            self.debug_log(f"({x},{y}) pit -> climb")

        before = WorldSnapshot.capture(w)
        s = encode_state(w, before.x, before.y)
        q_values = self.Q.get_or_create(s)

        a = select_action(q_values, self.optimal_chance, self.rng)
        command = action_command(a)
        w.do_action(command)

        # Pick up gold or leave a pit reached by this action.
        x2, y2 = w.get_player_x(), w.get_player_y()
        if not w.game_over():
            if w.has_glitter(x2, y2):
                w.do_action(A_GRAB)
            elif w.has_pit(x2, y2):
                w.do_action(A_CLIMB)

        x2, y2 = w.get_player_x(), w.get_player_y()
        s2 = encode_state(w, x2, y2)
        r, rule = compute_reward(before, a, w, self.rewards)
        next_q_values = self.Q.get_or_create(s2)

        chosen_from = q_values.copy()
        new_value = td_update(q_values, a, r, next_q_values, self.alpha, self.gamma)
        self.total_reward += r

        self.debug_log(
            f"({before.x},{before.y}) -> ({x2},{y2}) action={ACTION_NAMES[a]} "
            f"Q={np.round(chosen_from, 3).tolist()} reward={r} ({rule}) new Q={new_value:.4f}"
        )

        return {
            'command': command,
            'action': a,
            'reward': r,
            'rule': rule,
            'state': s,
            'next_state': s2,
            'q_values': chosen_from,
        }

    def save(self):
        """Write the table to table_path (load-and-persist mode only)."""
        if self.mode != 'load-and-persist':
            raise ValueError("Only a load-and-persist agent saves its own table")
        return write_q_table(self.Q, self.table_path)

    def close(self):
        """Release the agent; a load-and-persist agent saves its table once."""
        if self.closed:
            return True
        self.closed = True
        if self.mode == 'load-and-persist':
            return self.save()
        return True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
