"""
Epsilon-greedy action selection with uniform tie-breaking.
"""

import random

import numpy as np

import config


def split_actions(q_values):
    """Partition action indices into those at the maximum value and the rest.

    Ties use exact equality: values start from identical zeros and receive
    identical updates, so equal estimates are bit-identical.
    """
    q_values = np.asarray(q_values, dtype=np.float64)
    best_value = np.max(q_values)
    best = [i for i, v in enumerate(q_values) if v == best_value]
    rest = [i for i, v in enumerate(q_values) if v != best_value]
    return best, rest


def select_action(q_values, optimal_chance=None, rng=random):
    """Pick an action index from an action-value vector.

    With probability optimal_chance (or whenever every action is tied) the
    choice is uniform among the best actions, otherwise uniform among the rest.
    optimal_chance defaults to config.OPTIMAL_CHANCE.
    """
    if optimal_chance is None:
        optimal_chance = config.OPTIMAL_CHANCE
    best, rest = split_actions(q_values)
    if rng.random() < optimal_chance or not rest:
        return rng.choice(best)
    return rng.choice(rest)
