"""
Experiments module for Wumpus Q-learning runs.

This module contains:
- Single-episode simulation of an agent in a world
- Training runs over many episodes sharing one value table
- Value table checkpointing (per episode or at the end of the run)
"""

import importlib
import random
import time

from tqdm import tqdm

import config
from config import CHECKPOINT_MODES
from metrics import summarize_scores
from qlearning_agents import QLearningAgent
from qtable import read_q_table, write_q_table

#===============================================================================
# World Factories
#===============================================================================

def load_world_factory(reference):
    """Resolve a 'package.module:callable' reference to a world factory.

    The factory is called with the episode index and returns a fresh world.
    """
    module_name, sep, attr = reference.partition(':')
    if not sep or not module_name or not attr:
        raise ValueError(f"World factory must look like 'module:callable', got {reference!r}")

    module = importlib.import_module(module_name)
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ValueError(f"{reference!r} is not a callable world factory")
    return factory

#===============================================================================
# Simulation
#===============================================================================

def run_simulation(world, agent, max_actions=None):
    """Run the agent on world until game over or the action limit."""
    if max_actions is None:
        max_actions = config.MAX_ACTIONS_PER_EPISODE
    actions = 0
    while not world.game_over() and actions < max_actions:
        agent.do_action()
        actions += 1

    return {
        'score': world.get_score(),
        'actions': actions,
        'gold': bool(world.has_gold()),
        'total_reward': agent.total_reward,
        'finished': bool(world.game_over()),
    }

#===============================================================================
# Training Runs
#===============================================================================

def run_training(world_factory, num_episodes=None, q_table=None, table_path=None,
                 checkpoint_mode=None, alpha=None, gamma=None,
                 optimal_chance=None, rewards=None,
                 max_actions=None, rng=None, verbose=False,
                 show_progress=True):
    """Train over num_episodes worlds that all share one value table.

    The table is loaded once from table_path unless q_table is supplied, and
    saved after every episode (checkpoint_mode='episode') or once at the end
    (checkpoint_mode='run'). Each episode gets its own agent borrowing it.
    Parameters left as None fall back to their config values.
    """
    num_episodes = config.BASE_EPISODES if num_episodes is None else num_episodes
    checkpoint_mode = checkpoint_mode or config.CHECKPOINT_MODE
    if checkpoint_mode not in CHECKPOINT_MODES:
        raise ValueError(f"Unknown checkpoint mode {checkpoint_mode!r}, expected one of {CHECKPOINT_MODES}")

    alpha = config.ALPHA if alpha is None else alpha
    gamma = config.GAMMA if gamma is None else gamma
    optimal_chance = config.OPTIMAL_CHANCE if optimal_chance is None else optimal_chance
    max_actions = config.MAX_ACTIONS_PER_EPISODE if max_actions is None else max_actions

    table_path = table_path or config.TABLE_PATH
    if q_table is None:
        q_table = read_q_table(table_path)
    rng = rng or random

    print(f"Running Q-learning: {num_episodes} episodes, checkpoint={checkpoint_mode}, "
          f"alpha={alpha}, gamma={gamma}, optimal_chance={optimal_chance}")
    print(f"Value table: {table_path} ({len(q_table)} states)")

    scores = []
    actions_per_episode = []
    gold_per_episode = []
    rewards_per_episode = []
    unfinished = 0
    failed_saves = 0
    start_time = time.time()

    episodes = range(num_episodes)
    if show_progress:
        episodes = tqdm(episodes, desc="Episodes", ncols=100)

    for episode in episodes:
        world = world_factory(episode)
        agent = QLearningAgent(
            world, q_table=q_table, mode='borrow',
            alpha=alpha, gamma=gamma, optimal_chance=optimal_chance,
            rewards=rewards, rng=rng, verbose=verbose,
        )
        outcome = run_simulation(world, agent, max_actions=max_actions)

        scores.append(outcome['score'])
        actions_per_episode.append(outcome['actions'])
        gold_per_episode.append(outcome['gold'])
        rewards_per_episode.append(outcome['total_reward'])
        if not outcome['finished']:
            unfinished += 1

        if verbose:
            print(f"Simulation ended after {outcome['actions']} actions. Score {outcome['score']}")

        if checkpoint_mode == 'episode' and not write_q_table(q_table, table_path):
            failed_saves += 1

    saved = True
    if checkpoint_mode == 'run':
        saved = write_q_table(q_table, table_path)
    elif failed_saves:
        saved = False
        print(f"[WARNING] {failed_saves}/{num_episodes} episode checkpoints failed to save")

    metrics = summarize_scores(scores, gold_per_episode)
    print(f"Average score: {metrics['Average_Score']:.2f}")
    if unfinished:
        print(f"[WARNING] {unfinished} episodes hit the {max_actions}-action limit")

    if saved:
        print(f"[OK] Completed Q-learning: {num_episodes} episodes, {len(q_table)} states")
    else:
        print(f"⚠ Completed but failed to save: {num_episodes} episodes, {len(q_table)} states")

    return {
        'num_episodes': num_episodes,
        'checkpoint_mode': checkpoint_mode,
        'table_path': table_path,
        'q_table': q_table,
        'table_size': len(q_table),
        'scores': scores,
        'actions': actions_per_episode,
        'gold': gold_per_episode,
        'total_rewards': rewards_per_episode,
        'unfinished_episodes': unfinished,
        'metrics': metrics,
        'saved': saved,
        'elapsed': time.time() - start_time,
    }
