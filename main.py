"""
Main execution module for Wumpus Q-learning runs.

Usage:
    python main.py --world=package.module:make_world [--episodes=N]
                   [--table=PATH] [--checkpoint=run|episode] [--seed=N]
                   [--alpha=A] [--gamma=G] [--optimal-chance=P]
                   [--max-actions=N] [--plot] [--verbose]

The world factory is called with the episode index and must return a fresh
Wumpus World for that episode.
"""

import os
import sys
import random
import numpy as np

import config
from config import get_run_directory, create_subdirectories
from experiments import load_world_factory, run_training
from visualization import plot_learning_curve, save_episode_table

def get_option(argv, name, default=None):
    """Value of a '--name=value' or '--name value' command-line option."""
    flag = f'--{name}'
    for i, arg in enumerate(argv):
        if arg.startswith(flag + '='):
            return arg[len(flag) + 1:]
        if arg == flag and i + 1 < len(argv):
            return argv[i + 1]
    return default

def main(world, num_episodes=None, table_path=None, checkpoint_mode=None,
         alpha=None, gamma=None, optimal_chance=None, max_actions=None,
         plot=False, verbose=False):
    """Main execution function.

    Args:
        world: 'module:callable' reference to the world factory
        num_episodes: Number of episodes to train for (default: config.BASE_EPISODES)
        table_path: Persisted value table (default: config.TABLE_PATH)
        checkpoint_mode: 'run' or 'episode' (default: config.CHECKPOINT_MODE)
        alpha, gamma, optimal_chance: Learning rate, discount and exploitation
            probability (default: config.ALPHA, config.GAMMA, config.OPTIMAL_CHANCE)
        max_actions: Per-episode action limit (default: config.MAX_ACTIONS_PER_EPISODE)
        plot: If True, save a learning curve and per-episode table
        verbose: If True, print per-step diagnostics
    """
    num_episodes = config.BASE_EPISODES if num_episodes is None else num_episodes
    if table_path:
        config.TABLE_PATH = table_path

    print("=" * 80)
    print("WUMPUS WORLD Q-LEARNING")
    print("=" * 80)
    print(f"EPISODES = {num_episodes}")
    print(f"WORLD = {world}")
    print("=" * 80)

    world_factory = load_world_factory(world)
    result = run_training(
        world_factory, num_episodes,
        table_path=config.TABLE_PATH,
        checkpoint_mode=checkpoint_mode,
        alpha=alpha,
        gamma=gamma,
        optimal_chance=optimal_chance,
        max_actions=max_actions,
        verbose=verbose,
    )

    metrics = result['metrics']
    print("\n" + "=" * 80)
    print("RESULTS")
    print("=" * 80)
    print(f"Average score: {metrics['Average_Score']:.2f} (std {metrics['Std_Score']:.2f})")
    print(f"Score range:   [{metrics['Min_Score']:.0f}, {metrics['Max_Score']:.0f}]")
    print(f"Gold rate:     {metrics['Gold_Rate']:.1%}")
    print(f"Table size:    {result['table_size']} states")

    if plot:
        run_dir = get_run_directory(base_episodes=num_episodes,
                                    checkpoint_mode=result['checkpoint_mode'])
        subdirs = create_subdirectories(run_dir)
        plot_learning_curve(result['scores'], os.path.join(subdirs['figures'], 'learning_curve.png'))
        save_episode_table(result, os.path.join(subdirs['tables'], 'episodes.csv'))

    return result


if __name__ == "__main__":
    argv = sys.argv[1:]

    world = get_option(argv, 'world')
    if world is None:
        print(__doc__)
        sys.exit(2)

    seed = get_option(argv, 'seed')
    if seed is not None:
        random.seed(int(seed))
        np.random.seed(int(seed))

    def number(name, cast):
        value = get_option(argv, name)
        return None if value is None else cast(value)

    results = main(
        world,
        num_episodes=number('episodes', int),
        table_path=get_option(argv, 'table'),
        checkpoint_mode=get_option(argv, 'checkpoint'),
        alpha=number('alpha', float),
        gamma=number('gamma', float),
        optimal_chance=number('optimal-chance', float),
        max_actions=number('max-actions', int),
        plot='--plot' in argv,
        verbose='--verbose' in argv or '-v' in argv,
    )
