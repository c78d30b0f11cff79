"""
Configuration and constants for Wumpus Q-learning runs.
"""

import os
import warnings
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend for batch runs
import matplotlib.pyplot as plt
from matplotlib import rcParams

# Suppress font warnings
warnings.filterwarnings("ignore", category=UserWarning, module="matplotlib.font_manager")

#===============================================================================
# Matplotlib Settings
#===============================================================================

plt.style.use('seaborn-v0_8-whitegrid')
rcParams['font.family'] = 'serif'
rcParams['font.size'] = 10
rcParams['axes.titlesize'] = 11
rcParams['axes.labelsize'] = 10
rcParams['legend.fontsize'] = 9
rcParams['figure.figsize'] = (7, 3.5)
rcParams['figure.dpi'] = 150
rcParams['savefig.bbox'] = 'tight'
rcParams['savefig.pad_inches'] = 0.05

COLOR_PALETTE = {
    'Score': '#377eb8',         # blue
    'Moving_Average': '#e41a1c', # red
}

#===============================================================================
# Directory Setup
#===============================================================================

config_dir = os.path.dirname(os.path.abspath(__file__))
base_results_dir = os.path.join(config_dir, 'results')

def get_run_directory(base_episodes=1000, checkpoint_mode='run', timestamp=None):
    """
    Create run directory with run metadata in folder name.

    Structure:
        results/
        ├── run_base10000_run_20261019_143022/
        └── run_base500_episode_20261019_150000/

    Args:
        base_episodes: Number of episodes in the run
        checkpoint_mode: 'run' or 'episode'
        timestamp: Custom timestamp string (optional, auto-generated if None)

    Returns:
        Path to run directory
    """
    from datetime import datetime

    if timestamp is None:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    dir_name = f"run_base{base_episodes}_{checkpoint_mode}_{timestamp}"
    run_dir = os.path.join(base_results_dir, dir_name)
    os.makedirs(run_dir, exist_ok=True)

    return run_dir


def create_subdirectories(base_dir):
    """Create standard subdirectories for run outputs and return their paths."""
    subdirs = {
        'figures': os.path.join(base_dir, 'figures'),
        'tables': os.path.join(base_dir, 'data_tables'),
    }

    for dir_path in subdirs.values():
        os.makedirs(dir_path, exist_ok=True)

    return subdirs

#===============================================================================
# Value Table Persistence
#===============================================================================

# Binary value table shared by every run; absent on the first run
TABLE_PATH = os.path.join(base_results_dir, 'Q.dat')

# 'borrow': the caller owns the table and saves it
# 'load-and-persist': the agent loads TABLE_PATH and saves it on close()
TABLE_MODE = 'borrow'
TABLE_MODES = ('borrow', 'load-and-persist')

# 'run': save once after the last episode; 'episode': save after every episode
CHECKPOINT_MODE = 'run'
CHECKPOINT_MODES = ('run', 'episode')

LOCK_TIMEOUT = 60  # seconds

#===============================================================================
# Global Hyperparameters
#===============================================================================

# Episode configuration
BASE_EPISODES = 10000
MAX_ACTIONS_PER_EPISODE = 1000  # Safety limit to prevent infinite loops

# Q-Learning hyperparameters
ALPHA = 0.1            # Learning rate
GAMMA = 0.5            # Discount factor
OPTIMAL_CHANCE = 0.99  # Probability of picking among the best actions

# Reward structure (signed; sign is the per-rule sign, abs value the magnitude)
REWARDS = {
    'turn': -1.0,
    'wall_bump': -50.0,
    'wasted_shot': -50.0,
    'eaten': -1000.0,
    'gold': 1000.0,
    'pit': -500.0,
    'wumpus_killed': 100.0,
    'arrow_missed': -100.0,
    'explored': 10.0,
    'none': 0.0,
}
