"""
Visualization module for Wumpus Q-learning runs.

Learning-curve figure and per-episode data table for a finished run.
"""

import os
import matplotlib.pyplot as plt
import pandas as pd

from config import COLOR_PALETTE
from metrics import moving_average

def plot_learning_curve(scores, path, window=100):
    """Plot per-episode scores with their moving average and save as PNG."""
    episodes = range(1, len(scores) + 1)

    fig, ax = plt.subplots()
    ax.plot(episodes, scores, color=COLOR_PALETTE['Score'],
            alpha=0.3, linewidth=0.8, label='Score')
    ax.plot(episodes, moving_average(scores, window),
            color=COLOR_PALETTE['Moving_Average'], linewidth=2.0,
            label=f'Moving average ({window})')

    ax.set_xlabel('Episode')
    ax.set_ylabel('Score')
    ax.set_title('Learning Curve', fontweight='bold')
    ax.legend(loc='best', frameon=True, framealpha=0.7)
    ax.grid(True, alpha=0.3)

    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    fig.savefig(path)
    plt.close(fig)
    print(f"[OK] Saved {os.path.basename(path)}")
    return path

def save_episode_table(result, path):
    """Save one row per episode (score, actions, gold, reward) as CSV."""
    df = pd.DataFrame({
        'Episode': range(1, len(result['scores']) + 1),
        'Score': result['scores'],
        'Actions': result['actions'],
        'Gold': result['gold'],
        'Total_Reward': result['total_rewards'],
    })

    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    df.to_csv(path, index=False)
    print(f"[OK] Saved {os.path.basename(path)}")
    return df
