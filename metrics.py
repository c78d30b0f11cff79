"""
Metrics calculation module for Wumpus Q-learning runs.

This module contains the score summaries printed and saved after a run:
- Score statistics (mean, spread, extremes)
- Gold rate over episodes
- Moving averages for learning curves
"""

import numpy as np

#===============================================================================
# Score Metrics
#===============================================================================

def summarize_scores(scores, gold_flags=None):
    """Summary statistics of per-episode scores.

    Args:
        scores: Final world score of each episode
        gold_flags: Optional per-episode booleans, True when the gold was taken

    Returns:
        Dict with Episodes, Average_Score, Std_Score, Min_Score, Max_Score and
        Gold_Rate (0.0 when no gold flags are given)
    """
    scores = np.asarray(scores, dtype=np.float64)

    if scores.size == 0:
        return {
            'Episodes': 0,
            'Average_Score': 0.0,
            'Std_Score': 0.0,
            'Min_Score': 0.0,
            'Max_Score': 0.0,
            'Gold_Rate': 0.0,
        }

    gold_rate = 0.0
    if gold_flags is not None and len(gold_flags) > 0:
        gold_rate = float(np.mean(np.asarray(gold_flags, dtype=bool)))

    return {
        'Episodes': int(scores.size),
        'Average_Score': float(np.mean(scores)),
        'Std_Score': float(np.std(scores)),
        'Min_Score': float(np.min(scores)),
        'Max_Score': float(np.max(scores)),
        'Gold_Rate': gold_rate,
    }

def moving_average(values, window=100):
    """Trailing moving average; the first window-1 points average what exists."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return values
    window = max(1, min(int(window), values.size))

    cumsum = np.cumsum(np.insert(values, 0, 0.0))
    end = np.arange(1, values.size + 1)
    start = np.maximum(0, end - window)
    return (cumsum[end] - cumsum[start]) / (end - start)
