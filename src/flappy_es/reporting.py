"""Plots of a training run's progress."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np

from .population import GenerationResult

HistoryRow = Dict[str, Any]


def _as_rows(
    history: Sequence[Union[GenerationResult, HistoryRow]],
) -> List[HistoryRow]:
    return [
        item.summary() if isinstance(item, GenerationResult) else item
        for item in history
    ]


def plot_fitness_history(
    history: Sequence[Union[GenerationResult, HistoryRow]],
) -> plt.Figure:
    """Best and mean score per generation.

    Args:
        history: Generation results, or the summary rows collected by
            :class:`~flappy_es.observers.HistoryRecorder`.

    Returns:
        The matplotlib figure; the caller shows or saves it.
    """
    rows = _as_rows(history)
    generations = np.array([row["generation"] for row in rows])
    best = np.array([row["best_score"] for row in rows])
    mean = np.array([row["mean_score"] for row in rows])

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(generations, best, marker="o", color="#2b8a3e", label="Best score")
    ax.plot(generations, mean, linestyle="--", color="#1c7ed6", label="Mean score")
    if len(rows):
        ax.fill_between(generations, mean, best, alpha=0.15, color="#2b8a3e")

    ax.set_xlabel("Generation")
    ax.set_ylabel("Score")
    ax.set_title("Fitness per generation")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper left")
    fig.tight_layout()
    return fig
