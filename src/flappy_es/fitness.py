"""Rank-based fitness shaping, recombination and elite selection.

Mathematical background
-----------------------
Raw scores (frames survived plus a scaled proximity reward) have no
fixed range, so they are first replaced by their rank among the
generation and mapped linearly onto ``[-1, 1]``::

    phi(rank) = -1 + 2 * rank / (N - 1)

The best individual gets ``+1``, the worst ``-1``.  Equal scores share
the rank of their first occurrence in the ascending sort, which
compresses the range when many birds die on the same frame.

The next parent is then the weighted blend of *all* models::

    theta = alpha * sum_i(phi_i * theta_i) / sum_i(score_i)

The numerator is weighted by ``phi`` while the denominator is the sum
of the raw scores.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.stats import rankdata

from .exceptions import DegenerateGenerationError
from .model import Model


def rank_scores(scores: Sequence[float]) -> NDArray[np.int64]:
    """Zero-based rank of every score.

    A score's rank is the index of its first occurrence in the
    ascending sort, so equal scores share one rank.

    Example::

        rank_scores([5, 1, 5, 3])  # -> [2, 0, 2, 1]
    """
    scores = np.asarray(scores, dtype=np.float64)
    return rankdata(scores, method="min").astype(np.int64) - 1


def fitness_weights(scores: Sequence[float]) -> NDArray[np.float64]:
    """Map scores to rank-shaped weights in ``[-1, 1]``.

    Raises:
        ValueError: If fewer than two scores are given.
    """
    scores = np.asarray(scores, dtype=np.float64)
    n = scores.shape[0]
    if n < 2:
        raise ValueError(
            f"fitness shaping needs at least two scores, got {n}."
        )
    ranks = rank_scores(scores)
    return -1.0 + 2.0 * ranks / (n - 1)


def combine_models(
    models: Sequence[Model],
    weights: Sequence[float],
    scores: Sequence[float],
    alpha: float,
) -> Model:
    """Blend ``models`` into a new model.

    Every parameter of the result is
    ``alpha * sum_i(weights[i] * param_i) / sum(scores)``.  The result
    replaces the previous parent outright; nothing is added to it.

    Args:
        models: Population models, all with the same layer sizes.
        weights: Rank-shaped weight per model (see
            :func:`fitness_weights`).
        scores: Raw score per model; only their sum is used.
        alpha: Blend rate.

    Returns:
        A new :class:`Model` whose arrays share no memory with any
        input.

    Raises:
        ValueError: On empty input, length mismatches or differing
            topologies.
        DegenerateGenerationError: If the scores sum to zero.
    """
    if not models:
        raise ValueError("cannot combine an empty list of models.")
    if len(weights) != len(models) or len(scores) != len(models):
        raise ValueError(
            f"got {len(models)} models, {len(weights)} weights "
            f"and {len(scores)} scores."
        )
    layer_sizes = models[0].layer_sizes
    for model in models:
        if model.layer_sizes != layer_sizes:
            raise ValueError(
                f"cannot combine models with layer sizes "
                f"{list(model.layer_sizes)} and {list(layer_sizes)}."
            )

    total_score = float(np.sum(np.asarray(scores, dtype=np.float64)))
    if total_score == 0.0:
        raise DegenerateGenerationError(
            "scores sum to zero; blended parameters are undefined."
        )

    w = np.asarray(weights, dtype=np.float64)
    blended = Model(layer_sizes, models[0].activation)
    for layer in range(blended.num_layers):
        # Stack one layer across the population: (N, rows, cols).
        stacked_w = np.stack([m.weights[layer] for m in models])
        stacked_b = np.stack([m.biases[layer] for m in models])
        blended.weights[layer] = (
            alpha * np.tensordot(w, stacked_w, axes=1) / total_score
        )
        blended.biases[layer] = (
            alpha * np.tensordot(w, stacked_b, axes=1) / total_score
        )
    return blended


def select_elites(scores: Sequence[float], k: int) -> List[int]:
    """Indices of the ``k`` highest scores.

    Sorted by score descending; equal scores keep ascending index
    order.
    """
    scores = np.asarray(scores, dtype=np.float64)
    order = np.argsort(-scores, kind="stable")
    return [int(i) for i in order[:k]]
