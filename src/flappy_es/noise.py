"""Mutation noise for network parameters.

Two perturbation strategies are offered:

* **Directional noise**: one random direction per parameter group
  (a layer's full weight matrix or full bias vector), normalised to
  unit length and scaled to exactly ``eps``.
* **Isotropic Gaussian noise**: an independent ``N(0, 1) * eps``
  draw for every scalar.

All draws come from a single ``numpy.random.Generator`` so a seeded
run reproduces the same mutations in the same order.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

# Floor for the norm of a directional draw.
MIN_NORM = 1e-8

Shape = Union[int, Tuple[int, ...]]


class RandomNoise:
    """Seedable source of mutation noise.

    Args:
        rng: Generator to draw from.  A fresh unseeded generator is
            created when omitted.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    @classmethod
    def from_seed(cls, seed: Optional[int]) -> "RandomNoise":
        return cls(np.random.default_rng(seed))

    def use_directional(self) -> bool:
        """Fair coin deciding which strategy a clone uses."""
        return bool(self.rng.random() < 0.5)

    def directional(self, shape: Shape, eps: float) -> NDArray[np.float64]:
        """Random direction of Euclidean length ``eps``.

        The whole array is treated as one flat vector: entries are drawn
        uniformly from ``[-1, 1]``, the vector is divided by its L2 norm
        and scaled by ``eps``.  A zero draw is divided by ``MIN_NORM``
        instead of failing.
        """
        size = int(np.prod(shape))
        noise = self.rng.random(size) * 2 - 1
        norm = max(float(np.linalg.norm(noise)), MIN_NORM)
        return (noise / norm * eps).reshape(shape)

    def gaussian(self, shape: Shape, eps: float) -> NDArray[np.float64]:
        """Independent ``N(0, 1) * eps`` for every entry."""
        return self.rng.standard_normal(shape) * eps

    def uniform_sampler(self, scale: float = 1.0) -> Callable[[], float]:
        """Zero-argument sampler returning values in ``[-scale, scale)``."""

        def sample() -> float:
            return (float(self.rng.random()) * 2 - 1) * scale

        return sample
