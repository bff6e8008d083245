"""Shared fixtures for the flappy-es test suite."""

import os

# Headless backends for the plotting and viewer tests.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from flappy_es.config import ESConfig
from flappy_es.noise import RandomNoise


class FixedStrategyNoise(RandomNoise):
    """RandomNoise that always picks the same mutation strategy."""

    def __init__(self, directional: bool, seed: int = 0):
        super().__init__(np.random.default_rng(seed))
        self.directional_only = directional

    def use_directional(self) -> bool:
        return self.directional_only


@pytest.fixture
def small_config():
    """A tiny population that finishes a generation quickly."""
    return ESConfig(
        population_size=8,
        num_elites=2,
        layer_sizes=[2, 4, 1],
        max_ticks=3000,
        seed=1234,
    )


@pytest.fixture
def fixed_noise():
    """Factory for noise sources locked to one strategy."""

    def make(directional: bool, seed: int = 0) -> FixedStrategyNoise:
        return FixedStrategyNoise(directional, seed)

    return make
