"""
flappy-es - evolutionary strategy training of flappy bird controllers.

A population of small feedforward networks is evolved with rank-shaped
fitness weights, noise mutation, weighted blending and elitism.
"""

from .agent import Agent
from .config import ESConfig, config_from_dict, load_config
from .environment import Environment, Obstacle
from .exceptions import (
    ConfigurationError,
    DegenerateGenerationError,
    FlappyESError,
    ShapeMismatch,
)
from .fitness import combine_models, fitness_weights, rank_scores, select_elites
from .model import Model, relu
from .noise import RandomNoise
from .observers import (
    GenerationObserver,
    HistoryRecorder,
    LoggingObserver,
    Pacer,
    TickSnapshot,
    speed_delay,
)
from .population import EvaluationOutcome, GenerationResult, Population

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "ESConfig",
    "config_from_dict",
    "load_config",
    "Environment",
    "Obstacle",
    "ConfigurationError",
    "DegenerateGenerationError",
    "FlappyESError",
    "ShapeMismatch",
    "combine_models",
    "fitness_weights",
    "rank_scores",
    "select_elites",
    "Model",
    "relu",
    "RandomNoise",
    "GenerationObserver",
    "HistoryRecorder",
    "LoggingObserver",
    "Pacer",
    "TickSnapshot",
    "speed_delay",
    "EvaluationOutcome",
    "GenerationResult",
    "Population",
]
