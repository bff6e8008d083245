"""Run configuration for flappy-es.

Every tunable constant of a training run lives in :class:`ESConfig`.
A config can be built in code or loaded from a YAML file::

    evolution:
      population_size: 512
      num_elites: 32
      eps: 0.1
      alpha: 0.05
      seed: 7
    network:
      layer_sizes: [2, 8, 8, 1]
    environment:
      gravity: 0.01
      spawn_period: 50

Keys may also be given flat at the top level.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import ConfigurationError

# Sections accepted in a YAML config; their keys are merged flat.
SECTIONS = ("evolution", "network", "environment")

# The agent feeds [dy, vy] into the network and reads one output.
INPUT_WIDTH = 2
OUTPUT_WIDTH = 1


@dataclass
class ESConfig:
    """Configuration for one evolutionary training run.

    Attributes:
        population_size: Agents per generation.
        num_elites: Top models carried unchanged into the next
            generation.
        layer_sizes: Widths of every network layer, input first.
        eps: Mutation magnitude used by ``Model.clone_with_noise``.
        alpha: Blend rate applied by ``combine_models``.
        init_scale: Half-width of the uniform sampler used for the
            root ancestor's parameters.
        gravity: Downward velocity change per tick.
        flap_strength: Upward velocity change when the network flaps.
        speed: Horizontal obstacle displacement per tick, in screen
            widths.
        bird_radius: Collision radius of an agent.
        bird_offset: Fixed horizontal position of every agent.
        pipe_width: Obstacle width.
        pipe_gap: Vertical opening of an obstacle.
        spawn_period: Ticks between obstacle spawns.
        reward_scale: Weight of the proximity reward in the final score.
        gap_reference: Distance at which the proximity reward hits zero.
        max_ticks: Safety cap on the ticks of one generation.
        seed: Seed for every random stream; ``None`` for entropy.
    """

    population_size: int = 512
    num_elites: int = 32
    layer_sizes: List[int] = field(default_factory=lambda: [2, 8, 8, 1])
    eps: float = 0.1
    alpha: float = 0.05
    init_scale: float = 0.5

    gravity: float = 0.01
    flap_strength: float = 0.02
    speed: float = 0.0125
    bird_radius: float = 0.04
    bird_offset: float = 0.1
    pipe_width: float = 0.09
    pipe_gap: float = 0.3
    spawn_period: int = 50

    reward_scale: float = 10.0
    gap_reference: float = 0.5
    max_ticks: int = 20_000
    seed: Optional[int] = None

    def validate(self) -> "ESConfig":
        """Check the settings and return ``self``.

        Raises:
            ConfigurationError: If any setting is out of range.
        """
        if self.population_size < 2:
            raise ConfigurationError(
                f"population_size must be at least 2, "
                f"got {self.population_size}."
            )
        if self.num_elites < 0:
            raise ConfigurationError(
                f"num_elites must be non-negative, got {self.num_elites}."
            )
        if self.num_elites > self.population_size:
            raise ConfigurationError(
                f"num_elites ({self.num_elites}) exceeds "
                f"population_size ({self.population_size})."
            )
        if len(self.layer_sizes) < 2:
            raise ConfigurationError(
                "layer_sizes needs at least an input and an output layer."
            )
        if any(int(width) < 1 for width in self.layer_sizes):
            raise ConfigurationError(
                f"layer widths must be positive, got {self.layer_sizes}."
            )
        if self.layer_sizes[0] != INPUT_WIDTH:
            raise ConfigurationError(
                f"input layer must have width {INPUT_WIDTH}, "
                f"got {self.layer_sizes[0]}."
            )
        if self.layer_sizes[-1] != OUTPUT_WIDTH:
            raise ConfigurationError(
                f"output layer must have width {OUTPUT_WIDTH}, "
                f"got {self.layer_sizes[-1]}."
            )
        if self.spawn_period < 1:
            raise ConfigurationError(
                f"spawn_period must be positive, got {self.spawn_period}."
            )
        if self.max_ticks < 1:
            raise ConfigurationError(
                f"max_ticks must be positive, got {self.max_ticks}."
            )
        if self.eps < 0 or self.alpha < 0:
            raise ConfigurationError("eps and alpha must be non-negative.")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def config_from_dict(config_dict: Optional[Dict[str, Any]]) -> ESConfig:
    """Create an :class:`ESConfig` from a (possibly sectioned) dictionary."""
    config_dict = config_dict or {}
    known = {f.name for f in fields(ESConfig)}

    flat: Dict[str, Any] = {}
    for key, value in config_dict.items():
        if key in SECTIONS:
            if not isinstance(value, dict):
                raise ConfigurationError(
                    f"section '{key}' must be a mapping."
                )
            flat.update(value)
        else:
            flat[key] = value

    unknown = sorted(set(flat) - known)
    if unknown:
        raise ConfigurationError(
            f"unknown configuration keys: {', '.join(unknown)}"
        )
    if "layer_sizes" in flat:
        flat["layer_sizes"] = [int(width) for width in flat["layer_sizes"]]

    return ESConfig(**flat).validate()


def load_config(path: Union[str, Path]) -> ESConfig:
    """Load and validate a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"config file not found: {path}")

    with open(path, "r") as f:
        config_dict = yaml.safe_load(f)

    if config_dict is not None and not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"config file {path} must contain a mapping."
        )
    return config_from_dict(config_dict)
