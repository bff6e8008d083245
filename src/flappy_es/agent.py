"""A single bird driven by one :class:`~flappy_es.model.Model`."""

from __future__ import annotations

from typing import Optional

from .config import ESConfig
from .environment import Environment
from .model import Model


class Agent:
    """One bird's physical state and fitness for one generation.

    Attributes:
        model: The network deciding when to flap.
        y: Vertical position, 0 at the floor and 1 at the ceiling.
        vy: Vertical velocity.
        alive: False once the bird has collided.
        reward: Running sum of the proximity reward.
        score: Fitness, set once when the bird dies.
    """

    def __init__(self, model: Model, config: Optional[ESConfig] = None):
        self.model = model
        self.config = config or ESConfig()
        self.alive = True
        self.y = 0.5
        self.vy = 0.0
        self.reward = 0.0
        self.score = 0.0

    def step(self, environment: Environment) -> None:
        """Advance the bird by one tick against ``environment``."""
        if not self.alive:
            return
        cfg = self.config

        self.vy -= cfg.gravity

        pipe = environment.next_pipe()
        (out,) = self.model.forward([self.y - pipe.y, self.vy])
        if out > 0:
            self.vy += cfg.flap_strength

        self.y += self.vy

        # Reward staying close to the gap centre, even before a crash.
        self.reward += 1 - abs(self.y - pipe.y) / cfg.gap_reference

        if environment.is_colliding(self):
            self.die(environment.frame)

    def die(self, frame: int) -> None:
        """Freeze the bird and fix its score at ``frame``."""
        self.alive = False
        self.score = frame + self.reward * self.config.reward_scale

    def __repr__(self) -> str:
        state = "alive" if self.alive else f"dead score={self.score:.2f}"
        return f"Agent(y={self.y:.3f}, vy={self.vy:.3f}, {state})"
