"""Obstacle spawning and collision physics.

All coordinates are in screen units: ``x`` runs from 0 (left edge) to
1 (right edge) and ``y`` from 0 (floor) to 1 (ceiling).  Birds sit at
the fixed horizontal offset ``bird_offset``; obstacles scroll left by
``speed`` every tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

import numpy as np

from .config import ESConfig

if TYPE_CHECKING:
    from .agent import Agent


@dataclass
class Obstacle:
    """A pipe pair: left edge ``x`` and gap centre ``y``."""

    x: float
    y: float


# Position of the obstacle next_pipe() returns on an empty course.
FALLBACK_POSITION = (1.0, 0.5)


class Environment:
    """Scrolling obstacle course shared by a whole generation.

    The environment knows nothing about individual birds other than
    their vertical position, which :meth:`is_colliding` tests.

    Args:
        config: Physics constants.
        rng: Generator for obstacle gap positions.
    """

    def __init__(
        self,
        config: Optional[ESConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or ESConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.obstacles: List[Obstacle] = []
        self.frame = 0
        self.reset()

    def reset(self) -> None:
        """Clear the course and spawn the first obstacle."""
        self.obstacles = []
        self.frame = 0
        self.spawn()

    def spawn(self) -> Obstacle:
        obstacle = Obstacle(x=1.0, y=0.2 + 0.6 * float(self.rng.random()))
        self.obstacles.append(obstacle)
        return obstacle

    def step(self) -> None:
        """Advance one tick: scroll, drop expired obstacles, maybe spawn."""
        self.frame += 1

        for obstacle in self.obstacles:
            obstacle.x -= self.config.speed

        width = self.config.pipe_width
        self.obstacles = [o for o in self.obstacles if o.x + width > 0]

        if self.frame % self.config.spawn_period == 0:
            self.spawn()

    def next_pipe(self) -> Obstacle:
        """The obstacle the birds currently have to pass.

        This is the first obstacle whose right edge has not yet moved
        past the birds.  Falls back to the first obstacle, or to
        a fresh obstacle at ``FALLBACK_POSITION`` when the course is empty.
        """
        width = self.config.pipe_width
        for obstacle in self.obstacles:
            if obstacle.x + width >= self.config.bird_offset:
                return obstacle
        if self.obstacles:
            return self.obstacles[0]
        return Obstacle(*FALLBACK_POSITION)

    def is_colliding(self, agent: "Agent") -> bool:
        return self.collides_at(agent.y)

    def collides_at(self, y: float) -> bool:
        """True if a bird at height ``y`` is out of bounds or hits a pipe.

        Touching the floor or ceiling band (``y <= radius`` or
        ``y >= 1 - radius``) counts as a collision.
        """
        radius = self.config.bird_radius
        if y <= radius or y >= 1 - radius:
            return True

        bird_x = self.config.bird_offset
        half_gap = self.config.pipe_gap / 2
        for obstacle in self.obstacles:
            overlaps = (
                bird_x + radius > obstacle.x
                and bird_x - radius < obstacle.x + self.config.pipe_width
            )
            if overlaps and (y < obstacle.y - half_gap or y > obstacle.y + half_gap):
                return True
        return False

    @property
    def score_readout(self) -> float:
        """Coarse progress: frames elapsed divided by the spawn period."""
        return self.frame / self.config.spawn_period

    def snapshot(self) -> Tuple[Obstacle, ...]:
        """Copies of the current obstacles for observers."""
        return tuple(Obstacle(o.x, o.y) for o in self.obstacles)
