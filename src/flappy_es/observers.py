"""Observation hooks called by the generation loop.

The training loop hands each observer a read-only :class:`TickSnapshot`
after every tick and the :class:`~flappy_es.population.GenerationResult`
after every generation.  Observers cannot feed anything back into the
simulation: rendering, statistics display and wall-clock pacing all
live here.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Tuple

from .environment import Obstacle

if TYPE_CHECKING:
    from .population import GenerationResult

logger = logging.getLogger(__name__)

TARGET_FPS = 60
MIN_DELAY_MS = 0.0
MAX_DELAY_MS = 1000.0


@dataclass(frozen=True)
class TickSnapshot:
    """State of the simulation at the end of one tick.

    Attributes:
        generation: Index of the running generation.
        frame: Environment frame counter.
        obstacles: Copies of the current obstacles.
        positions: Vertical positions of the birds still alive.
        alive: Number of birds still alive.
        population_size: Birds in the generation.
        best_fitness: Highest score seen over all generations.
        score_readout: ``frame / spawn_period``.
    """

    generation: int
    frame: int
    obstacles: Tuple[Obstacle, ...]
    positions: Tuple[float, ...]
    alive: int
    population_size: int
    best_fitness: float
    score_readout: float


class GenerationObserver:
    """Base observer; override the hooks you need."""

    def on_tick(self, snapshot: TickSnapshot) -> None:
        pass

    def on_generation_end(self, result: "GenerationResult") -> None:
        pass


class LoggingObserver(GenerationObserver):
    """Log a summary line when a generation finishes."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def on_generation_end(self, result: "GenerationResult") -> None:
        logger.log(
            self.level,
            "Generation %d finished. Best score: %.2f, pipes: %.2f, "
            "ticks: %d (%s)",
            result.index,
            result.best_score,
            result.pipes,
            result.ticks,
            result.outcome.value,
        )


def speed_delay(
    percent: float,
    target_fps: int = TARGET_FPS,
    min_delay: float = MIN_DELAY_MS,
    max_delay: float = MAX_DELAY_MS,
) -> float:
    """Delay between ticks, in milliseconds, for a speed setting.

    ``percent`` runs from 0 (slowest, ``max_delay``) through 100
    (``1000 / target_fps``, real time) to 200 (``min_delay``).
    """
    frame_ms = 1000.0 / target_fps
    if percent <= 0:
        return max_delay
    if percent == 100:
        return frame_ms
    if percent > 100:
        return max(frame_ms * (200 - percent) / 100, min_delay)
    return frame_ms + (100 - percent) * (max_delay - frame_ms) / 100


class Pacer(GenerationObserver):
    """Sleep between ticks so training can be watched.

    Only wall-clock timing changes; the ticks themselves are untouched.
    """

    def __init__(
        self, percent: float = 100.0, sleep: Callable[[float], None] = time.sleep
    ):
        self.percent = percent
        self._sleep = sleep

    @property
    def delay(self) -> float:
        return speed_delay(self.percent) / 1000.0

    def on_tick(self, snapshot: TickSnapshot) -> None:
        delay = self.delay
        if delay > 0:
            self._sleep(delay)


class HistoryRecorder(GenerationObserver):
    """Keep one summary row per finished generation."""

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []

    def on_generation_end(self, result: "GenerationResult") -> None:
        self.rows.append(result.summary())
