"""Generation lifecycle of the evolutionary strategy.

Every generation runs through the same states::

    Spawning -> Evaluating -> Scoring -> Selecting -> Blending -> (next)

* **Spawning**: the environment is reset and the roster is built from
  the previous generation's elites (reused as-is) plus noisy clones of
  the current parent.
* **Evaluating**: the environment and every live bird advance one
  tick at a time until all birds are dead or ``max_ticks`` is reached.
* **Scoring / Selecting**: the top ``num_elites`` models become the
  next generation's elites.
* **Blending**: all models are blended with rank-shaped weights into
  the next parent.  Elites are not affected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .agent import Agent
from .config import ESConfig
from .environment import Environment
from .exceptions import ConfigurationError, DegenerateGenerationError
from .fitness import combine_models, fitness_weights, select_elites
from .model import Model
from .noise import RandomNoise
from .observers import GenerationObserver, TickSnapshot

logger = logging.getLogger(__name__)


class EvaluationOutcome(Enum):
    """How the evaluation loop of a generation ended."""

    TERMINATED = "terminated"  # every bird died
    CAPPED = "capped"  # max_ticks reached with birds still alive


@dataclass
class GenerationResult:
    """Record of one finished generation.

    Attributes:
        index: Generation number, starting at 0.
        scores: Final score of every bird, in roster order.
        models: Model of every bird, in roster order.
        elite_indices: Roster indices of the selected elites.
        parent: Model the noisy clones of this generation came from.
        blended: Parent for the next generation.
        ticks: Ticks the evaluation loop ran.
        outcome: Whether the loop ended naturally or hit the cap.
        pipes: ``frame / spawn_period`` when the last bird died.
        blend_skipped: True if blending was skipped because the
            scores summed to zero (``blended is parent`` then).
    """

    index: int
    scores: NDArray[np.float64]
    models: List[Model]
    elite_indices: List[int]
    parent: Model
    blended: Model
    ticks: int
    outcome: EvaluationOutcome
    pipes: float
    blend_skipped: bool = False

    @property
    def elites(self) -> List[Model]:
        return [self.models[i] for i in self.elite_indices]

    @property
    def best_score(self) -> float:
        return float(np.max(self.scores))

    @property
    def mean_score(self) -> float:
        return float(np.mean(self.scores))

    def summary(self) -> Dict[str, Any]:
        return {
            "generation": self.index,
            "best_score": self.best_score,
            "mean_score": self.mean_score,
            "min_score": float(np.min(self.scores)),
            "pipes": self.pipes,
            "ticks": self.ticks,
            "outcome": self.outcome.value,
            "blend_skipped": self.blend_skipped,
        }


class Population:
    """Owns the environment, the parent model and the elites of a run.

    Args:
        config: Run configuration; validated on construction.
        observers: Receive tick snapshots and generation results.
        parent: Initial parent model.  A randomly initialised root
            ancestor is created when omitted.

    Raises:
        ConfigurationError: If ``config`` is invalid or ``parent`` has
            different layer sizes.
    """

    def __init__(
        self,
        config: Optional[ESConfig] = None,
        observers: Optional[Iterable[GenerationObserver]] = None,
        parent: Optional[Model] = None,
    ):
        self.config = (config or ESConfig()).validate()

        # Independent streams: mutation noise and obstacle placement.
        noise_seq, env_seq = np.random.SeedSequence(self.config.seed).spawn(2)
        self.noise = RandomNoise(np.random.default_rng(noise_seq))
        self.environment = Environment(self.config, np.random.default_rng(env_seq))

        self.observers: List[GenerationObserver] = list(observers or [])
        if parent is not None and parent.layer_sizes != tuple(self.config.layer_sizes):
            raise ConfigurationError(
                f"parent layer sizes {list(parent.layer_sizes)} do not match "
                f"the configured {self.config.layer_sizes}."
            )
        self.parent = parent if parent is not None else self.root_model()
        self.elites: List[Model] = []
        self.generation = 0
        self.best_fitness = float("-inf")
        self.highscore = 0.0

    def root_model(self) -> Model:
        """Randomly initialised ancestor of the whole run."""
        model = Model(self.config.layer_sizes)
        sampler = self.noise.uniform_sampler(self.config.init_scale)
        model.randomize_weights(sampler)
        model.randomize_biases(sampler)
        return model

    # ------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------

    def create_generation(self) -> List[Agent]:
        """Elites first, then noisy clones of the parent.

        Raises:
            ConfigurationError: If there are more elites than
                ``population_size``.
        """
        cfg = self.config
        if len(self.elites) > cfg.population_size:
            raise ConfigurationError(
                f"{len(self.elites)} elites do not fit in a population "
                f"of {cfg.population_size}."
            )

        agents = [Agent(model, cfg) for model in self.elites]
        while len(agents) < cfg.population_size:
            child = self.parent.clone_with_noise(cfg.eps, self.noise)
            agents.append(Agent(child, cfg))
        return agents

    # ------------------------------------------------------------
    # Evaluating
    # ------------------------------------------------------------

    def step(self, agents: List[Agent]) -> int:
        """Advance the environment and every live bird by one tick.

        Returns:
            Number of birds still alive after the tick.
        """
        self.environment.step()
        alive = 0
        for agent in agents:
            if not agent.alive:
                continue
            agent.step(self.environment)
            if agent.alive:
                alive += 1
            else:
                self.best_fitness = max(self.best_fitness, agent.score)
        return alive

    def evaluate(self, agents: List[Agent]) -> Tuple[int, EvaluationOutcome]:
        """Run ticks until every bird is dead or ``max_ticks`` is hit.

        Birds still alive at the cap are scored at the current frame.

        Returns:
            ``(ticks, outcome)``.
        """
        ticks = 0
        alive = sum(1 for agent in agents if agent.alive)
        while alive:
            if ticks >= self.config.max_ticks:
                logger.warning(
                    "Generation %d hit max_ticks=%d with %d birds alive",
                    self.generation, self.config.max_ticks, alive,
                )
                for agent in agents:
                    if agent.alive:
                        agent.die(self.environment.frame)
                        self.best_fitness = max(self.best_fitness, agent.score)
                return ticks, EvaluationOutcome.CAPPED

            alive = self.step(agents)
            ticks += 1
            self._notify_tick(agents, alive)

        return ticks, EvaluationOutcome.TERMINATED

    # ------------------------------------------------------------
    # Full generation
    # ------------------------------------------------------------

    def run_generation(self) -> GenerationResult:
        """Spawn, evaluate, select and blend one generation."""
        cfg = self.config
        parent = self.parent

        self.environment.reset()
        agents = self.create_generation()
        ticks, outcome = self.evaluate(agents)

        scores = np.array([agent.score for agent in agents], dtype=np.float64)
        models = [agent.model for agent in agents]

        elite_indices = select_elites(scores, cfg.num_elites)
        self.elites = [models[i] for i in elite_indices]

        blend_skipped = False
        try:
            blended = combine_models(
                models, fitness_weights(scores), scores, cfg.alpha
            )
        except DegenerateGenerationError as e:
            logger.warning(
                "Generation %d: %s Keeping the previous parent.",
                self.generation, e,
            )
            blended = parent
            blend_skipped = True
        self.parent = blended

        pipes = self.environment.score_readout
        self.highscore = max(self.highscore, pipes)

        result = GenerationResult(
            index=self.generation,
            scores=scores,
            models=models,
            elite_indices=elite_indices,
            parent=parent,
            blended=blended,
            ticks=ticks,
            outcome=outcome,
            pipes=pipes,
            blend_skipped=blend_skipped,
        )
        self.generation += 1
        self._dispatch("on_generation_end", result)
        return result

    def train(self, generations: int) -> List[Dict[str, Any]]:
        """Run ``generations`` generations back to back.

        Returns:
            One :meth:`GenerationResult.summary` row per generation.
            Results themselves are dropped once observers have seen
            them, so memory does not grow with the generation count.
        """
        return [self.run_generation().summary() for _ in range(generations)]

    # ------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------

    def _notify_tick(self, agents: List[Agent], alive: int) -> None:
        if not self.observers:
            return
        snapshot = TickSnapshot(
            generation=self.generation,
            frame=self.environment.frame,
            obstacles=self.environment.snapshot(),
            positions=tuple(agent.y for agent in agents if agent.alive),
            alive=alive,
            population_size=len(agents),
            best_fitness=self.best_fitness,
            score_readout=self.environment.score_readout,
        )
        self._dispatch("on_tick", snapshot)

    def _dispatch(self, hook: str, payload: Any) -> None:
        # Observer failures are logged and never reach the simulation.
        for observer in self.observers:
            try:
                getattr(observer, hook)(payload)
            except Exception as e:
                logger.warning(
                    "Observer %s failed in %s: %s",
                    type(observer).__name__, hook, e, exc_info=True,
                )
