"""
Tests for the generation lifecycle: spawning, evaluation, selection
and blending.
"""

import gc
import logging
import weakref

import numpy as np
import pytest

import flappy_es.population as population_module
from flappy_es.config import ESConfig
from flappy_es.exceptions import ConfigurationError, DegenerateGenerationError
from flappy_es.model import Model
from flappy_es.observers import GenerationObserver
from flappy_es.population import EvaluationOutcome, Population


class Recorder(GenerationObserver):
    def __init__(self):
        self.snapshots = []
        self.results = []

    def on_tick(self, snapshot):
        self.snapshots.append(snapshot)

    def on_generation_end(self, result):
        self.results.append(result)


class Broken(GenerationObserver):
    def on_tick(self, snapshot):
        raise RuntimeError("cannot draw")

    def on_generation_end(self, result):
        raise RuntimeError("cannot display")


class TestConfiguration:

    def test_too_many_elites(self):
        """Test misconfigured elites fail fast instead of being truncated."""
        with pytest.raises(ConfigurationError, match="exceeds"):
            Population(ESConfig(population_size=4, num_elites=5))

    def test_wrong_input_width(self):
        with pytest.raises(ConfigurationError, match="input layer"):
            Population(ESConfig(layer_sizes=[3, 4, 1]))

    def test_elites_overflowing_roster(self, small_config):
        population = Population(small_config)
        population.elites = [Model(small_config.layer_sizes) for _ in range(9)]
        with pytest.raises(ConfigurationError, match="do not fit"):
            population.create_generation()

    def test_parent_layer_sizes_must_match(self):
        config = ESConfig(population_size=4, num_elites=1, layer_sizes=[2, 3, 1], seed=0)
        with pytest.raises(ConfigurationError, match="do not match"):
            Population(config, parent=Model([2, 4, 2]))


class TestSpawning:

    def test_first_generation_is_all_clones(self, small_config):
        population = Population(small_config)
        agents = population.create_generation()

        assert len(agents) == small_config.population_size
        for agent in agents:
            assert agent.model is not population.parent
            assert not agent.model.same_parameters(population.parent)
            assert agent.alive

    def test_elites_come_first_and_unchanged(self, small_config):
        population = Population(small_config)
        elites = [Model(small_config.layer_sizes) for _ in range(2)]
        population.elites = elites

        agents = population.create_generation()

        assert agents[0].model is elites[0]
        assert agents[1].model is elites[1]
        assert len(agents) == small_config.population_size

    def test_root_model_is_randomised(self, small_config):
        parent = Population(small_config).parent
        assert parent.layer_sizes == tuple(small_config.layer_sizes)
        assert any(w.any() for w in parent.weights)
        assert any(b.any() for b in parent.biases)


class TestEvaluation:

    def test_falling_birds_terminate(self):
        """Test birds that never flap all die and the loop ends naturally."""
        config = ESConfig(population_size=4, num_elites=1, layer_sizes=[2, 3, 1], eps=0.0, seed=0)
        population = Population(config, parent=Model(config.layer_sizes))

        result = population.run_generation()

        assert result.outcome is EvaluationOutcome.TERMINATED
        # y = 0.5 - 0.01 * t (t + 1) / 2 first drops to the floor at t = 10.
        assert result.ticks == 10
        assert np.all(result.scores == result.scores[0])
        assert result.elite_indices == [0]

    def test_safety_cap(self, small_config):
        """Test the tick cap ends the loop and scores the survivors."""
        small_config.max_ticks = 5
        population = Population(small_config)
        agents = population.create_generation()

        ticks, outcome = population.evaluate(agents)

        assert outcome is EvaluationOutcome.CAPPED
        assert ticks == 5
        assert all(not agent.alive for agent in agents)
        for agent in agents:
            assert agent.score == pytest.approx(5 + agent.reward * small_config.reward_scale)

    def test_step_counts_alive(self, small_config):
        population = Population(small_config)
        agents = population.create_generation()
        agents[0].die(0)

        alive = population.step(agents)

        assert alive == sum(agent.alive for agent in agents)
        assert alive <= small_config.population_size - 1


class TestGenerationLifecycle:

    def test_elite_and_clone_parents(self, monkeypatch):
        """Test one elite survives unchanged and three clones share one parent."""
        config = ESConfig(
            population_size=4, num_elites=1, layer_sizes=[2, 2, 1],
            max_ticks=2000, seed=2024,
        )
        population = Population(config)
        first = population.run_generation()

        elite = first.models[first.elite_indices[0]]
        elite_before = elite.copy()
        assert population.elites == [elite]
        assert population.parent is first.blended
        assert first.parent is not first.blended
        assert first.scores[first.elite_indices[0]] == first.best_score

        cloned_from = []
        real_clone = Model.clone_with_noise

        def spy(self, eps, noise):
            cloned_from.append(self)
            return real_clone(self, eps, noise)

        monkeypatch.setattr(Model, "clone_with_noise", spy)
        second = population.run_generation()

        # Elite slot: the very same model, parameters untouched by blending.
        assert second.models[0] is elite
        assert elite.same_parameters(elite_before)

        # Three fresh clones of the parent this generation started with.
        assert len(cloned_from) == 3
        assert all(parent is first.blended for parent in cloned_from)
        assert second.parent is first.blended
        for child in second.models[1:]:
            assert child is not first.blended
            assert not child.same_parameters(first.blended)

        # Blending only replaces the parent for the following generation.
        if not second.blend_skipped:
            assert population.parent is second.blended
            assert second.blended is not second.parent

    def test_seeded_runs_are_reproducible(self, small_config):
        a = Population(small_config)
        b = Population(ESConfig(**small_config.to_dict()))

        assert a.train(2) == b.train(2)
        assert a.parent.same_parameters(b.parent)

    def test_train_advances_generation(self, small_config):
        population = Population(small_config)
        rows = population.train(3)

        assert [row["generation"] for row in rows] == [0, 1, 2]
        assert population.generation == 3
        assert population.best_fitness == max(row["best_score"] for row in rows)
        assert population.highscore == max(row["pipes"] for row in rows)

    def test_train_does_not_keep_old_generations(self, small_config):
        """Test live models stay bounded however many generations run."""
        seen = weakref.WeakSet()

        class ModelTracker(GenerationObserver):
            def on_generation_end(self, result):
                seen.update(result.models)
                seen.update((result.parent, result.blended))

        population = Population(small_config, observers=[ModelTracker()])
        population.train(10)
        gc.collect()

        # Only the current elites and parent survive.
        assert len(seen) <= small_config.num_elites + 1
        assert population.parent in seen

    def test_degenerate_generation_keeps_parent(self, small_config, monkeypatch, caplog):
        def degenerate(*args, **kwargs):
            raise DegenerateGenerationError("scores sum to zero.")

        monkeypatch.setattr(population_module, "combine_models", degenerate)
        population = Population(small_config)
        parent = population.parent

        with caplog.at_level(logging.WARNING, logger="flappy_es.population"):
            result = population.run_generation()

        assert result.blend_skipped
        assert result.blended is parent
        assert population.parent is parent
        assert len(population.elites) == small_config.num_elites
        assert "Keeping the previous parent" in caplog.text

    def test_summary(self, small_config):
        result = Population(small_config).run_generation()
        summary = result.summary()

        assert summary["generation"] == 0
        assert summary["best_score"] == result.best_score
        assert summary["min_score"] <= summary["mean_score"] <= summary["best_score"]
        assert summary["outcome"] in ("terminated", "capped")


class TestObservers:

    def test_tick_snapshots(self, small_config):
        recorder = Recorder()
        population = Population(small_config, observers=[recorder])
        result = population.run_generation()

        assert len(recorder.snapshots) == result.ticks
        assert recorder.results == [result]
        for snapshot in recorder.snapshots:
            assert len(snapshot.positions) == snapshot.alive
            assert snapshot.population_size == small_config.population_size
            assert snapshot.generation == 0
            assert snapshot.score_readout == snapshot.frame / small_config.spawn_period
        if result.outcome is EvaluationOutcome.TERMINATED:
            assert recorder.snapshots[-1].alive == 0

    def test_failing_observer_does_not_affect_simulation(self, small_config, caplog):
        """Test observer errors are logged and the run matches a clean one."""
        clean = Population(small_config).run_generation()

        broken = Population(ESConfig(**small_config.to_dict()), observers=[Broken()])
        with caplog.at_level(logging.WARNING, logger="flappy_es.population"):
            result = broken.run_generation()

        np.testing.assert_array_equal(result.scores, clean.scores)
        assert "Observer Broken failed" in caplog.text
