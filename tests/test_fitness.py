"""
Tests for rank shaping, blending and elite selection.
"""

import numpy as np
import pytest

from flappy_es.exceptions import DegenerateGenerationError
from flappy_es.fitness import combine_models, fitness_weights, rank_scores, select_elites
from flappy_es.model import Model


def linear_model(w, b):
    model = Model([2, 1])
    model.weights[0] = np.array([w], dtype=float)
    model.biases[0] = np.array([b], dtype=float)
    return model


class TestRanking:

    def test_ties_share_first_occurrence(self):
        """Test equal scores get the index of their first occurrence."""
        np.testing.assert_array_equal(rank_scores([5, 1, 5, 3]), [2, 0, 2, 1])

    def test_distinct_scores(self):
        np.testing.assert_array_equal(rank_scores([0.3, -2.0, 10.0]), [1, 0, 2])

    def test_extremes_map_to_plus_minus_one(self):
        scores = [12.5, 3.0, 99.0, 40.0, -7.0]
        weights = fitness_weights(scores)

        assert weights[int(np.argmax(scores))] == 1.0
        assert weights[int(np.argmin(scores))] == -1.0
        assert np.all((weights >= -1) & (weights <= 1))

    def test_linear_mapping(self):
        np.testing.assert_allclose(fitness_weights([3, 1, 2]), [1.0, -1.0, 0.0])

    def test_equal_scores_give_constant_weight(self):
        """Test identical scores all share rank 0."""
        weights = fitness_weights([4.0] * 6)
        np.testing.assert_array_equal(weights, np.full(6, -1.0))

    def test_ties_compress_range(self):
        # Three birds tied at the bottom, one best.
        np.testing.assert_allclose(fitness_weights([1, 1, 1, 2]), [-1, -1, -1, 1])

    def test_needs_two_scores(self):
        with pytest.raises(ValueError, match="at least two scores"):
            fitness_weights([1.0])


class TestCombineModels:

    def test_weighted_sum_over_raw_score_sum(self):
        """Test the numerator uses weights and the denominator raw scores."""
        models = [linear_model([1.0, 2.0], 1.0), linear_model([3.0, 4.0], 2.0)]
        blended = combine_models(models, weights=[-1.0, 1.0], scores=[1.0, 3.0], alpha=0.5)

        # 0.5 * (-1 * [1, 2] + 1 * [3, 4]) / 4
        np.testing.assert_allclose(blended.weights[0], [[0.25, 0.25]])
        np.testing.assert_allclose(blended.biases[0], [0.125])

    def test_shapes_preserved_and_no_aliasing(self):
        rng = np.random.default_rng(0)
        models = []
        for _ in range(5):
            model = Model([2, 8, 8, 1])
            model.randomize_weights(lambda: float(rng.standard_normal()))
            model.randomize_biases(lambda: float(rng.standard_normal()))
            models.append(model)
        snapshots = [m.copy() for m in models]
        scores = [5.0, 1.0, 3.0, 8.0, 2.0]

        blended = combine_models(models, fitness_weights(scores), scores, alpha=0.05)

        assert blended.layer_sizes == models[0].layer_sizes
        assert [w.shape for w in blended.weights] == [w.shape for w in models[0].weights]
        assert [b.shape for b in blended.biases] == [b.shape for b in models[0].biases]
        for model in models:
            assert blended is not model
            for mine, theirs in zip(blended.weights + blended.biases, model.weights + model.biases):
                assert not np.shares_memory(mine, theirs)

        for array in blended.weights + blended.biases:
            array += 100.0
        for model, snapshot in zip(models, snapshots):
            assert model.same_parameters(snapshot)

    def test_zero_score_sum_is_degenerate(self):
        models = [linear_model([1, 1], 0), linear_model([2, 2], 0)]
        with pytest.raises(DegenerateGenerationError):
            combine_models(models, [-1.0, 1.0], [2.0, -2.0], alpha=0.05)

    def test_length_mismatch(self):
        models = [linear_model([1, 1], 0), linear_model([2, 2], 0)]
        with pytest.raises(ValueError, match="2 models, 1 weights"):
            combine_models(models, [1.0], [1.0, 2.0], alpha=0.05)

    def test_topology_mismatch(self):
        models = [linear_model([1, 1], 0), Model([2, 3, 1])]
        with pytest.raises(ValueError, match="layer sizes"):
            combine_models(models, [-1.0, 1.0], [1.0, 2.0], alpha=0.05)

    def test_empty(self):
        with pytest.raises(ValueError, match="empty"):
            combine_models([], [], [], alpha=0.05)


class TestSelectElites:

    def test_descending_with_index_tie_break(self):
        assert select_elites([1.0, 5.0, 5.0, 3.0], 2) == [1, 2]
        assert select_elites([1.0, 5.0, 5.0, 3.0], 3) == [1, 2, 3]

    def test_all_equal_keeps_roster_order(self):
        assert select_elites([2.0, 2.0, 2.0], 2) == [0, 1]

    def test_zero_and_full(self):
        scores = [0.5, 0.1, 0.9]
        assert select_elites(scores, 0) == []
        assert select_elites(scores, 3) == [2, 0, 1]
