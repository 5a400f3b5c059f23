"""
Tests for the linear base learner, running statistics and run context
"""

import math
import unittest
from unittest.mock import MagicMock

import pytest

from activereduce.config import LearnerConfig
from activereduce.core.context import LearningContext
from activereduce.core.learner import BIAS_FEATURE, LinearRegressor
from activereduce.core.parser import make_example
from activereduce.core.stats import RunningStats


@pytest.mark.unit
class TestLinearRegressor:
    """Test LinearRegressor."""

    def setup_method(self):
        self.context = LearningContext(seed=0)
        self.learner = LinearRegressor(self.context)

    def test_untrained_predicts_zero(self):
        ec = make_example({"a": 1.0}, label=1.0)
        assert self.learner.predict(ec) == 0.0
        assert ec.loss == pytest.approx(1.0)

    def test_predict_does_not_create_weights(self):
        self.learner.predict(make_example({"a": 1.0}), offset=4)
        assert dict(self.learner.weights) == {}

    def test_learn_moves_prediction_toward_label(self):
        ec = make_example({"a": 1.0}, label=1.0)
        self.learner.learn(ec)
        after = self.learner.predict(make_example({"a": 1.0}, label=1.0))
        assert 0.0 < after <= 1.0

    def test_large_importance_weight_does_not_overshoot(self):
        self.context.stats.set_minmax(-10.0)
        self.context.stats.set_minmax(10.0)
        ec = make_example({"a": 1.0}, label=1.0, weight=1e6)
        self.learner.learn(ec)
        raw = self.learner.predict(make_example({"a": 1.0}))
        assert raw <= 1.0 + 1e-9

    def test_offsets_are_independent(self):
        self.learner.learn(make_example({"a": 1.0}, label=1.0), offset=1)
        assert self.learner.predict(make_example({"a": 1.0}), offset=0) == 0.0
        assert self.learner.predict(make_example({"a": 1.0}), offset=1) > 0.0

    def test_unlabeled_learn_is_a_predict(self):
        self.learner.learn(make_example({"a": 1.0}))
        assert self.learner.t == 0.0
        assert dict(self.learner.weights) == {}

    def test_prediction_is_clipped_to_label_range(self):
        self.learner.weights[0][BIAS_FEATURE] = 5.0
        ec = make_example({})
        assert self.learner.predict(ec) == 1.0
        assert ec.partial_prediction == 5.0

    def test_sensitivity_decays_with_t(self):
        ec = make_example({"a": 1.0, "b": 1.0})
        before = self.learner.sensitivity(ec)
        assert before == pytest.approx(0.5 * 3.0)
        self.learner.learn(make_example({"a": 1.0}, label=1.0, weight=3.0))
        assert self.learner.sensitivity(ec) == pytest.approx(0.5 * 0.5 * 3.0)

    def test_state_dict_round_trip(self):
        self.learner.learn(make_example({"a": 1.0}, label=1.0), offset=2)
        restored = LinearRegressor(self.context, LearnerConfig(learning_rate=0.1))
        restored.load_state_dict(self.learner.state_dict())

        sample = make_example({"a": 1.0})
        assert restored.predict(sample, offset=2) == self.learner.predict(sample, offset=2)
        assert restored.config.learning_rate == 0.5
        assert restored.t == 1.0


@pytest.mark.unit
class TestBaseFinishExample:
    """Test the default finalization shared by learners."""

    def test_finish_updates_stats_and_writes(self):
        context = LearningContext()
        context.predictions = MagicMock()
        learner = LinearRegressor(context)
        ec = make_example({"a": 1.0}, label=1.0, tag="x")
        learner.learn(ec)

        learner.finish_example(ec)

        stats = context.stats
        assert stats.example_number == 1
        assert stats.weighted_examples == 1.0
        assert stats.weighted_labels == 1.0
        assert stats.sum_loss == pytest.approx(1.0)
        context.predictions.write_raw.assert_called_once_with(ec.partial_prediction, "x")
        context.predictions.write.assert_called_once_with(ec.prediction, "x")


class TestRunningStats(unittest.TestCase):
    """Test RunningStats counters."""

    def setUp(self):
        self.stats = RunningStats()

    def test_test_only_counts_example_but_not_weight(self):
        self.stats.update(True, 5.0, 2.0, 3)
        self.assertEqual(self.stats.example_number, 1)
        self.assertEqual(self.stats.total_features, 3)
        self.assertEqual(self.stats.weighted_examples, 0.0)
        self.assertEqual(self.stats.sum_loss, 0.0)

    def test_labeled_and_unlabeled_weights(self):
        self.stats.update(False, 1.0, 2.0, 1)
        self.stats.update(False, 0.0, 3.0, 1, labeled=False)
        self.assertEqual(self.stats.weighted_examples, 5.0)
        self.assertEqual(self.stats.weighted_labeled_examples, 2.0)
        self.assertAlmostEqual(self.stats.average_loss, 0.2)

    def test_weighted_queries(self):
        self.stats.initial_t = 1.0
        self.stats.weighted_examples = 10.0
        self.stats.weighted_unlabeled_examples = 4.0
        self.assertEqual(self.stats.weighted_queries, 7.0)

    def test_minmax_widens_only(self):
        self.stats.set_minmax(0.5)
        self.assertEqual((self.stats.min_label, self.stats.max_label), (0.0, 1.0))
        self.stats.set_minmax(-2.0)
        self.stats.set_minmax(math.inf)
        self.stats.set_minmax(None)
        self.assertEqual((self.stats.min_label, self.stats.max_label), (-2.0, 1.0))

    def test_histogram_grows_on_demand(self):
        self.stats.ensure_histogram_size(2)
        self.stats.record_queries(0)
        self.stats.record_queries(4)
        self.assertEqual(self.stats.examples_by_queries, [1, 0, 0, 0, 1])

    def test_summary_includes_histogram_only_when_sized(self):
        self.assertNotIn("examples_by_queries", self.stats.summary())
        self.stats.ensure_histogram_size(3)
        summary = self.stats.summary()
        self.assertEqual(summary["examples_by_queries"], [0, 0, 0])
        self.assertEqual(summary["average_range"], 0.0)

    def test_mark_dump_resets_window(self):
        self.stats.update(False, 2.0, 1.0, 1)
        self.stats.mark_dump()
        self.assertEqual(self.stats.average_loss_since_last_dump, 0.0)
        self.assertEqual(self.stats.average_loss, 2.0)


@pytest.mark.unit
class TestLearningContext:
    """Test LearningContext."""

    def test_same_seed_same_stream(self):
        a = LearningContext(seed=9)
        b = LearningContext(seed=9)
        assert [a.uniform() for _ in range(5)] == [b.uniform() for _ in range(5)]

    def test_uniform_in_unit_interval(self):
        context = LearningContext(seed=1)
        assert all(0.0 <= context.uniform() < 1.0 for _ in range(100))

    def test_checkpoint_name(self):
        context = LearningContext(final_regressor_name="m.bin")
        assert context.checkpoint_name(3.0, 2, 0.5) == "m.bin.3.2.0.5"
        assert LearningContext().checkpoint_name(1) == "model.1"

    def test_save_without_sink_is_skipped(self):
        assert LearningContext().save_checkpoint(object(), "model.1") is None
