"""
Tests for the binary active learning reduction
"""

import io
import math
from unittest.mock import MagicMock

import pytest

from activereduce.active_learning.binary import (ActiveLearner, ActiveState,
                                                 confidence_from, sign)
from activereduce.config import ActiveConfig
from activereduce.core.context import LearningContext
from activereduce.core.learner import LinearRegressor
from activereduce.core.parser import make_example
from activereduce.output import PredictionWriter
from activereduce.pipeline import OnlineDriver


def _example(label, t, weight=1.0, tag=""):
    ec = make_example({"a": 1.0}, label=label, weight=weight, tag=tag)
    ec.example_t = t
    return ec


@pytest.mark.unit
class TestHelpers:
    """Test sign and confidence helpers."""

    def test_sign(self):
        assert sign(-0.5) == -1.0
        assert sign(0.0) == 1.0
        assert sign(2.0) == 1.0

    def test_confidence_regular(self):
        assert confidence_from(0.4, 2.0) == pytest.approx(0.2)

    def test_confidence_degenerate_sensitivity(self):
        assert confidence_from(0.4, math.nan) == 0.0
        assert confidence_from(0.4, 0.0) == math.inf
        assert confidence_from(0.0, 0.0) == 0.0

    def test_state_from_config(self):
        state = ActiveState.from_config(ActiveConfig(mellowness=2.0, max_labels=10))
        assert state.c0 == 2.0
        assert state.max_labels == 10.0
        assert math.isinf(state.min_labels)


@pytest.mark.unit
class TestSimulationMode:
    """Test simulation-mode querying."""

    def setup_method(self):
        self.context = LearningContext(seed=1)

    def _learner(self, stub, **kwargs):
        return ActiveLearner(stub, self.context, ActiveConfig(simulation=True, **kwargs))

    def test_cold_start_queries_with_unit_weight(self, stub_factory):
        stub = stub_factory(default_prediction=0.3)
        learner = self._learner(stub)

        learner.learn(_example(1.0, t=1.0))

        stats = self.context.stats
        assert stub.learned == [(0, 1.0, 1.0)]
        assert stats.queries == 1
        assert stats.n_in_dis == 1
        assert stats.n_processed == 1.0

    def test_skipped_example_becomes_unlabeled(self, stub_factory):
        stub = stub_factory(default_prediction=1.0, default_sensitivity=1e-6)
        learner = self._learner(stub)
        self.context.uniform = lambda: 0.5

        ec = _example(1.0, t=1001.0)
        learner.learn(ec)

        assert stub.learned == []
        assert ec.label.label is None
        assert self.context.stats.queries == 0
        assert self.context.stats.n_in_dis == 0

    def test_oracular_self_labels_and_counts_errors(self, stub_factory):
        stub = stub_factory(default_prediction=1.0, default_sensitivity=1e-6)
        learner = self._learner(stub, oracular=True)

        learner.learn(_example(-1.0, t=1001.0))

        assert stub.learned == [(0, 1.0, 1.0)]
        assert self.context.stats.sum_error_not_in_dis == 1
        assert self.context.stats.queries == 0

    def test_queried_example_is_importance_weighted(self, stub_factory):
        stub = stub_factory(default_prediction=1.0, default_sensitivity=1e-6)
        learner = self._learner(stub)
        self.context.uniform = lambda: 0.0

        learner.learn(_example(1.0, t=1001.0))

        assert len(stub.learned) == 1
        _, label, weight = stub.learned[0]
        assert label == 1.0
        assert weight > 1.0
        assert self.context.stats.queries == 1
        assert self.context.stats.n_in_dis == 0

    def test_predict_does_not_query(self, stub_factory):
        stub = stub_factory(default_prediction=0.7)
        learner = self._learner(stub)

        assert learner.predict(_example(1.0, t=1.0)) == 0.7
        assert stub.learned == []
        assert self.context.stats.queries == 0

    def test_min_labels_checkpoint_and_doubling(self, stub_factory):
        stub = stub_factory(default_prediction=0.3)
        learner = self._learner(stub, min_labels=2)
        self.context.checkpoints = MagicMock()
        self.context.stats.queries = 2

        learner.learn(_example(1.0, t=1.0))
        self.context.checkpoints.save.assert_called_once_with(learner, "model.0.0.0.2")
        assert learner.state.min_labels == 4

        learner.learn(_example(1.0, t=1.0))
        assert self.context.checkpoints.save.call_count == 1

    def test_checkpoint_name_uses_final_regressor(self, stub_factory):
        stub = stub_factory(default_prediction=0.3)
        learner = self._learner(stub, min_labels=0)
        self.context.final_regressor_name = "run.model"
        self.context.checkpoints = MagicMock()

        learner.learn(_example(1.0, t=1.0))

        self.context.checkpoints.save.assert_called_once_with(learner, "run.model.0.0.0.0")
        # a budget of zero stays zero when doubled
        assert learner.state.min_labels == 0

    def test_max_labels_stops_learning_but_predicts(self, stub_factory):
        stub = stub_factory(default_prediction=0.3)
        learner = self._learner(stub, max_labels=1)

        learner.learn(_example(1.0, t=1.0))
        second = _example(-1.0, t=2.0)
        learner.learn(second)

        assert len(stub.learned) == 1
        assert stub.predicted.count(0) >= 2
        assert second.prediction == 0.3
        assert self.context.stats.queries == 1

    def test_finish_forwards_to_base(self, stub_factory):
        stub = stub_factory(default_prediction=0.3)
        stub.finish_example = MagicMock()
        learner = self._learner(stub)
        ec = _example(1.0, t=1.0)
        learner.finish_example(ec)
        stub.finish_example.assert_called_once_with(ec)


@pytest.mark.unit
class TestActiveMode:
    """Test active (non-simulation) mode."""

    def setup_method(self):
        self.context = LearningContext(seed=1)
        self.sink = io.StringIO()
        self.context.predictions = PredictionWriter([self.sink])

    def test_labeled_example_is_learned(self, stub_factory):
        stub = stub_factory(default_prediction=0.9)
        learner = ActiveLearner(stub, self.context, ActiveConfig())
        learner.learn(_example(1.0, t=1.0))
        assert stub.learned == [(0, 1.0, 1.0)]

    def test_unlabeled_confidence_against_label_midpoint(self, stub_factory):
        stub = stub_factory(default_prediction=0.9, default_sensitivity=2.0)
        learner = ActiveLearner(stub, self.context, ActiveConfig())
        ec = _example(None, t=1.0)

        learner.predict(ec)

        assert ec.confidence == pytest.approx(0.2)

    def test_unlabeled_output_carries_query_weight(self, stub_factory):
        stub = stub_factory(default_prediction=0.9)
        learner = ActiveLearner(stub, self.context, ActiveConfig())
        ec = _example(None, t=1.0, tag="u1")

        learner.predict(ec)
        learner.finish_example(ec)

        assert self.sink.getvalue() == "0.900000 u1 1.000000\n"
        assert self.context.stats.weighted_unlabeled_examples == 1.0

    def test_labeled_output_has_no_query_weight(self, stub_factory):
        stub = stub_factory(default_prediction=0.9)
        learner = ActiveLearner(stub, self.context, ActiveConfig())
        ec = _example(1.0, t=1.0, tag="l1")

        learner.learn(ec)
        learner.finish_example(ec)

        assert self.sink.getvalue() == "0.900000 l1\n"

    def test_sensitivity_forwards_to_base(self, stub_factory):
        stub = stub_factory(default_sensitivity=0.25)
        learner = ActiveLearner(stub, self.context, ActiveConfig())
        assert learner.sensitivity(_example(1.0, t=1.0)) == 0.25


@pytest.mark.integration
class TestLabelBudgetWithLinearBase:
    """A spent label budget freezes the model but keeps predicting."""

    def test_weights_frozen_after_budget(self, binary_lines):
        context = LearningContext(seed=0)
        sink = io.StringIO()
        context.predictions = PredictionWriter([sink])
        base = LinearRegressor(context)
        learner = ActiveLearner(base, context, ActiveConfig(simulation=True, max_labels=3))
        driver = OnlineDriver(learner, context)

        driver.run_lines(binary_lines[:10])
        assert context.stats.queries == 3
        frozen = base.state_dict()["weights"]

        driver.run_lines(binary_lines[10:])
        assert base.state_dict()["weights"] == frozen
        assert len(sink.getvalue().splitlines()) == len(binary_lines)
