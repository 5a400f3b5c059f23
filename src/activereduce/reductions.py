"""
Learner stack construction and option validation
"""

import logging
from typing import Any, Dict, Optional, Tuple

from .active_learning.binary import ActiveLearner
from .active_learning.cs_active import CostSensitiveActiveLearner
from .checkpoint import CheckpointWriter
from .config import (ActiveConfig, CostSensitiveActiveConfig, LearnerConfig,
                     get_default_config, settings)
from .core.context import LearningContext
from .core.learner import BaseLearner, LinearRegressor
from .errors import ConfigurationError
from .output import PredictionWriter, ProgressReporter

logger = logging.getLogger(__name__)


def validate_options(options: Dict[str, Any]):
    """
    Reject option combinations that cannot be stacked

    Raises:
        ConfigurationError: On the first conflict found
    """
    active = bool(options.get("active"))
    cs_active = options.get("cs_active")

    if active and cs_active:
        raise ConfigurationError("you can't use --cs_active and --active at the same time")
    if (active or cs_active) and options.get("lda"):
        raise ConfigurationError("you can't combine lda and active learning")
    if cs_active:
        if options.get("active_cover"):
            raise ConfigurationError("you can't use --cs_active and --active_cover at the same time")
        if options.get("csoaa"):
            raise ConfigurationError("you can't use --cs_active and --csoaa at the same time")
        if options.get("loss_function", "squared") != "squared":
            raise ConfigurationError("you can't use non-squared loss with cs_active")


def _pick(options: Dict[str, Any], *keys) -> Dict[str, Any]:
    return {k: options[k] for k in keys if options.get(k) is not None}


def active_config_from(options: Dict[str, Any]) -> ActiveConfig:
    kwargs = _pick(options, "mellowness", "max_labels", "min_labels")
    return ActiveConfig(
        simulation=bool(options.get("simulation")),
        oracular=bool(options.get("oracular")),
        simple_threshold=bool(options.get("simple_threshold")),
        **kwargs,
    )


def cs_active_config_from(options: Dict[str, Any]) -> CostSensitiveActiveConfig:
    kwargs = _pick(options, "mellowness", "range_c", "max_labels", "min_labels",
                   "cost_max", "cost_min")
    return CostSensitiveActiveConfig(
        num_classes=int(options["cs_active"]),
        simulation=bool(options.get("simulation")),
        baseline=bool(options.get("baseline")),
        debug=bool(options.get("csa_debug")),
        **kwargs,
    )


def build_context(options: Dict[str, Any], predictions: Optional[PredictionWriter] = None,
                  checkpoints: Optional[CheckpointWriter] = None) -> LearningContext:
    """Create the run context shared by every layer of the stack."""
    context = LearningContext(
        seed=int(options.get("seed") or 0),
        final_regressor_name=options.get("final_regressor"),
    )

    if predictions is None and (options.get("predictions") or options.get("raw_predictions")):
        sinks = [options["predictions"]] if options.get("predictions") else []
        predictions = PredictionWriter(sinks, raw_sink=options.get("raw_predictions"))
    context.predictions = predictions

    if checkpoints is None and options.get("final_regressor"):
        checkpoints = CheckpointWriter(options.get("checkpoint_dir") or settings.CHECKPOINT_DIR)
    context.checkpoints = checkpoints
    context.progress = ProgressReporter(context.stats)
    return context


def build_learner(options: Optional[Dict[str, Any]] = None,
                  context: Optional[LearningContext] = None) -> Tuple[BaseLearner, LearningContext]:
    """
    Build a learner stack from run options

    Args:
        options: Options as produced by ``get_default_config`` (missing
            keys take their defaults)
        context: Existing run context; a new one is built when None

    Returns:
        Tuple of (top learner, run context)
    """
    merged = get_default_config()
    merged.update(options or {})
    validate_options(merged)

    if context is None:
        context = build_context(merged)

    learner_config = LearnerConfig(
        learning_rate=float(merged["learning_rate"]),
        power_t=float(merged["power_t"]),
        initial_t=float(merged["initial_t"] or 1.0),
        loss_function=merged["loss_function"],
    )
    learner: BaseLearner = LinearRegressor(context, learner_config)

    if merged.get("cs_active"):
        learner = CostSensitiveActiveLearner(learner, context, cs_active_config_from(merged))
    elif merged.get("active"):
        learner = ActiveLearner(learner, context, active_config_from(merged))
    else:
        logger.info("No active learning reduction requested; using the base learner")

    return learner, context
