"""
Core data model and learner capability for activereduce
"""

from .context import LearningContext
from .example import Example, SimpleLabel, WeightedClassCost
from .labels import parse_cost_label, parse_simple_label
from .learner import BaseLearner, LinearRegressor, Reduction
from .parser import ExampleParser, make_example
from .stats import RunningStats

__all__ = [
    "BaseLearner",
    "Example",
    "ExampleParser",
    "LearningContext",
    "LinearRegressor",
    "Reduction",
    "RunningStats",
    "SimpleLabel",
    "WeightedClassCost",
    "make_example",
    "parse_cost_label",
    "parse_simple_label",
]
