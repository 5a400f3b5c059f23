"""
Label string parsing for scalar and cost-sensitive labels

Scalar labels:          ``<label> [<weight> [<initial>]]``
Cost-sensitive labels:  ``<class>[:<cost>] <class>[:<cost>] ...``

An empty scalar label, or a class listed without a cost, is unlabeled.
"""

import logging
import math
from typing import List, Optional

from ..errors import LabelParseError
from .example import SimpleLabel, WeightedClassCost

logger = logging.getLogger(__name__)


def _parse_float(token: str, what: str, text: str) -> float:
    try:
        value = float(token)
    except ValueError:
        raise LabelParseError(f"Malformed {what} '{token}' in label '{text}'", text)
    if math.isnan(value):
        raise LabelParseError(f"NaN {what} in label '{text}'", text)
    return value


def parse_simple_label(text: str) -> SimpleLabel:
    """
    Parse a scalar label

    Args:
        text: Label part of an example line

    Returns:
        Parsed SimpleLabel (unlabeled when ``text`` is blank)
    """
    tokens = text.split()
    if not tokens:
        return SimpleLabel()
    if len(tokens) > 3:
        raise LabelParseError(f"Too many tokens for a simple label: '{text}'", text)

    label = SimpleLabel(label=_parse_float(tokens[0], "label", text))
    if len(tokens) > 1:
        label.weight = _parse_float(tokens[1], "weight", text)
        if label.weight < 0:
            raise LabelParseError(f"Negative weight in label '{text}'", text)
    if len(tokens) > 2:
        label.initial = _parse_float(tokens[2], "initial value", text)
    return label


def parse_cost_label(text: str, num_classes: Optional[int] = None) -> List[WeightedClassCost]:
    """
    Parse a cost-sensitive label

    Args:
        text: Label part of an example line
        num_classes: When given, class indices must lie in ``1..num_classes``

    Returns:
        Costs in the order they appear; empty when ``text`` is blank
    """
    costs = []
    for token in text.split():
        name, sep, cost_text = token.partition(":")
        try:
            class_index = int(name)
        except ValueError:
            raise LabelParseError(f"Malformed class index '{name}' in label '{text}'", text)
        if class_index < 1 or (num_classes is not None and class_index > num_classes):
            raise LabelParseError(
                f"Class index {class_index} out of range 1..{num_classes} in label '{text}'", text
            )
        cost = None
        if sep:
            if not cost_text:
                raise LabelParseError(f"Missing cost after '{name}:' in label '{text}'", text)
            cost = _parse_float(cost_text, "cost", text)
        costs.append(WeightedClassCost(class_index=class_index, cost=cost))
    return costs


def is_test_cost_label(costs: Optional[List[WeightedClassCost]]) -> bool:
    """A cost label with no known cost for any class carries no supervision."""
    if not costs:
        return True
    return all(not c.is_labeled for c in costs)
