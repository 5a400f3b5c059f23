"""
Example line parsing

Line format::

    <label part> ['<tag>] | <feature>[:<value>] ... [|<namespace> <feature> ...]

Features inside a named namespace are prefixed with ``<namespace>^``.
"""

import logging
from typing import Iterable, Iterator, Optional

from ..errors import LabelParseError
from .example import Example, SimpleLabel
from .labels import is_test_cost_label, parse_cost_label, parse_simple_label

logger = logging.getLogger(__name__)


class ExampleParser:
    """Builds Example objects from text lines"""

    def __init__(self, num_classes: Optional[int] = None):
        """
        Initialize parser

        Args:
            num_classes: Parse cost-sensitive labels for this many classes;
                scalar labels when None
        """
        self.num_classes = num_classes

    @property
    def cost_sensitive(self) -> bool:
        return self.num_classes is not None

    def parse(self, line: str) -> Example:
        head, sep, body = line.rstrip("\n").partition("|")
        if not sep:
            raise LabelParseError(f"Missing '|' feature separator in line '{line.strip()}'", line)

        label_text, tag = self._split_tag(head)
        ec = Example(tag=tag)
        if self.cost_sensitive:
            ec.costs = parse_cost_label(label_text, self.num_classes)
            ec.test_only = is_test_cost_label(ec.costs)
        else:
            ec.label = parse_simple_label(label_text)
            ec.weight = ec.label.weight
            ec.test_only = not ec.label.is_labeled

        ec.features = self._parse_features("|" + body, line)
        return ec

    def parse_lines(self, lines: Iterable[str]) -> Iterator[Example]:
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                yield self.parse(line)
            except LabelParseError as e:
                logger.error(f"Parse error on line {line_number}: {e}")
                raise

    @staticmethod
    def _split_tag(head: str):
        tokens = head.split()
        tag = ""
        if tokens and tokens[-1].startswith("'"):
            tag = tokens.pop()[1:]
        return " ".join(tokens), tag

    @staticmethod
    def _parse_features(body: str, line: str):
        features = {}
        for chunk in body.split("|")[1:]:
            namespace = ""
            tokens = chunk.split()
            # a namespace name is glued to its bar: "|ns a b"
            if chunk and not chunk[0].isspace() and tokens:
                namespace = tokens.pop(0)
            for token in tokens:
                name, sep, value_text = token.partition(":")
                if not name:
                    raise LabelParseError(f"Empty feature name in line '{line.strip()}'", line)
                value = 1.0
                if sep:
                    try:
                        value = float(value_text)
                    except ValueError:
                        raise LabelParseError(
                            f"Malformed feature value '{token}' in line '{line.strip()}'", line
                        )
                key = f"{namespace}^{name}" if namespace else name
                features[key] = features.get(key, 0.0) + value
        return features


def make_example(features, label: Optional[float] = None, weight: float = 1.0,
                 tag: str = "", costs=None) -> Example:
    """Build an Example directly from Python values."""
    ec = Example(features=dict(features), tag=tag, weight=weight)
    ec.label = SimpleLabel(label=label, weight=weight)
    ec.test_only = label is None
    if costs is not None:
        ec.costs = list(costs)
        ec.test_only = is_test_cost_label(ec.costs)
    return ec
