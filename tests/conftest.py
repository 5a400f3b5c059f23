"""
Pytest configuration and shared fixtures for activereduce tests
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Optional, Tuple

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from activereduce.core.context import LearningContext  # noqa: E402
from activereduce.core.learner import BaseLearner  # noqa: E402


class StubLearner(BaseLearner):
    """Base learner with scripted per-offset predictions and sensitivities"""

    def __init__(self, context: LearningContext,
                 predictions: Optional[Dict[int, float]] = None,
                 sensitivities: Optional[Dict[int, float]] = None,
                 default_prediction: float = 0.0,
                 default_sensitivity: float = 1.0):
        super().__init__(context)
        self.predictions = predictions or {}
        self.sensitivities = sensitivities or {}
        self.default_prediction = default_prediction
        self.default_sensitivity = default_sensitivity
        self.predicted: List[int] = []
        self.learned: List[Tuple[int, Optional[float], float]] = []

    def predict(self, ec, offset=0):
        value = self.predictions.get(offset, self.default_prediction)
        ec.partial_prediction = value
        ec.prediction = value
        ec.loss = 0.0
        self.predicted.append(offset)
        return value

    def learn(self, ec, offset=0):
        self.predict(ec, offset)
        self.learned.append((offset, ec.label.label, ec.weight))

    def sensitivity(self, ec, offset=0):
        return self.sensitivities.get(offset, self.default_sensitivity)

    def state_dict(self):
        return {"predictions": dict(self.predictions)}


@pytest.fixture
def context() -> LearningContext:
    """Seeded run context."""
    return LearningContext(seed=42)


@pytest.fixture
def stub_factory(context):
    """Build StubLearner instances bound to the test context."""
    def factory(**kwargs) -> StubLearner:
        return StubLearner(context, **kwargs)
    return factory


@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    if temp_path.exists():
        shutil.rmtree(temp_path)


@pytest.fixture
def binary_lines() -> List[str]:
    """Small separable binary data set."""
    lines = []
    for i in range(40):
        if i % 2 == 0:
            lines.append(f"1 'pos{i} | a:1 b:{0.1 * (i % 5):.1f}")
        else:
            lines.append(f"-1 'neg{i} | c:1 b:{0.1 * (i % 5):.1f}")
    return lines


@pytest.fixture
def cost_lines() -> List[str]:
    """Three-class cost-sensitive data set with a few unlabeled lines."""
    lines = []
    for i in range(30):
        best = i % 3 + 1
        costs = " ".join(f"{c}:{0.0 if c == best else 1.0}" for c in (1, 2, 3))
        lines.append(f"{costs} 'ex{i} | f{best}:1 shared:0.5")
    lines.append("1 2 3 'nocost | f1:1")
    lines.append(" 'empty | f2:1")
    return lines
