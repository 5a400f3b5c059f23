"""
Configuration module for activereduce
"""

import json
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

# Label budgets default to "unbounded"; doubling keeps them unbounded.
UNBOUNDED = math.inf


class Settings(BaseSettings):
    """Run-wide settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="ACTIVEREDUCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    APP_NAME: str = "activereduce"
    LOG_LEVEL: str = Field(default="INFO")
    SEED: int = Field(default=0, ge=0)

    CHECKPOINT_DIR: Optional[Path] = Field(default=None, validate_default=True)

    @field_validator("CHECKPOINT_DIR", mode="before")
    @classmethod
    def set_checkpoint_dir(cls, v):
        if v is None:
            return Path.cwd()
        return Path(v)

    @field_validator("LOG_LEVEL")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a plain dictionary."""
        data = self.model_dump()
        data["CHECKPOINT_DIR"] = str(data["CHECKPOINT_DIR"])
        return data


settings = Settings()


def _budget(value: Optional[float]) -> float:
    if value is None:
        return UNBOUNDED
    if value < 0:
        raise ConfigurationError(f"Label budget must be non-negative, got {value}")
    return float(int(value)) if not math.isinf(value) else UNBOUNDED


@dataclass
class ActiveConfig:
    """Binary active learning options"""

    simulation: bool = False
    mellowness: float = 8.0
    oracular: bool = False
    simple_threshold: bool = False
    max_labels: Optional[float] = None
    min_labels: Optional[float] = None

    def __post_init__(self):
        if self.mellowness <= 0:
            raise ConfigurationError(f"mellowness must be positive, got {self.mellowness}")
        self.max_labels = _budget(self.max_labels)
        self.min_labels = _budget(self.min_labels)


@dataclass
class CostSensitiveActiveConfig:
    """Cost-sensitive (multiclass) active learning options"""

    num_classes: int = 2
    simulation: bool = False
    baseline: bool = False
    mellowness: float = 0.1  # c0
    range_c: float = 0.5  # c1
    max_labels: Optional[float] = None
    min_labels: Optional[float] = None
    cost_max: float = 1.0
    cost_min: float = 0.0
    debug: bool = False

    def __post_init__(self):
        if self.num_classes < 1:
            raise ConfigurationError(f"cs_active needs at least one class, got {self.num_classes}")
        if self.cost_min > self.cost_max:
            raise ConfigurationError(
                f"cost_min ({self.cost_min}) must not exceed cost_max ({self.cost_max})"
            )
        if self.mellowness <= 0:
            raise ConfigurationError(f"mellowness must be positive, got {self.mellowness}")
        self.max_labels = _budget(self.max_labels)
        self.min_labels = _budget(self.min_labels)


@dataclass
class LearnerConfig:
    """Reference linear learner options"""

    learning_rate: float = 0.5
    power_t: float = 0.5
    initial_t: float = 1.0
    loss_function: str = "squared"

    def __post_init__(self):
        if self.learning_rate <= 0:
            raise ConfigurationError(f"learning_rate must be positive, got {self.learning_rate}")
        if self.initial_t <= 0:
            raise ConfigurationError(f"initial_t must be positive, got {self.initial_t}")
        if self.loss_function != "squared":
            raise ConfigurationError(
                f"The linear learner only supports squared loss, got {self.loss_function}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return default configuration.

    Args:
        config_path: Path to configuration file (YAML or JSON)

    Returns:
        Configuration dictionary
    """
    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, "r", encoding="utf-8") as f:
            if config_path.endswith((".yaml", ".yml")):
                loaded = yaml.safe_load(f) or {}
            else:
                loaded = json.load(f)
        config = get_default_config()
        config.update(loaded)
        return config
    else:
        return get_default_config()


def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration for an activereduce run.

    Returns:
        Default configuration dictionary
    """
    return {
        "active": False,
        "cs_active": None,
        "simulation": False,
        "baseline": False,
        "mellowness": None,
        "oracular": False,
        "simple_threshold": False,
        "range_c": 0.5,
        "max_labels": None,
        "min_labels": None,
        "cost_max": 1.0,
        "cost_min": 0.0,
        "csa_debug": False,
        "lda": False,
        "csoaa": False,
        "active_cover": False,
        "loss_function": "squared",
        "learning_rate": 0.5,
        "power_t": 0.5,
        "initial_t": 1.0,
        "seed": settings.SEED,
        "final_regressor": None,
        "checkpoint_dir": None,
        "predictions": None,
        "raw_predictions": None,
    }
