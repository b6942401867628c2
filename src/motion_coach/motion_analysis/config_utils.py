import json
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional


def load_engine_config(config_path: str = None) -> Dict[str, Any]:
    """Load engine thresholds from JSON file."""
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), "engine_config.json")
    with open(config_path, "r") as f:
        return json.load(f)


def load_exercise_catalog(config_path: str = None) -> Dict[str, Any]:
    """Load the per-exercise joint group catalog from JSON file."""
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), "exercise_catalog.json")
    with open(config_path, "r") as f:
        return json.load(f)


class UserLevel(Enum):
    """Enum representing different user experience levels."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @classmethod
    def parse(cls, value) -> "UserLevel":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown user level: {value!r}") from None


@dataclass
class LevelConfig:
    """Adjustments applied when the user's experience level is known."""
    history_size: int
    range_tolerance: float  # Multiplier on each group's optimal distance range
    stability_multiplier: float
    coordination_multiplier: float
    grade_scale: float  # Multiplier on the composite score before grading
    correction_threshold: float  # Group score below which a correction is issued


@dataclass
class AnalyzerConfig:
    """Named, overridable constants of the motion analysis engine.

    The defaults mirror ``engine_config.json``. Any field can be overridden with
    :meth:`from_dict` or by passing a JSON file to :func:`load_analyzer_config`.
    """
    schema_size: int = 33
    history_size: int = 15
    smoothing_window: int = 5
    smoothing_confidence_threshold: float = 0.7
    sudden_movement_threshold: float = 0.1
    confidence_threshold: float = 0.3
    adaptation_rate: float = 0.1
    min_weight: float = 0.1
    max_weight: float = 2.0
    temporal_blend: float = 0.6
    temporal_transitions: int = 5
    temporal_displacement_scale: float = 0.1
    temporal_default: float = 0.7
    min_history_frames: int = 3
    stability_window: int = 7
    stability_threshold: float = 0.06
    stability_default: float = 0.6
    symmetry_tolerance: float = 0.12
    synchrony_window: int = 5
    synchrony_tolerance: float = 0.05
    coordination_default: float = 0.6
    symmetry_weight: float = 0.6
    max_consecutive_errors: int = 3
    max_corrections: int = 3
    correction_threshold: float = 0.6
    user_levels: Dict[str, LevelConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyzerConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown analyzer config keys: {', '.join(sorted(unknown))}")
        values = dict(data)
        levels = values.pop("user_levels", {}) or {}
        config = cls(**values)
        config.user_levels = {
            name: level if isinstance(level, LevelConfig) else LevelConfig(**level)
            for name, level in levels.items()
        }
        return config

    def level_config(self, user_level) -> Optional[LevelConfig]:
        """Return the adjustments for ``user_level`` (enum or name), or None."""
        if user_level is None:
            return None
        name = getattr(user_level, "value", user_level)
        return self.user_levels.get(str(name).lower())


def load_analyzer_config(config_path: str = None, **overrides) -> AnalyzerConfig:
    """Build an AnalyzerConfig from the packaged JSON (or ``config_path``) plus overrides."""
    data = load_engine_config(config_path)
    data.update(overrides)
    return AnalyzerConfig.from_dict(data)
