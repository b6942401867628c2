"""
landmarks.py - Landmark and frame types plus the boundary validator.

The pose model delivers a fixed-size, ordered array of landmark records. Joint
groups address landmarks by index, so a Frame always holds exactly
``schema_size`` rows; landmarks the model could not see are kept as
zero-confidence rows instead of being dropped.
"""
import math
import numbers
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional

import numpy as np

SCHEMA_SIZE = 33


class PoseLandmark(IntEnum):
    """BlazePose landmark indices."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


# Left/right pairs compared for symmetry
SYMMETRY_PAIRS = (
    (PoseLandmark.LEFT_SHOULDER, PoseLandmark.RIGHT_SHOULDER),
    (PoseLandmark.LEFT_HIP, PoseLandmark.RIGHT_HIP),
    (PoseLandmark.LEFT_KNEE, PoseLandmark.RIGHT_KNEE),
    (PoseLandmark.LEFT_ANKLE, PoseLandmark.RIGHT_ANKLE),
)


@dataclass(frozen=True)
class Landmark:
    """A single normalized 2-D landmark with its detection confidence."""
    x: float
    y: float
    confidence: float

    def to_numpy(self) -> np.ndarray:
        return np.array([self.x, self.y])


@dataclass(frozen=True, eq=False)
class Frame:
    """One landmark frame: an (N, 3) array of x, y, confidence rows."""
    points: np.ndarray
    timestamp: float = 0.0

    def __post_init__(self):
        points = np.array(self.points, dtype=float)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"Frame points must have shape (N, 3), got {points.shape}")
        points.setflags(write=False)
        object.__setattr__(self, "points", points)

    def __len__(self) -> int:
        return self.points.shape[0]

    def __getitem__(self, index: int) -> Landmark:
        x, y, confidence = self.points[index]
        return Landmark(float(x), float(y), float(confidence))

    @property
    def xy(self) -> np.ndarray:
        return self.points[:, :2]

    @property
    def confidences(self) -> np.ndarray:
        return self.points[:, 2]

    @classmethod
    def from_landmarks(cls, landmarks, timestamp: float = 0.0) -> "Frame":
        return cls(np.array([[lm.x, lm.y, lm.confidence] for lm in landmarks], dtype=float), timestamp)


def _is_landmark_like(record: Any) -> bool:
    if record is None:
        return False
    if isinstance(record, Mapping):
        return True
    return hasattr(record, "x") or hasattr(record, "y")


def _read_field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _coerce_unit(value: Any) -> float:
    """Return ``value`` as a float clamped to [0, 1]; non-numeric values become 0."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return 0.0
    value = float(value)
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def _read_confidence(record: Any) -> float:
    for name in ("visibility", "score", "confidence"):
        value = _read_field(record, name)
        if isinstance(value, numbers.Real) and not isinstance(value, bool):
            return _coerce_unit(value)
    return 0.0


def validate_landmarks(raw: Any, schema_size: int = SCHEMA_SIZE, timestamp: float = 0.0) -> Optional[Frame]:
    """
    Normalize one raw landmark array into a Frame.

    Args:
        raw: Sequence of landmark records (objects with ``x``, ``y`` and
            ``visibility``/``score`` attributes, or mappings with those keys)
        schema_size: Number of landmarks the pose model produces
        timestamp: Monotonic capture time of the frame

    Returns:
        A Frame with exactly ``schema_size`` rows, or None if the input is not a
        sequence, is empty, is shorter than ``schema_size`` or contains an entry
        that is not landmark-like. Never raises.
    """
    if isinstance(raw, (str, bytes, Mapping)):
        return None
    if not isinstance(raw, (Sequence, np.ndarray)):
        return None
    if len(raw) == 0 or len(raw) < schema_size:
        return None

    rows = np.zeros((schema_size, 3), dtype=float)
    for index in range(schema_size):
        record = raw[index]
        if not _is_landmark_like(record):
            return None
        rows[index, 0] = _coerce_unit(_read_field(record, "x"))
        rows[index, 1] = _coerce_unit(_read_field(record, "y"))
        rows[index, 2] = _read_confidence(record)

    return Frame(rows, timestamp)
