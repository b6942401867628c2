"""
smoothing.py - Confidence-gated temporal smoothing of landmark frames.
"""
from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .landmarks import Frame


@dataclass(frozen=True)
class SmoothedFrame:
    frame: Frame
    confidence: float  # Fraction of landmarks whose newest confidence clears the threshold


class TemporalSmoother:
    """
    Weighted moving average over the last ``window_size`` raw frames.

    Newer frames weigh more: entry ``i`` of a window of size ``W`` has weight
    ``(i + 1) / sum(1..W)``. Only entries whose confidence is above
    ``confidence_threshold`` take part; a landmark with no such entry passes
    the newest raw value through. Output confidence is always the newest raw
    confidence.
    """

    def __init__(self, window_size: int = 5, confidence_threshold: float = 0.7):
        self.window_size = window_size
        self.confidence_threshold = confidence_threshold
        self.window = deque(maxlen=window_size)

    def __len__(self) -> int:
        return len(self.window)

    def preview(self, frame: Frame) -> SmoothedFrame:
        """Smooth ``frame`` against the current window without modifying it."""
        frames = list(self.window)[-(self.window_size - 1):] if self.window_size > 1 else []
        frames.append(frame)
        return self._smooth(frames)

    def push(self, frame: Frame) -> None:
        self.window.append(frame)

    def add(self, frame: Frame) -> SmoothedFrame:
        smoothed = self.preview(frame)
        self.push(frame)
        return smoothed

    def reset(self) -> None:
        self.window.clear()

    def _smooth(self, frames) -> SmoothedFrame:
        newest = frames[-1]
        stack = np.stack([f.points for f in frames])  # (W, N, 3)
        weights = np.arange(1, len(frames) + 1, dtype=float)
        weights /= weights.sum()

        usable = stack[:, :, 2] > self.confidence_threshold  # (W, N)
        masked = weights[:, None] * usable  # (W, N)
        totals = masked.sum(axis=0)  # (N,)

        points = newest.points.copy()
        has_usable = totals > 0
        if np.any(has_usable):
            xy = np.einsum("wn,wnc->nc", masked, stack[:, :, :2])
            points[has_usable, :2] = xy[has_usable] / totals[has_usable, None]

        confidence = float(np.mean(newest.confidences > self.confidence_threshold)) if len(newest) else 0.0
        return SmoothedFrame(Frame(points, newest.timestamp), confidence)

    def detect_sudden_movement(self, current: Frame, previous: Optional[Frame] = None,
                               threshold: float = 0.1) -> bool:
        """True if any confident landmark moved more than ``threshold`` since ``previous``."""
        if previous is None:
            if not self.window:
                return False
            previous = self.window[-1]
        confident = (current.confidences > self.confidence_threshold) & (previous.confidences > self.confidence_threshold)
        if not np.any(confident):
            return False
        distances = np.linalg.norm(current.xy[confident] - previous.xy[confident], axis=1)
        return bool(np.any(distances > threshold))

    def smoothing_quality(self) -> float:
        """Consistency of the last three raw frames; 0.5 with fewer than two."""
        if len(self.window) < 2:
            return 0.5
        recent = list(self.window)[-3:]
        distances = []
        for prev, curr in zip(recent, recent[1:]):
            confident = (prev.confidences > self.confidence_threshold) & (curr.confidences > self.confidence_threshold)
            if np.any(confident):
                distances.extend(np.linalg.norm(curr.xy[confident] - prev.xy[confident], axis=1))
        if not distances:
            return 0.5
        return float(max(0.0, 1.0 - np.mean(distances) / 0.05))
