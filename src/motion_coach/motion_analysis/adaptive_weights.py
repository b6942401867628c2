import logging
from typing import Dict, Iterable, Mapping, Tuple

from .joint_groups import JointGroup

logger = logging.getLogger(__name__)

WeightKey = Tuple[str, str]  # (exercise, group name)


class AdaptiveWeights:
    """
    Per (exercise, group) multipliers that drift toward the groups the user struggles with.

    Groups scoring above ``high_score`` lose ``rate``, groups below ``low_score``
    gain ``rate``; values are clamped to [min_weight, max_weight]. Unknown keys
    read as 1.0. The blend factor between spatial and temporal consistency is
    kept alongside, defaulting to ``default_blend``.
    """

    def __init__(self, rate: float = 0.1, min_weight: float = 0.1, max_weight: float = 2.0,
                 default_blend: float = 0.6, high_score: float = 0.8, low_score: float = 0.6):
        self.rate = rate
        self.min_weight = min_weight
        self.max_weight = max_weight
        self.default_blend = default_blend
        self.high_score = high_score
        self.low_score = low_score
        self._weights: Dict[WeightKey, float] = {}
        self._blend: Dict[WeightKey, float] = {}

    def __len__(self) -> int:
        return len(self._weights)

    @staticmethod
    def _key(exercise, group_name: str) -> WeightKey:
        return str(getattr(exercise, "value", exercise)), group_name

    def weight(self, exercise, group_name: str) -> float:
        return self._weights.get(self._key(exercise, group_name), 1.0)

    def update(self, exercise, scores: Mapping[str, float]) -> Dict[str, float]:
        """Nudge the stored weight of every scored group and return the new values."""
        updated = {}
        for group_name, score in scores.items():
            current = self.weight(exercise, group_name)
            if score > self.high_score:
                current -= self.rate
            elif score < self.low_score:
                current += self.rate
            new_weight = min(self.max_weight, max(self.min_weight, current))
            self._weights[self._key(exercise, group_name)] = new_weight
            updated[group_name] = new_weight
        return updated

    def blend_factor(self, exercise, group_name: str) -> float:
        return self._blend.get(self._key(exercise, group_name), self.default_blend)

    def set_blend_factor(self, exercise, group_name: str, value: float) -> None:
        self._blend[self._key(exercise, group_name)] = min(1.0, max(0.0, float(value)))

    def effective_weights(self, exercise, groups: Iterable[JointGroup]) -> Dict[str, float]:
        """Base group weight times the adaptive multiplier, keyed by group name."""
        return {group.name: group.weight * self.weight(exercise, group.name) for group in groups}

    def snapshot(self) -> Dict[WeightKey, float]:
        return dict(self._weights)

    def clear(self) -> None:
        logger.debug("Clearing %d adaptive weights", len(self._weights))
        self._weights.clear()
        self._blend.clear()
