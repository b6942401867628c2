from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

import numpy as np


class BasePoseDetector(ABC):
    """Base class for landmark sources feeding the motion analyzer."""

    @abstractmethod
    def detect(self, frame: np.ndarray) -> Optional[Sequence[Any]]:
        """
        Detect pose landmarks in the given frame.

        Args:
            frame: Input frame as numpy array (BGR)

        Returns:
            Ordered sequence of raw landmark records exposing ``x``, ``y`` and
            ``visibility``, or None when no pose was found
        """
        pass

    @abstractmethod
    def get_landmark_names(self) -> List[str]:
        """
        Get the list of landmark names that this detector provides.

        Returns:
            List of landmark names, in landmark index order
        """
        pass

    def close(self) -> None:
        """Release model resources."""
