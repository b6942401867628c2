from typing import Any, List, Optional, Sequence

import cv2
import mediapipe as mp
import numpy as np

from ..motion_analysis.landmarks import PoseLandmark
from .base_detector import BasePoseDetector


class MediaPipePoseDetector(BasePoseDetector):
    """MediaPipe implementation of pose detection."""

    def __init__(self, min_detection_confidence: float = 0.5, min_tracking_confidence: float = 0.5,
                 model_complexity: int = 1):
        """
        Initialize the MediaPipe pose detector.

        Args:
            min_detection_confidence: Minimum confidence for pose detection
            min_tracking_confidence: Minimum confidence for pose tracking
            model_complexity: Pose landmark model complexity (0, 1 or 2)
        """
        self.mp_pose = mp.solutions.pose
        self.pose = self.mp_pose.Pose(
            static_image_mode=False,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence
        )
        self._landmark_names = [landmark.name.lower() for landmark in PoseLandmark]
        self.last_results = None

    def detect(self, frame: np.ndarray) -> Optional[Sequence[Any]]:
        """
        Detect pose landmarks using MediaPipe.

        Args:
            frame: Input frame as numpy array (BGR)

        Returns:
            The 33 MediaPipe landmark records (``x``, ``y``, ``z``, ``visibility``)
            or None if no pose was detected
        """
        # Convert BGR to RGB
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.pose.process(frame_rgb)
        self.last_results = results
        if not results.pose_landmarks:
            return None
        return list(results.pose_landmarks.landmark)

    def get_landmark_names(self) -> List[str]:
        """Get the list of landmark names provided by MediaPipe."""
        return self._landmark_names

    def close(self) -> None:
        self.pose.close()
