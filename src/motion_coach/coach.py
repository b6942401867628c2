import logging
import time
from typing import Dict, Optional

import cv2
import numpy as np

from .feedback.voice_feedback import VoiceFeedback
from .motion_analysis import (AnalysisContext, AnalysisResult, MotionQualityAnalyzer, QualityGrade,
                              SessionSummary, WorkoutSessionRecorder)
from .pose_detection.base_detector import BasePoseDetector
from .pose_detection.mediapipe_detector import MediaPipePoseDetector

logger = logging.getLogger(__name__)

WINDOW_NAME = "Motion Coach"

GRADE_COLORS = {
    QualityGrade.S: (255, 200, 0),
    QualityGrade.A: (0, 255, 0),
    QualityGrade.B: (0, 200, 200),
    QualityGrade.C: (0, 165, 255),
    QualityGrade.D: (0, 0, 255),
}


class MotionCoach:
    """Camera/video loop: detector -> analyzer -> overlay, voice and session record."""

    def __init__(self, exercise_type: str = "squat", user_level=None,
                 detector: Optional[BasePoseDetector] = None,
                 voice_feedback: Optional[VoiceFeedback] = None,
                 enable_voice: bool = True):
        """
        Initialize the coach.

        Args:
            exercise_type: Type of exercise to analyze
            user_level: Optional user experience level
            detector: Landmark source; defaults to MediaPipe
            voice_feedback: Voice feedback selector/speaker
            enable_voice: Speak selected feedback messages
        """
        self.pose_detector = detector or MediaPipePoseDetector()
        self.analyzer = MotionQualityAnalyzer(exercise_type=exercise_type, user_level=user_level)
        self.voice_feedback = voice_feedback or VoiceFeedback()
        self.enable_voice = enable_voice
        self.recorder = WorkoutSessionRecorder(self.analyzer.exercise_type.value)

        self.cap = None
        self.is_running = False
        self.missing_landmarks_counter = 0
        self.missing_landmarks_threshold = 30  # ~1 second at 30fps
        self._session_start = None

    def start(self, camera_id: int = 0) -> SessionSummary:
        """
        Start coaching from the specified camera until 'q' is pressed.

        Args:
            camera_id: Camera device ID
        """
        return self._run(cv2.VideoCapture(camera_id), f"camera {camera_id}")

    def run_video(self, video_path: str) -> SessionSummary:
        """Analyze a recorded video file frame by frame."""
        return self._run(cv2.VideoCapture(video_path), video_path)

    def stop(self) -> SessionSummary:
        """Stop the loop, release resources and log the session summary."""
        self.is_running = False
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        cv2.destroyAllWindows()
        self.pose_detector.close()
        summary = self.recorder.summary()
        if self.enable_voice and summary.total_reps > 0:
            self.voice_feedback.speak_async(self.voice_feedback.feedback_messages["exercise_complete"])
        self.voice_feedback.shutdown(timeout=5.0)
        logger.info(f"Session summary: {summary.to_dict()}")
        return summary

    def process_frame(self, frame: np.ndarray, timestamp: Optional[float] = None) -> Dict:
        """
        Process a single frame.

        Args:
            frame: Input frame (BGR)
            timestamp: Capture time; defaults to ``time.monotonic()``

        Returns:
            Dictionary with the raw landmarks, the AnalysisResult and any spoken feedback
        """
        if timestamp is None:
            timestamp = time.monotonic()
        landmarks = self.pose_detector.detect(frame)
        if landmarks is None:
            self.missing_landmarks_counter += 1
            return {"error": "No pose detected"}
        self.missing_landmarks_counter = 0

        context = AnalysisContext(session_duration=timestamp - self._session_start) \
            if self._session_start is not None else None
        result = self.analyzer.analyze_frame(landmarks, timestamp=timestamp, context=context)
        self.recorder.record(result)

        feedback = self.voice_feedback.generate_feedback(result)
        if feedback and self.enable_voice:
            self.voice_feedback.speak_async(feedback)

        return {"landmarks": landmarks, "result": result, "feedback": feedback,
                "stats": self.analyzer.get_stats()}

    def _run(self, cap, source: str) -> SessionSummary:
        self.cap = cap
        try:
            if not self.cap.isOpened():
                raise RuntimeError(f"Failed to open {source}")
            logger.info(f"Coaching {self.analyzer.exercise_type.value} from {source}")
            self.is_running = True
            self._session_start = time.monotonic()
            while self.is_running:
                ret, frame = self.cap.read()
                if not ret:
                    break
                output = self.process_frame(frame)
                self._display_results(frame, output)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
        except KeyboardInterrupt:
            logger.info("KeyboardInterrupt received. Exiting gracefully...")
        finally:
            summary = self.stop()
        return summary

    def _display_results(self, frame: np.ndarray, output: Dict) -> None:
        """
        Draw a minimal overlay and show the frame.

        Args:
            frame: Input frame
            output: Output of process_frame
        """
        if "error" in output:
            if self.missing_landmarks_counter >= self.missing_landmarks_threshold:
                warning_msg = "We can't see your full body. Please adjust your position or camera."
                cv2.putText(frame, warning_msg, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 255), 2)
            cv2.imshow(WINDOW_NAME, frame)
            return

        height, width = frame.shape[:2]
        for landmark in output["landmarks"]:
            if getattr(landmark, "visibility", 0.0) > 0.3:
                cv2.circle(frame, (int(landmark.x * width), int(landmark.y * height)), 4, (0, 255, 0), -1)

        result: AnalysisResult = output["result"]
        stats = output["stats"]
        color = GRADE_COLORS[result.grade]
        lines = [
            f"Exercise: {result.exercise}",
            f"Reps: {result.rep_count} ({result.phase.value})",
            f"Grade: {result.grade.value}  Score: {result.composite_score:.2f}",
            f"Confidence: {result.confidence_level:.2f}",
            f"Tracking: {stats['smoothing_confidence']:.2f}  Smoothing: {stats['smoothing_quality']:.2f}",
        ]
        for idx, text in enumerate(lines):
            cv2.putText(frame, text, (10, 30 + idx * 30), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
        if stats["sudden_movement"]:
            cv2.putText(frame, "Sudden movement: slow down", (width - 320, 30),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 255), 2)
        for idx, correction in enumerate(result.corrections):
            cv2.putText(frame, correction, (10, 30 + (len(lines) + idx) * 30),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 255), 2)
        cv2.imshow(WINDOW_NAME, frame)
