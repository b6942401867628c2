import logging
import queue
import threading
import time
from typing import Optional

import pyttsx3

from ..motion_analysis.results import AnalysisResult, QualityGrade

logger = logging.getLogger(__name__)


class VoiceFeedback:
    """Voice feedback system for exercise form correction."""

    feedback_messages = {
        "good_form": "Good form! Keep it up!",
        "rep_complete": "Rep complete!",
        "exercise_complete": "Great work! Exercise complete!",
    }

    def __init__(self, rate: int = 150, volume: float = 1.0, cooldown: float = 7.0,
                 debounce_frames: int = 2):
        """
        Initialize the voice feedback system.

        The text-to-speech engine is created on the worker thread the first
        time something is spoken, so selecting messages needs no audio device.

        Args:
            rate: Speech rate (words per minute)
            volume: Speech volume (0.0 to 1.0)
            cooldown: Minimum seconds between two spoken messages
            debounce_frames: Frames a correction must persist before it is spoken
        """
        self.rate = rate
        self.volume = volume
        self.feedback_cooldown = cooldown
        self._violation_debounce_threshold = debounce_frames

        self._tts_queue = queue.Queue()
        self._tts_thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.engine_failed = False  # Set once pyttsx3 could not start; speech is then skipped

        self.last_feedback_time: Optional[float] = None
        self._last_feedback_message = None
        self._last_violation = None
        self._violation_persist_count = 0
        self._last_rep_count = 0

    def generate_feedback(self, result: AnalysisResult, now: Optional[float] = None) -> Optional[str]:
        """
        Pick the message to speak for this frame, if any.

        Args:
            result: AnalysisResult of the current frame
            now: Current time in seconds; defaults to ``time.time()``

        Returns:
            Feedback message if any, None otherwise
        """
        current_time = time.time() if now is None else now

        rep_completed = result.rep_count > self._last_rep_count
        self._last_rep_count = result.rep_count

        # Debounce: a correction must be the top one for several frames in a row
        violation = result.corrections[0] if result.corrections else None
        if violation:
            if violation == self._last_violation:
                self._violation_persist_count += 1
            else:
                self._violation_persist_count = 1
                self._last_violation = violation
        else:
            self._violation_persist_count = 0
            self._last_violation = None

        # Avoid feedback spam
        if self.last_feedback_time is not None and current_time - self.last_feedback_time < self.feedback_cooldown:
            return None

        if rep_completed:
            feedback = self.feedback_messages["rep_complete"]
        elif violation:
            if self._violation_persist_count < self._violation_debounce_threshold:
                return None
            feedback = violation
        elif result.grade in (QualityGrade.S, QualityGrade.A):
            feedback = self.feedback_messages["good_form"]
        else:
            return None

        # Rep announcements may repeat; everything else only when the message changes
        if feedback == self._last_feedback_message and not rep_completed:
            return None
        self._last_feedback_message = feedback
        self.last_feedback_time = current_time
        return feedback

    def reset(self) -> None:
        self.last_feedback_time = None
        self._last_feedback_message = None
        self._last_violation = None
        self._violation_persist_count = 0
        self._last_rep_count = 0

    def speak(self, message: str) -> None:
        """
        Queue the given message to be spoken by the background TTS thread.

        Args:
            message: Message to speak
        """
        if self.engine_failed:
            return
        self._ensure_worker()
        self._tts_queue.put(message)

    def speak_async(self, message: str) -> None:
        """
        Queue the given message to be spoken asynchronously by the background TTS thread.

        Args:
            message: Message to speak
        """
        self.speak(message)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop the TTS thread after it has spoken what is queued, waiting up to ``timeout`` seconds."""
        if self._tts_thread is not None and self._tts_thread.is_alive():
            self._tts_queue.put(None)
            if timeout is not None:
                self._tts_thread.join(timeout)

    def _ensure_worker(self) -> None:
        with self._lock:
            if self.engine_failed:
                return
            if self._tts_thread is None or not self._tts_thread.is_alive():
                self._tts_thread = threading.Thread(target=self._tts_worker, daemon=True)
                self._tts_thread.start()

    def _tts_worker(self):
        try:
            engine = pyttsx3.init()
            engine.setProperty('rate', self.rate)
            engine.setProperty('volume', self.volume)
        except Exception as e:
            logger.error(f"Text-to-speech engine unavailable, voice feedback disabled: {e}")
            self.engine_failed = True
            return
        while True:
            msg = self._tts_queue.get()
            if msg is None:
                break  # Allow for clean shutdown
            engine.say(msg)
            engine.runAndWait()
