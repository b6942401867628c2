"""
Error taxonomy of the motion analysis engine.

Per-frame errors never reach the caller of ``analyze_frame``: they are counted
by the fault controller and surface only as a degraded AnalysisResult.
Too few confident landmarks in a joint group is not an error at all; the group
is scored neutrally.
"""


class MotionAnalysisError(Exception):
    """Base class for engine errors."""


class InputError(MotionAnalysisError):
    """The landmark array delivered for a frame was malformed or too short."""


class ProcessingFault(MotionAnalysisError):
    """An unexpected exception was raised while scoring a frame."""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class UnknownExerciseError(MotionAnalysisError, ValueError):
    """The requested exercise type has no joint group catalog entry."""
