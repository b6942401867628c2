"""
Motion analysis package: real-time movement quality scoring over pose landmarks.
"""

from .analyzer import MotionQualityAnalyzer
from .config_utils import AnalyzerConfig, LevelConfig, UserLevel, load_analyzer_config
from .errors import InputError, MotionAnalysisError, ProcessingFault, UnknownExerciseError
from .joint_groups import ExerciseType, JointGroup, get_joint_groups
from .landmarks import Frame, Landmark, PoseLandmark, validate_landmarks
from .results import (AnalysisContext, AnalysisResult, ExerciseState, FaultState,
                      QualityGrade, RepPhase)
from .session import SessionSummary, WorkoutSessionRecorder

__all__ = [
    'MotionQualityAnalyzer',
    'AnalyzerConfig',
    'LevelConfig',
    'UserLevel',
    'load_analyzer_config',
    'MotionAnalysisError',
    'InputError',
    'ProcessingFault',
    'UnknownExerciseError',
    'ExerciseType',
    'JointGroup',
    'get_joint_groups',
    'Frame',
    'Landmark',
    'PoseLandmark',
    'validate_landmarks',
    'AnalysisContext',
    'AnalysisResult',
    'ExerciseState',
    'FaultState',
    'QualityGrade',
    'RepPhase',
    'SessionSummary',
    'WorkoutSessionRecorder',
]
