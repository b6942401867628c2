"""
Voice feedback for analysis results.
"""

from .voice_feedback import VoiceFeedback

__all__ = ['VoiceFeedback']
