"""
Landmark sources feeding the motion analyzer.
"""

from .base_detector import BasePoseDetector

__all__ = ['BasePoseDetector']
