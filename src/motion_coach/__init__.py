"""
Motion Coach: real-time movement quality analysis over pose landmarks.
"""

__version__ = "0.1.0"
