"""Shared synthetic landmark fixtures.

Poses follow the 33-point BlazePose topology in normalized image coordinates
(y grows downward). No camera, model or audio device is needed.
"""

import math
from types import SimpleNamespace

import numpy as np
import pytest

from motion_coach.motion_analysis.landmarks import Frame

# index -> (x, y) of a person standing facing the camera
STANDING_POSE = {
    0: (0.50, 0.10),   # nose
    7: (0.47, 0.11),   # left ear
    8: (0.53, 0.11),   # right ear
    11: (0.40, 0.25),  # left shoulder
    12: (0.60, 0.25),  # right shoulder
    13: (0.38, 0.40),  # left elbow
    14: (0.62, 0.40),  # right elbow
    15: (0.37, 0.55),  # left wrist
    16: (0.63, 0.55),  # right wrist
    23: (0.42, 0.55),  # left hip
    24: (0.58, 0.55),  # right hip
    25: (0.42, 0.72),  # left knee
    26: (0.58, 0.72),  # right knee
    27: (0.42, 0.90),  # left ankle
    28: (0.58, 0.90),  # right ankle
}


def make_pose(overrides=None, visibility=0.9):
    """Return 33 landmark records (objects with x, y, visibility) for a standing pose."""
    coords = dict(STANDING_POSE)
    coords.update(overrides or {})
    return [
        SimpleNamespace(x=coords.get(i, (0.5, 0.5))[0], y=coords.get(i, (0.5, 0.5))[1], visibility=visibility)
        for i in range(33)
    ]


def squat_pose(knee_angle, shin_length=0.18):
    """Standing pose with both ankles placed so the hip-knee-ankle angle is ``knee_angle`` degrees."""
    theta = math.radians(knee_angle)
    overrides = {}
    for knee, ankle, side in ((25, 27, 1.0), (26, 28, -1.0)):
        kx, ky = STANDING_POSE[knee]
        overrides[ankle] = (kx + side * shin_length * math.sin(theta), ky - shin_length * math.cos(theta))
    return make_pose(overrides)


def frame_from(records, timestamp=0.0):
    return Frame(np.array([[r.x, r.y, r.visibility] for r in records], dtype=float), timestamp)


def shifted(frame, dx=0.0, dy=0.0, indices=None):
    """Copy of ``frame`` with the given landmarks (default all) moved by (dx, dy)."""
    points = frame.points.copy()
    rows = slice(None) if indices is None else list(indices)
    points[rows, 0] += dx
    points[rows, 1] += dy
    return Frame(points, frame.timestamp)


@pytest.fixture
def standing_records():
    return make_pose()


@pytest.fixture
def standing_frame():
    return frame_from(make_pose())


@pytest.fixture
def pose_factory():
    return make_pose


@pytest.fixture
def squat_pose_factory():
    return squat_pose


@pytest.fixture
def frame_factory():
    return frame_from


@pytest.fixture
def shift():
    return shifted
