import numpy as np
import pytest

from posecoach.detector import PoseDetector
from posecoach.types import Keypoint


def kp(name, x, y, confidence=0.9):
    return Keypoint(name=name, x=float(x), y=float(y), confidence=confidence)


def keypoints_for(template, width, height, offset=(0.0, 0.0), skip=()):
    """Detected keypoints sitting exactly on the template targets (plus an optional normalized offset)."""
    dx, dy = offset
    return {
        name: kp(name, (x + dx) * width, (y + dy) * height)
        for name, (x, y) in template.keypoints.items()
        if name not in skip
    }


class FakeDetector(PoseDetector):
    def __init__(self, poses=None, error=None):
        self.poses = poses or []
        self.error = error
        self.calls = 0
        self.closed = False

    def name(self):
        return "fake"

    def estimate_poses(self, frame):
        self.calls += 1
        if self.error:
            raise self.error
        return self.poses

    def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)


@pytest.fixture
def clock():
    return FakeClock()
