import numpy as np
import pytest
from fastapi.testclient import TestClient

import api.main as main
from posecoach.detector import DetectorInitError
from posecoach.session import DetectionSession
from posecoach.templates import get_template
from tests.conftest import FakeDetector, keypoints_for


class FakeCapture:
    def __init__(self, camera_id, opened=True):
        self.opened = opened
        self.released = False

    def isOpened(self):
        return self.opened

    def read(self):
        return True, np.zeros((480, 640, 3), dtype=np.uint8)

    def release(self):
        self.released = True


def session_factory(detector_factory):
    def factory(mode, template_id):
        return DetectionSession(
            detector_factory=detector_factory,
            mode=mode,
            template_id=template_id,
            interval_s=0,
            warmup_s=0,
        )
    return factory


@pytest.fixture
def client(monkeypatch):
    def use(detector_factory, capture_factory=FakeCapture):
        monkeypatch.setattr(main, "manager", main.ConnectionManager(session_factory(detector_factory), capture_factory))
        return TestClient(main.app)
    return use


def next_feedback(ws, attempts=100):
    for _ in range(attempts):
        message = ws.receive_json()
        if message.get("feedback"):
            return message
    raise AssertionError("no feedback received")


def test_health(client):
    response = client(FakeDetector).get("/health")
    assert response.json() == {"status": "healthy"}


def test_poses(client):
    response = client(FakeDetector).get("/poses")
    data = response.json()
    assert [p["id"] for p in data][:2] == ["front-double-biceps", "side-chest"]
    assert data[1]["keypoints"]["left_shoulder"] == {"x": 0.4, "y": 0.25}


def test_live_template_scoring(client):
    template = get_template("side-chest")
    pose = list(keypoints_for(template, 640, 480).values())
    test_client = client(lambda: FakeDetector(poses=[pose]))

    with test_client.websocket_connect("/ws/alice") as ws:
        ws.send_json({"mode": "fitness", "pose_id": "side-chest"})
        message = next_feedback(ws)
        assert message["frame"]
        assert message["feedback"]["template_id"] == "side-chest"
        assert message["feedback"]["pose_detected"] is True
        ws.send_json({"command": "stop"})


def test_model_failure_is_reported(client):
    def broken():
        raise DetectorInitError("missing")

    with client(broken).websocket_connect("/ws/bob") as ws:
        ws.send_json({"mode": "photography"})
        message = next_feedback(ws)
        assert message["feedback"]["feedback"][0]["severity"] == "error"
        ws.send_json({"command": "stop"})


def test_camera_unavailable(client):
    test_client = client(FakeDetector, lambda camera_id: FakeCapture(camera_id, opened=False))
    with test_client.websocket_connect("/ws/carol") as ws:
        ws.send_json({"mode": "fitness"})
        assert ws.receive_json() == {"error": "Could not open webcam"}
        ws.send_json({"command": "stop"})


def test_unknown_pose(client):
    with client(FakeDetector).websocket_connect("/ws/dave") as ws:
        ws.send_json({"mode": "fitness", "pose_id": "crab"})
        assert "crab" in ws.receive_json()["error"]
        ws.send_json({"command": "stop"})
