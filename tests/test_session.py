import asyncio
import threading

import pytest

from posecoach.detector import DetectorInitError
from posecoach.session import MODEL_ERROR_MESSAGE, NO_POSE_MESSAGE, DetectionSession
from posecoach.templates import get_template
from posecoach.types import PoseMode, Severity
from tests.conftest import FakeDetector, keypoints_for, kp


def make_session(clock, detector=None, **kwargs):
    detector = detector or FakeDetector()
    kwargs.setdefault("interval_s", 1.0)
    kwargs.setdefault("warmup_s", 2.0)
    return DetectionSession(detector_factory=lambda: detector, clock=clock, **kwargs)


def failing_factory():
    raise DetectorInitError("no model")


def test_model_failure_disables_session(clock, frame):
    session = DetectionSession(detector_factory=failing_factory, clock=clock, warmup_s=0)
    assert session.start() is False
    assert session.disabled
    assert [item.severity for item in session.latest.feedback] == [Severity.ERROR]
    assert session.latest.messages == [MODEL_ERROR_MESSAGE]

    clock.advance(10)
    assert not session.due()
    assert asyncio.run(session.tick(frame)) is None
    # No retry
    assert session.start() is False


def test_warmup_and_cadence(clock, frame):
    detector = FakeDetector()
    session = make_session(clock, detector)
    assert not session.due()
    session.start()

    clock.advance(1.5)
    assert not session.due()
    assert asyncio.run(session.tick(frame)) is None
    assert detector.calls == 0

    clock.advance(0.5)
    assert session.due()
    assert asyncio.run(session.tick(frame)) is not None
    assert detector.calls == 1

    clock.advance(0.5)
    assert not session.due()
    clock.advance(0.5)
    assert session.due()


def test_busy_session_skips_tick(clock, frame):
    release = threading.Event()

    class SlowDetector(FakeDetector):
        def estimate_poses(self, frame):
            release.wait(5)
            return super().estimate_poses(frame)

    detector = SlowDetector()
    session = make_session(clock, detector, warmup_s=0)
    session.start()

    async def scenario():
        first = asyncio.create_task(session.tick(frame))
        await asyncio.sleep(0)
        assert session.busy
        skipped = await session.tick(frame)
        release.set()
        return skipped, await first

    skipped, result = asyncio.run(scenario())
    assert skipped is None
    assert result is not None
    assert detector.calls == 1
    assert not session.busy


def test_template_scoring(clock, frame):
    template = get_template("front-double-biceps")
    pose = list(keypoints_for(template, 640, 480).values())
    session = make_session(clock, FakeDetector(poses=[pose]), template_id=template.id, warmup_s=0)
    session.start()

    result = asyncio.run(session.tick(frame))
    assert result.pose_detected
    assert result.score.score == 100
    assert result.messages == ["Perfect! You've mastered this pose."]
    assert session.latest is result


def test_only_first_pose_is_scored(clock, frame):
    template = get_template("most-muscular")
    good = list(keypoints_for(template, 640, 480).values())
    other = [kp("left_shoulder", 0, 0)]
    session = make_session(clock, FakeDetector(poses=[other, good]), template_id=template.id)
    session.start()

    result = session.detect(frame)
    assert result.score.matched_count == 1
    assert result.score.score < 50


def test_no_pose_with_template(clock, frame):
    template = get_template("side-chest")
    session = make_session(clock, template_id=template.id)
    session.start()

    result = session.detect(frame)
    assert not result.pose_detected
    assert result.score.score == 0
    assert result.score.missing_parts == template.part_names()
    assert result.messages == [NO_POSE_MESSAGE]


def test_no_pose_posture_mode(clock, frame):
    session = make_session(clock, mode="photography")
    session.start()

    result = session.detect(frame)
    assert result.score is None
    assert [(i.message, i.severity) for i in result.feedback] == [(NO_POSE_MESSAGE, Severity.INFO)]


def test_detector_error_reports_no_pose(clock, frame):
    session = make_session(clock, FakeDetector(error=RuntimeError("boom")))
    session.start()
    assert session.detect(frame).feedback[0].message == NO_POSE_MESSAGE


def test_posture_mode_uses_lower_confidence_threshold(clock, frame):
    pose = [
        kp("nose", 320, 100, 0.25),
        kp("left_shoulder", 380, 200, 0.25),
        kp("right_shoulder", 260, 200, 0.25),
    ]
    session = make_session(clock, FakeDetector(poses=[pose]), mode=PoseMode.FITNESS)
    session.start()

    result = session.detect(frame)
    assert set(result.keypoints) == {"nose", "left_shoulder", "right_shoulder"}
    assert result.feedback[0].severity is Severity.SUCCESS


def test_set_target(clock):
    session = make_session(clock)
    session.set_target("photography", "rear-lat-spread")
    assert session.mode is PoseMode.PHOTOGRAPHY
    assert session.template_id == "rear-lat-spread"
    session.set_target("fitness")
    assert session.template_id is None
    with pytest.raises(KeyError):
        session.set_target("fitness", "crab")
    with pytest.raises(ValueError):
        session.set_target("dance")


def test_to_dict_and_close(clock, frame):
    detector = FakeDetector(poses=[[kp("nose", 1, 2)]])
    session = make_session(clock, detector, template_id="side-chest")
    session.start()

    data = session.detect(frame).to_dict()
    assert data["mode"] == "fitness"
    assert data["template_id"] == "side-chest"
    assert data["score"]["total_count"] == 10
    assert data["keypoints"]["nose"] == {"name": "nose", "x": 1.0, "y": 2.0, "confidence": 0.9}

    session.close()
    assert detector.closed
    assert session.detector is None


class SwitchingPose(list):
    """A pose whose keypoints change the session target while they are read."""

    def __init__(self, keypoints, on_read):
        super().__init__(keypoints)
        self.on_read = on_read

    def __iter__(self):
        self.on_read()
        return super().__iter__()


def test_target_switch_during_detect_uses_starting_target(clock, frame):
    template = get_template("side-chest")
    session = make_session(clock, template_id=template.id)
    pose = SwitchingPose(keypoints_for(template, 640, 480).values(), lambda: session.set_target("fitness"))
    session.detector = FakeDetector(poses=[pose])

    result = session.detect(frame)
    assert result.template_id == "side-chest"
    assert result.score.score == 100
    assert session.template_id is None

    # The next detection follows the new target
    assert session.detect(frame).score is None


def test_due_is_false_while_detection_in_flight(clock):
    session = make_session(clock, warmup_s=0)
    session.start()
    assert session.due()
    session.busy = True
    assert not session.due()


def test_close_waits_for_cancelled_tick(clock, frame):
    entered = threading.Event()
    release = threading.Event()

    class SlowDetector(FakeDetector):
        running = False
        closed_while_running = False

        def estimate_poses(self, frame):
            self.running = True
            entered.set()
            release.wait(5)
            self.running = False
            return super().estimate_poses(frame)

        def close(self):
            self.closed_while_running = self.running
            super().close()

    detector = SlowDetector()
    session = make_session(clock, detector, warmup_s=0)
    session.start()

    async def scenario():
        tick = asyncio.create_task(session.tick(frame))
        while not entered.is_set():
            await asyncio.sleep(0.01)
        tick.cancel()
        asyncio.get_running_loop().call_later(0.05, release.set)
        await session.aclose()
        return tick

    tick = asyncio.run(scenario())
    assert tick.cancelled()
    assert detector.closed
    assert not detector.closed_while_running
    assert not session.busy
