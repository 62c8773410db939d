"""
One client's detection cycle.

The caller feeds camera frames; the session decides when a detection is due
(warm-up after the camera is ready, then a fixed cadence), never runs two
detections at once, and keeps the latest result for display.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from posecoach.config import (
    ANALYSIS_MIN_CONFIDENCE,
    DETECTION_INTERVAL_S,
    DETECTION_WARMUP_S,
    KEYPOINT_MIN_CONFIDENCE,
)
from posecoach.detector import DetectorInitError, MediaPipePoseDetector, PoseDetector
from posecoach.feedback import PostureChecker, TemplatePoseChecker
from posecoach.keypoints import build_keypoint_set, first_pose
from posecoach.scoring import empty_score
from posecoach.templates import get_template
from posecoach.types import FeedbackItem, KeypointSet, PoseMode, PoseScoreResult, Severity

logger = logging.getLogger(__name__)

NO_POSE_MESSAGE = "No pose detected. Please make sure you're visible in the camera frame."
MODEL_ERROR_MESSAGE = "Pose detection model failed to load. Reload the page to try again."


@dataclass
class DetectionResult:
    mode: PoseMode
    template_id: Optional[str] = None
    pose_detected: bool = False
    score: Optional[PoseScoreResult] = None
    messages: List[str] = field(default_factory=list)
    feedback: List[FeedbackItem] = field(default_factory=list)
    keypoints: KeypointSet = field(default_factory=dict)

    def to_dict(self):
        return {
            "mode": self.mode.value,
            "template_id": self.template_id,
            "pose_detected": self.pose_detected,
            "score": self.score.to_dict() if self.score else None,
            "messages": list(self.messages),
            "feedback": [item.to_dict() for item in self.feedback],
            "keypoints": {name: kp.to_dict() for name, kp in self.keypoints.items()},
        }


@dataclass(frozen=True)
class DetectionTarget:
    """What a detection is judged against. Replaced as a whole, never mutated."""

    mode: PoseMode
    template_checker: Optional[TemplatePoseChecker]
    posture_checker: PostureChecker

    @property
    def template_id(self) -> Optional[str]:
        return self.template_checker.template.id if self.template_checker else None


class DetectionSession:
    """
    Owns the detector handle for one client.

    If the model fails to load the session is disabled for good and its
    latest result carries a single error item.
    """

    def __init__(
        self,
        detector_factory: Callable[[], PoseDetector] = MediaPipePoseDetector,
        mode: Union[PoseMode, str] = PoseMode.FITNESS,
        template_id: Optional[str] = None,
        interval_s: float = DETECTION_INTERVAL_S,
        warmup_s: float = DETECTION_WARMUP_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.detector_factory = detector_factory
        self.interval_s = interval_s
        self.warmup_s = warmup_s
        self.clock = clock

        self.detector: Optional[PoseDetector] = None
        self.disabled = False
        self.busy = False
        self.latest: Optional[DetectionResult] = None

        self._ready_at: Optional[float] = None
        self._last_tick_at: Optional[float] = None
        self._inflight: Optional[asyncio.Future] = None
        self.set_target(mode, template_id)

    def set_target(self, mode: Union[PoseMode, str], template_id: Optional[str] = None) -> None:
        """
        Switch between template scoring (template_id given) and posture hints.
        Raises ValueError / KeyError for an unknown mode / template.

        A detection already running on the worker thread finishes against
        the target it started with.
        """
        mode = PoseMode(mode)
        self.target = DetectionTarget(
            mode=mode,
            template_checker=TemplatePoseChecker(get_template(template_id)) if template_id else None,
            posture_checker=PostureChecker(mode),
        )

    @property
    def mode(self) -> PoseMode:
        return self.target.mode

    @property
    def template_id(self) -> Optional[str]:
        return self.target.template_id

    def start(self) -> bool:
        """
        Load the model; call once the camera is delivering frames.
        Returns False if the model could not be loaded.
        """
        if self.disabled:
            return False
        try:
            self.detector = self.detector_factory()
        except DetectorInitError as e:
            logger.error("Pose detection disabled: %s", e)
            self.disabled = True
            error = FeedbackItem(part=None, message=MODEL_ERROR_MESSAGE, severity=Severity.ERROR)
            self.latest = DetectionResult(
                mode=self.mode,
                template_id=self.template_id,
                messages=[MODEL_ERROR_MESSAGE],
                feedback=[error],
            )
            return False
        self._ready_at = self.clock()
        self._last_tick_at = None
        logger.info("Detection session started (mode=%s, template=%s)", self.mode.value, self.template_id)
        return True

    def due(self) -> bool:
        """True once warm-up has passed, nothing is in flight and the cadence interval has elapsed."""
        if self.disabled or self.busy or self.detector is None or self._ready_at is None:
            return False
        now = self.clock()
        if now - self._ready_at < self.warmup_s:
            return False
        return self._last_tick_at is None or now - self._last_tick_at >= self.interval_s

    def detect(self, frame) -> DetectionResult:
        """
        Run one detection and build the result for the current target.
        Only the first detected pose is scored.
        """
        target = self.target
        height, width = int(frame.shape[0]), int(frame.shape[1])
        try:
            poses = self.detector.estimate_poses(frame)
        except Exception:
            logger.exception("Pose detection failed")
            poses = []

        pose = first_pose(poses)
        if pose is None:
            return self._no_pose_result(target)

        checker = target.template_checker
        if checker is not None:
            keypoints = build_keypoint_set(pose, KEYPOINT_MIN_CONFIDENCE)
            score = checker.compute_pose_similarity(keypoints, width, height)
            return DetectionResult(
                mode=target.mode,
                template_id=target.template_id,
                pose_detected=True,
                score=score,
                messages=checker.generate_feedback(score),
                keypoints=keypoints,
            )

        keypoints = build_keypoint_set(pose, ANALYSIS_MIN_CONFIDENCE)
        return DetectionResult(
            mode=target.mode,
            pose_detected=True,
            feedback=target.posture_checker.generate_feedback(keypoints, width, height),
            keypoints=keypoints,
        )

    def _no_pose_result(self, target: DetectionTarget) -> DetectionResult:
        if target.template_checker is not None:
            return DetectionResult(
                mode=target.mode,
                template_id=target.template_id,
                score=empty_score(target.template_checker.template),
                messages=[NO_POSE_MESSAGE],
            )
        return DetectionResult(
            mode=target.mode,
            feedback=[FeedbackItem(part=None, message=NO_POSE_MESSAGE, severity=Severity.INFO)],
        )

    async def tick(self, frame) -> Optional[DetectionResult]:
        """
        Detect on `frame` unless disabled, still warming up or a previous
        detection is in flight. Returns None when the tick was skipped.

        Cancelling the tick does not stop the worker thread; the session
        stays busy until the detection itself has finished.
        """
        if self.disabled or self.detector is None:
            return None
        if self.busy:
            logger.debug("Detection still running, skipping tick")
            return None
        if self._ready_at is None or self.clock() - self._ready_at < self.warmup_s:
            return None

        self.busy = True
        self._last_tick_at = self.clock()
        self._inflight = asyncio.ensure_future(asyncio.to_thread(self.detect, frame))
        self._inflight.add_done_callback(self._detection_done)
        return await asyncio.shield(self._inflight)

    def _detection_done(self, future: asyncio.Future) -> None:
        self.busy = False
        self._inflight = None
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Detection cycle failed", exc_info=error)
            return
        self.latest = future.result()

    async def aclose(self) -> None:
        """Wait for an in-flight detection, then release the detector."""
        if self._inflight is not None:
            await asyncio.gather(self._inflight, return_exceptions=True)
        self.close()

    def close(self) -> None:
        if self.detector is not None:
            self.detector.close()
            self.detector = None
        logger.info("Detection session closed")
