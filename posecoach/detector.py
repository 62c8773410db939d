import logging
from abc import ABC, abstractmethod
from typing import List

import cv2

from posecoach.config import MIN_DETECTION_CONFIDENCE, MIN_TRACKING_CONFIDENCE, MODEL_COMPLEXITY
from posecoach.types import BodyPart, Keypoint

logger = logging.getLogger(__name__)


class DetectorInitError(RuntimeError):
    """The pose model could not be loaded."""


class PoseDetector(ABC):
    """
    Pose model adapter.

    Implementations take a BGR frame (H,W,3 uint8) and return zero or more
    poses, each a list of named keypoints in pixel coordinates.
    """

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def estimate_poses(self, frame) -> List[List[Keypoint]]: ...

    @abstractmethod
    def close(self) -> None: ...


class MediaPipePoseDetector(PoseDetector):
    """
    MediaPipe Pose, reported with COCO-17 part names.

    MediaPipe returns normalized landmarks; they are scaled to pixels here so
    every detector hands the scorer the same coordinate space. Landmark
    visibility is used as confidence.
    """

    # Mediapipe landmark indices for the COCO-17 parts
    keypoint_indices = {
        BodyPart.NOSE.value: 0,
        BodyPart.LEFT_EYE.value: 2,
        BodyPart.RIGHT_EYE.value: 5,
        BodyPart.LEFT_EAR.value: 7,
        BodyPart.RIGHT_EAR.value: 8,
        BodyPart.LEFT_SHOULDER.value: 11,
        BodyPart.RIGHT_SHOULDER.value: 12,
        BodyPart.LEFT_ELBOW.value: 13,
        BodyPart.RIGHT_ELBOW.value: 14,
        BodyPart.LEFT_WRIST.value: 15,
        BodyPart.RIGHT_WRIST.value: 16,
        BodyPart.LEFT_HIP.value: 23,
        BodyPart.RIGHT_HIP.value: 24,
        BodyPart.LEFT_KNEE.value: 25,
        BodyPart.RIGHT_KNEE.value: 26,
        BodyPart.LEFT_ANKLE.value: 27,
        BodyPart.RIGHT_ANKLE.value: 28
    }

    def __init__(
        self,
        model_complexity: int = MODEL_COMPLEXITY,
        min_detection_confidence: float = MIN_DETECTION_CONFIDENCE,
        min_tracking_confidence: float = MIN_TRACKING_CONFIDENCE,
    ):
        try:
            import mediapipe as mp
            self.mp_pose = mp.solutions.pose
            # Use real-time mode (static_image_mode=False) for continuous detection/tracking
            self.pose = self.mp_pose.Pose(
                static_image_mode=False,
                model_complexity=int(model_complexity),
                min_detection_confidence=float(min_detection_confidence),
                min_tracking_confidence=float(min_tracking_confidence),
            )
        except Exception as e:
            raise DetectorInitError(
                "MediaPipe pose model failed to load. Install pose deps with: pip install -e .[pose]"
            ) from e
        logger.info("MediaPipe pose model loaded (complexity=%s)", model_complexity)

    def name(self) -> str:
        return "mediapipe_pose"

    def estimate_poses(self, frame) -> List[List[Keypoint]]:
        """
        Runs Mediapipe Pose detection on a frame (BGR image).
        MediaPipe tracks a single person, so the result has at most one pose.
        """
        h, w = int(frame.shape[0]), int(frame.shape[1])
        image_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.pose.process(image_rgb)
        if not results or not results.pose_landmarks:
            return []

        landmarks = results.pose_landmarks.landmark
        keypoints = []
        for name, idx in self.keypoint_indices.items():
            landmark = landmarks[idx]
            keypoints.append(Keypoint(
                name=name,
                x=float(landmark.x) * w,
                y=float(landmark.y) * h,
                confidence=float(getattr(landmark, "visibility", 0.0) or 0.0),
            ))
        return [keypoints]

    def close(self) -> None:
        if self.pose is not None:
            self.pose.close()
            self.pose = None
