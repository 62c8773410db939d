from typing import Iterable, Optional, Sequence, Tuple

from posecoach.config import KEYPOINT_MIN_CONFIDENCE
from posecoach.types import Keypoint, KeypointSet


def build_keypoint_set(raw_keypoints: Iterable[Keypoint], min_confidence: float = KEYPOINT_MIN_CONFIDENCE) -> KeypointSet:
    """
    Index detector output by body part name.

    Points without a name, or with confidence at or below `min_confidence`,
    are dropped. A later point with the same name replaces an earlier one.
    """
    keypoints: KeypointSet = {}
    for kp in raw_keypoints or ():
        if not kp.name:
            continue
        if kp.confidence is None or kp.confidence <= min_confidence:
            continue
        keypoints[kp.name] = kp
    return keypoints


def first_pose(poses: Sequence[Sequence[Keypoint]]) -> Optional[Sequence[Keypoint]]:
    """Single subject only: everything after the first pose is ignored."""
    if not poses:
        return None
    return poses[0]


def normalize(kp: Keypoint, frame_width: float, frame_height: float) -> Tuple[float, float]:
    if frame_width <= 0 or frame_height <= 0:
        raise ValueError(f"Invalid frame size {frame_width}x{frame_height}")
    return kp.x / frame_width, kp.y / frame_height


def readable_name(part: str) -> str:
    return part.replace("_", " ")
