import math

import numpy as np

from posecoach.config import DEFAULT_KEYPOINT_WEIGHT, DISTANCE_FALLOFF, KEYPOINT_WEIGHTS
from posecoach.types import KeypointSet, PoseScoreResult, PoseTemplate


def keypoint_weight(part: str) -> float:
    return KEYPOINT_WEIGHTS.get(part, DEFAULT_KEYPOINT_WEIGHT)


def empty_score(template: PoseTemplate) -> PoseScoreResult:
    """
    Result for a frame where nothing was detected: every template part missing.
    """
    names = template.part_names()
    return PoseScoreResult(score=0, matched_count=0, total_count=len(names), missing_parts=names)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_pose(detected: KeypointSet, template: PoseTemplate, frame_width: int, frame_height: int) -> PoseScoreResult:
    """
    Weighted similarity (0-100) between detected keypoints and a template.

    detected: {part_name: Keypoint} in pixel coordinates
    Each template part found in `detected` contributes
    max(0, 1 - distance * DISTANCE_FALLOFF) times its weight, where distance
    is measured in normalized frame units. Parts that were not detected add
    their weight to the total but nothing to the score.
    """
    if not detected:
        return empty_score(template)
    if frame_width <= 0 or frame_height <= 0:
        raise ValueError(f"Invalid frame size {frame_width}x{frame_height}")

    matched = []
    missing = []
    total_score = 0.0
    total_weight = 0.0

    for part, (target_x, target_y) in template.keypoints.items():
        weight = keypoint_weight(part)
        total_weight += weight

        kp = detected.get(part)
        if kp is None:
            missing.append(part)
            continue

        # Target in pixels, then back to frame-relative offsets per axis
        template_x = target_x * frame_width
        template_y = target_y * frame_height
        distance = math.sqrt(
            ((template_x - kp.x) / frame_width) ** 2
            + ((template_y - kp.y) / frame_height) ** 2
        )
        similarity = max(0.0, 1.0 - distance * DISTANCE_FALLOFF)

        total_score += similarity * weight
        matched.append(part)

    final_score = (total_score / total_weight) * 100 if total_weight > 0 else 0.0
    score = min(100, max(0, _round_half_up(final_score)))

    return PoseScoreResult(
        score=score,
        matched_count=len(matched),
        total_count=len(template.keypoints),
        missing_parts=missing,
    )


def calculate_angle(a, b, c) -> float:
    """
    Compute the angle (in degrees) at point b, formed by points a-b-c.
    Each is (x, y). Returns 0 when either arm has zero length.
    """
    a = np.array(a, dtype=float)
    b = np.array(b, dtype=float)
    c = np.array(c, dtype=float)
    ba = a - b
    bc = c - b
    if not ba.any() or not bc.any():
        return 0.0
    # Difference of the two arm directions; collinear arms give exactly 0
    radians = np.arctan2(bc[1], bc[0]) - np.arctan2(ba[1], ba[0])
    angle = abs(float(np.degrees(radians)))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle
