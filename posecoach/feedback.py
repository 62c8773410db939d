"""
Human-readable guidance.

Two independent paths:
- pose_feedback(): messages for a template score (selected reference pose)
- analyze_pose(): severity-tagged posture hints straight from keypoint geometry
"""

import math
from typing import List, Optional, Union

from posecoach.config import (
    ALIGNMENT_OFFSET_THRESHOLD,
    ANALYSIS_MIN_CONFIDENCE,
    CENTER_OFFSET_THRESHOLD,
    COACHING_SCORE_THRESHOLD,
    LEVEL_SLOPE_THRESHOLD,
    MAX_LISTED_MISSING_PARTS,
    MIN_USABLE_KEYPOINTS,
    SCORE_BAND_GOOD_EFFORT,
    SCORE_BAND_MASTERED,
    SCORE_BAND_ON_TRACK,
    SCORE_BAND_VERY_CLOSE,
)
from posecoach.keypoints import normalize, readable_name
from posecoach.scoring import score_pose
from posecoach.templates import FULL_BODY_TEMPLATE_IDS
from posecoach.types import (
    LOWER_BODY_PARTS,
    UPPER_BODY_PARTS,
    BodyPart,
    FeedbackItem,
    Keypoint,
    KeypointSet,
    PoseMode,
    PoseScoreResult,
    PoseTemplate,
    Severity,
)

POSE_TIPS = {
    "front-double-biceps": "Remember to keep your arms bent and biceps flexed. Face directly toward the camera.",
    "side-chest": "Turn to the side more and bring your arm across your chest to emphasize your pectoral muscles.",
    "rear-lat-spread": "Face away from the camera and spread your arms wider to showcase your back width.",
    "front-lat-spread": "Spread your arms wider and push your lats out to create the illusion of a wider upper body.",
    "most-muscular": "Bring your shoulders forward and flex all muscle groups simultaneously for maximum definition.",
}

LOW_CONFIDENCE_MESSAGE = "Can't see enough of your body yet. Step into the frame and face the camera."


def overall_score_message(score: float) -> str:
    if score >= SCORE_BAND_MASTERED:
        return "Perfect! You've mastered this pose."
    if score >= SCORE_BAND_VERY_CLOSE:
        return "Great job! Your pose is very close to perfect."
    if score >= SCORE_BAND_GOOD_EFFORT:
        return "Good effort! Keep adjusting to improve your score."
    if score >= SCORE_BAND_ON_TRACK:
        return "You're on the right track. Try to align your body more closely with the template."
    return "Keep practicing! Try to match the pose template more closely."


def pose_feedback(result: PoseScoreResult, template: PoseTemplate) -> List[str]:
    """
    Messages for a template score, in a fixed order:
    overall score, missing upper body, lower body hint, pose tip.
    """
    feedback = [overall_score_message(result.score)]

    missing_upper = [p for p in result.missing_parts if p in UPPER_BODY_PARTS]
    if missing_upper:
        if len(missing_upper) <= MAX_LISTED_MISSING_PARTS:
            names = ", ".join(readable_name(p) for p in missing_upper)
            feedback.append(f"Make sure your {names} are visible to the camera.")
        else:
            feedback.append("Several key upper body parts aren't visible. Try adjusting your position.")

    if template.id in FULL_BODY_TEMPLATE_IDS and result.score < COACHING_SCORE_THRESHOLD:
        if any(p in LOWER_BODY_PARTS for p in result.missing_parts):
            feedback.append("For a complete pose, try to include your lower body in the frame if possible.")

    tip = POSE_TIPS.get(template.id)
    if tip and result.score < COACHING_SCORE_THRESHOLD:
        feedback.append(tip)

    return feedback


def line_slope(a: Keypoint, b: Keypoint, frame_width: float, frame_height: float) -> float:
    """
    Absolute slope of the a-b line in normalized frame units.
    A vertical line is infinitely steep; two coincident points are level.
    """
    ax, ay = normalize(a, frame_width, frame_height)
    bx, by = normalize(b, frame_width, frame_height)
    dx = abs(bx - ax)
    dy = abs(by - ay)
    if dx == 0:
        return math.inf if dy > 0 else 0.0
    return dy / dx


def _is_tilted(keypoints: KeypointSet, left: str, right: str, frame_width: float, frame_height: float) -> bool:
    return line_slope(keypoints[left], keypoints[right], frame_width, frame_height) > LEVEL_SLOPE_THRESHOLD


def _has(keypoints: KeypointSet, *parts: str) -> bool:
    return all(p in keypoints for p in parts)


def _midpoint_x(keypoints: KeypointSet, left: str, right: str, frame_width: float, frame_height: float) -> float:
    lx, _ = normalize(keypoints[left], frame_width, frame_height)
    rx, _ = normalize(keypoints[right], frame_width, frame_height)
    return (lx + rx) / 2


def _fitness_checks(keypoints, frame_width, frame_height, has_upper, has_lower) -> List[FeedbackItem]:
    items = []
    if has_upper and _is_tilted(keypoints, BodyPart.LEFT_SHOULDER.value, BodyPart.RIGHT_SHOULDER.value, frame_width, frame_height):
        items.append(FeedbackItem(part=BodyPart.LEFT_SHOULDER.value, message="Try to keep your shoulders level.", severity=Severity.WARNING))
    if has_lower and _is_tilted(keypoints, BodyPart.LEFT_HIP.value, BodyPart.RIGHT_HIP.value, frame_width, frame_height):
        items.append(FeedbackItem(part=BodyPart.LEFT_HIP.value, message="Your hips are uneven. Shift your weight evenly onto both feet.", severity=Severity.WARNING))
    knees = (BodyPart.LEFT_KNEE.value, BodyPart.RIGHT_KNEE.value)
    if _has(keypoints, *knees) and _is_tilted(keypoints, *knees, frame_width, frame_height):
        items.append(FeedbackItem(part=BodyPart.LEFT_KNEE.value, message="Keep your knees level.", severity=Severity.WARNING))
    if has_upper and has_lower:
        shoulder_mid = _midpoint_x(keypoints, BodyPart.LEFT_SHOULDER.value, BodyPart.RIGHT_SHOULDER.value, frame_width, frame_height)
        hip_mid = _midpoint_x(keypoints, BodyPart.LEFT_HIP.value, BodyPart.RIGHT_HIP.value, frame_width, frame_height)
        if abs(shoulder_mid - hip_mid) > ALIGNMENT_OFFSET_THRESHOLD:
            items.append(FeedbackItem(part=BodyPart.LEFT_HIP.value, message="Stack your shoulders directly over your hips.", severity=Severity.WARNING))
    return items


def _photography_checks(keypoints, frame_width, frame_height, has_upper) -> List[FeedbackItem]:
    items = []
    eyes = (BodyPart.LEFT_EYE.value, BodyPart.RIGHT_EYE.value)
    if _has(keypoints, *eyes) and _is_tilted(keypoints, *eyes, frame_width, frame_height):
        items.append(FeedbackItem(part=BodyPart.LEFT_EYE.value, message="Level your head so your eyes are straight.", severity=Severity.WARNING))
    if BodyPart.NOSE.value in keypoints:
        nose_x, _ = normalize(keypoints[BodyPart.NOSE.value], frame_width, frame_height)
        if abs(nose_x - 0.5) > CENTER_OFFSET_THRESHOLD:
            items.append(FeedbackItem(part=BodyPart.NOSE.value, message="Move toward the center of the frame.", severity=Severity.WARNING))
    if has_upper and _is_tilted(keypoints, BodyPart.LEFT_SHOULDER.value, BodyPart.RIGHT_SHOULDER.value, frame_width, frame_height):
        items.append(FeedbackItem(part=BodyPart.LEFT_SHOULDER.value, message="Try to keep your shoulders level.", severity=Severity.WARNING))
    return items


def _perfect_message(has_upper: bool, has_lower: bool, has_face: bool) -> FeedbackItem:
    if has_upper and has_lower:
        message = "PERFECT! Your full body is well aligned."
    elif has_upper:
        message = "PERFECT! Your upper body is well aligned."
    elif has_face:
        message = "PERFECT! Your face is well positioned."
    else:
        message = "PERFECT! Show more of your body for detailed feedback."
    return FeedbackItem(part=None, message=message, severity=Severity.SUCCESS)


def analyze_pose(
    keypoints: KeypointSet,
    mode: Union[PoseMode, str],
    frame_width: float,
    frame_height: float,
) -> List[FeedbackItem]:
    """
    Rule-based posture hints for the given mode.

    keypoints: {part_name: Keypoint} in pixel coordinates
    Every check that applies fires; a clean pose gets a single success item.
    """
    mode = PoseMode(mode)
    usable = {name: kp for name, kp in (keypoints or {}).items() if kp.confidence > ANALYSIS_MIN_CONFIDENCE}
    if len(usable) < MIN_USABLE_KEYPOINTS:
        return [FeedbackItem(part=None, message=LOW_CONFIDENCE_MESSAGE, severity=Severity.INFO)]

    has_upper = _has(usable, BodyPart.LEFT_SHOULDER.value, BodyPart.RIGHT_SHOULDER.value)
    has_lower = _has(usable, BodyPart.LEFT_HIP.value, BodyPart.RIGHT_HIP.value)
    has_face = BodyPart.NOSE.value in usable or _has(usable, BodyPart.LEFT_EYE.value, BodyPart.RIGHT_EYE.value)

    if mode is PoseMode.FITNESS:
        items = _fitness_checks(usable, frame_width, frame_height, has_upper, has_lower)
    else:
        items = _photography_checks(usable, frame_width, frame_height, has_upper)

    if not items:
        items.append(_perfect_message(has_upper, has_lower, has_face))
    return items


class TemplatePoseChecker:
    """
    Scores keypoints against one reference pose and turns the score into
    coaching messages.
    """

    def __init__(self, template: PoseTemplate):
        self.template = template

    def compute_pose_similarity(self, keypoints: KeypointSet, frame_width: int, frame_height: int) -> PoseScoreResult:
        return score_pose(keypoints, self.template, frame_width, frame_height)

    def generate_feedback(self, result: PoseScoreResult) -> List[str]:
        return pose_feedback(result, self.template)


class PostureChecker:
    """
    Template-free posture hints for one mode ("fitness" or "photography").
    """

    def __init__(self, mode: Union[PoseMode, str] = PoseMode.FITNESS):
        self.mode = PoseMode(mode)

    def generate_feedback(self, keypoints: Optional[KeypointSet], frame_width: float, frame_height: float) -> List[FeedbackItem]:
        return analyze_pose(keypoints or {}, self.mode, frame_width, frame_height)
