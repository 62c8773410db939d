"""
Pose scoring and feedback for a live camera view.

The detector turns a frame into named keypoints; everything in here turns
those keypoints into a 0-100 score against a reference pose, or into
posture hints when no reference pose is selected.
"""

from posecoach.feedback import (
    PostureChecker,
    TemplatePoseChecker,
    analyze_pose,
    pose_feedback,
)
from posecoach.keypoints import build_keypoint_set, first_pose
from posecoach.scoring import calculate_angle, empty_score, score_pose
from posecoach.templates import get_template, list_templates
from posecoach.types import (
    BodyPart,
    FeedbackItem,
    Keypoint,
    PoseMode,
    PoseScoreResult,
    PoseTemplate,
    Severity,
)

__all__ = [
    "BodyPart",
    "FeedbackItem",
    "Keypoint",
    "PoseMode",
    "PoseScoreResult",
    "PoseTemplate",
    "PostureChecker",
    "Severity",
    "TemplatePoseChecker",
    "analyze_pose",
    "build_keypoint_set",
    "calculate_angle",
    "empty_score",
    "first_pose",
    "get_template",
    "list_templates",
    "pose_feedback",
    "score_pose",
]
