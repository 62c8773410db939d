"""
Tunable constants for scoring, feedback and the live detection loop.

Scoring and feedback constants are fixed; a few runtime settings can be
overridden from POSECOACH_* environment variables.
"""

import os

from posecoach.types import BodyPart

# =============================================================================
# Keypoint visibility
# =============================================================================
KEYPOINT_MIN_CONFIDENCE = 0.3   # KeypointSet / template scoring
ANALYSIS_MIN_CONFIDENCE = 0.2   # rule-based posture checks
MIN_USABLE_KEYPOINTS = 3

# =============================================================================
# Template scoring
# =============================================================================
# Per-part similarity is max(0, 1 - distance * DISTANCE_FALLOFF), so it hits 0
# at 20% of the frame extent.
DISTANCE_FALLOFF = 5.0
DEFAULT_KEYPOINT_WEIGHT = 1.0

KEYPOINT_WEIGHTS = {
    # Upper body
    BodyPart.NOSE.value: 1.0,
    BodyPart.LEFT_EYE.value: 0.8,
    BodyPart.RIGHT_EYE.value: 0.8,
    BodyPart.LEFT_EAR.value: 0.7,
    BodyPart.RIGHT_EAR.value: 0.7,
    BodyPart.LEFT_SHOULDER.value: 1.5,
    BodyPart.RIGHT_SHOULDER.value: 1.5,
    BodyPart.LEFT_ELBOW.value: 1.5,
    BodyPart.RIGHT_ELBOW.value: 1.5,
    BodyPart.LEFT_WRIST.value: 1.5,
    BodyPart.RIGHT_WRIST.value: 1.5,
    # Lower body
    BodyPart.LEFT_HIP.value: 0.8,
    BodyPart.RIGHT_HIP.value: 0.8,
    BodyPart.LEFT_KNEE.value: 0.6,
    BodyPart.RIGHT_KNEE.value: 0.6,
    BodyPart.LEFT_ANKLE.value: 0.4,
    BodyPart.RIGHT_ANKLE.value: 0.4,
}

# Lower bound of each overall score band, highest first.
SCORE_BAND_MASTERED = 95
SCORE_BAND_VERY_CLOSE = 80
SCORE_BAND_GOOD_EFFORT = 60
SCORE_BAND_ON_TRACK = 40

# Pose tips and the lower-body hint only show below this score.
COACHING_SCORE_THRESHOLD = 70
MAX_LISTED_MISSING_PARTS = 3

# =============================================================================
# Posture checks (normalized frame units)
# =============================================================================
LEVEL_SLOPE_THRESHOLD = 0.1
ALIGNMENT_OFFSET_THRESHOLD = 0.1
CENTER_OFFSET_THRESHOLD = 0.2

# =============================================================================
# Detection loop
# =============================================================================
DETECTION_INTERVAL_S = float(os.environ.get("POSECOACH_DETECTION_INTERVAL", "1.0"))
DETECTION_WARMUP_S = 2.0

# MediaPipe
MODEL_COMPLEXITY = 1
MIN_DETECTION_CONFIDENCE = 0.5
MIN_TRACKING_CONFIDENCE = 0.5

# =============================================================================
# Camera / server
# =============================================================================
CAMERA_ID = int(os.environ.get("POSECOACH_CAMERA_ID", "0"))
FRAME_DELAY_S = 0.03
JPEG_QUALITY = 70

HOST = os.environ.get("POSECOACH_HOST", "127.0.0.1")
PORT = int(os.environ.get("POSECOACH_PORT", "8000"))
