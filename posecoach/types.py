from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class BodyPart(str, Enum):
    """
    COCO-17 body part names, as reported by the pose model.
    """
    NOSE = "nose"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"


UPPER_BODY_PARTS = (
    BodyPart.LEFT_SHOULDER.value,
    BodyPart.RIGHT_SHOULDER.value,
    BodyPart.LEFT_ELBOW.value,
    BodyPart.RIGHT_ELBOW.value,
    BodyPart.LEFT_WRIST.value,
    BodyPart.RIGHT_WRIST.value,
)

LOWER_BODY_PARTS = (
    BodyPart.LEFT_HIP.value,
    BodyPart.RIGHT_HIP.value,
    BodyPart.LEFT_KNEE.value,
    BodyPart.RIGHT_KNEE.value,
)


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class PoseMode(str, Enum):
    FITNESS = "fitness"
    PHOTOGRAPHY = "photography"


@dataclass(frozen=True)
class Keypoint:
    """
    A single detected body part in source-image pixel coordinates.
    """

    name: Optional[str]
    x: float
    y: float
    confidence: float  # [0..1]

    def to_dict(self) -> Dict[str, object]:
        return {"name": self.name, "x": self.x, "y": self.y, "confidence": self.confidence}


# name -> Keypoint, only points above the visibility threshold
KeypointSet = Dict[str, Keypoint]


@dataclass(frozen=True)
class PoseTemplate:
    """
    A reference pose. Targets are normalized [0..1] frame positions and keep
    their declared order, which is also the scoring order.
    """

    id: str
    name: str
    description: str
    image: str
    keypoints: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    def part_names(self) -> List[str]:
        return list(self.keypoints.keys())

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "keypoints": {k: {"x": x, "y": y} for k, (x, y) in self.keypoints.items()},
        }


@dataclass(frozen=True)
class PoseScoreResult:
    score: int  # [0..100]
    matched_count: int
    total_count: int
    missing_parts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "score": self.score,
            "matched_count": self.matched_count,
            "total_count": self.total_count,
            "missing_parts": list(self.missing_parts),
        }


@dataclass(frozen=True)
class FeedbackItem:
    message: str
    severity: Severity
    part: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {"part": self.part, "message": self.message, "severity": self.severity.value}
