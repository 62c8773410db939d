"""
Reference bodybuilding poses.

Targets are rough normalized frame positions for a subject standing centred
and facing the camera, declared upper body first.
"""

from typing import List

from posecoach.types import BodyPart, PoseTemplate

FRONT_DOUBLE_BICEPS = PoseTemplate(
    id="front-double-biceps",
    name="Front Double Biceps",
    description="Face the front with arms bent, fists clenched, and biceps flexed.",
    image="/poses/front-double-biceps.png",
    keypoints={
        BodyPart.LEFT_SHOULDER.value: (0.35, 0.25),
        BodyPart.RIGHT_SHOULDER.value: (0.65, 0.25),
        BodyPart.LEFT_ELBOW.value: (0.25, 0.35),
        BodyPart.RIGHT_ELBOW.value: (0.75, 0.35),
        BodyPart.LEFT_WRIST.value: (0.30, 0.20),
        BodyPart.RIGHT_WRIST.value: (0.70, 0.20),
        BodyPart.LEFT_HIP.value: (0.40, 0.55),
        BodyPart.RIGHT_HIP.value: (0.60, 0.55),
        BodyPart.LEFT_KNEE.value: (0.40, 0.80),
        BodyPart.RIGHT_KNEE.value: (0.60, 0.80),
    },
)

SIDE_CHEST = PoseTemplate(
    id="side-chest",
    name="Side Chest",
    description="Stand sideways, flex the chest, and bring one arm across to emphasize chest development.",
    image="/poses/side-chest.png",
    keypoints={
        BodyPart.LEFT_SHOULDER.value: (0.40, 0.25),
        BodyPart.RIGHT_SHOULDER.value: (0.55, 0.25),
        BodyPart.LEFT_ELBOW.value: (0.30, 0.40),
        BodyPart.RIGHT_ELBOW.value: (0.45, 0.40),
        BodyPart.LEFT_WRIST.value: (0.45, 0.35),
        BodyPart.RIGHT_WRIST.value: (0.60, 0.35),
        BodyPart.LEFT_HIP.value: (0.45, 0.55),
        BodyPart.RIGHT_HIP.value: (0.55, 0.55),
        BodyPart.LEFT_KNEE.value: (0.40, 0.80),
        BodyPart.RIGHT_KNEE.value: (0.60, 0.80),
    },
)

REAR_LAT_SPREAD = PoseTemplate(
    id="rear-lat-spread",
    name="Rear Lat Spread",
    description="Face away, spread arms to emphasize back width, and flex the lats.",
    image="/poses/rear-lat-spread.png",
    keypoints={
        BodyPart.LEFT_SHOULDER.value: (0.30, 0.25),
        BodyPart.RIGHT_SHOULDER.value: (0.70, 0.25),
        BodyPart.LEFT_ELBOW.value: (0.20, 0.40),
        BodyPart.RIGHT_ELBOW.value: (0.80, 0.40),
        BodyPart.LEFT_WRIST.value: (0.25, 0.55),
        BodyPart.RIGHT_WRIST.value: (0.75, 0.55),
        BodyPart.LEFT_HIP.value: (0.40, 0.55),
        BodyPart.RIGHT_HIP.value: (0.60, 0.55),
        BodyPart.LEFT_KNEE.value: (0.40, 0.80),
        BodyPart.RIGHT_KNEE.value: (0.60, 0.80),
    },
)

FRONT_LAT_SPREAD = PoseTemplate(
    id="front-lat-spread",
    name="Front Lat Spread",
    description="Face the front, spread arms to emphasize width, and flex the lats.",
    image="/poses/front-lat-spread.png",
    keypoints={
        BodyPart.LEFT_SHOULDER.value: (0.30, 0.25),
        BodyPart.RIGHT_SHOULDER.value: (0.70, 0.25),
        BodyPart.LEFT_ELBOW.value: (0.20, 0.40),
        BodyPart.RIGHT_ELBOW.value: (0.80, 0.40),
        BodyPart.LEFT_WRIST.value: (0.25, 0.55),
        BodyPart.RIGHT_WRIST.value: (0.75, 0.55),
        BodyPart.LEFT_HIP.value: (0.40, 0.55),
        BodyPart.RIGHT_HIP.value: (0.60, 0.55),
        BodyPart.LEFT_KNEE.value: (0.40, 0.80),
        BodyPart.RIGHT_KNEE.value: (0.60, 0.80),
    },
)

MOST_MUSCULAR = PoseTemplate(
    id="most-muscular",
    name="Most Muscular",
    description="Flex all muscles simultaneously with hands together or on hips to show maximum definition.",
    image="/poses/most-muscular.png",
    keypoints={
        BodyPart.LEFT_SHOULDER.value: (0.40, 0.30),
        BodyPart.RIGHT_SHOULDER.value: (0.60, 0.30),
        BodyPart.LEFT_ELBOW.value: (0.35, 0.45),
        BodyPart.RIGHT_ELBOW.value: (0.65, 0.45),
        BodyPart.LEFT_WRIST.value: (0.45, 0.50),
        BodyPart.RIGHT_WRIST.value: (0.55, 0.50),
        BodyPart.LEFT_HIP.value: (0.40, 0.60),
        BodyPart.RIGHT_HIP.value: (0.60, 0.60),
        BodyPart.LEFT_KNEE.value: (0.40, 0.85),
        BodyPart.RIGHT_KNEE.value: (0.60, 0.85),
    },
)

TEMPLATES = (
    FRONT_DOUBLE_BICEPS,
    SIDE_CHEST,
    REAR_LAT_SPREAD,
    FRONT_LAT_SPREAD,
    MOST_MUSCULAR,
)

_TEMPLATES_BY_ID = {t.id: t for t in TEMPLATES}

# Poses judged on the whole body; the rest only need the upper body in frame.
FULL_BODY_TEMPLATE_IDS = frozenset({FRONT_DOUBLE_BICEPS.id, FRONT_LAT_SPREAD.id})


def list_templates() -> List[PoseTemplate]:
    return list(TEMPLATES)


def get_template(template_id: str) -> PoseTemplate:
    try:
        return _TEMPLATES_BY_ID[template_id]
    except KeyError:
        raise KeyError(f"Unknown pose template: {template_id!r}") from None
