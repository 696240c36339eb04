from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

# BlazePose landmark indices (33-point model)
LEFT_SHOULDER = 11
LEFT_ELBOW = 13
LEFT_WRIST = 15

NUM_FEATURES = 10


@dataclass(frozen=True)
class JointPosition:
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class ArmJoints:
    shoulder: JointPosition
    elbow: JointPosition
    wrist: JointPosition

    @property
    def angle(self) -> float:
        return joint_angle_degrees(self.shoulder, self.elbow, self.wrist)


# Utility math

def joint_angle_degrees(a: JointPosition, b: JointPosition, c: JointPosition) -> float:
    """Return angle ABC in degrees with B as vertex, in [0, 360).

    Only the image plane (x, y) is used; the result is not folded into [0, 180].
    """
    ang = math.degrees(
        math.atan2(c.y - b.y, c.x - b.x) - math.atan2(a.y - b.y, a.x - b.x)
    )
    return abs(ang)


def _coord(lm: Any, key: str) -> Optional[float]:
    if isinstance(lm, dict):
        v = lm.get(key)
    else:
        v = getattr(lm, key, None)
    if v is None:
        return None
    try:
        v = float(v)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def to_joint(lm: Any) -> Optional[JointPosition]:
    """Landmark object or mapping -> JointPosition, or None if x/y are unusable."""
    if lm is None:
        return None
    x = _coord(lm, "x")
    y = _coord(lm, "y")
    if x is None or y is None:
        return None
    z = _coord(lm, "z")
    return JointPosition(x, y, 0.0 if z is None else z)


def arm_joints_from_landmarks(landmarks: Optional[Sequence[Any]]) -> Optional[ArmJoints]:
    """Pick left shoulder/elbow/wrist out of a full landmark list.

    Returns None on detection dropout: empty list, short list, or any of the three
    joints missing a coordinate. Anything that isn't a list-like of landmarks
    (a mapping, a string) counts as dropout too.
    """
    if not isinstance(landmarks, Sequence) or isinstance(landmarks, (str, bytes)):
        return None
    if len(landmarks) <= LEFT_WRIST:
        return None
    shoulder = to_joint(landmarks[LEFT_SHOULDER])
    elbow = to_joint(landmarks[LEFT_ELBOW])
    wrist = to_joint(landmarks[LEFT_WRIST])
    if shoulder is None or elbow is None or wrist is None:
        return None
    return ArmJoints(shoulder, elbow, wrist)


def feature_vector(joints: ArmJoints, angle: Optional[float] = None) -> List[float]:
    """[shoulder xyz, elbow xyz, wrist xyz, angle] as fed to the classifier."""
    s, e, w = joints.shoulder, joints.elbow, joints.wrist
    return [
        s.x, s.y, s.z,
        e.x, e.y, e.z,
        w.x, w.y, w.z,
        joints.angle if angle is None else angle,
    ]
