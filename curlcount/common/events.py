from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from curlcount.counter.pose_core import ArmJoints


class PoseLabel(str, Enum):
    UP = "up"
    DOWN = "down"

    @property
    def opposite(self) -> "PoseLabel":
        return PoseLabel.DOWN if self is PoseLabel.UP else PoseLabel.UP


class EventType(str, Enum):
    WORKOUT_STARTED = "workout_started"
    WORKOUT_STOPPED = "workout_stopped"
    COLLECT_STARTED = "collect_started"
    COLLECT_STOPPED = "collect_stopped"
    REP = "rep"
    FEEDBACK = "feedback"
    LEADERBOARD = "leaderboard"
    TRACE = "trace"


@dataclass(frozen=True)
class ClassificationEvent:
    """One classifier result for one frame. pose_label is None while the model isn't ready."""
    pose_label: Optional[PoseLabel]
    joints: Optional["ArmJoints"] = None
