from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from curlcount.common.events import ClassificationEvent, PoseLabel

log = logging.getLogger(__name__)

REP_COUNTED = "Rep counted!"
GOING_UP = "Good! Keep going up!"


class LastLabel(str, Enum):
    NONE = "none"
    UP = "up"
    DOWN = "down"


@dataclass
class RepState:
    count: int = 0
    last_label: LastLabel = LastLabel.NONE
    feedback: str = ""
    feedback_expires_at: Optional[float] = None


class RepCounter:
    """
    Counts a rep on every UP -> DOWN edge of the classifier output.

    No smoothing: UP, DOWN, UP, DOWN on consecutive frames is two reps.
    Timed feedback only records an expiry; callers clear it with clear_expired().
    """
    def __init__(self, feedback_ttl_s: float = 1.0):
        self.feedback_ttl_s = feedback_ttl_s
        self.state = RepState()

    @property
    def count(self) -> int:
        return self.state.count

    def step(self, event: ClassificationEvent, now: float) -> bool:
        """Apply one classification. Returns True when a rep was counted."""
        label = getattr(event, "pose_label", None)
        if label is None:
            return False
        try:
            label = PoseLabel(label)
        except ValueError:
            log.debug("ignored unknown pose label %r", label)
            return False
        st = self.state
        counted = False

        if label is PoseLabel.DOWN and st.last_label is LastLabel.UP:
            st.count += 1
            st.feedback = REP_COUNTED
            st.feedback_expires_at = now + self.feedback_ttl_s
            counted = True
            log.debug("rep %d counted", st.count)
        elif label is PoseLabel.UP and st.last_label is not LastLabel.UP:
            st.feedback = GOING_UP
            st.feedback_expires_at = None

        st.last_label = LastLabel(label.value)
        return counted

    def clear_expired(self, now: float) -> bool:
        st = self.state
        if st.feedback_expires_at is not None and now >= st.feedback_expires_at:
            st.feedback = ""
            st.feedback_expires_at = None
            return True
        return False

    def reset(self):
        self.state = RepState()
