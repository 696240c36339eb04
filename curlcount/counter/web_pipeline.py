# curlcount/counter/web_pipeline.py
from __future__ import annotations
import time
from typing import Any, Callable, Optional, Sequence

from curlcount.common.events import ClassificationEvent, EventType, PoseLabel
from curlcount.counter.classifier import PoseClassifier
from curlcount.counter.pose_core import arm_joints_from_landmarks
from curlcount.counter.reps import RepCounter


class WebLandmarkPipeline:
    """
    A minimal 'pipeline' that consumes landmarks detected in the browser.
    No camera, no threads. Just call push_landmarks(landmarks, ts) once per frame,
    or push_label(label, ts) when the browser already ran the classifier.
    """
    def __init__(
        self,
        classifier: PoseClassifier,
        on_rep: Callable[[int], None],
        feedback_ttl_s: float = 1.0,
        debug_cb: Optional[Callable[[dict], None]] = None,
    ):
        self.classifier = classifier
        self.on_rep = on_rep
        self.debug_cb = debug_cb
        self.counter = RepCounter(feedback_ttl_s=feedback_ttl_s)
        self._running = True

    @property
    def state(self):
        return self.counter.state

    def start(self):
        self._running = True

    def stop(self):
        self._running = False

    def pause(self):
        self._running = False

    def resume(self):
        self._running = True

    def _trace(self, msg: str):
        if self.debug_cb:
            self.debug_cb({"type": EventType.TRACE.value, "msg": msg})

    def push_landmarks(self, landmarks: Optional[Sequence[Any]], ts: Optional[float] = None) -> bool:
        """Feed one frame of pose-engine landmarks. Returns True if a rep was counted."""
        if not self._running:
            return False
        t = float(ts) if ts is not None else time.time()
        self.counter.clear_expired(t)
        joints = arm_joints_from_landmarks(landmarks)
        if joints is None:
            return False
        label = self.classifier.classify(joints)
        return self._step(ClassificationEvent(pose_label=label, joints=joints), t)

    def push_label(self, label: Optional[PoseLabel], ts: Optional[float] = None) -> bool:
        if not self._running:
            return False
        t = float(ts) if ts is not None else time.time()
        self.counter.clear_expired(t)
        return self._step(ClassificationEvent(pose_label=PoseLabel(label) if label else None), t)

    def _step(self, event: ClassificationEvent, t: float) -> bool:
        before = self.counter.state.last_label
        counted = self.counter.step(event, t)
        if self.counter.state.last_label is not before:
            self._trace(f"pose {before.value}→{self.counter.state.last_label.value}")
        if counted:
            self._trace(f"rep++ ({self.counter.count})")
            self.on_rep(self.counter.count)
        return counted
