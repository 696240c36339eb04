from __future__ import annotations
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional, Sequence

from curlcount.common.config import Settings, get_settings
from curlcount.common.errors import InvalidStateError
from curlcount.common.events import EventType, PoseLabel
from curlcount.counter.classifier import PoseClassifier
from curlcount.counter.pose_core import arm_joints_from_landmarks
from curlcount.counter.samples import SampleCollector, SampleSet
from curlcount.counter.web_pipeline import WebLandmarkPipeline
from curlcount.data import db
from curlcount.data.leaderboard import Leaderboard

log = logging.getLogger(__name__)

Mode = Literal["idle", "collect", "workout"]


@dataclass
class SessionStatus:
    mode: str
    workout_id: str
    username: str
    count: int
    feedback: str
    last_label: str
    collecting: bool
    label: str
    samples: int
    model_ready: bool


@dataclass
class FinalSummary:
    workout_id: str
    username: str
    total_reps: int


class RepSessionManager:
    """Owns the sample collector and the active workout; the two modes never overlap."""

    def __init__(
        self,
        classifier: Optional[PoseClassifier] = None,
        leaderboard: Optional[Leaderboard] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        db.configure(self.settings.db_path)
        self.classifier = classifier or PoseClassifier.load(self.settings.model_path)
        self.leaderboard = leaderboard or Leaderboard(self.settings.leaderboard_size)
        self.collector = SampleCollector()
        self.active_id: Optional[str] = None
        self.username: Optional[str] = None
        self.active_pipeline: Optional[WebLandmarkPipeline] = None
        self._event_sink: Optional[Callable[[dict], None]] = None

    def set_event_sink(self, sink: Callable[[dict], None]):
        self._event_sink = sink

    def _emit(self, payload: dict):
        if self._event_sink is None:
            return
        try:
            self._event_sink(payload)
        except Exception:
            log.exception("event sink failed for %s", payload.get("type"))

    @property
    def mode(self) -> Mode:
        if self.active_pipeline is not None:
            return "workout"
        if self.collector.is_collecting:
            return "collect"
        return "idle"

    def set_classifier(self, classifier: PoseClassifier):
        self.classifier = classifier
        if self.active_pipeline is not None:
            self.active_pipeline.classifier = classifier

    # Workout mode

    def _on_rep(self, count: int):
        ts = time.time()
        if self.username:
            # fire-and-forget: a store failure must not break the frame loop
            try:
                self.leaderboard.record(self.username, count, ts)
            except Exception:
                log.exception("leaderboard upsert failed for %s", self.username)
        self._emit({"type": EventType.REP.value, "count": count})

    def start_workout(self, username: str):
        name = (username or "").strip()
        if not name:
            raise InvalidStateError("username required to start a workout")
        if self.collector.is_collecting:
            raise InvalidStateError("stop recording samples before starting a workout")
        if self.active_pipeline is not None:
            self.stop_workout()

        sid = str(uuid.uuid4())
        self.active_id = sid
        self.username = name
        self.active_pipeline = WebLandmarkPipeline(
            self.classifier,
            on_rep=self._on_rep,
            feedback_ttl_s=self.settings.feedback_ttl_s,
            debug_cb=self._emit,
        )
        db.insert_workout(sid, name, time.time())
        if not self.classifier.is_ready:
            log.warning("workout started without a trained model; frames will be ignored")
        self._emit({"type": EventType.WORKOUT_STARTED.value, "workout_id": sid, "username": name})
        log.info("workout %s started for %s", sid, name)
        return sid

    def stop_workout(self) -> FinalSummary:
        if self.active_pipeline is None:
            raise InvalidStateError("no workout in progress")
        self.active_pipeline.stop()
        total = self.active_pipeline.counter.count
        summary = FinalSummary(workout_id=self.active_id or "", username=self.username or "", total_reps=total)
        db.stop_workout(summary.workout_id, time.time(), total)
        self.active_pipeline = None
        self.active_id = None
        self.username = None
        self._emit({"type": EventType.WORKOUT_STOPPED.value, "workout_id": summary.workout_id, "total_reps": total})
        log.info("workout %s stopped: %d reps", summary.workout_id, total)
        return summary

    def push_landmarks(self, landmarks: Optional[Sequence[Any]], ts: Optional[float] = None) -> bool:
        if self.active_pipeline is None:
            return False
        return self._after_step(self.active_pipeline.push_landmarks(landmarks, ts))

    def push_label(self, label: Optional[PoseLabel], ts: Optional[float] = None) -> bool:
        if self.active_pipeline is None:
            return False
        return self._after_step(self.active_pipeline.push_label(label, ts))

    def _after_step(self, counted: bool) -> bool:
        st = self.active_pipeline.state
        self._emit({"type": EventType.FEEDBACK.value, "feedback": st.feedback, "count": st.count})
        return counted

    # Collect mode

    def start_collecting(self, label: Optional[PoseLabel] = None):
        if self.active_pipeline is not None:
            raise InvalidStateError("stop the workout before recording samples")
        self.collector.start_collecting(label)
        self._emit({"type": EventType.COLLECT_STARTED.value, "label": self.collector.label.value})

    def stop_collecting(self) -> int:
        n = self.collector.stop_collecting()
        self._emit({"type": EventType.COLLECT_STOPPED.value, "samples": n})
        return n

    def set_label(self, label: PoseLabel):
        self.collector.set_label(label)

    def submit_frame(self, landmarks: Optional[Sequence[Any]]) -> int:
        return self.collector.submit_frame(arm_joints_from_landmarks(landmarks))

    def export_samples(self) -> SampleSet:
        return self.collector.export_samples()

    def status(self) -> SessionStatus:
        st = self.active_pipeline.state if self.active_pipeline else None
        return SessionStatus(
            mode=self.mode,
            workout_id=self.active_id or "",
            username=self.username or "",
            count=st.count if st else 0,
            feedback=st.feedback if st else "",
            last_label=st.last_label.value if st else "none",
            collecting=self.collector.is_collecting,
            label=self.collector.label.value,
            samples=self.collector.count,
            model_ready=self.classifier.is_ready,
        )
