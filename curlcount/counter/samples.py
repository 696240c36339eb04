from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from curlcount.common.errors import EmptyDataError, InvalidStateError, MalformedInputError
from curlcount.common.events import PoseLabel
from curlcount.counter.pose_core import ArmJoints, JointPosition

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PoseSample:
    angle: float
    pose_label: PoseLabel
    captured_at: datetime
    joints: ArmJoints

    @classmethod
    def capture(cls, joints: ArmJoints, label: PoseLabel, captured_at: datetime) -> "PoseSample":
        # angle is fixed here and never recomputed
        return cls(angle=joints.angle, pose_label=label, captured_at=captured_at, joints=joints)


class SampleSet(Sequence[PoseSample]):
    """Immutable, single-label run of samples in capture order."""

    def __init__(self, samples: Sequence[PoseSample] = ()):
        items = tuple(samples)
        labels = {s.pose_label for s in items}
        if len(labels) > 1:
            raise MalformedInputError(
                f"sample set mixes labels {sorted(l.value for l in labels)}; export one pose at a time"
            )
        self._samples = items

    @property
    def label(self) -> Optional[PoseLabel]:
        return self._samples[0].pose_label if self._samples else None

    def __getitem__(self, idx):
        return self._samples[idx]

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[PoseSample]:
        return iter(self._samples)

    def __eq__(self, other) -> bool:
        if isinstance(other, SampleSet):
            return self._samples == other._samples
        return NotImplemented

    def __hash__(self):
        return hash(self._samples)

    def __repr__(self) -> str:
        return f"SampleSet(label={self.label}, n={len(self)})"


class CollectorState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"


class SampleCollector:
    """
    Records labeled training samples one pose at a time.
    IDLE --start_collecting--> COLLECTING --stop_collecting--> IDLE.
    The label can only change while IDLE.
    """
    def __init__(self, label: PoseLabel = PoseLabel.UP, clock: Optional[Clock] = None):
        self.state = CollectorState.IDLE
        self.label = PoseLabel(label)
        self._clock = clock or _utcnow
        self._samples: List[PoseSample] = []

    @property
    def is_collecting(self) -> bool:
        return self.state is CollectorState.COLLECTING

    @property
    def count(self) -> int:
        return len(self._samples)

    def start_collecting(self, label: Optional[PoseLabel] = None) -> None:
        if self.is_collecting:
            raise InvalidStateError("already recording; stop recording first")
        if label is not None:
            self.label = PoseLabel(label)
        self._samples = []
        self.state = CollectorState.COLLECTING
        log.info("collecting %s samples", self.label.value)

    def stop_collecting(self) -> int:
        if not self.is_collecting:
            raise InvalidStateError("not recording")
        self.state = CollectorState.IDLE
        log.info("stopped collecting: %d %s samples", self.count, self.label.value)
        return self.count

    def set_label(self, label: PoseLabel) -> None:
        if self.is_collecting:
            raise InvalidStateError("Stop recording before changing pose")
        self.label = PoseLabel(label)

    def toggle_label(self) -> PoseLabel:
        self.set_label(self.label.opposite)
        return self.label

    def submit_frame(self, joints: Optional[ArmJoints], now: Optional[datetime] = None) -> int:
        """Append one sample for this frame. Returns the sample count."""
        if not self.is_collecting:
            return self.count
        if joints is None:
            log.debug("frame skipped: arm joints not detected")
            return self.count
        sample = PoseSample.capture(joints, self.label, now or self._clock())
        self._samples.append(sample)
        return self.count

    def export_samples(self) -> SampleSet:
        if not self._samples:
            raise EmptyDataError(
                "No pose data collected yet. Toggle recording and perform some poses first."
            )
        return SampleSet(self._samples)

    def reset(self) -> None:
        self.state = CollectorState.IDLE
        self._samples = []


# Export file format

class _Point(BaseModel):
    x: float
    y: float
    z: float = 0.0


class _Landmarks(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    left_shoulder: _Point = Field(..., alias="leftShoulder")
    left_elbow: _Point = Field(..., alias="leftElbow")
    left_wrist: _Point = Field(..., alias="leftWrist")


class SampleRecord(BaseModel):
    """One element of a pose_data_<label>_<ts>.json file."""
    angle: float
    pose: PoseLabel
    timestamp: datetime
    landmarks: _Landmarks

    @classmethod
    def from_sample(cls, s: PoseSample) -> "SampleRecord":
        j = s.joints
        return cls(
            angle=s.angle,
            pose=s.pose_label,
            timestamp=s.captured_at,
            landmarks=_Landmarks(
                left_shoulder=_Point(x=j.shoulder.x, y=j.shoulder.y, z=j.shoulder.z),
                left_elbow=_Point(x=j.elbow.x, y=j.elbow.y, z=j.elbow.z),
                left_wrist=_Point(x=j.wrist.x, y=j.wrist.y, z=j.wrist.z),
            ),
        )

    def to_sample(self) -> PoseSample:
        lm = self.landmarks
        joints = ArmJoints(
            JointPosition(lm.left_shoulder.x, lm.left_shoulder.y, lm.left_shoulder.z),
            JointPosition(lm.left_elbow.x, lm.left_elbow.y, lm.left_elbow.z),
            JointPosition(lm.left_wrist.x, lm.left_wrist.y, lm.left_wrist.z),
        )
        # stored angle is kept as-is
        return PoseSample(angle=self.angle, pose_label=self.pose, captured_at=self.timestamp, joints=joints)


_RECORDS = TypeAdapter(List[SampleRecord])


def dumps_samples(samples: SampleSet) -> str:
    records = [SampleRecord.from_sample(s) for s in samples]
    return _RECORDS.dump_json(records, by_alias=True, indent=2).decode("utf-8")


def loads_samples(text) -> SampleSet:
    try:
        records = _RECORDS.validate_json(text)
    except ValidationError as e:
        raise MalformedInputError(f"invalid pose data file: {e.error_count()} error(s)") from e
    return SampleSet([r.to_sample() for r in records])


def export_filename(label: PoseLabel, now: Optional[datetime] = None) -> str:
    ts = (now or _utcnow()).isoformat().replace(":", "-")
    return f"pose_data_{PoseLabel(label).value}_{ts}.json"
