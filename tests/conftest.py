from __future__ import annotations
from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pytest

from curlcount.common.config import Settings
from curlcount.common.events import PoseLabel
from curlcount.counter.classifier import PoseClassifier
from curlcount.counter.pose_core import LEFT_ELBOW, LEFT_SHOULDER, LEFT_WRIST, ArmJoints, JointPosition
from curlcount.counter.samples import PoseSample, SampleSet
from curlcount.data import db

T0 = datetime(2024, 5, 1, tzinfo=timezone.utc)


class WristAboveElbowModel:
    """predict_proba stand-in: 'up' when the wrist is above the elbow in the image."""
    classes_ = np.array([0, 1])

    def predict_proba(self, X):
        X = np.asarray(X)
        up = (X[:, 7] < X[:, 4]).astype(float) * 0.8 + 0.1
        return np.column_stack([1.0 - up, up])


def arm(up: bool) -> ArmJoints:
    shoulder = JointPosition(0.50, 0.30, -0.1)
    elbow = JointPosition(0.52, 0.50, -0.05)
    wrist = JointPosition(0.48, 0.35, 0.0) if up else JointPosition(0.54, 0.70, 0.02)
    return ArmJoints(shoulder, elbow, wrist)


def frame(up: bool):
    """A full 33-point landmark list (browser dict form) with the left arm up or down."""
    lms = [{"x": 0.5, "y": 0.5, "z": 0.0} for _ in range(33)]
    joints = arm(up)
    for idx, j in ((LEFT_SHOULDER, joints.shoulder), (LEFT_ELBOW, joints.elbow), (LEFT_WRIST, joints.wrist)):
        lms[idx] = {"x": j.x, "y": j.y, "z": j.z}
    return lms


@pytest.fixture
def make_arm():
    return arm


@pytest.fixture
def make_frame():
    return frame


@pytest.fixture
def classifier():
    return PoseClassifier(WristAboveElbowModel())


@pytest.fixture
def temp_db(tmp_path: Path):
    db.configure(tmp_path / "test.db")
    yield tmp_path / "test.db"
    db.configure(Path("./curlcount.db"))


@pytest.fixture
def settings(tmp_path: Path, temp_db):
    return Settings(db_path=temp_db, model_path=tmp_path / "models" / "model.joblib")


def build_sample_set(label: PoseLabel, n: int, seed: int) -> SampleSet:
    """n jittered samples of one pose; wrist high for UP, low for DOWN."""
    rng = np.random.default_rng(seed)
    out = []
    for i in range(n):
        jitter = rng.normal(0, 0.01, size=3)
        wrist_y = 0.30 if label is PoseLabel.UP else 0.72
        joints = ArmJoints(
            JointPosition(0.50 + jitter[0], 0.30, -0.1),
            JointPosition(0.52, 0.50 + jitter[1], -0.05),
            JointPosition(0.50, wrist_y + jitter[2], 0.0),
        )
        out.append(PoseSample.capture(joints, label, T0 + timedelta(milliseconds=33 * i)))
    return SampleSet(out)


@pytest.fixture
def make_sample_set():
    return build_sample_set
