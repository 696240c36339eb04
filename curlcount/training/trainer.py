from __future__ import annotations
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional, Tuple

import joblib
import numpy as np
from sklearn.neural_network import MLPClassifier

from curlcount.common.errors import EmptyDataError, MalformedInputError
from curlcount.common.events import PoseLabel
from curlcount.counter.classifier import THRESHOLD
from curlcount.counter.pose_core import feature_vector
from curlcount.counter.samples import SampleSet

log = logging.getLogger(__name__)


@dataclass
class ConfusionMatrix:
    true_positives: int
    true_negatives: int
    false_positives: int
    false_negatives: int


@dataclass
class TrainingReport:
    total_samples: int
    up_samples: int
    down_samples: int
    accuracy: float
    confusion: ConfusionMatrix

    def to_dict(self) -> dict:
        return asdict(self)


def _check(samples: SampleSet, expected: PoseLabel, name: str):
    if len(samples) == 0:
        raise EmptyDataError(f"Please upload both UP and DOWN pose data files first ({name} is empty)")
    if samples.label is not expected:
        raise MalformedInputError(f"{name} file holds '{samples.label.value}' samples, expected '{expected.value}'")


def build_dataset(up: SampleSet, down: SampleSet, seed: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Stack both exports into (X, y); up -> 1, down -> 0, rows shuffled together."""
    _check(up, PoseLabel.UP, "up")
    _check(down, PoseLabel.DOWN, "down")
    # stored angle is used as the 10th feature, not recomputed
    rows = [feature_vector(s.joints, s.angle) for s in up] + [feature_vector(s.joints, s.angle) for s in down]
    X = np.asarray(rows, dtype=np.float64)
    y = np.concatenate([np.ones(len(up), dtype=np.int64), np.zeros(len(down), dtype=np.int64)])
    order = np.random.default_rng(seed).permutation(len(y))
    return X[order], y[order]


def confusion_matrix(y_true: np.ndarray, y_pred: np.ndarray) -> ConfusionMatrix:
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    return ConfusionMatrix(
        true_positives=int(np.sum((y_pred == 1) & (y_true == 1))),
        true_negatives=int(np.sum((y_pred == 0) & (y_true == 0))),
        false_positives=int(np.sum((y_pred == 1) & (y_true == 0))),
        false_negatives=int(np.sum((y_pred == 0) & (y_true == 1))),
    )


def make_model(seed: Optional[int] = None) -> MLPClassifier:
    return MLPClassifier(
        hidden_layer_sizes=(16, 8),
        activation="relu",
        solver="adam",
        learning_rate_init=0.001,
        max_iter=500,
        random_state=seed,
    )


def train_classifier(up: SampleSet, down: SampleSet, seed: Optional[int] = None):
    """Fit the up/down classifier. Returns (model, TrainingReport)."""
    X, y = build_dataset(up, down, seed=seed)
    model = make_model(seed)
    log.info("training on %d samples (%d up, %d down)", len(y), len(up), len(down))
    model.fit(X, y)

    proba_up = model.predict_proba(X)[:, list(model.classes_).index(1)]
    y_pred = (proba_up > THRESHOLD).astype(np.int64)
    report = TrainingReport(
        total_samples=int(len(y)),
        up_samples=len(up),
        down_samples=len(down),
        accuracy=float(np.mean(y_pred == y)),
        confusion=confusion_matrix(y, y_pred),
    )
    log.info("training accuracy %.2f%%", report.accuracy * 100)
    return model, report


def save_model(model, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(model, path)
    return path
