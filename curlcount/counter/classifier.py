from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

import joblib
import numpy as np

from curlcount.common.events import PoseLabel
from curlcount.counter.pose_core import NUM_FEATURES, ArmJoints, feature_vector

log = logging.getLogger(__name__)

THRESHOLD = 0.5


class PoseClassifier:
    """Up/down classifier around any estimator with a scikit-learn predict_proba."""

    def __init__(self, model: Any = None):
        self.model = model

    @classmethod
    def load(cls, path: Path) -> "PoseClassifier":
        path = Path(path)
        if not path.exists():
            log.warning("no trained model at %s; classification disabled until one is trained", path)
            return cls(None)
        return cls(joblib.load(path))

    @property
    def is_ready(self) -> bool:
        return self.model is not None

    def probability_up(self, features: Sequence[float]) -> float:
        x = np.asarray(features, dtype=np.float64).reshape(1, NUM_FEATURES)
        proba = self.model.predict_proba(x)[0]
        classes = list(getattr(self.model, "classes_", [0, 1]))
        return float(proba[classes.index(1)])

    def label_for(self, probability: float) -> PoseLabel:
        return PoseLabel.UP if probability > THRESHOLD else PoseLabel.DOWN

    def classify(self, joints: ArmJoints) -> Optional[PoseLabel]:
        if not self.is_ready:
            return None
        return self.label_for(self.probability_up(feature_vector(joints)))
