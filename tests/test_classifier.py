import numpy as np
import pytest

from curlcount.common.events import PoseLabel
from curlcount.counter.classifier import PoseClassifier


class FixedModel:
    def __init__(self, p_up, classes=(0, 1)):
        self.p_up = p_up
        self.classes_ = np.array(classes)

    def predict_proba(self, X):
        assert np.asarray(X).shape == (1, 10)
        row = [1 - self.p_up, self.p_up] if list(self.classes_) == [0, 1] else [self.p_up, 1 - self.p_up]
        return np.array([row])


@pytest.mark.parametrize("p,expected", [(0.9, PoseLabel.UP), (0.51, PoseLabel.UP), (0.5, PoseLabel.DOWN), (0.1, PoseLabel.DOWN)])
def test_threshold(p, expected, make_arm):
    assert PoseClassifier(FixedModel(p)).classify(make_arm(up=True)) is expected


def test_respects_class_order(make_arm):
    clf = PoseClassifier(FixedModel(0.8, classes=(1, 0)))
    assert clf.probability_up([0.0] * 10) == pytest.approx(0.8)
    assert clf.classify(make_arm(up=False)) is PoseLabel.UP


def test_not_ready_without_model(make_arm):
    clf = PoseClassifier()
    assert not clf.is_ready
    assert clf.classify(make_arm(up=True)) is None


def test_load_missing_file_is_not_ready(tmp_path):
    assert not PoseClassifier.load(tmp_path / "nope.joblib").is_ready


def test_stand_in_model(classifier, make_arm):
    assert classifier.classify(make_arm(up=True)) is PoseLabel.UP
    assert classifier.classify(make_arm(up=False)) is PoseLabel.DOWN
