import pytest

from curlcount.common.events import ClassificationEvent, PoseLabel
from curlcount.counter.reps import GOING_UP, REP_COUNTED, LastLabel, RepCounter

UP, DOWN = PoseLabel.UP, PoseLabel.DOWN


def run(labels, counter=None):
    counter = counter or RepCounter()
    for i, label in enumerate(labels):
        counter.step(ClassificationEvent(label), now=float(i))
    return counter


@pytest.mark.parametrize("labels,expected", [
    ([UP, DOWN], 1),
    ([UP, DOWN, DOWN, DOWN], 1),
    ([DOWN, UP, DOWN, UP, DOWN], 2),
    ([DOWN, DOWN, DOWN], 0),
    ([UP, UP, UP], 0),
    ([UP, DOWN, UP, DOWN], 2),
])
def test_counts(labels, expected):
    assert run(labels).count == expected


def test_count_never_decreases():
    counter = RepCounter()
    seen = []
    for i, label in enumerate([UP, DOWN, DOWN, UP, UP, DOWN, UP, None, DOWN]):
        counter.step(ClassificationEvent(label), now=float(i))
        seen.append(counter.count)
    assert seen == sorted(seen)
    assert seen[-1] == 3


def test_rep_feedback_expires_after_ttl():
    counter = RepCounter(feedback_ttl_s=1.0)
    counter.step(ClassificationEvent(UP), now=10.0)
    assert counter.state.feedback == GOING_UP
    assert counter.state.feedback_expires_at is None
    assert counter.step(ClassificationEvent(DOWN), now=10.5) is True
    assert counter.state.feedback == REP_COUNTED
    assert counter.state.feedback_expires_at == pytest.approx(11.5)

    assert counter.clear_expired(11.0) is False
    assert counter.state.feedback == REP_COUNTED
    assert counter.clear_expired(11.5) is True
    assert counter.state.feedback == ""
    assert counter.state.feedback_expires_at is None


def test_going_up_feedback_never_expires():
    counter = run([UP])
    assert counter.clear_expired(1e9) is False
    assert counter.state.feedback == GOING_UP


def test_down_after_down_leaves_feedback():
    counter = run([UP, DOWN])
    counter.step(ClassificationEvent(DOWN), now=5.0)
    assert counter.state.feedback == REP_COUNTED
    assert counter.count == 1


def test_last_label_tracks_events():
    counter = RepCounter()
    assert counter.state.last_label is LastLabel.NONE
    counter.step(ClassificationEvent(DOWN), now=0.0)
    assert counter.state.last_label is LastLabel.DOWN
    counter.step(ClassificationEvent(UP), now=1.0)
    assert counter.state.last_label is LastLabel.UP


def test_not_ready_event_is_ignored():
    counter = run([UP])
    assert counter.step(ClassificationEvent(None), now=2.0) is False
    assert counter.state.last_label is LastLabel.UP
    # the pending UP still pairs with the next DOWN
    assert counter.step(ClassificationEvent(DOWN), now=3.0) is True


def test_unknown_label_is_ignored():
    counter = run([UP])
    assert counter.step(ClassificationEvent("sideways"), now=2.0) is False
    assert counter.state.last_label is LastLabel.UP
    assert counter.count == 0
    assert counter.step(ClassificationEvent("down"), now=3.0) is True


def test_reset():
    counter = run([UP, DOWN])
    counter.reset()
    assert counter.count == 0
    assert counter.state.last_label is LastLabel.NONE
