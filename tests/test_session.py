import pytest

from curlcount.common.errors import EmptyDataError, InvalidStateError
from curlcount.common.events import PoseLabel
from curlcount.counter.classifier import PoseClassifier
from curlcount.counter.session import RepSessionManager
from curlcount.data import db


@pytest.fixture
def manager(classifier, settings):
    mgr = RepSessionManager(classifier=classifier, settings=settings)
    mgr.events = []
    mgr.set_event_sink(mgr.events.append)
    return mgr


def test_workout_counts_reps_and_updates_leaderboard(manager, make_frame):
    manager.start_workout("  ana ")
    assert manager.mode == "workout"
    for i, up in enumerate([True, False, False, True, False]):
        manager.push_landmarks(make_frame(up), ts=float(i))
    assert manager.status().count == 2
    assert db.get_user("ana").reps == 2
    assert [e["count"] for e in manager.events if e["type"] == "rep"] == [1, 2]

    summary = manager.stop_workout()
    assert summary.username == "ana"
    assert summary.total_reps == 2
    assert db.get_workout(summary.workout_id)["total_reps"] == 2
    assert manager.mode == "idle"


def test_dropped_frames_do_not_interrupt(manager, make_frame):
    manager.start_workout("bo")
    manager.push_landmarks(make_frame(True), ts=0.0)
    manager.push_landmarks([], ts=0.1)
    manager.push_landmarks(None, ts=0.2)
    manager.push_landmarks(make_frame(False), ts=0.3)
    assert manager.status().count == 1


def test_pre_classified_labels(manager):
    manager.start_workout("cy")
    for i, label in enumerate([PoseLabel.DOWN, PoseLabel.UP, PoseLabel.DOWN, PoseLabel.UP, PoseLabel.DOWN]):
        manager.push_label(label, ts=float(i))
    assert manager.status().count == 2
    assert manager.status().feedback == "Rep counted!"


def test_feedback_cleared_by_frame_clock(manager):
    manager.start_workout("di")
    manager.push_label(PoseLabel.UP, ts=0.0)
    manager.push_label(PoseLabel.DOWN, ts=1.0)
    manager.push_label(PoseLabel.DOWN, ts=2.5)
    assert manager.status().feedback == ""


def test_model_not_ready_ignores_frames(settings, make_frame):
    mgr = RepSessionManager(classifier=PoseClassifier(), settings=settings)
    mgr.start_workout("ed")
    for i, up in enumerate([True, False, True, False]):
        mgr.push_landmarks(make_frame(up), ts=float(i))
    assert mgr.status().count == 0
    assert mgr.status().last_label == "none"


def test_blank_username_rejected(manager):
    with pytest.raises(InvalidStateError):
        manager.start_workout("   ")


def test_stop_without_workout(manager):
    with pytest.raises(InvalidStateError):
        manager.stop_workout()


def test_modes_are_exclusive(manager):
    manager.start_collecting(PoseLabel.UP)
    with pytest.raises(InvalidStateError):
        manager.start_workout("ana")
    manager.stop_collecting()
    manager.start_workout("ana")
    with pytest.raises(InvalidStateError):
        manager.start_collecting(PoseLabel.DOWN)


def test_collect_flow(manager, make_frame):
    with pytest.raises(EmptyDataError):
        manager.export_samples()
    assert manager.submit_frame(make_frame(True)) == 0
    manager.start_collecting(PoseLabel.DOWN)
    with pytest.raises(InvalidStateError):
        manager.set_label(PoseLabel.UP)
    manager.submit_frame(make_frame(False))
    manager.submit_frame([])
    manager.submit_frame(make_frame(False))
    assert manager.stop_collecting() == 2
    samples = manager.export_samples()
    assert samples.label is PoseLabel.DOWN
    assert manager.status().samples == 2


def test_leaderboard_failure_is_not_raised(manager, make_frame, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("store down")

    monkeypatch.setattr(manager.leaderboard, "record", broken)
    manager.start_workout("fy")
    manager.push_label(PoseLabel.UP, ts=0.0)
    assert manager.push_label(PoseLabel.DOWN, ts=1.0) is True
    assert manager.status().count == 1
