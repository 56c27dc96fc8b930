"""Tests for progress throttling and cancellation."""

import pytest

from quietcut.progress import Cancelled, ProgressTracker


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestProgressTracker:
    def test_throttles_to_every_n_units(self):
        events = []
        tracker = ProgressTracker("analyzing", 1000, on_progress=events.append)
        for done in range(1, 1001):
            tracker.update(done)
        assert len(events) == 10
        assert [e.percent for e in events][:2] == [10.0, 20.0]
        assert events[-1].percent == 100.0

    def test_final_event_always_emitted(self):
        events = []
        tracker = ProgressTracker("composing", 150, on_progress=events.append)
        tracker.update(100)
        tracker.update(150)
        assert [e.percent for e in events] == [pytest.approx(66.666, abs=0.01), 100.0]

    def test_eta_from_elapsed_time(self):
        clock = FakeClock()
        events = []
        tracker = ProgressTracker("analyzing", 400, on_progress=events.append, clock=clock)
        clock.now = 2.0
        tracker.update(100)
        assert events[0].eta_seconds == pytest.approx(6.0)
        clock.now = 8.0
        tracker.update(400)
        assert events[1].eta_seconds == 0.0

    def test_zero_total_reports_complete(self):
        events = []
        ProgressTracker("composing", 0, on_progress=events.append).update(0)
        assert events[0].percent == 100.0

    def test_cancellation_raises(self):
        tracker = ProgressTracker("analyzing", 10, is_cancelled=lambda: True)
        with pytest.raises(Cancelled):
            tracker.update(1)

    def test_no_callback_is_fine(self):
        tracker = ProgressTracker("analyzing", 10)
        tracker.update(10)

    def test_event_dict(self):
        events = []
        tracker = ProgressTracker(
            "analyzing", 3, on_progress=events.append, every=1, clock=FakeClock()
        )
        tracker.update(1)
        assert events[0].to_dict() == {"phase": "analyzing", "percent": 33.3, "eta_seconds": 0.0}
