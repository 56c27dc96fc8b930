"""Tests for the timeline composer."""

import logging

import pytest

from quietcut.editors.compose import common_extent, compose_timeline
from quietcut.models import Outcome, Segment, TickRange, TrackExtent


FULL = TrackExtent(0, 10000)


class TestCommonExtent:
    def test_intersection(self):
        bounds = common_extent(TrackExtent(0, 9000), TrackExtent(200, 10000), 1000)
        assert (bounds.start, bounds.end) == (200, 9000)

    def test_rescales_to_timescale(self):
        video = TrackExtent(0, 810000, timescale=90000)
        bounds = common_extent(video, FULL, 1000)
        assert (bounds.start, bounds.end) == (0, 9000)
        assert bounds.timescale == 1000


class TestComposeTimeline:
    def test_clamps_to_shorter_track(self):
        video = TrackExtent(0, 9000)
        audio = TrackExtent(0, 10000)
        result = compose_timeline([Segment(0.0, 2.0), Segment(8.0, 10.0)], video, audio)

        assert result.outcome == Outcome.OK
        assert [s.source for s in result.splices] == [TickRange(0, 2000), TickRange(8000, 9000)]
        assert [s.destination_start for s in result.splices] == [0, 2000]
        assert result.total_ticks == 3000
        assert result.total_duration == 3.0
        assert result.dropped == []

    def test_destinations_are_contiguous(self):
        segments = [Segment(i / 3.0, i / 3.0 + 0.1) for i in range(0, 300, 2)]
        extent = TrackExtent(0, 200000)
        result = compose_timeline(segments, extent, extent)

        assert result.splices[0].destination_start == 0
        for prev, cur in zip(result.splices, result.splices[1:]):
            assert cur.destination_start == prev.destination_end
        assert result.total_ticks == sum(s.source.duration for s in result.splices)

    def test_preserves_source_order(self):
        segments = [Segment(1.0, 2.0), Segment(3.0, 4.5), Segment(6.0, 7.0)]
        result = compose_timeline(segments, FULL, FULL)
        starts = [s.source.start for s in result.splices]
        assert starts == sorted(starts) == [1000, 3000, 6000]

    def test_segment_outside_tracks_is_dropped(self, caplog):
        audio = TrackExtent(1000, 10000)
        segments = [Segment(0.0, 0.5), Segment(2.0, 3.0)]
        with caplog.at_level(logging.WARNING, logger="quietcut"):
            result = compose_timeline(segments, FULL, audio)

        assert result.outcome == Outcome.OK
        assert result.dropped == [Segment(0.0, 0.5)]
        assert [s.source for s in result.splices] == [TickRange(2000, 3000)]
        assert result.splices[0].destination_start == 0
        assert "Segment 1" in caplog.text

    def test_partial_clamp_at_start(self):
        audio = TrackExtent(500, 10000)
        result = compose_timeline([Segment(0.0, 2.0)], FULL, audio)
        assert result.splices[0].source == TickRange(500, 2000)

    def test_no_segments_is_degenerate(self):
        result = compose_timeline([], FULL, FULL)
        assert result.outcome == Outcome.DEGENERATE_TIMELINE
        assert result.splices == []
        assert not result.ok

    def test_everything_dropped_is_degenerate(self):
        result = compose_timeline([Segment(9.5, 10.0)], TrackExtent(0, 9000), FULL)
        assert result.outcome == Outcome.DEGENERATE_TIMELINE
        assert len(result.dropped) == 1

    @pytest.mark.parametrize(
        "video, audio",
        [(None, FULL), (FULL, None), (TrackExtent(0, 0), FULL), (None, None)],
    )
    def test_missing_track(self, video, audio):
        result = compose_timeline([Segment(0.0, 1.0)], video, audio)
        assert result.outcome == Outcome.MISSING_TRACK
        assert result.splices == []
        assert "track" in result.message

    def test_cancellation_returns_nothing(self):
        segments = [Segment(float(i), i + 0.5) for i in range(5)]
        result = compose_timeline(segments, FULL, FULL, is_cancelled=lambda: True)
        assert result.outcome == Outcome.CANCELLED
        assert result.splices == []

    def test_progress_events(self):
        events = []
        segments = [Segment(i * 0.01, i * 0.01 + 0.005) for i in range(250)]
        compose_timeline(segments, FULL, FULL, on_progress=events.append)
        assert [e.phase for e in events] == ["composing"] * 3
        assert events[-1].percent == 100.0

    def test_other_timescale(self):
        extent = TrackExtent(0, 900000, timescale=90000)
        result = compose_timeline([Segment(1.0, 2.5)], extent, extent, timescale=90000)
        assert result.splices[0].source == TickRange(90000, 225000, 90000)
        assert result.total_duration == 1.5
