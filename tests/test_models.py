"""Tests for shared data types."""

from fractions import Fraction

import numpy
import pytest

from quietcut.models import (
    Composition,
    Outcome,
    SampleBuffer,
    TickRange,
    TimelineSplice,
    TrackExtent,
    round_half_up,
    seconds_to_ticks,
)


class TestSampleBuffer:
    def test_frames_and_duration(self):
        buf = SampleBuffer(numpy.zeros(4000), sample_rate=1000, channel_count=2)
        assert buf.frame_count == 2000
        assert buf.duration == 2.0
        assert len(buf) == 4000
        assert buf.frames().shape == (2000, 2)

    def test_length_must_match_channels(self):
        with pytest.raises(ValueError, match="multiple of channel_count"):
            SampleBuffer(numpy.zeros(5), sample_rate=1000, channel_count=2)

    def test_rejects_bad_metadata(self):
        with pytest.raises(ValueError, match="sample_rate"):
            SampleBuffer([0.0], sample_rate=0)
        with pytest.raises(ValueError, match="channel_count"):
            SampleBuffer([0.0], sample_rate=1000, channel_count=0)

    def test_samples_are_read_only(self):
        source = numpy.ones(10)
        buf = SampleBuffer(source, sample_rate=10)
        with pytest.raises(ValueError):
            buf.samples[0] = 2.0
        source[0] = 5.0
        assert buf.samples[0] == 1.0

    def test_float32_kept_without_widening(self):
        pcm = numpy.frombuffer(numpy.array([0.5, -0.5], dtype="<f4").tobytes(), dtype="<f4")
        buf = SampleBuffer(pcm, sample_rate=48000)
        assert buf.samples.dtype == numpy.float32
        assert not buf.samples.flags.writeable

    def test_other_input_becomes_float64(self):
        assert SampleBuffer([1, 2], sample_rate=10).samples.dtype == numpy.float64

    def test_empty(self):
        buf = SampleBuffer([], sample_rate=48000)
        assert buf.is_empty
        assert buf.duration == 0.0


class TestTicks:
    def test_round_half_up(self):
        assert round_half_up(Fraction(5, 2)) == 3
        assert round_half_up(Fraction(7, 3)) == 2
        assert round_half_up(Fraction(-5, 2)) == -2

    def test_seconds_to_ticks_uses_decimal_value(self):
        # 0.1 + 0.2 is 0.30000000000000004 as a float; still 300 ms
        assert seconds_to_ticks(0.1 + 0.2) == 300
        assert seconds_to_ticks(2.0005) == 2001
        assert seconds_to_ticks(1.5, timescale=90000) == 135000

    def test_tick_range_from_seconds(self):
        r = TickRange.from_seconds(8.0, 9.25)
        assert (r.start, r.end, r.duration) == (8000, 9250, 1250)
        assert r.start_seconds == 8.0
        assert r.end_seconds == 9.25
        assert not r.is_empty

    def test_track_extent_is_tick_range(self):
        extent = TrackExtent(0, 0)
        assert isinstance(extent, TickRange)
        assert extent.is_empty


class TestTimelineSplice:
    def test_destination_end_and_dict(self):
        splice = TimelineSplice(source=TickRange(8000, 9000), destination_start=2000)
        assert splice.destination_end == 3000
        d = splice.to_dict()
        assert d["source_start"] == 8000
        assert d["source_end_seconds"] == 9.0
        assert d["destination_start_seconds"] == 2.0


class TestComposition:
    def test_empty_totals(self):
        c = Composition(outcome=Outcome.DEGENERATE_TIMELINE)
        assert not c.ok
        assert c.total_ticks == 0
        assert c.total_duration == 0.0

    def test_totals_follow_last_splice(self):
        c = Composition(
            outcome=Outcome.OK,
            splices=[
                TimelineSplice(TickRange(0, 2000), 0),
                TimelineSplice(TickRange(4000, 4500), 2000),
            ],
        )
        assert c.ok
        assert c.total_ticks == 2500
        assert c.total_duration == 2.5
