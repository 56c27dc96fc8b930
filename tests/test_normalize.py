"""Tests for peak normalization."""

import numpy

from quietcut.analyzers.normalize import peak_normalize
from quietcut.models import SampleBuffer


class TestPeakNormalize:
    def test_within_unit_range_unchanged(self):
        buf = SampleBuffer([0.1, -0.9, 0.5, 1.0], sample_rate=4)
        assert peak_normalize(buf) is buf

    def test_empty_unchanged(self):
        buf = SampleBuffer([], sample_rate=44100)
        assert peak_normalize(buf) is buf

    def test_scales_to_unit_peak(self):
        buf = SampleBuffer([2.0, -4.0, 1.0, 0.0], sample_rate=4, channel_count=2)
        out = peak_normalize(buf)
        assert numpy.max(numpy.abs(out.samples)) == 1.0
        numpy.testing.assert_allclose(out.samples, [0.5, -1.0, 0.25, 0.0])
        assert out.sample_rate == buf.sample_rate
        assert out.channel_count == 2

    def test_does_not_modify_input(self):
        buf = SampleBuffer([3.0, -6.0], sample_rate=2)
        peak_normalize(buf)
        numpy.testing.assert_array_equal(buf.samples, [3.0, -6.0])

    def test_idempotent(self):
        rng = numpy.random.default_rng(7)
        for scale in (0.3, 1.0, 2.5, 40.0):
            buf = SampleBuffer(rng.normal(0.0, scale, 600), sample_rate=300, channel_count=2)
            once = peak_normalize(buf)
            twice = peak_normalize(once)
            numpy.testing.assert_array_equal(once.samples, twice.samples)
