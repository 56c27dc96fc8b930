"""Shared test fixtures."""

from pathlib import Path

import numpy
import pytest

from quietcut.models import SampleBuffer

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


def _square_wave(frames: int, amplitude: float) -> numpy.ndarray:
    """Alternating +/- amplitude, so any window has RMS exactly ``amplitude``."""
    wave = numpy.full(frames, amplitude, dtype=numpy.float64)
    wave[1::2] *= -1
    return wave


@pytest.fixture
def make_buffer():
    """Build a buffer that is loud everywhere except the given silent ranges.

    Ranges are ``(start_seconds, end_seconds)``; ``quiet`` sets the amplitude
    used inside them (0.0 for digital silence).
    """

    def factory(
        duration: float,
        silences=(),
        sample_rate: int = 1000,
        channels: int = 1,
        amplitude: float = 0.5,
        quiet: float = 0.0,
    ) -> SampleBuffer:
        frames = int(round(duration * sample_rate))
        mono = _square_wave(frames, amplitude)
        for start, end in silences:
            lo = int(round(start * sample_rate))
            hi = int(round(end * sample_rate))
            mono[lo:hi] = _square_wave(hi - lo, quiet)
        interleaved = numpy.repeat(mono, channels)
        return SampleBuffer(interleaved, sample_rate, channels)

    return factory
