"""Windowed RMS energy analysis over an interleaved sample buffer."""

import logging

import numpy
from numpy.lib.stride_tricks import sliding_window_view

from quietcut.models import SampleBuffer, WindowSeries
from quietcut.progress import ProgressTracker

logger = logging.getLogger(__name__)

DB_EPSILON = 1e-9

# Windows (or peak blocks) evaluated per pass when no tracker sets the pace
CHUNK_WINDOWS = 4096


def duration_to_frames(sample_rate: float, milliseconds: float) -> int:
    """Frame count for a duration, never less than one frame."""
    return max(int(round(sample_rate * milliseconds / 1000.0)), 1)


def to_db(rms):
    """Convert linear RMS (scalar or array) to decibels."""
    return 20.0 * numpy.log10(numpy.asarray(rms, dtype=numpy.float64) + DB_EPSILON)


def _frame_energy(frames: numpy.ndarray) -> numpy.ndarray:
    """Sum of squared samples across channels, one float64 value per frame."""
    wide = frames.astype(numpy.float64)
    return numpy.einsum("ij,ij->i", wide, wide)


def window_bounds(total_frames: int, window_frames: int, hop_frames: int) -> tuple:
    """Start and end frame arrays for every analysis window.

    Full windows number ``floor((total - window) / hop) + 1``. When they stop
    short of the last frame, one partial window covers the remainder.
    """
    if total_frames <= 0:
        empty = numpy.zeros(0, dtype=numpy.int64)
        return empty, empty
    full = 0
    if total_frames >= window_frames:
        full = (total_frames - window_frames) // hop_frames + 1
    starts = numpy.arange(full, dtype=numpy.int64) * hop_frames
    ends = starts + window_frames
    covered = int(ends[-1]) if full else 0
    if covered < total_frames:
        tail_start = full * hop_frames
        starts = numpy.append(starts, tail_start)
        ends = numpy.append(ends, total_frames)
    return starts, ends


def _window_sums(
    frames: numpy.ndarray,
    starts: numpy.ndarray,
    ends: numpy.ndarray,
    window_frames: int,
) -> numpy.ndarray:
    """Energy of each window, summed directly rather than as a difference.

    Starts are ascending, so the chunk only touches frames ``[starts[0], max(ends))``.
    A quiet window after a long loud stretch keeps its full precision.
    """
    base = int(starts[0])
    energy = _frame_energy(frames[base:int(ends.max())])
    sums = numpy.empty(starts.size, dtype=numpy.float64)
    full = (ends - starts) == window_frames
    if full.any():
        rows = sliding_window_view(energy, window_frames)
        sums[full] = rows[starts[full] - base].sum(axis=1)
    # at most the trailing partial window
    for i in numpy.flatnonzero(~full):
        sums[i] = energy[starts[i] - base:ends[i] - base].sum()
    return sums


def compute_windows(
    buffer: SampleBuffer,
    window_ms: float,
    hop_ms: float,
    tracker: ProgressTracker | None = None,
) -> WindowSeries:
    """Compute the RMS of every (possibly overlapping) window across the buffer.

    Windows are evaluated in chunks of ``tracker.every`` so progress and
    cancellation are consulted between chunks.
    """
    window_frames = duration_to_frames(buffer.sample_rate, window_ms)
    hop_frames = duration_to_frames(buffer.sample_rate, hop_ms)
    starts, ends = window_bounds(buffer.frame_count, window_frames, hop_frames)

    frames = buffer.frames()
    rms = numpy.empty(starts.size, dtype=numpy.float64)

    if tracker is not None:
        tracker.total = int(starts.size)
    chunk = tracker.every if tracker is not None else CHUNK_WINDOWS

    for lo in range(0, starts.size, chunk):
        hi = min(lo + chunk, starts.size)
        s = starts[lo:hi]
        e = ends[lo:hi]
        sums = _window_sums(frames, s, e, window_frames)
        rms[lo:hi] = numpy.sqrt(sums / ((e - s) * buffer.channel_count))
        if tracker is not None:
            tracker.update(hi)

    logger.debug(
        "Computed %d windows (window=%d frames, hop=%d frames)",
        starts.size, window_frames, hop_frames,
    )
    return WindowSeries(
        starts=starts,
        ends=ends,
        rms=rms,
        sample_rate=buffer.sample_rate,
        window_frames=window_frames,
        hop_frames=hop_frames,
    )


def global_peak_rms(buffer: SampleBuffer, block_ms: float = 1.0) -> float:
    """Largest RMS over non-overlapping ``block_ms`` blocks of the whole buffer."""
    total = buffer.frame_count
    if total == 0:
        return 0.0
    block = duration_to_frames(buffer.sample_rate, block_ms)
    slab = block * CHUNK_WINDOWS
    frames = buffer.frames()
    peak = 0.0
    for lo in range(0, total, slab):
        energy = _frame_energy(frames[lo:lo + slab])
        offsets = numpy.arange(0, energy.size, block)
        sums = numpy.add.reduceat(energy, offsets)
        counts = numpy.diff(numpy.append(offsets, energy.size)) * buffer.channel_count
        peak = max(peak, float(numpy.max(numpy.sqrt(sums / counts))))
    return peak
