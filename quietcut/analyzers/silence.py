"""Silence classification, interval merging and non-silent segment extraction."""

import logging
import math
from dataclasses import dataclass

import numpy

from quietcut.analyzers.energy import DB_EPSILON
from quietcut.manifest import SilenceCutConfig, ThresholdMode
from quietcut.models import Segment, SilenceInterval, WindowSeries

logger = logging.getLogger(__name__)


@dataclass
class SilenceThreshold:
    """A linear RMS ceiling: windows strictly below it are silent."""

    ceiling: float
    mode: ThresholdMode

    @property
    def db(self) -> float:
        if math.isinf(self.ceiling):
            return math.inf
        if self.ceiling <= 0:
            return -math.inf
        return 20.0 * math.log10(self.ceiling)


def threshold_from_db(threshold_db: float) -> SilenceThreshold:
    """``to_db(rms) < threshold_db`` rewritten as a linear comparison."""
    return SilenceThreshold(
        ceiling=10.0 ** (threshold_db / 20.0) - DB_EPSILON,
        mode=ThresholdMode.ABSOLUTE_DB,
    )


def threshold_from_percentage(percentage: float, peak_rms: float) -> SilenceThreshold:
    """A fraction of the loudest block; an all-zero buffer is silent everywhere."""
    if peak_rms <= 0:
        return SilenceThreshold(ceiling=math.inf, mode=ThresholdMode.PERCENT_OF_PEAK)
    return SilenceThreshold(
        ceiling=percentage / 100.0 * peak_rms,
        mode=ThresholdMode.PERCENT_OF_PEAK,
    )


def resolve_threshold(config: SilenceCutConfig, peak_rms: float = 0.0) -> SilenceThreshold:
    if config.threshold_mode == ThresholdMode.PERCENT_OF_PEAK:
        return threshold_from_percentage(config.threshold_percentage, peak_rms)
    return threshold_from_db(config.silence_threshold_db)


def classify_windows(series: WindowSeries, threshold: SilenceThreshold) -> numpy.ndarray:
    """Boolean mask, True where the window is silent."""
    if math.isinf(threshold.ceiling):
        return numpy.ones(len(series), dtype=bool)
    return series.rms < threshold.ceiling


def merge_silent_windows(
    series: WindowSeries,
    silent: numpy.ndarray,
    min_silence_duration: float,
    tolerance_ms: float = 1.0,
) -> list[SilenceInterval]:
    """Coalesce silent windows into intervals and keep the long enough ones.

    Windows whose start lies within ``tolerance_ms`` of the running interval
    end (overlapping windows included) join that interval. Intervals shorter
    than ``min_silence_duration`` are dropped; the comparison is inclusive.
    """
    index = numpy.flatnonzero(silent)
    if index.size == 0:
        return []

    sample_rate = series.sample_rate
    tolerance = int(round(sample_rate * tolerance_ms / 1000.0))
    starts = series.starts[index]
    reach = numpy.maximum.accumulate(series.ends[index])

    breaks = numpy.flatnonzero(starts[1:] - reach[:-1] > tolerance) + 1
    first = numpy.concatenate(([0], breaks))
    last = numpy.concatenate((breaks - 1, [index.size - 1]))

    intervals: list[SilenceInterval] = []
    for lo, hi in zip(first, last):
        start_frame = int(starts[lo])
        end_frame = int(reach[hi])
        if (end_frame - start_frame) / sample_rate >= min_silence_duration:
            intervals.append(
                SilenceInterval(start=start_frame / sample_rate, end=end_frame / sample_rate)
            )

    logger.debug(
        "Merged %d silent windows into %d candidates, kept %d (min %.3fs)",
        index.size, len(first), len(intervals), min_silence_duration,
    )
    return intervals


def extract_segments(silences: list[SilenceInterval], duration: float) -> list[Segment]:
    """Return the audible complement of ``silences`` within ``[0, duration)``."""
    segments: list[Segment] = []
    previous_end = 0.0

    for silence in silences:
        if silence.start > previous_end:
            segments.append(Segment(start=previous_end, end=silence.start))
        previous_end = silence.end

    if previous_end < duration:
        segments.append(Segment(start=previous_end, end=duration))

    return segments
