"""Optional peak normalization of a sample buffer."""

import logging

import numpy

from quietcut.models import SampleBuffer

logger = logging.getLogger(__name__)


def peak_normalize(buffer: SampleBuffer) -> SampleBuffer:
    """Scale samples so the peak absolute value is 1.0.

    Buffers already within unit range (and empty buffers) come back unchanged,
    which makes the operation idempotent.
    """
    if buffer.is_empty:
        return buffer
    peak = float(numpy.max(numpy.abs(buffer.samples)))
    if peak <= 1.0:
        return buffer
    logger.debug("Normalizing buffer with peak %.4f", peak)
    return SampleBuffer(buffer.samples / peak, buffer.sample_rate, buffer.channel_count)
