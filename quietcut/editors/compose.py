"""Timeline composer — lays kept segments end to end in exact ticks."""

import logging

from quietcut.models import (
    DEFAULT_TIMESCALE,
    Composition,
    Outcome,
    Segment,
    TickRange,
    TimelineSplice,
    TrackExtent,
)
from quietcut.progress import CancelCheck, Cancelled, ProgressCallback, ProgressTracker

logger = logging.getLogger(__name__)


def common_extent(video: TrackExtent, audio: TrackExtent, timescale: int) -> TickRange:
    """Intersection of the two track extents, rescaled to ``timescale``."""
    video = _rescale(video, timescale)
    audio = _rescale(audio, timescale)
    return TickRange(
        start=max(video.start, audio.start),
        end=min(video.end, audio.end),
        timescale=timescale,
    )


def _rescale(extent: TickRange, timescale: int) -> TickRange:
    if extent.timescale == timescale:
        return extent
    return TickRange.from_seconds(extent.start_seconds, extent.end_seconds, timescale)


def compose_timeline(
    segments: list[Segment],
    video_extent: TrackExtent | None,
    audio_extent: TrackExtent | None,
    timescale: int = DEFAULT_TIMESCALE,
    on_progress: ProgressCallback | None = None,
    is_cancelled: CancelCheck | None = None,
) -> Composition:
    """Turn segments into contiguous splices covering ``[0, total)``.

    Each segment is clamped to the span where both tracks have data. Segments
    that clamp to nothing are dropped and reported, never fatal. Destination
    positions are sums of integer tick counts, so they cannot drift.
    """
    missing = [
        name for name, extent in (("video", video_extent), ("audio", audio_extent))
        if extent is None or extent.is_empty
    ]
    if missing:
        message = f"No usable {' or '.join(missing)} track"
        logger.error(message)
        return Composition(outcome=Outcome.MISSING_TRACK, timescale=timescale, message=message)

    bounds = common_extent(video_extent, audio_extent, timescale)
    tracker = ProgressTracker("composing", len(segments), on_progress, is_cancelled)

    splices: list[TimelineSplice] = []
    dropped: list[Segment] = []
    cursor = 0

    try:
        for i, segment in enumerate(segments):
            tracker.check_cancelled()
            source = TickRange.from_seconds(segment.start, segment.end, timescale)
            start = max(source.start, bounds.start)
            end = min(source.end, bounds.end)
            if end - start > 0:
                splices.append(
                    TimelineSplice(
                        source=TickRange(start=start, end=end, timescale=timescale),
                        destination_start=cursor,
                    )
                )
                cursor += end - start
            else:
                logger.warning(
                    "Segment %d (%.3fs -> %.3fs) lies outside the common track range, dropped",
                    i + 1, segment.start, segment.end,
                )
                dropped.append(segment)
            tracker.update(i + 1)
    except Cancelled:
        logger.info("Composition cancelled")
        return Composition(outcome=Outcome.CANCELLED, timescale=timescale, message="Cancelled")

    if not splices:
        return Composition(
            outcome=Outcome.DEGENERATE_TIMELINE,
            dropped=dropped,
            timescale=timescale,
            message="Nothing audible to keep",
        )

    logger.info(
        "Composed %d splices, %.3fs total (%d dropped)",
        len(splices), cursor / timescale, len(dropped),
    )
    return Composition(
        outcome=Outcome.OK,
        splices=splices,
        dropped=dropped,
        timescale=timescale,
    )
