"""Shared data types used across quietcut."""

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction

import numpy

DEFAULT_TIMESCALE = 1000


def round_half_up(value: Fraction) -> int:
    whole = value.numerator // value.denominator
    remainder = value.numerator - whole * value.denominator
    if remainder * 2 >= value.denominator:
        return whole + 1
    return whole


def seconds_to_ticks(seconds: float, timescale: int = DEFAULT_TIMESCALE) -> int:
    """Convert seconds to integer ticks, rounding half up on the exact decimal value."""
    return round_half_up(Fraction(str(seconds)) * timescale)


@dataclass
class TimeRange:
    """A start/end time pair in seconds."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class SilenceInterval(TimeRange):
    """A retained stretch of silence, ``[start, end)`` seconds."""


@dataclass
class Segment(TimeRange):
    """A stretch of audible content to keep, ``[start, end)`` seconds."""


@dataclass(frozen=True)
class TickRange:
    """A ``[start, end)`` range in integer ticks of ``timescale`` per second."""

    start: int
    end: int
    timescale: int = DEFAULT_TIMESCALE

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    @property
    def start_seconds(self) -> float:
        return self.start / self.timescale

    @property
    def end_seconds(self) -> float:
        return self.end / self.timescale

    @classmethod
    def from_seconds(
        cls, start: float, end: float, timescale: int = DEFAULT_TIMESCALE
    ) -> "TickRange":
        return cls(
            start=seconds_to_ticks(start, timescale),
            end=seconds_to_ticks(end, timescale),
            timescale=timescale,
        )


class TrackExtent(TickRange):
    """How much of a media track actually has data."""


@dataclass(frozen=True)
class TimelineSplice:
    """Copy ``source`` from every track to the output starting at ``destination_start``."""

    source: TickRange
    destination_start: int

    @property
    def destination_end(self) -> int:
        return self.destination_start + self.source.duration

    def to_dict(self) -> dict:
        ts = self.source.timescale
        return {
            "source_start": self.source.start,
            "source_end": self.source.end,
            "destination_start": self.destination_start,
            "timescale": ts,
            "source_start_seconds": self.source.start / ts,
            "source_end_seconds": self.source.end / ts,
            "destination_start_seconds": self.destination_start / ts,
        }


class SampleBuffer:
    """Interleaved float samples plus the metadata needed to read them as frames.

    Float32 input (decoded PCM) is stored as float32; anything else becomes
    float64. Writable input is copied once, and the stored array is marked
    read-only so the buffer can be shared with a worker thread without further
    locking. Energy math widens to float64 chunk by chunk.
    """

    def __init__(self, samples, sample_rate: float, channel_count: int = 1):
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        if channel_count < 1:
            raise ValueError(f"channel_count must be >= 1, got {channel_count}")
        array = numpy.asarray(samples)
        dtype = numpy.float32 if array.dtype == numpy.float32 else numpy.float64
        if array.dtype != dtype or array.flags.writeable:
            array = numpy.array(array, dtype=dtype)
        array = array.reshape(-1)
        if array.size % channel_count != 0:
            raise ValueError(
                f"buffer length {array.size} is not a multiple of channel_count {channel_count}"
            )
        array.flags.writeable = False
        self.samples = array
        self.sample_rate = float(sample_rate)
        self.channel_count = int(channel_count)

    def __len__(self) -> int:
        return int(self.samples.size)

    def __repr__(self) -> str:
        return (
            f"SampleBuffer(frames={self.frame_count}, sample_rate={self.sample_rate:g}, "
            f"channels={self.channel_count})"
        )

    @property
    def frame_count(self) -> int:
        return self.samples.size // self.channel_count

    @property
    def duration(self) -> float:
        return self.frame_count / self.sample_rate

    @property
    def is_empty(self) -> bool:
        return self.samples.size == 0

    def frames(self) -> numpy.ndarray:
        """Return a read-only ``(frame_count, channel_count)`` view."""
        return self.samples.reshape(-1, self.channel_count)


@dataclass
class Window:
    """A contiguous frame range with its loudness."""

    start_frame: int
    end_frame: int
    loudness: float


@dataclass
class WindowSeries:
    """Bulk analyzer output: one entry per analysis window."""

    starts: numpy.ndarray
    ends: numpy.ndarray
    rms: numpy.ndarray
    sample_rate: float
    window_frames: int
    hop_frames: int

    def __len__(self) -> int:
        return int(self.starts.size)

    def __getitem__(self, index: int) -> Window:
        return Window(
            start_frame=int(self.starts[index]),
            end_frame=int(self.ends[index]),
            loudness=float(self.rms[index]),
        )


class Outcome(str, Enum):
    """How an analysis or composition run ended."""

    OK = "ok"
    EMPTY_BUFFER = "empty_buffer"
    INVALID_CONFIGURATION = "invalid_configuration"
    MISSING_TRACK = "missing_track"
    DEGENERATE_TIMELINE = "degenerate_timeline"
    CANCELLED = "cancelled"


@dataclass
class ProgressEvent:
    """A progress update for one pipeline phase."""

    phase: str
    percent: float
    eta_seconds: float

    def to_dict(self) -> dict:
        return {
            "phase": self.phase,
            "percent": round(self.percent, 1),
            "eta_seconds": round(self.eta_seconds, 1),
        }


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""

    duration: float
    width: int
    height: int
    fps: float
    audio_sample_rate: int
    audio_channels: int
    codec_video: str
    codec_audio: str
    video_extent: TrackExtent | None = None
    audio_extent: TrackExtent | None = None


@dataclass
class Composition:
    """Result of laying segments onto the output timeline."""

    outcome: Outcome
    splices: list[TimelineSplice] = field(default_factory=list)
    dropped: list[Segment] = field(default_factory=list)
    timescale: int = DEFAULT_TIMESCALE
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.OK

    @property
    def total_ticks(self) -> int:
        if not self.splices:
            return 0
        return self.splices[-1].destination_end

    @property
    def total_duration(self) -> float:
        return self.total_ticks / self.timescale
