"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import shutil
import subprocess
from decimal import Decimal
from pathlib import Path

import numpy

from quietcut.models import (
    DEFAULT_TIMESCALE,
    ProbeResult,
    SampleBuffer,
    TimelineSplice,
    TrackExtent,
    seconds_to_ticks,
)

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(RuntimeError):
    pass


class NoAudioStreamError(ValueError):
    """Raised when the input file has no audio stream."""
    pass


class NoVideoStreamError(ValueError):
    """Raised when the input file has no video stream."""
    pass


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def _stream_extent(stream: dict, fallback_duration: float, timescale: int) -> TrackExtent:
    start = float(stream.get("start_time") or 0.0)
    duration = stream.get("duration")
    length = float(duration) if duration not in (None, "N/A") else fallback_duration - start
    return TrackExtent(
        start=seconds_to_ticks(start, timescale),
        end=seconds_to_ticks(start + length, timescale),
        timescale=timescale,
    )


def probe(input_path: Path, timescale: int = DEFAULT_TIMESCALE) -> ProbeResult:
    """Extract media metadata and per-track extents via ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    data = json.loads(result.stdout)

    video_stream = next(
        (s for s in data["streams"] if s["codec_type"] == "video"), None
    )
    audio_stream = next(
        (s for s in data["streams"] if s["codec_type"] == "audio"), None
    )

    if video_stream is None:
        raise NoVideoStreamError(f"No video stream found in {input_path}")
    if audio_stream is None:
        raise NoAudioStreamError(
            f"No audio stream found in {input_path}; silence detection requires audio"
        )

    duration = float(data["format"]["duration"])

    # Parse fps from r_frame_rate (e.g. "30/1")
    num, den = video_stream["r_frame_rate"].split("/")
    fps = int(num) / int(den) if int(den) else 0.0

    return ProbeResult(
        duration=duration,
        width=int(video_stream["width"]),
        height=int(video_stream["height"]),
        fps=fps,
        audio_sample_rate=int(audio_stream["sample_rate"]),
        audio_channels=int(audio_stream.get("channels", 1)),
        codec_video=video_stream["codec_name"],
        codec_audio=audio_stream["codec_name"],
        video_extent=_stream_extent(video_stream, duration, timescale),
        audio_extent=_stream_extent(audio_stream, duration, timescale),
    )


def decode_audio(input_path: Path, sample_rate: int, channels: int) -> SampleBuffer:
    """Decode the first audio stream as interleaved 32-bit float PCM.

    The stream keeps its native rate and channel layout; ``sample_rate`` and
    ``channels`` only describe it.
    """
    cmd = [
        "ffmpeg",
        "-v", "error",
        "-i", str(input_path),
        "-map", "0:a:0",
        "-vn",
        "-acodec", "pcm_f32le",
        "-f", "f32le",
        "-",
    ]
    result = subprocess.run(cmd, capture_output=True, check=True)
    samples = numpy.frombuffer(result.stdout, dtype="<f4")

    leftover = samples.size % channels
    if leftover:
        logger.warning("Dropping %d samples of an incomplete trailing frame", leftover)
        samples = samples[: samples.size - leftover]

    logger.debug("Decoded %d samples (%d Hz, %d ch)", samples.size, sample_rate, channels)
    return SampleBuffer(samples, sample_rate, channels)


def format_ticks(ticks: int, timescale: int) -> str:
    """Exact decimal seconds for a tick value, suitable for ffmpeg filters."""
    return format(Decimal(ticks) / Decimal(timescale), "f")


def render_splices(
    input_path: Path, splices: list[TimelineSplice], output_path: Path
) -> None:
    """Render splices using a single ffmpeg filter_complex call.

    Uses trim/atrim + concat filters so no intermediate files are needed and
    the approach works regardless of the input codec/container. The concat
    order is the destination order, so each splice lands at its
    ``destination_start``.
    """
    if not splices:
        raise ValueError("render_splices called with empty splice list")

    ordered = sorted(splices, key=lambda s: s.destination_start)
    n = len(ordered)
    filter_parts: list[str] = []
    stream_labels: list[str] = []

    for i, splice in enumerate(ordered):
        ts = splice.source.timescale
        start = format_ticks(splice.source.start, ts)
        end = format_ticks(splice.source.end, ts)
        filter_parts.append(
            f"[0:v]trim=start={start}:end={end},setpts=PTS-STARTPTS[v{i}]"
        )
        filter_parts.append(
            f"[0:a]atrim=start={start}:end={end},asetpts=PTS-STARTPTS[a{i}]"
        )
        stream_labels.append(f"[v{i}][a{i}]")

    concat_input = "".join(stream_labels)
    filter_parts.append(f"{concat_input}concat=n={n}:v=1:a=1[outv][outa]")

    filter_complex = ";\n".join(filter_parts)

    cmd = [
        "ffmpeg", "-y",
        "-i", str(input_path),
        "-filter_complex", filter_complex,
        "-map", "[outv]",
        "-map", "[outa]",
        str(output_path),
    ]
    logger.info("Rendering %d splices to %s", n, output_path)
    subprocess.run(cmd, capture_output=True, check=True)
