"""Orchestrator — runs the silence-removal pipeline.

``analyze`` and ``compose`` are the pure core: they take in-memory data,
perform no I/O and report every expected condition through ``Outcome``
instead of raising. ``process`` wires them to the ffmpeg decode and export
adapters for a whole file; ``analyze_file`` stops after analysis.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from quietcut import ffutil
from quietcut.analyzers.energy import compute_windows, global_peak_rms
from quietcut.analyzers.normalize import peak_normalize
from quietcut.analyzers.silence import (
    classify_windows,
    extract_segments,
    merge_silent_windows,
    resolve_threshold,
)
from quietcut.editors.compose import compose_timeline
from quietcut.editors.cut import apply_splices
from quietcut.manifest import Manifest, SilenceCutConfig, ThresholdMode
from quietcut.models import (
    Composition,
    Outcome,
    ProbeResult,
    ProgressEvent,
    SampleBuffer,
    Segment,
    SilenceInterval,
    TrackExtent,
)
from quietcut.progress import CancelCheck, Cancelled, ProgressCallback, ProgressTracker
from quietcut.report import write_report

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    outcome: Outcome
    silences: list[SilenceInterval] = field(default_factory=list)
    segments: list[Segment] = field(default_factory=list)
    duration: float = 0.0
    window_count: int = 0
    peak_rms: float = 0.0
    threshold_db: float | None = None
    messages: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.OK

    @property
    def message(self) -> str:
        return "; ".join(self.messages)


@dataclass
class EngineResult:
    outcome: Outcome
    output_path: Path | None = None
    report_path: Path | None = None
    segments_removed: int = 0
    duration_original: float = 0.0
    duration_final: float = 0.0
    analysis: AnalysisResult | None = None
    composition: Composition | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.OK


def analyze(
    buffer: SampleBuffer,
    config: SilenceCutConfig,
    on_progress: ProgressCallback | None = None,
    is_cancelled: CancelCheck | None = None,
) -> AnalysisResult:
    """Find silences and the audible segments between them.

    Args:
        buffer: Decoded audio, never modified.
        config: Detection settings; rejected up front when invalid.
        on_progress: Optional callback receiving ``ProgressEvent``s.
        is_cancelled: Optional check consulted between window chunks.
    """
    problems = config.validate()
    if problems:
        logger.error("Invalid configuration: %s", "; ".join(problems))
        return AnalysisResult(outcome=Outcome.INVALID_CONFIGURATION, messages=problems)

    if buffer.is_empty:
        logger.info("Empty sample buffer, nothing to process")
        return AnalysisResult(
            outcome=Outcome.EMPTY_BUFFER, messages=["Nothing to process"]
        )

    tracker = ProgressTracker("analyzing", 0, on_progress, is_cancelled)
    try:
        if config.normalize:
            buffer = peak_normalize(buffer)

        series = compute_windows(buffer, config.window_ms, config.hop_ms, tracker)

        peak_rms = 0.0
        if config.threshold_mode == ThresholdMode.PERCENT_OF_PEAK:
            peak_rms = global_peak_rms(buffer)
        threshold = resolve_threshold(config, peak_rms)

        silent = classify_windows(series, threshold)
        tracker.check_cancelled()
        silences = merge_silent_windows(
            series, silent, config.min_silence_duration, config.merge_tolerance_ms
        )
        tracker.check_cancelled()
    except Cancelled:
        logger.info("Analysis cancelled")
        return AnalysisResult(outcome=Outcome.CANCELLED, messages=["Cancelled"])

    duration = buffer.duration
    segments = extract_segments(silences, duration)

    outcome = Outcome.OK
    messages: list[str] = []
    if not segments:
        outcome = Outcome.DEGENERATE_TIMELINE
        messages.append("Entire input classified as silence")

    logger.info(
        "Analysis: %d silences, %d segments over %.3fs",
        len(silences), len(segments), duration,
    )
    return AnalysisResult(
        outcome=outcome,
        silences=silences,
        segments=segments,
        duration=duration,
        window_count=len(series),
        peak_rms=peak_rms,
        threshold_db=threshold.db,
        messages=messages,
    )


def compose(
    segments: list[Segment],
    video_extent: TrackExtent | None,
    audio_extent: TrackExtent | None,
    config: SilenceCutConfig | None = None,
    on_progress: ProgressCallback | None = None,
    is_cancelled: CancelCheck | None = None,
) -> Composition:
    """Clamp segments to the shared track range and lay them out contiguously."""
    config = config or SilenceCutConfig()
    return compose_timeline(
        segments,
        video_extent,
        audio_extent,
        timescale=config.timescale,
        on_progress=on_progress,
        is_cancelled=is_cancelled,
    )


def _load_media(
    input_path: Path,
    timescale: int,
    on_progress: ProgressCallback | None,
) -> tuple[ProbeResult, SampleBuffer]:
    """Probe ``input_path`` and decode its audio, reporting the loading phase."""
    if on_progress:
        on_progress(ProgressEvent("loading", 0.0, 0.0))
    probe_result = ffutil.probe(input_path, timescale=timescale)
    buffer = ffutil.decode_audio(
        input_path, probe_result.audio_sample_rate, probe_result.audio_channels
    )
    if on_progress:
        on_progress(ProgressEvent("loading", 100.0, 0.0))
    return probe_result, buffer


def analyze_file(
    input_path: Path,
    config: SilenceCutConfig,
    on_progress: ProgressCallback | None = None,
    is_cancelled: CancelCheck | None = None,
) -> AnalysisResult:
    """Decode ``input_path`` and analyze it without exporting anything."""
    ffutil.check_ffmpeg()
    try:
        _, buffer = _load_media(input_path, config.timescale, on_progress)
    except (ffutil.NoAudioStreamError, ffutil.NoVideoStreamError) as e:
        logger.error(str(e))
        return AnalysisResult(outcome=Outcome.MISSING_TRACK, messages=[str(e)])
    return analyze(buffer, config, on_progress=on_progress, is_cancelled=is_cancelled)


def process(
    manifest: Manifest,
    on_progress: ProgressCallback | None = None,
    is_cancelled: CancelCheck | None = None,
) -> EngineResult:
    """Execute the full pipeline for one file.

    Args:
        manifest: Validated editing manifest.
        on_progress: Optional callback receiving ``ProgressEvent``s.
        is_cancelled: Optional check consulted throughout the run.
    """

    def _progress(phase: str, percent: float) -> None:
        if on_progress:
            on_progress(ProgressEvent(phase, percent, 0.0))

    config = manifest.silence_cut
    ffutil.check_ffmpeg()

    try:
        probe_result, buffer = _load_media(manifest.input, config.timescale, on_progress)
    except (ffutil.NoAudioStreamError, ffutil.NoVideoStreamError) as e:
        logger.error(str(e))
        return EngineResult(outcome=Outcome.MISSING_TRACK, message=str(e))

    analysis = analyze(buffer, config, on_progress=on_progress, is_cancelled=is_cancelled)
    result = EngineResult(
        outcome=analysis.outcome,
        duration_original=probe_result.duration,
        segments_removed=len(analysis.silences),
        analysis=analysis,
        message=analysis.message,
    )
    if analysis.outcome not in (Outcome.OK, Outcome.DEGENERATE_TIMELINE):
        return result

    composition = compose(
        analysis.segments,
        probe_result.video_extent,
        probe_result.audio_extent,
        config,
        on_progress=on_progress,
        is_cancelled=is_cancelled,
    )
    result.composition = composition
    result.outcome = composition.outcome
    result.message = composition.message
    if manifest.report is not None and composition.outcome != Outcome.CANCELLED:
        result.report_path = write_report(manifest.report, analysis, composition)
    if not composition.ok:
        return result

    if is_cancelled is not None and is_cancelled():
        result.outcome = Outcome.CANCELLED
        result.message = "Cancelled"
        return result

    _progress("exporting", 0.0)
    apply_splices(manifest.input, composition, manifest.output)
    _progress("exporting", 100.0)

    result.output_path = manifest.output
    result.duration_final = composition.total_duration
    return result
