"""Thin CLI entry point — builds a Manifest and calls the engine."""

import argparse
import sys
from pathlib import Path

from quietcut.engine import analyze_file, process
from quietcut.logsetup import setup_logging
from quietcut.manifest import Manifest, SilenceCutConfig, ThresholdMode, load_manifest
from quietcut.models import Outcome, ProgressEvent
from quietcut.report import summarize, write_report


def _add_detection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mode",
        choices=[m.value for m in ThresholdMode],
        default=ThresholdMode.ABSOLUTE_DB.value,
        help="Compare windows to an absolute dB level or to a percentage of the peak",
    )
    parser.add_argument("--silence-threshold", type=float, default=-50.0, help="Silence threshold in dB (-90..-20)")
    parser.add_argument("--threshold-percent", type=float, default=1.0, help="Silence threshold as %% of peak RMS (1..100)")
    parser.add_argument("--silence-min-duration", type=float, default=0.5, help="Minimum silence duration (seconds)")
    parser.add_argument("--window-ms", type=float, default=10.0, help="Analysis window length (ms)")
    parser.add_argument("--hop-ms", type=float, default=10.0, help="Analysis hop length (ms)")
    parser.add_argument("--normalize", action="store_true", help="Peak-normalize audio before analysis")


def _config_from_args(args: argparse.Namespace) -> SilenceCutConfig:
    return SilenceCutConfig(
        threshold_mode=ThresholdMode(args.mode),
        silence_threshold_db=args.silence_threshold,
        threshold_percentage=args.threshold_percent,
        min_silence_duration=args.silence_min_duration,
        window_ms=args.window_ms,
        hop_ms=args.hop_ms,
        normalize=args.normalize,
    )


def _print_progress(event: ProgressEvent) -> None:
    print(f"  [{event.percent:5.1f}%] {event.phase} (~{event.eta_seconds:.1f}s left)")


def _analyze(args: argparse.Namespace) -> None:
    analysis = analyze_file(args.video, _config_from_args(args), on_progress=_print_progress)
    print()
    if analysis.outcome not in (Outcome.OK, Outcome.DEGENERATE_TIMELINE):
        print(f"Analysis failed ({analysis.outcome.value}): {analysis.message}", file=sys.stderr)
        sys.exit(2)

    for silence in analysis.silences:
        print(f"  silence  {silence.start:8.3f}s - {silence.end:8.3f}s")
    summary = summarize(analysis)
    print(
        f"{summary['silence_count']} silences ({summary['silence_seconds']:.1f}s, "
        f"{summary['silence_percent']:.1f}%), {summary['segment_count']} segments kept"
    )
    if args.report:
        print(f"  Report: {write_report(args.report, analysis)}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="quietcut",
        description="quietcut — remove silent stretches from a video.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    parser.add_argument("--log-file", type=Path, help="Also write a debug log to this file")
    sub = parser.add_subparsers(dest="command")

    proc = sub.add_parser("process", help="Process a video file")
    proc.add_argument("video", nargs="?", type=Path, help="Input video file")
    proc.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    proc.add_argument("--output", "-o", type=Path, help="Output file path")
    proc.add_argument("--report", "-r", type=Path, help="Write a JSON report of silences and splices")
    _add_detection_args(proc)

    ana = sub.add_parser("analyze", help="List silences and segments without exporting")
    ana.add_argument("video", type=Path, help="Input video file")
    ana.add_argument("--report", "-r", type=Path, help="Write a JSON report of silences and segments")
    _add_detection_args(ana)

    serve = sub.add_parser("serve", help="Launch the web job API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    if args.command == "serve":
        from quietcut.web import create_app
        app = create_app()
        print(f"quietcut API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False, threaded=True)
        return

    if args.command == "analyze":
        _analyze(args)
        return

    if args.manifest:
        m = load_manifest(args.manifest)
    elif args.video:
        output = args.output or args.video.with_stem(args.video.stem + "_cut")
        m = Manifest(
            input=args.video,
            output=output,
            silence_cut=_config_from_args(args),
            report=args.report,
        )
    else:
        print("Error: provide either a VIDEO argument or --manifest.", file=sys.stderr)
        sys.exit(1)

    result = process(m, on_progress=_print_progress)

    print()
    if result.outcome == Outcome.DEGENERATE_TIMELINE:
        print("The whole input is silent; nothing was exported.")
    elif not result.ok:
        print(f"Not exported ({result.outcome.value}): {result.message}", file=sys.stderr)
        sys.exit(2)
    else:
        print(f"Done! Output: {result.output_path}")
        print(f"  Duration: {result.duration_original:.1f}s -> {result.duration_final:.1f}s")
        if result.segments_removed:
            print(f"  Silent segments removed: {result.segments_removed}")
        if result.composition and result.composition.dropped:
            print(f"  Segments outside the track range: {len(result.composition.dropped)}")
    if result.report_path:
        print(f"  Report: {result.report_path}")
