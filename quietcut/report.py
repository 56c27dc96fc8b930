"""JSON report of an analysis/composition run."""

import json
from pathlib import Path

from quietcut.models import Composition


def summarize(analysis, composition: Composition | None = None) -> dict:
    """Durations and counts for one run."""
    silence_total = sum(s.duration for s in analysis.silences)
    content_total = sum(s.duration for s in analysis.segments)
    summary = {
        "outcome": analysis.outcome.value,
        "duration": analysis.duration,
        "silence_count": len(analysis.silences),
        "segment_count": len(analysis.segments),
        "silence_seconds": silence_total,
        "content_seconds": content_total,
        "silence_percent": silence_total / analysis.duration * 100.0 if analysis.duration else 0.0,
    }
    if composition is not None:
        summary["outcome"] = composition.outcome.value
        summary["splice_count"] = len(composition.splices)
        summary["dropped_count"] = len(composition.dropped)
        summary["output_seconds"] = composition.total_duration
    return summary


def build_report(analysis, composition: Composition | None = None) -> dict:
    report = {
        "summary": summarize(analysis, composition),
        "silences": [{"start": s.start, "end": s.end} for s in analysis.silences],
        "segments": [{"start": s.start, "end": s.end} for s in analysis.segments],
    }
    if composition is not None:
        report["splices"] = [s.to_dict() for s in composition.splices]
        report["dropped"] = [{"start": s.start, "end": s.end} for s in composition.dropped]
    return report


def write_report(path: Path, analysis, composition: Composition | None = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(build_report(analysis, composition), indent=2), encoding="utf-8")
    return path
