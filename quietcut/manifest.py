"""JSON manifest schema — the contract between CLI/API and engine."""

import json
import math
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path

from quietcut.models import DEFAULT_TIMESCALE


class ThresholdMode(str, Enum):
    ABSOLUTE_DB = "absolute_db"
    PERCENT_OF_PEAK = "percent_of_peak"


SILENCE_DB_RANGE = (-90.0, -20.0)
PERCENTAGE_RANGE = (1.0, 100.0)
MIN_SILENCE_RANGE = (0.1, 2.0)

NUMERIC_FIELDS = (
    "silence_threshold_db",
    "threshold_percentage",
    "min_silence_duration",
    "window_ms",
    "hop_ms",
    "merge_tolerance_ms",
)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class SilenceCutConfig:
    """Configuration for silence detection and timeline composition."""

    threshold_mode: ThresholdMode = ThresholdMode.ABSOLUTE_DB
    silence_threshold_db: float = -50.0
    threshold_percentage: float = 1.0
    min_silence_duration: float = 0.5
    window_ms: float = 10.0
    hop_ms: float = 10.0
    merge_tolerance_ms: float = 1.0
    normalize: bool = False
    timescale: int = DEFAULT_TIMESCALE

    def __post_init__(self):
        # unknown strings stay as-is for validate() to report
        if isinstance(self.threshold_mode, str) and self.threshold_mode in {m.value for m in ThresholdMode}:
            self.threshold_mode = ThresholdMode(self.threshold_mode)

    def validate(self) -> list[str]:
        """Return every configuration problem; an empty list means usable."""
        problems: list[str] = []
        numeric = {}
        for name in NUMERIC_FIELDS:
            value = getattr(self, name)
            if not _is_number(value):
                problems.append(f"{name} must be a number, got {value!r}")
            elif not math.isfinite(value):
                problems.append(f"{name} must be finite, got {value!r}")
            else:
                numeric[name] = value

        def out_of_range(name: str, bounds: tuple, unit: str = "") -> None:
            lo, hi = bounds
            if name in numeric and not lo <= numeric[name] <= hi:
                problems.append(f"{name} must be within {lo:g}..{hi:g}{unit}, got {numeric[name]:g}")

        if not isinstance(self.threshold_mode, ThresholdMode):
            problems.append(f"unknown threshold_mode {self.threshold_mode!r}")
        elif self.threshold_mode == ThresholdMode.ABSOLUTE_DB:
            out_of_range("silence_threshold_db", SILENCE_DB_RANGE)
        else:
            out_of_range("threshold_percentage", PERCENTAGE_RANGE)
        out_of_range("min_silence_duration", MIN_SILENCE_RANGE, "s")

        window_ms = numeric.get("window_ms")
        hop_ms = numeric.get("hop_ms")
        if window_ms is not None and window_ms <= 0:
            problems.append(f"window_ms must be positive, got {window_ms:g}")
        if hop_ms is not None and hop_ms <= 0:
            problems.append(f"hop_ms must be positive, got {hop_ms:g}")
        elif hop_ms is not None and window_ms is not None and 0 < window_ms < hop_ms:
            problems.append(f"hop_ms ({hop_ms:g}) must not exceed window_ms ({window_ms:g})")
        if numeric.get("merge_tolerance_ms", 0) < 0:
            problems.append("merge_tolerance_ms must not be negative")

        if not isinstance(self.timescale, int) or isinstance(self.timescale, bool):
            problems.append(f"timescale must be an integer, got {self.timescale!r}")
        elif self.timescale <= 0:
            problems.append(f"timescale must be positive, got {self.timescale}")
        if not isinstance(self.normalize, bool):
            problems.append(f"normalize must be true or false, got {self.normalize!r}")
        return problems

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if isinstance(self.threshold_mode, ThresholdMode):
            data["threshold_mode"] = self.threshold_mode.value
        return data


@dataclass
class Manifest:
    """Top-level editing manifest."""

    input: Path
    output: Path
    version: str = "1"
    silence_cut: SilenceCutConfig = field(default_factory=SilenceCutConfig)
    report: Path | None = None


def config_from_dict(data: dict) -> SilenceCutConfig:
    known = {f.name for f in fields(SilenceCutConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown silence_cut fields: {', '.join(unknown)}")
    return SilenceCutConfig(**data)


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "input" not in data or "output" not in data:
        raise ValueError("Manifest must contain 'input' and 'output' fields")

    silence_cut = config_from_dict(data["silence_cut"]) if "silence_cut" in data else SilenceCutConfig()

    return Manifest(
        version=data.get("version", "1"),
        input=Path(data["input"]),
        output=Path(data["output"]),
        silence_cut=silence_cut,
        report=Path(data["report"]) if data.get("report") else None,
    )
