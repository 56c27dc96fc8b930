"""Tests for the JSON run report."""

import json

import pytest

from quietcut.engine import AnalysisResult
from quietcut.models import (
    Composition,
    Outcome,
    Segment,
    SilenceInterval,
    TickRange,
    TimelineSplice,
)
from quietcut.report import build_report, summarize, write_report


@pytest.fixture
def analysis():
    return AnalysisResult(
        outcome=Outcome.OK,
        silences=[SilenceInterval(1.0, 2.0), SilenceInterval(5.0, 6.5)],
        segments=[Segment(0.0, 1.0), Segment(2.0, 5.0), Segment(6.5, 10.0)],
        duration=10.0,
        window_count=1000,
    )


@pytest.fixture
def composition():
    return Composition(
        outcome=Outcome.OK,
        splices=[
            TimelineSplice(TickRange(0, 1000), 0),
            TimelineSplice(TickRange(2000, 5000), 1000),
            TimelineSplice(TickRange(6500, 9000), 4000),
        ],
        dropped=[],
    )


class TestSummarize:
    def test_analysis_only(self, analysis):
        summary = summarize(analysis)
        assert summary["silence_count"] == 2
        assert summary["segment_count"] == 3
        assert summary["silence_seconds"] == pytest.approx(2.5)
        assert summary["content_seconds"] == pytest.approx(7.5)
        assert summary["silence_percent"] == pytest.approx(25.0)
        assert "splice_count" not in summary

    def test_with_composition(self, analysis, composition):
        summary = summarize(analysis, composition)
        assert summary["splice_count"] == 3
        assert summary["dropped_count"] == 0
        assert summary["output_seconds"] == pytest.approx(6.5)

    def test_zero_duration(self):
        summary = summarize(AnalysisResult(outcome=Outcome.EMPTY_BUFFER))
        assert summary["silence_percent"] == 0.0
        assert summary["outcome"] == "empty_buffer"


class TestWriteReport:
    def test_round_trips_through_json(self, analysis, composition, tmp_path):
        path = write_report(tmp_path / "nested" / "report.json", analysis, composition)
        data = json.loads(path.read_text())
        assert data == json.loads(json.dumps(build_report(analysis, composition)))
        assert data["splices"][2]["source_end"] == 9000
        assert data["segments"][0] == {"start": 0.0, "end": 1.0}
