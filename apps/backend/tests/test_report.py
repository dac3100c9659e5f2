"""Tests for batch report export."""

import json
from pathlib import Path

import pytest

from cuetrim.export.report import (
    _ms_to_timestamp,
    generate_batch_report,
    generate_batch_report_json,
    save_report,
)
from cuetrim.models.asset import AssetId
from cuetrim.models.batch import AssetOutcome, BatchReport
from cuetrim.models.job import JobStage
from cuetrim.models.markers import TimerMarkerSet


@pytest.fixture
def report() -> BatchReport:
    return BatchReport(
        outcomes=[
            AssetOutcome(
                asset_id=AssetId.parse("MUS/0001"),
                stage=JobStage.COMPLETED,
                message="markers updated",
                cue_offset_ms=500,
                original_markers=TimerMarkerSet.of(Start=500, Intro=2000, EOM=30000),
                adjusted_markers=TimerMarkerSet.of(Start=0, Intro=1500, EOM=29500),
                elapsed_seconds=1.23456,
            ),
            AssetOutcome(
                asset_id=AssetId.parse("MUS/0002"),
                stage=JobStage.SKIPPED,
                message="no cue point set",
                original_markers=TimerMarkerSet.of(Start=0, EOM=30000),
            ),
            AssetOutcome(
                asset_id=AssetId.parse("MUS/0003"),
                stage=JobStage.FAILED,
                message="Metadata update rejected: locked | busy",
                error_kind="MetadataUpdateRejected",
                cue_offset_ms=250,
            ),
        ],
        not_processed=[AssetId.parse("MUS/0004")],
        aborted=True,
        abort_reason="MUS/0003: Metadata update rejected: locked | busy",
    )


@pytest.mark.parametrize(
    "ms,expected",
    [
        (0, "00:00.000"),
        (1500, "00:01.500"),
        (61234, "01:01.234"),
        (3723004, "01:02:03.004"),
        (-2000, "-00:02.000"),
    ],
)
def test_ms_to_timestamp(ms: int, expected: str) -> None:
    assert _ms_to_timestamp(ms) == expected


class TestMarkdown:
    def test_summary_and_rows(self, report: BatchReport) -> None:
        text = generate_batch_report(report)

        assert text.startswith("# Cue trim report\n")
        assert "| Trimmed | 1 |" in text
        assert "| Skipped | 1 |" in text
        assert "| Failed | 1 |" in text
        assert "| Not processed | 1 |" in text
        assert "**Batch aborted**: MUS/0003" in text
        assert "| MUS/0001 | trimmed | 00:00.500 |" in text
        assert "Start 00:00.000, Intro 00:01.500, EOM 00:29.500" in text
        assert "| MUS/0002 | skipped | - |" in text
        assert "locked \\| busy" in text
        assert "## Not processed" in text
        assert "- MUS/0004" in text

    def test_dry_run_title(self) -> None:
        text = generate_batch_report(BatchReport(dry_run=True))
        assert text.startswith("# Cue trim report (dry run)")
        assert "No assets were processed." in text


class TestJson:
    def test_structure(self, report: BatchReport) -> None:
        data = generate_batch_report_json(report)

        assert data["aborted"] is True
        assert data["summary"] == {"completed": 1, "skipped": 1, "failed": 1, "not_processed": 1}
        assert data["assets"][0]["asset_id"] == "MUS/0001"
        assert data["assets"][0]["adjusted_markers"] == {"Start": 0, "Intro": 1500, "EOM": 29500}
        assert data["assets"][0]["elapsed_seconds"] == 1.235
        assert data["assets"][2]["error_kind"] == "MetadataUpdateRejected"
        assert data["assets"][2]["original_markers"] is None
        assert data["not_processed"] == ["MUS/0004"]


class TestSave:
    def test_markdown_default_suffix(self, report: BatchReport, tmp_path: Path) -> None:
        path = save_report(report, tmp_path / "reports" / "batch")
        assert path == tmp_path / "reports" / "batch.md"
        assert path.read_text(encoding="utf-8").startswith("# Cue trim report")

    def test_json(self, report: BatchReport, tmp_path: Path) -> None:
        path = save_report(report, tmp_path / "batch", format="json")
        assert path.suffix == ".json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["summary"]["completed"] == 1
