"""Batch report generator.

Generates human-readable summaries of a trim batch, one row per asset.
"""

import json
from pathlib import Path

from cuetrim.models.batch import AssetOutcome, BatchReport
from cuetrim.models.job import JobStage
from cuetrim.models.markers import MarkerName, TimerMarkerSet


def _ms_to_timestamp(ms: int) -> str:
    """Convert milliseconds to MM:SS.mmm (HH:MM:SS.mmm past an hour)."""
    sign = "-" if ms < 0 else ""
    ms = abs(ms)
    hours = ms // 3600000
    minutes = (ms % 3600000) // 60000
    seconds = (ms % 60000) // 1000
    millis = ms % 1000

    if hours > 0:
        return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"
    return f"{sign}{minutes:02d}:{seconds:02d}.{millis:03d}"


def _format_markers(markers: TimerMarkerSet | None) -> str:
    if markers is None or not markers.offsets:
        return "-"
    return ", ".join(
        f"{name.value} {_ms_to_timestamp(markers.offsets[name])}"
        for name in MarkerName
        if name in markers.offsets
    )


def _stage_label(outcome: AssetOutcome) -> str:
    labels = {
        JobStage.COMPLETED: "trimmed",
        JobStage.SKIPPED: "skipped",
        JobStage.FAILED: "FAILED",
    }
    return labels.get(outcome.stage, outcome.stage.value)


def generate_batch_report(report: BatchReport) -> str:
    """Generate a batch report in Markdown format."""
    title = "# Cue trim report (dry run)" if report.dry_run else "# Cue trim report"
    lines = [
        title,
        "",
        f"**Started**: {report.started_at.strftime('%Y-%m-%d %H:%M:%S')}",
    ]
    if report.finished_at:
        lines.append(f"**Finished**: {report.finished_at.strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append("| Result | Count |")
    lines.append("|--------|-------|")
    lines.append(f"| Trimmed | {len(report.completed)} |")
    lines.append(f"| Skipped | {len(report.skipped)} |")
    lines.append(f"| Failed | {len(report.failed)} |")
    lines.append(f"| Not processed | {len(report.not_processed)} |")
    lines.append("")

    if report.aborted:
        lines.append(f"**Batch aborted**: {report.abort_reason}")
        lines.append("")

    if not report.outcomes:
        lines.append("No assets were processed.")
        return "\n".join(lines)

    lines.append("## Assets")
    lines.append("")
    lines.append("| Asset | Result | Cue | Before | After | Note |")
    lines.append("|-------|--------|-----|--------|-------|------|")
    for outcome in report.outcomes:
        cue = _ms_to_timestamp(outcome.cue_offset_ms) if outcome.cue_offset_ms else "-"
        note = (outcome.message or "").replace("|", "\\|")
        lines.append(
            f"| {outcome.asset_id} | {_stage_label(outcome)} | {cue} "
            f"| {_format_markers(outcome.original_markers)} "
            f"| {_format_markers(outcome.adjusted_markers)} | {note} |"
        )

    if report.not_processed:
        lines.append("")
        lines.append("## Not processed")
        lines.append("")
        for asset_id in report.not_processed:
            lines.append(f"- {asset_id}")

    return "\n".join(lines)


def generate_batch_report_json(report: BatchReport) -> dict:
    """Generate a batch report as structured JSON."""
    return {
        "started_at": report.started_at.isoformat(),
        "finished_at": report.finished_at.isoformat() if report.finished_at else None,
        "dry_run": report.dry_run,
        "aborted": report.aborted,
        "abort_reason": report.abort_reason,
        "summary": {
            "completed": len(report.completed),
            "skipped": len(report.skipped),
            "failed": len(report.failed),
            "not_processed": len(report.not_processed),
        },
        "assets": [
            {
                "asset_id": str(o.asset_id),
                "stage": o.stage.value,
                "message": o.message,
                "error_kind": o.error_kind,
                "cue_offset_ms": o.cue_offset_ms,
                "original_markers": o.original_markers.as_dict() if o.original_markers else None,
                "adjusted_markers": o.adjusted_markers.as_dict() if o.adjusted_markers else None,
                "elapsed_seconds": round(o.elapsed_seconds, 3),
            }
            for o in report.outcomes
        ],
        "not_processed": [str(a) for a in report.not_processed],
    }


def save_report(
    report: BatchReport,
    output_path: Path,
    format: str = "markdown",
) -> Path:
    """Save a batch report to file.

    Args:
        report: Finished batch report
        output_path: Output file path
        format: "markdown" or "json"

    Returns:
        Path to saved report file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if format == "json":
        if not output_path.suffix:
            output_path = output_path.with_suffix(".json")

        data = generate_batch_report_json(report)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    else:  # markdown
        if not output_path.suffix:
            output_path = output_path.with_suffix(".md")

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(generate_batch_report(report))

    return output_path
