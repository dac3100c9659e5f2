"""Export module for cuetrim."""

from cuetrim.export.report import generate_batch_report, generate_batch_report_json, save_report

__all__ = [
    "generate_batch_report",
    "generate_batch_report_json",
    "save_report",
]
