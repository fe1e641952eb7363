"""Audit workbook written after a run, for operators reviewing what changed."""

from __future__ import annotations

import os

import pandas as pd

SUMMARY_COLUMNS = ["kind", "created", "updated", "unchanged", "linked", "skipped"]
WARNING_COLUMNS = ["kind", "message"]


def build_report_sheets(tracker) -> dict[str, pd.DataFrame]:
    summary = pd.DataFrame(tracker.summary_rows(), columns=SUMMARY_COLUMNS)
    warnings = pd.DataFrame(tracker.warnings, columns=WARNING_COLUMNS)
    return {"summary": summary, "warnings": warnings}


def write_audit_report(path: str, tracker) -> str:
    """Write the summary and warnings sheets to an xlsx file. Returns the absolute path."""
    path = os.path.abspath(path)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    sheets = build_report_sheets(tracker)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name in ("summary", "warnings"):
            sheets[sheet_name].to_excel(writer, sheet_name=sheet_name, index=False)
    return path
