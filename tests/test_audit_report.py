import pandas as pd

from audit_report import build_report_sheets, write_audit_report
from outcomes import MigrationOutcome, UpsertTracker


class StaticStore:
    def create_or_identify(self, kind, key, payload):
        return {**key, **payload}, MigrationOutcome.CREATED


def _tracker():
    tracker = UpsertTracker(StaticStore())
    tracker.run_batch("ue", [({"code": "MT01"}, {}), ({"code": "MT02"}, {})])
    tracker.skip("ue_comment", "no semester contains 2001-01-01 10:00:00 (UE MT01); comment skipped.")
    return tracker


def test_sheets():
    sheets = build_report_sheets(_tracker())
    summary = sheets["summary"].set_index("kind")
    assert summary.loc["ue", "created"] == 2
    assert summary.loc["ue_comment", "skipped"] == 1
    assert list(sheets["warnings"].columns) == ["kind", "message"]


def test_empty_tracker():
    sheets = build_report_sheets(UpsertTracker(StaticStore()))
    assert sheets["summary"].empty
    assert sheets["warnings"].empty


def test_write(tmp_path):
    path = write_audit_report(str(tmp_path / "reports" / "audit.xlsx"), _tracker())
    warnings = pd.read_excel(path, sheet_name="warnings")
    assert len(warnings) == 1
    assert warnings.loc[0, "kind"] == "ue_comment"
