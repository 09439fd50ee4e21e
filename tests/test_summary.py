import unittest
from pathlib import Path

from reward_doctor import __version__
from reward_doctor.pipeline import run_pipeline
from reward_doctor.summary import (
    CONTRACT_VERSIONS,
    build_structured_summary,
    build_trace_report,
    contract_header,
    run_summary,
)

TABLE = [
    ["Date", "Amount"],
    ["Jan 5, 9:00", ""],
    ["Jan 6, 10:00", ""],
    ["", "5.50"],
]


class SummaryTests(unittest.TestCase):
    def test_contract_header_carries_version_and_tool_version(self):
        for name, version in CONTRACT_VERSIONS.items():
            with self.subTest(name=name):
                header = contract_header(name)
                self.assertEqual(header["contract"], {"name": name, "version": version})
                self.assertEqual(header["schema_version"], version)
                self.assertEqual(header["tool_version"], __version__)

    def test_run_summary_shape(self):
        summary = run_summary("heal", run_pipeline(TABLE), Path("in.xlsx"), warnings=["w"])
        self.assertEqual(summary["command"], "heal")
        self.assertEqual(summary["warnings_count"], 1)
        self.assertIsNone(summary["output_file"])
        self.assertRegex(summary["generated_at"], r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")

    def test_heal_summary_emits_versioned_contract_and_counts(self):
        result = run_pipeline(TABLE)
        summary = build_structured_summary(result, input_path=Path("in.csv"), output_path=Path("out.xlsx"))
        self.assertEqual(summary["contract"]["name"], "reward_doctor.heal_summary")
        self.assertEqual(summary["schema_version"], summary["contract"]["version"])
        self.assertEqual(summary["tool_version"], __version__)
        self.assertEqual(summary["strategy"], "lookahead")
        self.assertEqual(summary["config"]["year"], 2026)
        self.assertEqual(summary["rows"]["data_rows"], 3)
        self.assertEqual(summary["rows"]["events"], 1)
        self.assertEqual(summary["rows"]["dropped_dates"], 1)
        self.assertEqual(summary["action_counts"]["dropped_superseded"], 1)
        self.assertEqual(summary["run_summary"]["status"], "ok")
        self.assertEqual(summary["run_summary"]["output_file"], "out.xlsx")

    def test_empty_run_is_flagged_in_run_summary(self):
        summary = build_structured_summary(run_pipeline([["Date", "Amount"]]), input_path=Path("in.csv"))
        self.assertEqual(summary["run_summary"]["status"], "empty")

    def test_trace_report_lists_events_and_entries(self):
        result = run_pipeline(TABLE)
        report = build_trace_report(result, input_path=Path("in.csv"))
        self.assertEqual(report["contract"]["name"], "reward_doctor.trace")
        self.assertEqual(report["events"], [{"date": "2026-01-06 10:00:00", "amount": 5.5, "data_row": 1}])
        self.assertEqual(report["trace"][0]["row_number"], 2)
        self.assertEqual(report["trace"][0]["action"], "dropped_superseded")


if __name__ == "__main__":
    unittest.main()
