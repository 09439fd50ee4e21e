import codecs
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from openpyxl import Workbook

from reward_doctor.loader import load_table
from reward_doctor.pipeline import StructuralError, run_pipeline


def write_workbook(path: Path, rows, title="Export", extra_sheets=()):
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for row in rows:
        ws.append(row)
    for name in extra_sheets:
        wb.create_sheet(name).append(["Date", "Amount"])
    wb.save(path)
    return path


class WorkbookLoaderTests(unittest.TestCase):
    def test_xlsx_keeps_native_cell_types(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_workbook(
                Path(tmpdir) / "export.xlsx",
                [
                    ["Date", "Amount"],
                    ["XTM", "XTM"],
                    [None, None],
                    [datetime(2026, 8, 11, 5, 59), datetime(2026, 8, 11, 5, 59)],
                    ["#ERROR!", "#ERROR!"],
                    [3.92, 3.92],
                ],
            )
            loaded = load_table(path)

        self.assertEqual(loaded.detected_format, "xlsx")
        self.assertEqual(loaded.sheet_name, "Export")
        self.assertEqual(loaded.rows[0], ["Date", "Amount"])
        self.assertEqual(len(loaded.rows), 6)
        self.assertIsInstance(loaded.rows[3][0], datetime)
        self.assertEqual(loaded.rows[5][0], 3.92)
        self.assertEqual(run_pipeline(loaded.rows).rows[1:], [["2026-08-11 05:59:00", 3.92]])

    def test_only_first_two_columns_are_read(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_workbook(Path(tmpdir) / "wide.xlsx", [["Date", "Amount", "Type"], ["a", "b", "c"]])
            loaded = load_table(path)
        self.assertEqual(loaded.rows, [["Date", "Amount"], ["a", "b"]])

    def test_named_sheet_is_used(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_workbook(Path(tmpdir) / "multi.xlsx", [["Other"]], title="Notes", extra_sheets=["Rewards"])
            loaded = load_table(path, sheet_name="Rewards")
        self.assertEqual(loaded.sheet_name, "Rewards")
        self.assertEqual(loaded.sheet_names, ["Notes", "Rewards"])
        self.assertEqual(loaded.rows, [["Date", "Amount"]])

    def test_missing_sheet_is_a_structural_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_workbook(Path(tmpdir) / "export.xlsx", [["Date", "Amount"]])
            with self.assertRaisesRegex(StructuralError, "Sheet 'Nope' not found"):
                load_table(path, sheet_name="Nope")

    def test_corrupt_workbook_is_a_structural_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "corrupt.xlsx"
            path.write_bytes(b"not a zip file")
            with self.assertRaisesRegex(StructuralError, "Could not read workbook"):
                load_table(path)


class TextLoaderTests(unittest.TestCase):
    def test_csv_with_quoted_compact_dates(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "export.csv"
            path.write_bytes(
                codecs.BOM_UTF8
                + b'Date,Amount\n"Dec 19, 0:17","Dec 19, 0:17"\n#ERROR!,#ERROR!\n200.17,200.17\n'
            )
            loaded = load_table(path)

        self.assertEqual(loaded.delimiter, ",")
        self.assertEqual(loaded.rows[1], ["Dec 19, 0:17", "Dec 19, 0:17"])
        self.assertEqual(run_pipeline(loaded.rows).rows[1:], [["2026-12-19 00:17:00", 200.17]])

    def test_semicolon_delimiter_is_detected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "export.csv"
            path.write_text("Date;Amount\nDec 19, 0:17;Dec 19, 0:17\n#ERROR!;#ERROR!\n200.17;200.17\n", encoding="utf-8")
            loaded = load_table(path)
        self.assertEqual(loaded.delimiter, ";")
        self.assertEqual(loaded.rows[3], ["200.17", "200.17"])

    def test_latin1_bytes_do_not_crash(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "export.csv"
            path.write_bytes(b"Date,Amount\nRe\xe7u,x\nJan 5 9:00,\n5.5,\n")
            loaded = load_table(path)
        self.assertEqual(len(loaded.rows), 4)
        self.assertEqual(run_pipeline(loaded.rows).rows[1:], [["2026-01-05 09:00:00", 5.5]])

    def test_sheet_argument_is_rejected_for_text_files(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "export.csv"
            path.write_text("Date,Amount\n", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "only applies to workbooks"):
                load_table(path, sheet_name="Export")


class BoundaryErrorTests(unittest.TestCase):
    def test_missing_file_is_a_structural_error(self):
        with self.assertRaisesRegex(StructuralError, "File not found"):
            load_table("/nonexistent/export.xlsx")

    def test_unsupported_suffix(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "export.pdf"
            path.write_bytes(b"%PDF")
            with self.assertRaisesRegex(ValueError, "Unsupported file type"):
                load_table(path)

    def test_empty_file_is_a_structural_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "empty.csv"
            path.write_bytes(b"")
            with self.assertRaises(StructuralError):
                load_table(path)


if __name__ == "__main__":
    unittest.main()
