import math
import unittest
from datetime import date, datetime

from reward_doctor.cells import EMPTY_CELL, CellKind, RawCell, Row, format_number


class RawCellTests(unittest.TestCase):
    def test_variants(self):
        self.assertIs(RawCell.from_value(None), EMPTY_CELL)
        self.assertIs(RawCell.from_value(math.nan), EMPTY_CELL)
        self.assertEqual(RawCell.from_value(3).kind, CellKind.NUMBER)
        self.assertEqual(RawCell.from_value(3).value, 3.0)
        self.assertEqual(RawCell.from_value("XTM").kind, CellKind.TEXT)
        self.assertEqual(RawCell.from_value(datetime(2026, 1, 1, 5, 0)).kind, CellKind.TIMESTAMP)

    def test_plain_date_becomes_midnight_timestamp(self):
        cell = RawCell.from_value(date(2026, 1, 2))
        self.assertTrue(cell.is_timestamp)
        self.assertEqual(cell.value, datetime(2026, 1, 2, 0, 0))

    def test_booleans_are_text_not_numbers(self):
        cell = RawCell.from_value(True)
        self.assertEqual(cell.kind, CellKind.TEXT)
        self.assertEqual(cell.as_text(), "TRUE")

    def test_number_text(self):
        self.assertEqual(format_number(200.0), "200")
        self.assertEqual(format_number(3.92), "3.92")
        self.assertEqual(RawCell.from_value(0.5).as_text(), "0.5")
        self.assertEqual(EMPTY_CELL.as_text(), "")


class RowTests(unittest.TestCase):
    def test_short_rows_are_padded(self):
        row = Row.from_values(["Jan 5, 9:00"])
        self.assertEqual(row.col_a.value, "Jan 5, 9:00")
        self.assertTrue(row.col_b.is_empty)
        self.assertTrue(Row.from_values(None).col_a.is_empty)

    def test_extra_columns_are_ignored(self):
        row = Row.from_values(["a", "b", "c"])
        self.assertEqual((row.col_a.value, row.col_b.value), ("a", "b"))


if __name__ == "__main__":
    unittest.main()
