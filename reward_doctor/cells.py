"""Raw spreadsheet cell values and the two-column row they live in."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, NamedTuple


class CellKind(str, Enum):
    EMPTY = "empty"
    NUMBER = "number"
    TEXT = "text"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class RawCell:
    kind: CellKind
    value: Any = None

    @classmethod
    def from_value(cls, value: Any) -> "RawCell":
        """Wrap whatever the workbook reader handed back for one cell."""
        if value is None:
            return EMPTY_CELL
        # bool is an int subclass; keep TRUE/FALSE as text so it never reads as a reward
        if isinstance(value, bool):
            return cls(CellKind.TEXT, str(value).upper())
        if isinstance(value, (int, float)):
            if isinstance(value, float) and math.isnan(value):
                return EMPTY_CELL
            return cls(CellKind.NUMBER, float(value))
        if isinstance(value, datetime):
            return cls(CellKind.TIMESTAMP, value)
        if isinstance(value, date):
            return cls(CellKind.TIMESTAMP, datetime.combine(value, time()))
        if isinstance(value, str):
            return cls(CellKind.TEXT, value)
        return cls(CellKind.TEXT, str(value))

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    @property
    def is_timestamp(self) -> bool:
        return self.kind is CellKind.TIMESTAMP

    @property
    def is_number(self) -> bool:
        return self.kind is CellKind.NUMBER

    def as_text(self) -> str:
        """Display text for the cell, before whitespace normalisation."""
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.NUMBER:
            return format_number(self.value)
        if self.kind is CellKind.TIMESTAMP:
            return self.value.isoformat(sep=" ")
        return self.value


EMPTY_CELL = RawCell(CellKind.EMPTY)


def format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


class Row(NamedTuple):
    col_a: RawCell
    col_b: RawCell

    @classmethod
    def from_values(cls, values) -> "Row":
        """Build a row from the first two cells of a sequence, padding short rows."""
        cells = list(values or [])[:2]
        while len(cells) < 2:
            cells.append(None)
        return cls(RawCell.from_value(cells[0]), RawCell.from_value(cells[1]))
