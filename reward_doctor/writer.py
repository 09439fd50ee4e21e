from __future__ import annotations

import csv
import os
import tempfile
from pathlib import Path

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from reward_doctor.pipeline import PipelineResult

OUTPUT_FORMATS = {".xlsx", ".csv"}
REWARDS_SHEET = "Rewards"
TRACE_SHEET = "Trace"
TRACE_HEADERS = ["row_number", "stage", "raw_value", "classification", "action", "detail"]
AMOUNT_FORMAT = "0.00"


def _header_font() -> Font:
    return Font(bold=True, color="FFFFFF")


def _header_fill(hex_color: str) -> PatternFill:
    return PatternFill("solid", fgColor=hex_color)


def _style_sheet(ws, col_widths: list[int], header_color: str) -> None:
    """Apply bold header, color, frozen row, and column widths."""
    fill = _header_fill(header_color)
    font = _header_font()
    for cell in ws[1]:
        cell.font = font
        cell.fill = fill
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=False)
    ws.freeze_panes = "A2"
    for i, width in enumerate(col_widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width


def _infer_col_widths(rows: list[list], min_width: int = 10, max_width: int = 60, sample: int = 300) -> list[int]:
    if not rows:
        return []
    n_cols = max(len(row) for row in rows[: sample + 1])
    widths = [min_width] * n_cols
    for row in rows[: sample + 1]:
        for i, val in enumerate(row):
            text = "" if val is None else str(val)
            widths[i] = max(widths[i], min(max_width, len(text) + 2))
    return widths


def trace_rows(result: PipelineResult) -> list[list]:
    return [
        [entry.row_number, entry.stage, entry.raw_value, entry.classification, entry.action, entry.detail]
        for entry in result.trace
    ]


def _write_xlsx(result: PipelineResult, output_path: Path, include_trace: bool) -> None:
    wb = openpyxl.Workbook()

    # ── Sheet 1 — Rewards ────────────────────────────────────────────────
    ws1 = wb.active
    ws1.title = REWARDS_SHEET
    rows = result.rows
    for row in rows:
        ws1.append(list(row))
    for (amount_cell,) in ws1.iter_rows(min_row=2, min_col=2, max_col=2):
        amount_cell.number_format = AMOUNT_FORMAT
    _style_sheet(ws1, _infer_col_widths(rows), "4CAF50")   # green

    # ── Sheet 2 — Trace ──────────────────────────────────────────────────
    if include_trace:
        ws2 = wb.create_sheet(TRACE_SHEET)
        log_rows = [TRACE_HEADERS] + trace_rows(result)
        for row in log_rows:
            ws2.append(row)
        _style_sheet(ws2, _infer_col_widths(log_rows), "1565C0")   # blue
        for cell in ws2["F"][1:]:
            cell.alignment = Alignment(wrap_text=True, vertical="top")

    wb.save(output_path)


def _write_csv(result: PipelineResult, output_path: Path) -> None:
    # The header line is always written, even when empty, so a re-read keeps
    # the first event out of the header slot.
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        for row in result.rows:
            writer.writerow(["" if value is None else value for value in row])


def write_output(result: PipelineResult, output_path: str | Path, *, include_trace: bool = False) -> Path:
    """
    Write the output table in one shot.

    The file is built next to its destination and moved into place, so a
    failed write never leaves a partial file behind.
    """
    output_path = Path(output_path)
    suffix = output_path.suffix.lower()
    if suffix not in OUTPUT_FORMATS:
        raise ValueError(
            f"Unsupported output type '{suffix or '[missing extension]'}'. "
            f"Supported: {', '.join(sorted(OUTPUT_FORMATS))}"
        )
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{output_path.stem}.",
        suffix=output_path.suffix,
        dir=str(output_path.parent),
    )
    os.close(fd)
    temp_path = Path(tmp_name)
    try:
        if suffix == ".xlsx":
            _write_xlsx(result, temp_path, include_trace)
        else:
            _write_csv(result, temp_path)
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path
