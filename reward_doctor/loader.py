"""
loader.py — bulk read of a reward export into raw two-column rows

Supports: .csv .tsv .txt .xlsx .xlsm .xls .ods

Public API:
    loaded = load_table("path/to/export.xlsx", sheet_name=None)
    table  = loaded.rows          # row 0 is the header

Workbook cells keep their native types (datetime, float, str, None) so the
pipeline can tell a structured timestamp from date-looking text. Delimited
text files only ever produce strings.
"""

from __future__ import annotations

import csv
import io
import zipfile
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import chardet
import openpyxl
import pandas as pd

from reward_doctor.pipeline import StructuralError

# ── Format groups ──────────────────────────────────────────────────────────────
TEXT_FORMATS = {".csv", ".tsv", ".txt"}
OPENPYXL_FORMATS = {".xlsx", ".xlsm"}
PANDAS_WORKBOOK_FORMATS = {".xls", ".ods"}
ALL_FORMATS = TEXT_FORMATS | OPENPYXL_FORMATS | PANDAS_WORKBOOK_FORMATS

READ_COLUMNS = 2


@dataclass
class LoadedTable:
    rows: list[list[Any]]
    detected_format: str
    sheet_name: Optional[str] = None
    sheet_names: Optional[list[str]] = None
    detected_encoding: Optional[str] = None
    delimiter: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════════
# ENCODING DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _detect_encoding(raw: bytes) -> tuple[str, float]:
    result = chardet.detect(raw)
    detected = result.get("encoding") or "utf-8"
    confidence = round(result.get("confidence") or 0.0, 2)
    return detected, confidence


def _read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line-by-line.

    Strategy per line:
      1. Try UTF-8
      2. Try preferred_encoding (chardet result)
      3. CP1252 with replace (never crashes)

    Embedded null bytes are dropped.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding):
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", ""))
    return "\n".join(decoded_lines)


# ══════════════════════════════════════════════════════════════════════════════
# DELIMITER DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _detect_delimiter(text: str) -> str:
    """
    Infer the delimiter from sample lines.

    Exports here are two columns wide, so candidates are scored on how many
    rows split into exactly two fields.
    """
    sample_lines = [line for line in text.splitlines() if line.strip()][:120]
    if not sample_lines:
        return ","
    sample_text = "\n".join(sample_lines)

    best_delim = ","
    best_score = -1.0
    for delim in [",", ";", "\t", "|"]:
        rows = list(csv.reader(io.StringIO(sample_text), delimiter=delim))
        if not rows:
            continue
        widths = Counter(len(row) for row in rows)
        two_wide = widths.get(READ_COLUMNS, 0) / len(rows)
        multi = sum(count for width, count in widths.items() if width > 1) / len(rows)
        score = two_wide * 2.0 + multi
        if score > best_score:
            best_score = score
            best_delim = delim
    return best_delim


# ══════════════════════════════════════════════════════════════════════════════
# FORMAT LOADERS
# ══════════════════════════════════════════════════════════════════════════════

def _trim(values) -> list[Any]:
    return list(values)[:READ_COLUMNS]


def _load_text(path: Path, suffix: str) -> LoadedTable:
    raw = path.read_bytes()
    encoding, confidence = _detect_encoding(raw)
    text = _read_text_safely(raw, encoding)
    delimiter = "\t" if suffix == ".tsv" else _detect_delimiter(text)

    rows = [_trim(row) for row in csv.reader(io.StringIO(text), delimiter=delimiter)]
    warnings = []
    if confidence and confidence < 0.5:
        warnings.append(f"Encoding detection was uncertain ({encoding}, confidence {confidence})")
    return LoadedTable(
        rows=rows,
        detected_format=suffix.lstrip("."),
        detected_encoding=encoding,
        delimiter=delimiter,
        warnings=warnings,
    )


def is_encrypted_ooxml(path: Path) -> bool:
    try:
        with zipfile.ZipFile(path) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return False
    return {"EncryptedPackage", "EncryptionInfo"}.issubset(names)


def _pick_sheet(all_sheets: list[str], sheet_name: Optional[str]) -> str:
    if not all_sheets:
        raise StructuralError("Workbook contains no sheets")
    if sheet_name is None:
        return all_sheets[0]
    if sheet_name not in all_sheets:
        raise StructuralError(f"Sheet '{sheet_name}' not found. Available: {all_sheets}")
    return sheet_name


def _load_openpyxl(path: Path, suffix: str, sheet_name: Optional[str]) -> LoadedTable:
    if is_encrypted_ooxml(path):
        raise StructuralError("Could not read workbook: file is password-protected")
    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except Exception as exc:
        raise StructuralError(f"Could not read workbook: {exc}") from exc
    try:
        chosen = _pick_sheet(list(workbook.sheetnames), sheet_name)
        sheet = workbook[chosen]
        rows = [
            _trim(values)
            for values in sheet.iter_rows(min_col=1, max_col=READ_COLUMNS, values_only=True)
        ]
        return LoadedTable(
            rows=rows,
            detected_format=suffix.lstrip("."),
            sheet_name=chosen,
            sheet_names=list(workbook.sheetnames),
        )
    finally:
        workbook.close()


def _pandas_cell(value: Any) -> Any:
    if pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def _load_pandas_workbook(path: Path, suffix: str, sheet_name: Optional[str]) -> LoadedTable:
    engine = "xlrd" if suffix == ".xls" else "odf"
    try:
        with pd.ExcelFile(path, engine=engine) as xf:
            all_sheets = [str(name) for name in xf.sheet_names]
            chosen = _pick_sheet(all_sheets, sheet_name)
            df = xf.parse(chosen, header=None).iloc[:, :READ_COLUMNS]
    except ImportError as exc:
        package = "xlrd" if suffix == ".xls" else "odfpy"
        raise ImportError(f"{suffix} files require {package} — run: pip install {package}") from exc
    except StructuralError:
        raise
    except Exception as exc:
        raise StructuralError(f"Could not read workbook: {exc}") from exc

    rows = [[_pandas_cell(value) for value in record] for record in df.itertuples(index=False, name=None)]
    return LoadedTable(
        rows=rows,
        detected_format=suffix.lstrip("."),
        sheet_name=chosen,
        sheet_names=all_sheets,
    )


def load_table(path: str | Path, sheet_name: Optional[str] = None) -> LoadedTable:
    """Read the first two columns of ``path``; the first row returned is the header."""
    path = Path(path)
    if not path.exists():
        raise StructuralError(f"File not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in ALL_FORMATS:
        raise ValueError(
            f"Unsupported file type '{suffix or '[missing extension]'}'. "
            f"Supported: {', '.join(sorted(ALL_FORMATS))}"
        )

    if suffix in TEXT_FORMATS:
        if sheet_name is not None:
            raise ValueError(f"--sheet only applies to workbooks, not {suffix} files")
        loaded = _load_text(path, suffix)
    elif suffix in OPENPYXL_FORMATS:
        loaded = _load_openpyxl(path, suffix, sheet_name)
    else:
        loaded = _load_pandas_workbook(path, suffix, sheet_name)

    if not loaded.rows:
        raise StructuralError(f"{path.name} has no rows; expected a header row followed by data rows")
    return loaded
