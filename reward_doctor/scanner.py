"""
Lookahead pair scanner.

Walks the data rows top to bottom judging each row by column A. A date-like
cell opens a search over the cells beneath it for the nearest reward-like
value. The search reads column A, except that a reward in column B is taken
when column A is blank. Junk, unrecognised text and structured timestamps
are stepped over; a new date-like text in column A closes the search and
the open date is dropped.

The outer pointer always advances by exactly one row, so the rows stepped
over by a successful search are still visited as primary rows afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import tzinfo
from enum import Enum
from typing import Sequence

from reward_doctor.cells import RawCell, Row
from reward_doctor.dates import round_trip
from reward_doctor.tokens import Token, TokenKind, classify, normalize

logger = logging.getLogger(__name__)

HEADER_ROWS = 1


class ScanState(str, Enum):
    IDLE = "idle"
    SEEKING_REWARD = "seeking_reward"


class LookaheadOutcome(str, Enum):
    SUCCESS = "success"
    JUNK = "junk"
    NEW_DATE = "new_date"
    UNRECOGNIZED = "unrecognized"
    STRUCTURED_DATE = "structured_date"
    EXHAUSTED = "exhausted"


# What an IDLE scanner does with the primary cell of a row.
IDLE_TRANSITIONS: dict[TokenKind, tuple[ScanState, str]] = {
    TokenKind.JUNK: (ScanState.IDLE, "skipped"),
    TokenKind.DATE_LIKE: (ScanState.SEEKING_REWARD, "seek"),
    TokenKind.REWARD_LIKE: (ScanState.IDLE, "ignored"),
    TokenKind.UNRECOGNIZED: (ScanState.IDLE, "ignored"),
}

# How a SEEKING_REWARD scanner reacts to the next text cell below the date.
SEEKING_TRANSITIONS: dict[TokenKind, LookaheadOutcome] = {
    TokenKind.REWARD_LIKE: LookaheadOutcome.SUCCESS,
    TokenKind.JUNK: LookaheadOutcome.JUNK,
    TokenKind.DATE_LIKE: LookaheadOutcome.NEW_DATE,
    TokenKind.UNRECOGNIZED: LookaheadOutcome.UNRECOGNIZED,
}

# Next state after each lookahead outcome, plus the trace action recorded
# against the date row when the search ends there.
OUTCOME_TRANSITIONS: dict[LookaheadOutcome, tuple[ScanState, str | None]] = {
    LookaheadOutcome.SUCCESS: (ScanState.IDLE, "paired"),
    LookaheadOutcome.JUNK: (ScanState.SEEKING_REWARD, None),
    LookaheadOutcome.UNRECOGNIZED: (ScanState.SEEKING_REWARD, None),
    LookaheadOutcome.STRUCTURED_DATE: (ScanState.SEEKING_REWARD, None),
    LookaheadOutcome.NEW_DATE: (ScanState.IDLE, "dropped_superseded"),
    LookaheadOutcome.EXHAUSTED: (ScanState.IDLE, "dropped_exhausted"),
}


@dataclass(frozen=True)
class CandidatePair:
    date_text: str
    reward_text: str
    date_row: int
    reward_row: int


@dataclass(frozen=True)
class TraceEntry:
    row_index: int
    raw_value: str
    classification: str
    action: str
    detail: str = ""
    stage: str = "scan"

    @property
    def row_number(self) -> int:
        """1-based sheet row, counting the header."""
        return self.row_index + HEADER_ROWS + 1

    def as_dict(self) -> dict:
        payload = asdict(self)
        payload["row_number"] = self.row_number
        return payload


@dataclass
class ScanResult:
    pairs: list[CandidatePair] = field(default_factory=list)
    trace: list[TraceEntry] = field(default_factory=list)


def primary_token(cell: RawCell, year: int, tz: str | tzinfo | None = None) -> tuple[Token, bool]:
    """
    Classify the column A cell a row is judged by.

    Structured timestamps are rendered to the compact form and parsed back
    before classification. Returns ``(token, round_trip_ok)``.
    """
    if cell.is_timestamp:
        compact, parsed = round_trip(cell.value, year, tz)
        if parsed is None:
            return Token(TokenKind.UNRECOGNIZED, compact), False
        return classify(compact), True
    return classify(cell.as_text()), True


def lookahead_cell(row: Row) -> RawCell:
    """Column A of a row below an open date, or a reward sitting in column B when column A is blank."""
    if normalize(row.col_a.as_text()):
        return row.col_a
    if not row.col_b.is_timestamp and classify(row.col_b.as_text()).is_reward_like:
        return row.col_b
    return row.col_a


def lookahead_step(cell: RawCell) -> tuple[LookaheadOutcome, Token | None]:
    if cell.is_timestamp:
        return LookaheadOutcome.STRUCTURED_DATE, None
    token = classify(cell.as_text())
    return SEEKING_TRANSITIONS[token.kind], token


def seek_reward(rows: Sequence[Row], start: int) -> tuple[LookaheadOutcome, int, Token | None]:
    """Search column A from ``start`` down; returns the terminating outcome, its row index and token."""
    for j in range(start, len(rows)):
        outcome, token = lookahead_step(lookahead_cell(rows[j]))
        state, _ = OUTCOME_TRANSITIONS[outcome]
        if state is ScanState.IDLE:
            return outcome, j, token
    return LookaheadOutcome.EXHAUSTED, len(rows), None


def scan_pairs(rows: Sequence[Row], year: int, tz: str | tzinfo | None = None) -> ScanResult:
    """Reconstruct (date, reward) candidate pairs from header-less data rows."""
    result = ScanResult()
    for i, row in enumerate(rows):
        raw = row.col_a.as_text()
        token, round_trip_ok = primary_token(row.col_a, year, tz)
        if not round_trip_ok:
            result.trace.append(TraceEntry(
                i, raw, token.kind.value, "round_trip_failed",
                f"'{token.text}' does not exist in {year}",
            ))
            logger.debug("row %d: structured date %r does not exist in %d", i, raw, year)
            continue

        state, action = IDLE_TRANSITIONS[token.kind]
        if state is ScanState.IDLE:
            result.trace.append(TraceEntry(i, raw, token.kind.value, action))
            continue

        outcome, j, found = seek_reward(rows, i + 1)
        _, action = OUTCOME_TRANSITIONS[outcome]
        if outcome is LookaheadOutcome.SUCCESS:
            result.pairs.append(CandidatePair(token.text, found.text, i, j))
            detail = f"reward '{found.text}' at data row {j}"
        elif outcome is LookaheadOutcome.NEW_DATE:
            detail = f"next date '{found.text}' at data row {j} before any reward"
            logger.debug("row %d: date %r superseded at row %d", i, token.text, j)
        else:
            detail = "no reward before end of input"
            logger.debug("row %d: date %r never found a reward", i, token.text)
        result.trace.append(TraceEntry(i, raw, token.kind.value, action, detail))
    return result
