"""
Pipeline: header split -> strategy -> canonical output table.

Two strategies solve the same problem for different input shapes:

    lookahead  date and reward stacked in column A, separated by noise rows
    aligned    date in column A and amount in column B of the same row

``auto`` picks ``aligned`` only when every non-blank data row already has
that shape, which is also the shape of this pipeline's own output.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Sequence

from reward_doctor.cells import Row, format_number
from reward_doctor.config import PipelineConfig
from reward_doctor.dates import parse_canonical_form
from reward_doctor.finalize import Event, finalize_pairs
from reward_doctor.scanner import TraceEntry, scan_pairs
from reward_doctor.tokens import is_reward_like, normalize

logger = logging.getLogger(__name__)


class StructuralError(ValueError):
    """The input table is missing or its expected structure cannot be located."""


@dataclass
class StrategyOutcome:
    events: list[Event]
    trace: list[TraceEntry]
    candidate_pairs: int


@dataclass
class PipelineResult:
    header: list
    events: list[Event]
    strategy: str
    config: PipelineConfig
    data_rows: int
    candidate_pairs: int
    trace: list[TraceEntry] = field(default_factory=list)

    @property
    def rows(self) -> list[list]:
        """The output table: the untouched header followed by one row per event."""
        return [self.header] + [event.as_row(self.config.timezone) for event in self.events]

    @property
    def action_counts(self) -> Counter:
        return Counter(entry.action for entry in self.trace)

    @property
    def dropped_dates(self) -> int:
        counts = self.action_counts
        return sum(
            counts.get(action, 0)
            for action in ("dropped_superseded", "dropped_exhausted", "round_trip_failed", "rejected_reward", "rejected_date")
        )


def split_table(table: Sequence[Sequence] | None) -> tuple[list, list[Row]]:
    if table is None:
        raise StructuralError("No input table was provided")
    all_rows = list(table)
    if not all_rows:
        raise StructuralError("Input table is empty; expected a header row followed by data rows")
    header = all_rows[0]
    if header is None:
        raise StructuralError("Input table has no header row")
    return list(header), [Row.from_values(values) for values in all_rows[1:]]


def _aligned_timestamp(row: Row):
    if row.col_a.is_timestamp:
        return row.col_a.value
    if row.col_a.is_empty or row.col_a.is_number:
        return None
    return parse_canonical_form(row.col_a.as_text())


def _aligned_amount_text(row: Row) -> str | None:
    if row.col_b.is_number:
        text = format_number(row.col_b.value)
    elif row.col_b.is_empty or row.col_b.is_timestamp:
        return None
    else:
        text = normalize(row.col_b.as_text())
    return text if is_reward_like(text) else None


def aligned_event(row: Row, index: int) -> Event | None:
    timestamp = _aligned_timestamp(row)
    amount_text = _aligned_amount_text(row)
    if timestamp is None or amount_text is None:
        return None
    return Event(timestamp, float(amount_text), index)


def is_blank_row(row: Row) -> bool:
    return not normalize(row.col_a.as_text()) and not normalize(row.col_b.as_text())


def looks_column_aligned(rows: Sequence[Row]) -> bool:
    seen = False
    for index, row in enumerate(rows):
        if is_blank_row(row):
            continue
        if aligned_event(row, index) is None:
            return False
        seen = True
    return seen


def run_lookahead(rows: Sequence[Row], config: PipelineConfig) -> StrategyOutcome:
    scan = scan_pairs(rows, config.year, config.timezone)
    events, finalize_trace = finalize_pairs(scan.pairs, config.year)
    return StrategyOutcome(events, scan.trace + finalize_trace, len(scan.pairs))


def run_aligned(rows: Sequence[Row], config: PipelineConfig) -> StrategyOutcome:
    events: list[Event] = []
    trace: list[TraceEntry] = []
    for index, row in enumerate(rows):
        raw = row.col_a.as_text()
        event = aligned_event(row, index)
        if event is None:
            trace.append(TraceEntry(
                index, raw, row.col_a.kind.value, "dropped",
                "column A is not a timestamp or column B is not a valid amount", "aligned",
            ))
            continue
        events.append(event)
        trace.append(TraceEntry(
            index, raw, row.col_a.kind.value, "kept", f"amount {format_number(event.amount)}", "aligned",
        ))
    return StrategyOutcome(events, trace, len(events))


STRATEGIES: dict[str, Callable[[Sequence[Row], PipelineConfig], StrategyOutcome]] = {
    "lookahead": run_lookahead,
    "aligned": run_aligned,
}


def choose_strategy(rows: Sequence[Row], requested: str) -> str:
    if requested != "auto":
        return requested
    return "aligned" if looks_column_aligned(rows) else "lookahead"


def run_pipeline(table: Sequence[Sequence] | None, config: PipelineConfig | None = None) -> PipelineResult:
    """
    Rebuild canonical reward rows from a raw two-column table.

    ``table`` is the bulk-read range: row 0 is the header and is passed
    through untouched. Raises ``StructuralError`` before doing any work if
    the table is missing or has no header.
    """
    config = config or PipelineConfig()
    header, rows = split_table(table)
    strategy = choose_strategy(rows, config.strategy)
    outcome = STRATEGIES[strategy](rows, config)
    logger.info(
        "%s strategy: %d data rows, %d candidates, %d events",
        strategy, len(rows), outcome.candidate_pairs, len(outcome.events),
    )
    return PipelineResult(
        header=header,
        events=outcome.events,
        strategy=strategy,
        config=config,
        data_rows=len(rows),
        candidate_pairs=outcome.candidate_pairs,
        trace=outcome.trace,
    )
