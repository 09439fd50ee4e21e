"""Strict second pass: turn textual candidate pairs into validated events."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable

from reward_doctor.dates import parse_compact_form, to_canonical_form
from reward_doctor.scanner import CandidatePair, TraceEntry
from reward_doctor.tokens import is_reward_like, normalize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    timestamp: datetime
    amount: float
    source_row: int | None = None

    def canonical_date(self, tz: str | tzinfo | None = None) -> str:
        return to_canonical_form(self.timestamp, tz)

    def as_row(self, tz: str | tzinfo | None = None) -> list:
        return [self.canonical_date(tz), self.amount]


def finalize_pair(pair: CandidatePair, year: int) -> tuple[Event | None, TraceEntry]:
    date_text = normalize(pair.date_text)
    reward_text = normalize(pair.reward_text)
    if not is_reward_like(reward_text):
        logger.debug("row %d: reward %r rejected on strict re-check", pair.date_row, reward_text)
        return None, TraceEntry(
            pair.date_row, date_text, "candidate", "rejected_reward",
            f"'{reward_text}' is not an unsigned amount with at most two decimals", "finalize",
        )
    timestamp = parse_compact_form(date_text, year)
    if timestamp is None:
        logger.debug("row %d: date %r rejected, not a real date in %d", pair.date_row, date_text, year)
        return None, TraceEntry(
            pair.date_row, date_text, "candidate", "rejected_date",
            f"'{date_text}' is not a valid date in {year}", "finalize",
        )
    event = Event(timestamp, float(reward_text), pair.date_row)
    return event, TraceEntry(
        pair.date_row, date_text, "candidate", "emitted",
        f"amount {reward_text} from data row {pair.reward_row}", "finalize",
    )


def finalize_pairs(pairs: Iterable[CandidatePair], year: int) -> tuple[list[Event], list[TraceEntry]]:
    events: list[Event] = []
    trace: list[TraceEntry] = []
    for pair in pairs:
        event, entry = finalize_pair(pair, year)
        trace.append(entry)
        if event is not None:
            events.append(event)
    return events, trace
