"""
Token classification for single cell strings.

Every cell the scanner looks at is reduced to one normalised string and then
classified exactly once, in a fixed order:

    junk -> date-like -> reward-like -> unrecognized

The order lives in ``classify`` and nowhere else.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# NBSP, zero-width space, BOM and the other unicode spacing characters a
# browser copy/paste tends to smuggle into exported cells.
WHITESPACE_VARIANTS_RE = re.compile(
    r"[\s\u00a0\u1680\u180e\u2000-\u200d\u2028\u2029\u202f\u205f\u2060\u3000\ufeff]+"
)
NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7e]+")
MULTI_SPACE_RE = re.compile(r" {2,}")

DATE_LIKE_RE = re.compile(
    r"^(?P<month>" + "|".join(MONTH_ABBREVIATIONS) + r")"
    r" (?P<day>\d{1,2})"
    r"(?:, ?| )"
    r"(?P<hour>[01]?\d|2[0-3]):(?P<minute>\d{2})$",
    re.IGNORECASE,
)
REWARD_LIKE_RE = re.compile(r"^\d+(?:\.\d{1,2})?$")

JUNK_EXACT = {"XTM"}
JUNK_FRAGMENTS = ("RECEIVED", "#ERROR!", "BLOCK #")


class TokenKind(str, Enum):
    JUNK = "junk"
    DATE_LIKE = "date_like"
    REWARD_LIKE = "reward_like"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str

    @property
    def is_junk(self) -> bool:
        return self.kind is TokenKind.JUNK

    @property
    def is_date_like(self) -> bool:
        return self.kind is TokenKind.DATE_LIKE

    @property
    def is_reward_like(self) -> bool:
        return self.kind is TokenKind.REWARD_LIKE


def normalize(raw: object) -> str:
    """Collapse whitespace variants to single spaces and drop non-printable/non-ASCII characters."""
    if raw is None:
        return ""
    value = WHITESPACE_VARIANTS_RE.sub(" ", str(raw))
    value = NON_PRINTABLE_RE.sub("", value)
    value = MULTI_SPACE_RE.sub(" ", value)
    return value.strip()


def is_junk(value: str) -> bool:
    upper = value.upper()
    if not upper:
        return True
    if upper in JUNK_EXACT:
        return True
    return any(fragment in upper for fragment in JUNK_FRAGMENTS)


def is_date_like(value: str) -> bool:
    return DATE_LIKE_RE.match(value) is not None


def is_reward_like(value: str) -> bool:
    return REWARD_LIKE_RE.match(value) is not None


def classify(raw: object) -> Token:
    text = normalize(raw)
    if is_junk(text):
        return Token(TokenKind.JUNK, text)
    if is_date_like(text):
        return Token(TokenKind.DATE_LIKE, text)
    if is_reward_like(text):
        return Token(TokenKind.REWARD_LIKE, text)
    return Token(TokenKind.UNRECOGNIZED, text)
