"""
Show Identifier Date Parsing

Show identifiers carry the performance date near the start of the string.
Two schemes are in circulation:

  prefixed   gd77-05-08.sbd.hicks.4982       (collection prefix + YY-MM-DD)
             gd1977-05-08.sbd.miller.97065   (collection prefix + YYYY-MM-DD)
  iso        1977-05-08_barton_hall          (YYYY-MM-DD at offset 0)

Both order the same way (year, month, day).  ``parse_date`` detects the
scheme and returns a ``ShowDate`` so callers never deal with offsets.
"""

import re
from datetime import date
from enum import Enum
from typing import NamedTuple, Optional, Tuple


_PREFIXED_PATTERN = re.compile(r"^([A-Za-z]+)(\d{4}|\d{2})-(\d{2})-(\d{2})")
_ISO_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

# Two-digit years all belong to the 1900s.
_CENTURY = 1900


class IdentifierScheme(str, Enum):
    PREFIXED = "prefixed"
    ISO = "iso"


class ShowDate(NamedTuple):
    """Calendar date extracted from a show identifier."""

    year: int
    month: int
    day: int

    @property
    def month_day(self) -> Tuple[int, int]:
        return (self.month, self.day)

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


def detect_scheme(identifier: str) -> Optional[IdentifierScheme]:
    """Return the identifier scheme, or None when no date is present."""
    if not identifier:
        return None
    if _ISO_PATTERN.match(identifier):
        return IdentifierScheme.ISO
    if _PREFIXED_PATTERN.match(identifier):
        return IdentifierScheme.PREFIXED
    return None


def parse_date(identifier: str) -> ShowDate:
    """
    Extract the (year, month, day) encoded in a show identifier.

    Raises:
        ValueError: the identifier carries no valid calendar date.
    """
    scheme = detect_scheme(identifier)
    if scheme is IdentifierScheme.ISO:
        year_s, month_s, day_s = _ISO_PATTERN.match(identifier).groups()
    elif scheme is IdentifierScheme.PREFIXED:
        _, year_s, month_s, day_s = _PREFIXED_PATTERN.match(identifier).groups()
    else:
        raise ValueError(f"No date found in show identifier '{identifier}'")

    year = int(year_s)
    if len(year_s) == 2:
        year += _CENTURY
    parsed = ShowDate(year, int(month_s), int(day_s))

    try:
        parsed.to_date()
    except ValueError as exc:
        raise ValueError(f"Invalid date in show identifier '{identifier}': {exc}") from exc
    return parsed


def try_parse_date(identifier: str) -> Optional[ShowDate]:
    """Like ``parse_date`` but returns None instead of raising."""
    try:
        return parse_date(identifier)
    except ValueError:
        return None


def month_day(identifier: str) -> Optional[Tuple[int, int]]:
    """Return the (month, day) of a show identifier, or None."""
    parsed = try_parse_date(identifier)
    return parsed.month_day if parsed else None
