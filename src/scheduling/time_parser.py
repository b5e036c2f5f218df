# later - Slack Scheduled Message Command
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Time Parser Module

Finds the natural language date phrase inside free-form command text
("tomorrow at 3pm ship the report") and resolves it to an absolute instant
in the requester's timezone. Also derives the message body that remains
once the date phrase is removed.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

import dateparser
import pytz
from dateparser.search import search_dates

logger = logging.getLogger("later.scheduling.time_parser")

# dateparser works on naive wall-clock times here; the user's zone is applied
# afterwards so "at 9am" means 9am for the requester, not for the server.
DATEPARSER_SETTINGS = {
    "PREFER_DATES_FROM": "future",
    "TIMEZONE": "UTC",
    "TO_TIMEZONE": "UTC",
    "RETURN_AS_TIMEZONE_AWARE": False,
}

LANGUAGES = ["en"]

# Text between two matches that turns them into a range ("monday to friday")
RANGE_CONNECTOR = re.compile(
    r"^\s*(?:-|–|—|to|until|till|til|through|thru)\s*$", re.IGNORECASE
)
BETWEEN_PREFIX = re.compile(r"\bbetween\s*$", re.IGNORECASE)
AND_CONNECTOR = re.compile(r"^\s*and\s*$", re.IGNORECASE)

# A single match that spans a range, or starts with its connector
RANGE_INSIDE = re.compile(
    r"\s(?:to|until|till|through|thru)\s|\s[-–—]\s"
    r"|^(?:between|to|until|till|til|through|thru)\s",
    re.IGNORECASE,
)

# Gap allowed between two matches that belong to one phrase ("tomorrow" "at 3pm")
JOINABLE_GAP = re.compile(r"^\s*(?:at|on|@)?\s*$", re.IGNORECASE)

BARE_WEEKDAY = re.compile(
    r"^(?:(?:on|this|next)\s+)?"
    r"(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday"
    r"|mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)$",
    re.IGNORECASE,
)
WEEKDAY_PREFIX = re.compile(r"\b(?:on|this|next)\s+$", re.IGNORECASE)
TIME_PREFIX = re.compile(r"(?:\bat|@)\s*$", re.IGNORECASE)

# Words that change the meaning of what follows and are never trimmed off
# the front of a phrase
LEADING_KEEP = re.compile(r"^(?:next|this|last|on|at|in|by|@)$", re.IGNORECASE)

# Anything that pins a time of day; a phrase without one is date-only
EXPLICIT_TIME = re.compile(
    r"\d:\d|\d\s*(?:am|pm|a\.m\.|p\.m\.)\b|\d\s*h\b"
    r"|\b(?:noon|midday|midnight|morning|afternoon|evening|tonight|night)\b"
    r"|\b(?:hours?|hrs?|minutes?|mins?|seconds?|secs?)\b",
    re.IGNORECASE,
)
WORD = re.compile(r"\S+")

OPENING_QUOTES = "'\"‘“«‹‛‟"
CLOSING_QUOTES = "'\"’”»›"


@dataclass(frozen=True)
class DateMatch:
    """A date phrase found by the grammar, located in the command text."""

    text: str
    start: int
    end: int
    value: datetime  # naive wall-clock time


@dataclass(frozen=True)
class ParsedDatePhrase:
    """Result of extracting the date phrase from a command."""

    matched_text: str  # literal substring of the command text
    start: int
    end: int
    resolved_at: datetime  # UTC


def validate_timezone(tz_name: str) -> bool:
    """
    Validate that a timezone name is valid.

    Args:
        tz_name: IANA timezone name (e.g., "America/Los_Angeles")

    Returns:
        True if valid, False otherwise
    """
    try:
        pytz.timezone(tz_name)
        return True
    except pytz.UnknownTimeZoneError:
        return False


def _settings(wall_clock: datetime) -> dict:
    return {**DATEPARSER_SETTINGS, "RELATIVE_BASE": wall_clock}


def _parse(phrase: str, wall_clock: datetime) -> Optional[datetime]:
    return dateparser.parse(phrase, languages=LANGUAGES, settings=_settings(wall_clock))


def _locate(text: str, found: Sequence[tuple[str, datetime]]) -> list[DateMatch]:
    """Pin each grammar match to its position in the text, left to right."""
    located = []
    cursor = 0
    for substring, value in found:
        start = text.find(substring, cursor)
        if start < 0:
            logger.debug(f"Dropping match not found verbatim in text: {substring!r}")
            continue
        end = start + len(substring)
        located.append(DateMatch(text=substring, start=start, end=end, value=value))
        cursor = end
    return located


def _join_adjacent(text: str, matches: list[DateMatch], wall_clock: datetime) -> list[DateMatch]:
    """
    Merge neighbouring matches that only parse as one phrase, e.g. the
    grammar reporting "tomorrow" and "at 3pm" separately.
    """
    if len(matches) < 2:
        return matches

    joined = [matches[0]]
    for match in matches[1:]:
        previous = joined[-1]
        if JOINABLE_GAP.match(text[previous.end:match.start]):
            combined = text[previous.start:match.end]
            value = _parse(combined, wall_clock)
            if value is not None:
                joined[-1] = DateMatch(
                    text=combined, start=previous.start, end=match.end, value=value
                )
                continue
        joined.append(match)
    return joined


def _is_range(text: str, matches: Sequence[DateMatch]) -> bool:
    """Check whether the last match is (the end of) a date range."""
    last = matches[-1]
    if RANGE_INSIDE.search(last.text):
        return True

    if len(matches) < 2:
        return False

    previous = matches[-2]
    gap = text[previous.end:last.start]
    if RANGE_CONNECTOR.match(gap):
        return True
    if AND_CONNECTOR.match(gap) and BETWEEN_PREFIX.search(text[:previous.start]):
        return True
    return False


def select_date_phrase(text: str, matches: Sequence[DateMatch]) -> Optional[DateMatch]:
    """
    Pick the date phrase to schedule with.

    The rightmost match wins, so "ship the report friday" uses "friday" even
    if something earlier also looked like a date. A range ("from monday to
    friday") has no single delivery time and yields None, as does no match.
    """
    if not matches:
        return None

    if _is_range(text, matches):
        logger.debug(f"Ignoring date range ending in {matches[-1].text!r}")
        return None

    return matches[-1]


def _shrink(match: DateMatch, start: int, end: int, value: datetime) -> DateMatch:
    offset = match.start
    return DateMatch(
        text=match.text[start:end],
        start=offset + start,
        end=offset + end,
        value=value,
    )


def _trim_to_date_words(match: DateMatch, wall_clock: datetime) -> DateMatch:
    """
    Drop words the grammar swallowed at either edge of a phrase.

    "tomorrow at 10:30 about" comes back from the search as one phrase; the
    shortest span that still resolves to the same instant is "tomorrow at
    10:30", so "about" stays in the message. The value of the trimmed span
    is re-parsed on its own, which also replaces the search's guess.
    """
    words = [(w.start(), w.end()) for w in WORD.finditer(match.text)]
    if not words:
        return match
    value = _parse(match.text, wall_clock)
    first, last = 0, len(words) - 1

    while last > first:
        shorter = _parse(match.text[words[first][0]:words[last - 1][1]], wall_clock)
        if shorter is None or (value is not None and shorter != value):
            break
        value = shorter
        last -= 1

    while last > first and not LEADING_KEEP.match(match.text[words[first][0]:words[first][1]]):
        shorter = _parse(match.text[words[first + 1][0]:words[last][1]], wall_clock)
        if shorter is None or (value is not None and shorter != value):
            break
        value = shorter
        first += 1

    if value is None:
        logger.debug(f"Could not re-parse {match.text!r}, keeping search result")
        value = match.value
    return _shrink(match, words[first][0], words[last][1], value)


def _absorb_prefix(text: str, match: DateMatch) -> DateMatch:
    """
    Include a leading "next"/"this"/"on" the grammar left out of a weekday,
    or the "at" in front of a bare time ("at 10am").
    """
    if BARE_WEEKDAY.match(match.text):
        prefix = WEEKDAY_PREFIX.search(text[:match.start])
    elif match.text[:1].isdigit():
        prefix = TIME_PREFIX.search(text[:match.start])
    else:
        prefix = None
    if prefix is None:
        return match
    return DateMatch(
        text=text[prefix.start():match.end],
        start=prefix.start(),
        end=match.end,
        value=match.value,
    )


def _roll_same_day_weekday(match: DateMatch, wall_clock: datetime) -> datetime:
    """A bare weekday never means today: "monday" on a Monday is next week."""
    if BARE_WEEKDAY.match(match.text.strip()) and match.value.date() == wall_clock.date():
        return match.value + timedelta(days=7)
    return match.value


def _default_time_of_day(phrase: str, value: datetime, wall_clock: datetime) -> datetime:
    """A date without a time ("friday") keeps the current time of day."""
    if EXPLICIT_TIME.search(phrase):
        return value
    return value.replace(
        hour=wall_clock.hour,
        minute=wall_clock.minute,
        second=wall_clock.second,
        microsecond=0,
    )


def _to_utc(value: datetime, tz) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(pytz.UTC)

    localize = getattr(tz, "localize", None)
    if localize is not None:
        aware = localize(value)
    else:
        aware = value.replace(tzinfo=tz)
    return aware.astimezone(pytz.UTC)


def extract_date_phrase(reference: datetime, text: str) -> Optional[ParsedDatePhrase]:
    """
    Find and resolve the date phrase in a command.

    Args:
        reference: "Now" as an aware datetime in the requester's timezone
        text: Raw command text

    Returns:
        ParsedDatePhrase, or None if there is no usable (single) date

    Raises:
        ValueError: If reference is naive
    """
    if reference.tzinfo is None:
        raise ValueError("reference must be timezone-aware")

    tz = reference.tzinfo
    wall_clock = reference.replace(tzinfo=None)

    found = search_dates(text, languages=LANGUAGES, settings=_settings(wall_clock)) or []
    logger.debug(f"Date candidates in {text!r}: {found}")

    matches = _join_adjacent(text, _locate(text, found), wall_clock)
    selected = select_date_phrase(text, matches)
    if selected is None:
        return None

    # The search reports where a phrase is; its datetimes are unreliable for
    # clock times ("friday at 9am"), so the chosen span is parsed again
    selected = _absorb_prefix(text, _trim_to_date_words(selected, wall_clock))
    value = _roll_same_day_weekday(selected, wall_clock)
    resolved = _to_utc(_default_time_of_day(selected.text, value, wall_clock), tz)

    return ParsedDatePhrase(
        matched_text=selected.text,
        start=selected.start,
        end=selected.end,
        resolved_at=resolved,
    )


def strip_quotes(text: str) -> str:
    """Remove one layer of leading/trailing straight or curly quotes."""
    if text[:1] and text[0] in OPENING_QUOTES:
        text = text[1:]
    if text[-1:] and text[-1] in CLOSING_QUOTES:
        text = text[:-1]
    return text


def extract_message_text(text: str, phrase: ParsedDatePhrase) -> str:
    """
    Derive the message body by cutting the date phrase out of the command.

    Returns:
        The message text, possibly empty
    """
    before = text[:phrase.start].rstrip()
    after = text[phrase.end:].lstrip()
    remainder = f"{before} {after}".strip()
    return strip_quotes(remainder).strip()
