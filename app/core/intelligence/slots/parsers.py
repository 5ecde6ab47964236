"""
Natural-language date and time parsing.

Pure functions that turn free-text expressions into canonical values:
dates as ``YYYY-MM-DD`` and times as 24-hour ``HH:MM``. Unparseable input
returns None, never raises.

Examples:
    >>> parse_date("tomorrow", today=date(2025, 1, 15))
    '2025-01-16'
    >>> parse_time("2:30pm")
    '14:30'
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

TIME_OF_DAY = {
    "morning": "09:00",
    "in the morning": "09:00",
    "afternoon": "14:00",
    "in the afternoon": "14:00",
    "evening": "17:00",
    "in the evening": "17:00",
    "noon": "12:00",
    "midday": "12:00",
}

_WEEKDAY_NAMES = "|".join(WEEKDAYS)
_NEXT_WEEKDAY = re.compile(rf"\bnext\s+({_WEEKDAY_NAMES})\b")
_THIS_WEEKDAY = re.compile(rf"\bthis\s+({_WEEKDAY_NAMES})\b")

# "20 Jan", "January 20th", "Jan 20, 2026", "the 3rd of March"
_MONTH_DAY = re.compile(
    r"\b(?:(\d{1,2})(?:st|nd|rd|th)?\s+(?:of\s+)?)?"
    r"(january|february|march|april|may|june|july|august|september|"
    r"october|november|december|jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|"
    r"nov|dec)\.?\b"
    r"(?:\s*(\d{1,2})(?:st|nd|rd|th)?\b)?"
    r"(?:,?\s*(\d{4})\b)?"
)

# Whole-utterance formats tried before the substring fallbacks
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%m/%d/%y",
)

_ISO_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_US_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")

_AM_PM = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b")
_HOUR_MINUTE = re.compile(r"\b(\d{1,2}):(\d{2})\b")
_BARE_HOUR = re.compile(r"^(\d{1,2})$")

# Bare numbers are read as hours only inside clinic hours
BARE_HOUR_MIN = 8
BARE_HOUR_MAX = 18


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def _days_until(target_weekday: int, today: date) -> int:
    days = target_weekday - today.weekday()
    if days <= 0:
        days += 7
    return days


def _parse_month_day(text: str, today: date) -> Optional[str]:
    for match in _MONTH_DAY.finditer(text):
        day_text = match.group(1) or match.group(3)
        if not day_text:
            continue

        month = MONTHS[match.group(2)]
        day = int(day_text)
        year_text = match.group(4)

        try:
            if year_text:
                return format_date(date(int(year_text), month, day))

            candidate = date(today.year, month, day)
            if candidate < today:
                candidate = date(today.year + 1, month, day)
            return format_date(candidate)
        except ValueError:
            # Feb 30 and friends
            continue
    return None


def parse_date(text: Optional[str], today: Optional[date] = None) -> Optional[str]:
    """Parse a natural-language date into ``YYYY-MM-DD``.

    Rules are tried in order and the first hit wins: today / tomorrow /
    day after tomorrow / next week, ``next <weekday>``, ``this <weekday>``,
    month name with day, whole-text numeric formats, then ISO and US
    (MM/DD/YYYY) substrings.

    Args:
        text: User utterance
        today: Reference date (defaults to the local date)

    Returns:
        Canonical date string, or None if nothing date-like was found
    """
    if not text:
        return None

    today = today or date.today()
    stripped = text.strip()
    lower = stripped.lower()

    if lower == "today":
        return format_date(today)

    if lower == "tomorrow":
        return format_date(today + timedelta(days=1))

    if "day after tomorrow" in lower:
        return format_date(today + timedelta(days=2))

    if lower == "next week":
        return format_date(today + timedelta(days=7))

    match = _NEXT_WEEKDAY.search(lower)
    if match:
        # "next" skips the upcoming occurrence
        days = _days_until(WEEKDAYS[match.group(1)], today) + 7
        return format_date(today + timedelta(days=days))

    match = _THIS_WEEKDAY.search(lower)
    if match:
        days = _days_until(WEEKDAYS[match.group(1)], today)
        return format_date(today + timedelta(days=days))

    month_day = _parse_month_day(lower, today)
    if month_day:
        return month_day

    for fmt in _DATE_FORMATS:
        try:
            return format_date(datetime.strptime(stripped, fmt).date())
        except ValueError:
            continue

    # Substring fallbacks are not calendar-checked; the validator is
    match = _ISO_DATE.search(stripped)
    if match:
        return match.group(0)

    match = _US_DATE.search(stripped)
    if match:
        month, day, year = match.groups()
        return f"{year}-{int(month):02d}-{int(day):02d}"

    return None


def parse_time(text: Optional[str]) -> Optional[str]:
    """Parse a natural-language time into 24-hour ``HH:MM``.

    Args:
        text: User utterance

    Returns:
        Canonical time string, or None if nothing time-like was found.
        am/pm results are not range-checked ("13pm" gives "25:00").
    """
    if not text:
        return None

    lower = text.strip().lower()

    if lower in TIME_OF_DAY:
        return TIME_OF_DAY[lower]

    match = _AM_PM.search(lower)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        is_pm = match.group(3) == "pm"

        if is_pm and hours != 12:
            hours += 12
        if not is_pm and hours == 12:
            hours = 0
        return f"{hours:02d}:{minutes:02d}"

    match = _HOUR_MINUTE.search(lower)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours <= 23 and minutes <= 59:
            return f"{hours:02d}:{minutes:02d}"

    match = _BARE_HOUR.match(lower)
    if match:
        hours = int(match.group(1))
        if BARE_HOUR_MIN <= hours <= BARE_HOUR_MAX:
            return f"{hours:02d}:00"

    return None
