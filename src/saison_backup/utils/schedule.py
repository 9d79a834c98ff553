"""Schedule helpers shared by the course exporter and importer."""

import re
from datetime import date, time

from saison_backup.models.entities import DEFAULT_COURSE_COLOR

_COLOR_PATTERN = re.compile(r"^#([0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$")


def current_week(start_date: date, today: date | None = None) -> int:
    """Teaching week containing ``today``, never below 1."""
    today = today or date.today()
    days = (today - start_date).days
    return max(1, days // 7 + 1)


def format_color(color: int) -> str:
    """Format an ARGB integer as ``#AARRGGBB``."""
    return f"#{color & 0xFFFFFFFF:08X}"


def parse_color(value: str | None) -> int:
    """Parse ``#AARRGGBB`` or ``#RRGGBB`` (opaque) into an ARGB integer.

    Anything else yields the default course colour.
    """
    if not value or not _COLOR_PATTERN.match(value):
        return DEFAULT_COURSE_COLOR
    digits = value[1:]
    if len(digits) == 6:
        digits = "FF" + digits
    return int(digits, 16)


def format_hhmm(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def parse_hhmm(value: str) -> time:
    """Parse an ``HH:mm`` string.

    Raises:
        ValueError: If the string is not a valid time of day
    """
    hours, _, minutes = value.partition(":")
    return time(int(hours), int(minutes))
