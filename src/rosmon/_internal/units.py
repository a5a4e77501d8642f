"""Unit conversion helpers shared across the codebase.

RouterOS reports traffic counters and memory as raw byte counts and
durations as compact strings such as ``"2w3d4h5m6s"``.  These helpers turn
them into the short human-readable labels shown by the dashboard, and parse
them back into numbers.
"""

from __future__ import annotations

import re

BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")

_DURATION_RE = re.compile(r"(\d+w)?(\d+d)?(\d+h)?(\d+m)?(\d+s)?")
_DURATION_PART_RE = re.compile(r"(\d+)([wdhms])")
_CLOCK_RE = re.compile(r"^(\d+):(\d{2}):(\d{2})$")
_SIZE_RE = re.compile(r"^\s*([\d.]+)\s*([A-Za-z]+)\s*$")

_SECONDS = {"w": 604800, "d": 86400, "h": 3600, "m": 60, "s": 1}


def _trim_number(value: float) -> str:
    """Render *value* without a trailing ``.0`` (``1.0`` -> ``"1"``)."""
    if value == int(value):
        return str(int(value))
    return repr(value)


def format_byte_size(n: int) -> str:
    """Scale *n* bytes through the 1024 unit ladder, rounded to 2 decimals."""
    if n <= 0:
        return "0 Bytes"
    index = 0
    while index < len(BYTE_UNITS) - 1 and n >= 1024 ** (index + 1):
        index += 1
    scaled = round(n / 1024**index, 2)
    return f"{_trim_number(scaled)} {BYTE_UNITS[index]}"


def parse_byte_size(text: str) -> int:
    """Inverse of :func:`format_byte_size` (lossy past two decimals).

    Raises:
        ValueError: If *text* is not ``"<number> <unit>"`` with a known unit.
    """
    match = _SIZE_RE.match(text)
    if match is None:
        raise ValueError(f"Not a byte size: {text!r}")
    number, unit = match.groups()
    units = [u.lower() for u in BYTE_UNITS]
    if unit.lower() not in units:
        raise ValueError(f"Unknown byte unit: {unit!r}")
    return round(float(number) * 1024 ** units.index(unit.lower()))


def format_duration(raw: str | None) -> str:
    """Render a RouterOS duration as weeks/days/hours.

    Minutes are only shown when no week, day or hour component is present,
    and seconds are never shown.  ``"1w2d3h4m5s"`` -> ``"1w 2d 3h"``,
    ``"5m"`` -> ``"5m"``, ``"42s"`` -> ``"0h"``.
    """
    if not raw:
        return "0h"
    match = _DURATION_RE.match(raw)
    weeks, days, hours, minutes, _seconds = match.groups()
    result = " ".join(part for part in (weeks, days, hours) if part)
    if not result and minutes:
        result = minutes
    return result or "0h"


def parse_duration(raw: str | None) -> int:
    """Convert a RouterOS duration to whole seconds.

    Accepts the compact ``1w2d3h4m5s`` form and the ``HH:MM:SS`` form
    older firmware prints for short intervals.  Empty input is ``0``.
    """
    if not raw:
        return 0
    clock = _CLOCK_RE.match(raw)
    if clock is not None:
        hours, minutes, seconds = (int(g) for g in clock.groups())
        return hours * 3600 + minutes * 60 + seconds
    parts = _DURATION_PART_RE.findall(raw)
    if not parts or "".join(n + u for n, u in parts) != raw:
        raise ValueError(f"Not a RouterOS duration: {raw!r}")
    return sum(int(n) * _SECONDS[u] for n, u in parts)
