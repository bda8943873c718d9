"""Time formatting and parsing utilities.

`format_micros` renders a playback position as HH:MM:SS.mmm for timepoint
labels; `parse_time_value` reads user supplied positions for the CLI.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ..config import TIME_BASE

__all__ = ["format_micros", "parse_time_value", "micros_to_seconds"]


def format_micros(micros: int) -> str:
    """Return HH:MM:SS.mmm for a position in microseconds.

    Milliseconds are truncated, not rounded, so a timepoint never displays a
    later time than it marks. Hours are not wrapped. Negative input clamps to 0.
    """
    micros = max(0, int(micros))
    total_seconds, rem = divmod(micros, TIME_BASE)
    h, rest = divmod(total_seconds, 3600)
    m, s = divmod(rest, 60)
    ms = rem // 1000
    return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"


def micros_to_seconds(micros: int) -> float:
    return micros / TIME_BASE


def parse_time_value(value: str) -> int:
    """Parse a user time string into microseconds.

    Accepts HH:MM:SS(.mmm), MM:SS(.mmm), a number with an ``s`` or ``ms``
    suffix, or bare seconds. Raises ValueError on anything else.
    """
    if value is None:
        raise ValueError("Time value not specified")

    normalized = value.strip().replace(" ", "").replace(",", ".").lower()
    if not normalized:
        raise ValueError("Empty time value")

    try:
        if ":" in normalized:
            parts = normalized.split(":")
            if len(parts) not in (2, 3):
                raise ValueError(
                    f"Invalid time format '{value}'. Expected HH:MM:SS.mmm"
                )
            if len(parts) == 2:
                parts.insert(0, "0")
            hours = int(parts[0])
            minutes = int(parts[1])
            seconds = Decimal(parts[2])
            if not 0 <= minutes < 60:
                raise ValueError(f"Minutes out of range 0-59 in value '{value}'")
            if not 0 <= seconds < 60:
                raise ValueError(f"Seconds out of range 0-59 in value '{value}'")
            total = Decimal(hours * 3600 + minutes * 60) + seconds
        elif normalized.endswith("ms"):
            total = Decimal(normalized[:-2]) / 1000
        elif normalized.endswith("s"):
            total = Decimal(normalized[:-1])
        else:
            total = Decimal(normalized)
    except InvalidOperation as exc:
        raise ValueError(f"Failed to parse time '{value}'") from exc

    if not total.is_finite() or total < 0:
        raise ValueError(f"Time must be a non-negative number, got '{value}'")
    return int(total * TIME_BASE)
