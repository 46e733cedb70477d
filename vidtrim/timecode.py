"""Conversion between ``HH:MM:SS`` clock strings and whole seconds."""

from vidtrim.models import MediaDescription

# Used for trim bounds whenever a probe did not yield a duration.
DEFAULT_DURATION = "00:00:10"


def to_seconds(text: str) -> int:
    """Parse ``HH:MM:SS`` or ``HH:MM:SS.fff`` into seconds, dropping the fraction.

    Raises ValueError when *text* is not in that shape.
    """
    parts = text.strip().split(":")
    if len(parts) != 3:
        raise ValueError(f"Expected HH:MM:SS, got {text!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2].split(".", 1)[0])
    return hours * 3600 + minutes * 60 + seconds


def from_seconds(total: int) -> str:
    if total < 0:
        raise ValueError(f"Seconds must be non-negative, got {total}")
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


def trim_bounds(description: MediaDescription | None) -> int:
    """Upper bound, in seconds, for the start and duration of a trim window."""
    duration = description.duration if description else ""
    return to_seconds(duration or DEFAULT_DURATION)
