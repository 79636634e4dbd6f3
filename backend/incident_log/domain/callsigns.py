"""Ordered fallback for the callsign recorded against a log entry."""

from collections.abc import Iterable

UNKNOWN_CALLSIGN = "Unknown"
RADIO_CALLSIGN = "RADIO"


def initials(first_name: str | None, last_name: str | None) -> str | None:
    """Upper-cased initials from a profile name, or None when no name is set."""
    parts = [part.strip() for part in (first_name, last_name) if part and part.strip()]
    if not parts:
        return None
    return "".join(part[0] for part in parts).upper()


def first_available(candidates: Iterable[str | None], default: str = UNKNOWN_CALLSIGN) -> str:
    """Return the first non-blank candidate, else ``default``."""
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return default


def resolve_callsign(
    position_callsign: str | None,
    position_short_code: str | None,
    first_name: str | None,
    last_name: str | None,
    default: str = UNKNOWN_CALLSIGN,
) -> str:
    """Assignment callsign, then short code, then profile initials, then ``default``."""
    return first_available(
        (position_callsign, position_short_code, initials(first_name, last_name)),
        default=default,
    )
