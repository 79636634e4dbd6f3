"""Human-readable log numbers: ``<PREFIX>-<YYYYMMDD>-<sequence>``."""

from datetime import date, datetime
from enum import StrEnum

DEFAULT_EVENT_NAME = "Event"


class LogChannel(StrEnum):
    MANUAL = "manual"
    RADIO = "radio"


SEQUENCE_WIDTH: dict[LogChannel, int] = {
    LogChannel.MANUAL: 3,
    LogChannel.RADIO: 4,
}


def event_prefix(event_name: str | None) -> str:
    """First three characters of the event name, upper-cased."""
    name = event_name if event_name and event_name.strip() else DEFAULT_EVENT_NAME
    return name[:3].upper()


def date_segment(event_date: date | datetime | str | None, today: date) -> str:
    """``YYYYMMDD`` for the event date, falling back to ``today``."""
    if event_date is None or event_date == "":
        resolved = today
    elif isinstance(event_date, datetime):
        resolved = event_date.date()
    elif isinstance(event_date, date):
        resolved = event_date
    else:
        resolved = date.fromisoformat(event_date[:10])
    return resolved.isoformat().replace("-", "")


def format_log_number(
    event_name: str | None,
    event_date: date | datetime | str | None,
    sequence: int,
    channel: LogChannel,
    today: date,
) -> str:
    """Build a log number.

    >>> format_log_number("Wembley Cup Final", date(2024, 3, 15), 8, LogChannel.MANUAL, date(2024, 3, 15))
    'WEM-20240315-008'
    """
    width = SEQUENCE_WIDTH[LogChannel(channel)]
    return f"{event_prefix(event_name)}-{date_segment(event_date, today)}-{sequence:0{width}d}"
