"""Match-flow state derived from the history of match log entries.

Pure functions -- no DB access. Score and clock are never persisted as
counters; they are recomputed from prior entries on every write.

derive_match_state: values stored on a new match-flow entry
summarize_match_state: live view of the match (phase, score, display clock)
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from incident_log.domain.clock import as_utc
from incident_log.domain.incident_types import MatchFlowType

HALF_LENGTH_MINUTES = 45
FULL_LENGTH_MINUTES = 90


@dataclass(frozen=True)
class MatchLogPoint:
    """The parts of a prior match log entry the deriver needs."""

    incident_type: str
    time_of_occurrence: datetime
    match_minute: int | None = None


@dataclass(frozen=True)
class MatchState:
    match_minute: int | None
    home_score: int
    away_score: int


def _whole_minutes(start: datetime, end: datetime) -> int:
    return (as_utc(end) - as_utc(start)) // timedelta(minutes=1)


def _first_of(entries: Sequence[MatchLogPoint], match_type: MatchFlowType) -> MatchLogPoint | None:
    return next((entry for entry in entries if entry.incident_type == match_type), None)


def _tally_goals(entries: Sequence[MatchLogPoint]) -> tuple[int, int]:
    home = sum(1 for entry in entries if entry.incident_type == MatchFlowType.HOME_GOAL)
    away = sum(1 for entry in entries if entry.incident_type == MatchFlowType.AWAY_GOAL)
    return home, away


def _in_time_order(entries: Sequence[MatchLogPoint]) -> list[MatchLogPoint]:
    return sorted(entries, key=lambda entry: as_utc(entry.time_of_occurrence))


def derive_match_state(
    prior_entries: Sequence[MatchLogPoint],
    incident_type: str,
    time_of_occurrence: datetime,
) -> MatchState:
    """Compute score and match minute to store on a new match-flow entry.

    Args:
        prior_entries: Earlier match_log entries for the same event
        incident_type: Type of the entry being created
        time_of_occurrence: Occurrence time of the entry being created

    Returns:
        MatchState with the running score including this entry, and
        match_minute (None until a first-half kick-off has been logged)

    Clock rule: minutes since the first-half kick-off; once the entry is
    after the half-time entry, 45 plus minutes since half-time. Second-half
    kick-off and stoppage time are deliberately not consulted.
    """
    ordered = _in_time_order(prior_entries)
    home_score, away_score = _tally_goals(ordered)

    if incident_type == MatchFlowType.HOME_GOAL:
        home_score += 1
    elif incident_type == MatchFlowType.AWAY_GOAL:
        away_score += 1

    kick_off = _first_of(ordered, MatchFlowType.KICK_OFF_FIRST_HALF)
    half_time = _first_of(ordered, MatchFlowType.HALF_TIME)

    match_minute: int | None = None
    if kick_off is not None:
        if half_time is not None and as_utc(time_of_occurrence) > as_utc(half_time.time_of_occurrence):
            match_minute = HALF_LENGTH_MINUTES + _whole_minutes(half_time.time_of_occurrence, time_of_occurrence)
        else:
            match_minute = _whole_minutes(kick_off.time_of_occurrence, time_of_occurrence)

    return MatchState(match_minute=match_minute, home_score=home_score, away_score=away_score)


@dataclass(frozen=True)
class MatchSummary:
    phase: str
    home_score: int
    away_score: int
    current_minute: int
    display_time: str
    kick_off_first_half: datetime | None = None
    half_time: datetime | None = None
    kick_off_second_half: datetime | None = None
    full_time: datetime | None = None


def _display_with_stoppage(minute: int, regulation: int) -> str:
    if minute > regulation:
        return f"{regulation}+{minute - regulation}"
    return str(minute)


def summarize_match_state(entries: Sequence[MatchLogPoint], now: datetime) -> MatchSummary:
    """Describe the live match from every match log entry so far.

    Args:
        entries: All match_log entries for the event
        now: Current time (injectable for testing)

    Returns:
        MatchSummary; phase is one of Pre-Match, First Half, Half-Time,
        Second Half, Full Time
    """
    ordered = _in_time_order(entries)
    if not ordered:
        return MatchSummary(phase="Pre-Match", home_score=0, away_score=0, current_minute=0, display_time="0")

    home_score, away_score = _tally_goals(ordered)
    kick_off = _first_of(ordered, MatchFlowType.KICK_OFF_FIRST_HALF)
    half_time = _first_of(ordered, MatchFlowType.HALF_TIME)
    second_half = _first_of(ordered, MatchFlowType.KICK_OFF_SECOND_HALF)
    full_time = _first_of(ordered, MatchFlowType.FULL_TIME)

    phase = "Pre-Match"
    minute = 0
    display = "0"

    if full_time is not None:
        phase = "Full Time"
        minute = full_time.match_minute or FULL_LENGTH_MINUTES
        display = str(FULL_LENGTH_MINUTES)
    elif second_half is not None:
        phase = "Second Half"
        minute = HALF_LENGTH_MINUTES + _whole_minutes(second_half.time_of_occurrence, now)
        display = _display_with_stoppage(minute, FULL_LENGTH_MINUTES)
    elif half_time is not None:
        phase = "Half-Time"
        if half_time.match_minute is not None:
            minute = half_time.match_minute
        elif kick_off is not None:
            minute = _whole_minutes(kick_off.time_of_occurrence, half_time.time_of_occurrence)
        display = str(minute)
    elif kick_off is not None:
        phase = "First Half"
        minute = _whole_minutes(kick_off.time_of_occurrence, now)
        display = _display_with_stoppage(minute, HALF_LENGTH_MINUTES)

    return MatchSummary(
        phase=phase,
        home_score=home_score,
        away_score=away_score,
        current_minute=minute,
        display_time=display,
        kick_off_first_half=kick_off.time_of_occurrence if kick_off else None,
        half_time=half_time.time_of_occurrence if half_time else None,
        kick_off_second_half=second_half.time_of_occurrence if second_half else None,
        full_time=full_time.time_of_occurrence if full_time else None,
    )
