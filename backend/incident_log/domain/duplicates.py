"""Keyword-overlap duplicate detection for radio-derived incidents."""

import math
from collections.abc import Sequence
from dataclasses import dataclass

MIN_KEYWORD_LENGTH = 4  # words of 3 characters or fewer are ignored
DEFAULT_MATCH_RATIO = 0.5


@dataclass(frozen=True)
class RecentIncident:
    id: int
    occurrence: str | None


def extract_keywords(text: str | None) -> list[str]:
    """Lower-cased whitespace tokens longer than three characters."""
    if not text:
        return []
    return [word for word in text.lower().split() if len(word) >= MIN_KEYWORD_LENGTH]


def keyword_matches(candidate: list[str], existing: list[str]) -> list[str]:
    """Candidate keywords found in ``existing`` by substring in either direction."""
    return [kw for kw in candidate if any(ekw in kw or kw in ekw for ekw in existing)]


def find_duplicate(
    message_text: str | None,
    recent_incidents: Sequence[RecentIncident],
    match_ratio: float = DEFAULT_MATCH_RATIO,
) -> int | None:
    """Return the id of the first recent incident the message duplicates, else None.

    A message duplicates an incident when at least ``ceil(match_ratio * n)`` of
    its ``n`` keywords match the incident's occurrence keywords. Messages with
    no keywords never match.
    """
    message_keywords = extract_keywords(message_text)
    if not message_keywords:
        return None

    threshold = math.ceil(len(message_keywords) * match_ratio)
    for incident in recent_incidents:
        incident_keywords = extract_keywords(incident.occurrence)
        if len(keyword_matches(message_keywords, incident_keywords)) >= threshold:
            return incident.id

    return None
