"""Keyword heuristics for radio traffic.

The radio bridge depends only on the RadioAnalyzer protocol; KeywordRadioAnalyzer
is the default implementation. Swap in a model-backed analyzer without touching
the bridge.
"""

import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum
from typing import Protocol, runtime_checkable


class RadioCategory(StrEnum):
    EMERGENCY = "emergency"
    INCIDENT = "incident"
    ROUTINE = "routine"
    COORDINATION = "coordination"
    OTHER = "other"


@dataclass(frozen=True)
class RadioMessageData:
    """Detached copy of a radio_messages row."""

    id: int
    event_id: str
    message: str
    channel: str = ""
    from_callsign: str | None = None
    to_callsign: str | None = None
    transcription: str | None = None
    category: str | None = None
    priority: str | None = None
    incident_id: int | None = None
    created_at: datetime | None = None

    @property
    def text(self) -> str:
        return self.message or self.transcription or ""

    @classmethod
    def from_row(cls, row) -> "RadioMessageData":
        return cls(
            id=row.id,
            event_id=row.event_id,
            message=row.message or "",
            channel=row.channel or "",
            from_callsign=row.from_callsign,
            to_callsign=row.to_callsign,
            transcription=row.transcription,
            category=row.category,
            priority=row.priority,
            incident_id=row.incident_id,
            created_at=row.created_at,
        )

    def with_analysis(self, category: str, priority: str) -> "RadioMessageData":
        return replace(self, category=category, priority=priority)


@dataclass(frozen=True)
class RadioAnalysis:
    category: RadioCategory
    priority: str
    confidence: float


@dataclass(frozen=True)
class IncidentDetails:
    type: str
    description: str
    priority: str
    location: str | None = None


@runtime_checkable
class RadioAnalyzer(Protocol):
    """Text classification collaborator used by the radio bridge."""

    def analyze_message(self, text: str) -> RadioAnalysis:
        """Categorise a transcript and assign a priority."""
        ...

    def should_create_incident(self, message: RadioMessageData) -> bool:
        """Decide whether a message warrants an incident."""
        ...

    def extract_incident_details(self, message: RadioMessageData) -> IncidentDetails:
        """Pull type, priority, location and description from a message."""
        ...


EMERGENCY_KEYWORDS = (
    "emergency", "urgent", "critical", "immediate", "asap", "as soon as possible",
    "medical", "ambulance", "injury", "accident", "unconscious", "bleeding",
    "fire", "smoke", "evacuate", "evacuation",
    "fight", "violence", "assault", "weapon", "knife", "gun",
    "bomb", "threat", "suspicious", "package",
    "overdose", "drug", "alcohol",
)

INCIDENT_KEYWORDS = (
    "incident", "disturbance", "disorder", "breach", "violation",
    "ejection", "refusal", "arrest", "detained",
    "lost", "found", "missing", "separated",
    "crowd", "surge", "stampede", "crush",
    "barrier", "fence", "broken",
)

ROUTINE_KEYWORDS = (
    "routine", "normal", "standard", "regular",
    "update", "status", "check", "confirm",
    "copy", "received", "understood", "roger",
)

COORDINATION_KEYWORDS = ("coordinate", "meet", "location", "position")
URGENCY_KEYWORDS = ("now", "immediately", "urgent", "asap")

# Checked in order; first hit wins
INCIDENT_TYPE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Medical", ("medical", "ambulance", "injury", "unconscious")),
    ("Disorder", ("fight", "violence", "assault")),
    ("Fire", ("fire", "smoke")),
    ("Lost/Found", ("lost", "missing", "separated")),
    ("Crowd Management", ("crowd", "surge", "crush")),
    ("Ejection/Refusal", ("ejection", "refusal")),
)

_LOCATION_PATTERN = re.compile(r"(?:at|location|position|zone|stand|gate|area)\s+([A-Z0-9\s]+)", re.IGNORECASE)


def _count_hits(text: str, keywords: tuple[str, ...]) -> int:
    return sum(1 for keyword in keywords if keyword in text)


class KeywordRadioAnalyzer:
    """Substring keyword matching over lower-cased transcripts."""

    def analyze_message(self, text: str) -> RadioAnalysis:
        lower = text.lower()
        emergency_hits = _count_hits(lower, EMERGENCY_KEYWORDS)
        incident_hits = _count_hits(lower, INCIDENT_KEYWORDS)
        routine_hits = _count_hits(lower, ROUTINE_KEYWORDS)

        category = RadioCategory.OTHER
        priority = "medium"
        confidence = 0.5

        if emergency_hits:
            category = RadioCategory.EMERGENCY
            priority = "critical" if emergency_hits >= 2 else "high"
            confidence = min(0.9, 0.5 + emergency_hits * 0.1)
        elif incident_hits:
            category = RadioCategory.INCIDENT
            priority = "high" if incident_hits >= 2 else "medium"
            confidence = min(0.85, 0.5 + incident_hits * 0.1)
        elif routine_hits:
            category = RadioCategory.ROUTINE
            priority = "low"
            confidence = min(0.8, 0.5 + routine_hits * 0.1)
        elif _count_hits(lower, COORDINATION_KEYWORDS):
            category = RadioCategory.COORDINATION
            confidence = 0.6

        # Urgency escalates low and medium both the whole way to high
        if _count_hits(lower, URGENCY_KEYWORDS):
            if priority == "low":
                priority = "medium"
            if priority == "medium":
                priority = "high"

        return RadioAnalysis(category=category, priority=priority, confidence=round(confidence, 2))

    def should_create_incident(self, message: RadioMessageData) -> bool:
        if message.category in (RadioCategory.EMERGENCY, RadioCategory.INCIDENT):
            return True
        if message.priority in ("critical", "high"):
            return True
        return _count_hits(message.text.lower(), INCIDENT_KEYWORDS) > 0

    def extract_incident_details(self, message: RadioMessageData) -> IncidentDetails:
        text = message.text
        analysis = self.analyze_message(text)

        location_match = _LOCATION_PATTERN.search(text)
        location = location_match.group(1).strip() if location_match else None

        lower = text.lower()
        incident_type = next(
            (name for name, keywords in INCIDENT_TYPE_RULES if _count_hits(lower, keywords)),
            "Other",
        )

        return IncidentDetails(
            type=incident_type,
            description=text,
            priority=analysis.priority,
            location=location or None,
        )
