class IncidentLogError(Exception):
    """Base exception for the incident log service."""

    pass


class ValidationError(IncidentLogError):
    """Raised when a payload fails a client-fixable rule. Nothing is persisted."""

    def __init__(self, errors: list[str] | str):
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("; ".join(self.errors))


class DependencyFailure(IncidentLogError):
    """Raised when a non-critical lookup (profile, callsign, event) fails."""

    pass


class PersistenceFailure(IncidentLogError):
    """Raised when the store rejects or cannot complete a write."""

    pass


class LogNotFound(IncidentLogError):
    """Raised when an incident log id does not exist."""

    def __init__(self, log_id: int):
        self.log_id = log_id
        super().__init__(f"Incident log {log_id} not found")


class AmendmentNotAllowed(IncidentLogError):
    """Raised when a user may not amend a given log."""

    pass


class LockTimeoutError(IncidentLogError):
    """Raised when the per-event log number lock cannot be acquired in time."""

    def __init__(self, event_id: str, waited: float):
        self.event_id = event_id
        self.waited = waited
        super().__init__(f"Timed out after {waited:.1f}s waiting for log number lock on event '{event_id}'")


class RadioMessageNotFound(IncidentLogError):
    """Raised when a radio message id does not exist."""

    def __init__(self, message_id: int):
        self.message_id = message_id
        super().__init__(f"Radio message {message_id} not found")
