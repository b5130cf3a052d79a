# ABOUTME: Declares the exception hierarchy raised by the scoring pipeline.
# ABOUTME: All errors subclass ValueError so callers can treat them as bad input.


class ScoringError(ValueError):
    """Base class for scoring failures caused by the caller's input."""


class InsufficientDataError(ScoringError):
    """Raised when a session has too few raw events to be scored."""

    def __init__(self, event_count: int, min_events: int):
        self.event_count = event_count
        self.min_events = min_events
        super().__init__(
            f"Insufficient data, please replay the game "
            f"({event_count} events recorded, at least {min_events} required)."
        )


class EventPayloadError(ScoringError):
    """Raised when a raw event or its payload has the wrong shape."""


class ConfigError(ScoringError):
    """Raised when a scoring configuration file is inconsistent."""
