"""
Exceptions shared across autoclock.

Only configuration problems are meant to reach the user loudly. A cancelled
prompt is control flow, not a failure, and is converted into a
SelectionResult by the selector before it reaches the trigger.
"""

from __future__ import annotations


class AutoclockError(Exception):
    """Base class for autoclock errors."""

    pass


class ConfigurationError(AutoclockError):
    """Raised when settings make an operation impossible (e.g. no task sources)."""

    pass


class SelectionCancelled(AutoclockError):
    """Raised by a picker when the user dismisses the prompt."""

    pass


class LocationNotFoundError(AutoclockError):
    """Raised when a Location no longer points at a headline in its source."""

    def __init__(self, location, reason: str = "headline not found"):
        self.location = location
        super().__init__(f"{location}: {reason}")
