"""
Interactive Selector: two-stage task choice, then clock in.

Stage 1 picks a task source from the configured list, stage 2 picks one
of its matching entries. Blocking: select() returns only once the user
has chosen or dismissed a prompt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ._logging import log_debug
from .errors import ConfigurationError, LocationNotFoundError, SelectionCancelled
from .org_outline import Location

if TYPE_CHECKING:
    from .host import Host

COMPLETED = "completed"
CANCELLED = "cancelled"
FAILED = "failed"


@dataclass
class SelectionResult:
    """Outcome of one interactive selection.

    Attributes:
        outcome: "completed", "cancelled" or "failed"
        location: Where the clock was started (completed only)
        reason: Why the selection did not complete
    """

    outcome: str = COMPLETED
    location: Optional[Location] = None
    reason: str = ""

    @staticmethod
    def completed(location: Location) -> "SelectionResult":
        return SelectionResult(outcome=COMPLETED, location=location)

    @staticmethod
    def cancelled(reason: str = "") -> "SelectionResult":
        return SelectionResult(outcome=CANCELLED, reason=reason)

    @staticmethod
    def failed(reason: str) -> "SelectionResult":
        return SelectionResult(outcome=FAILED, reason=reason)

    @property
    def is_completed(self) -> bool:
        return self.outcome == COMPLETED

    @property
    def is_cancelled(self) -> bool:
        return self.outcome == CANCELLED

    @property
    def is_failed(self) -> bool:
        return self.outcome == FAILED


class TaskSelector:
    """Source -> entry -> clock in."""

    def __init__(self, host: "Host"):
        self.host = host

    def _choose_source(self) -> str:
        sources = self.host.task_sources()
        if not sources:
            raise ConfigurationError(
                "No task sources configured (set tasks.sources in the settings file)"
            )
        idx = self.host.pick("Task source", sources)
        return sources[idx]

    def _choose_entry(self, source: str):
        query = self.host.query()
        entries = self.host.scan(source, query)
        log_debug("selector", f"{len(entries)} entries in {source} for {query!r}")
        if not entries:
            raise SelectionCancelled(f"no tasks matching {query!r} in {source}")
        idx = self.host.pick("Task", [entry.display for entry in entries])
        return entries[idx]

    def select(self) -> SelectionResult:
        """Run both stages and start the session on success."""
        try:
            source = self._choose_source()
            entry = self._choose_entry(source)
            self.host.start_session(entry.location)
        except SelectionCancelled as e:
            return SelectionResult.cancelled(str(e))
        except ConfigurationError as e:
            return SelectionResult.failed(str(e))
        except LocationNotFoundError as e:
            return SelectionResult.failed(f"Task moved or deleted: {e}")
        except OSError as e:
            return SelectionResult.failed(f"Cannot read task source: {e}")
        return SelectionResult.completed(entry.location)
