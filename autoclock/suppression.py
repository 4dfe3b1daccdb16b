"""
Suppression state for the context trigger.

A context whose selection prompt was dismissed is suppressed so switching
back to it does not immediately prompt again. The whole set is emptied on
the next successful clock-in, from any context. Nothing is persisted; a
fresh process (or disable/enable) starts clear.
"""

from __future__ import annotations

from typing import Iterator

from .context import TriggerContext


class SuppressionSet:
    """Contexts currently excluded from automatic activation."""

    def __init__(self):
        self._contexts: set = set()

    def __contains__(self, context: TriggerContext) -> bool:
        return context in self._contexts

    def __len__(self) -> int:
        return len(self._contexts)

    def __iter__(self) -> Iterator[TriggerContext]:
        return iter(self._contexts)

    def add(self, context: TriggerContext) -> None:
        """Suppress a context after a cancelled selection."""
        self._contexts.add(context)

    def clear(self) -> None:
        """Un-suppress everything (successful activation or reset)."""
        self._contexts.clear()
