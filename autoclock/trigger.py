"""
Context Trigger: clock in automatically when the user switches context.

Subscribed to the host's "context changed" event while enabled. Each event
runs the guard sequence below; the first failing guard ends evaluation
silently (debug log only):

1. the context is not the picker's own prompt
2. no clock is running
3. no selection is already open
4. the context is not suppressed
5. the context is backed by an existing file
6. the context's project is eligible (allow-list or `always`)

When every guard passes the interactive selector runs. A completed
selection clears the suppression set; a cancelled one suppresses the
context and prints one informational line; a failed one (for example no
task sources configured) is reported as an error. The selection flag is
reset on every exit path, including unexpected exceptions.

The "session started" event installs idle auto-stop on the clock once per
enable. Without an idle window, a single warning is shown at enable time.
"""

from __future__ import annotations

import threading
from typing import Optional

from ._config import get_allow_list, get_always, get_resolver_name
from ._logging import log_debug
from .context import TriggerContext
from .events import CONTEXT_CHANGED, SESSION_STARTED
from .host import ERROR, INFO, WARNING, Host
from .match import is_eligible
from .project_detector import ProjectResolver, get_resolver, resolve_project
from .selector import SelectionResult, TaskSelector
from .suppression import SuppressionSet


class ContextTrigger:
    """Owns the suppression set, the selection flag and the active resolver."""

    def __init__(self, host: Host, selector: Optional[TaskSelector] = None):
        self.host = host
        self.selector = selector if selector is not None else TaskSelector(host)
        self.suppressed = SuppressionSet()
        self.selecting = False
        self.resolver: Optional[ProjectResolver] = None
        self.enabled = False
        self._subscriptions: list = []
        self._idle_installed = False
        # Serializes evaluations for hosts that dispatch from several threads
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def enable(self) -> None:
        """Subscribe to host events. Enabling twice keeps one subscription.

        Raises:
            ConfigurationError: If the configured resolver is unknown
        """
        if self.enabled:
            return
        self.resolver = get_resolver(get_resolver_name(self.host.config))
        self.suppressed.clear()
        self.selecting = False
        self._idle_installed = False

        bus = self.host.bus
        self._subscriptions = [
            bus.subscribe(CONTEXT_CHANGED, self.on_context_changed),
            bus.subscribe(SESSION_STARTED, self.on_session_started),
        ]
        self.enabled = True

        if self.host.idle_minutes() is None:
            self.host.notify(
                WARNING,
                "clock.idle_minutes is not set: clocks will not stop automatically when idle",
            )
        log_debug("trigger", f"enabled (resolver={self.resolver.name})")

    def disable(self) -> None:
        """Unsubscribe and reset all trigger state."""
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []
        self.suppressed.clear()
        self.selecting = False
        self._idle_installed = False
        self.resolver = None
        self.enabled = False
        log_debug("trigger", "disabled")

    def toggle(self) -> bool:
        """Flip enabled state; returns the new state."""
        if self.enabled:
            self.disable()
        else:
            self.enable()
        return self.enabled

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _current_resolver(self) -> ProjectResolver:
        name = get_resolver_name(self.host.config)
        if self.resolver is None or self.resolver.name != name:
            self.resolver = get_resolver(name)
        return self.resolver

    def matches_project(self, context: TriggerContext) -> bool:
        """Guard 6: project matching."""
        cfg = self.host.config
        always = get_always(cfg)
        if always:
            return True
        project = resolve_project(self._current_resolver(), context)
        log_debug("trigger", f"{context} belongs to project {project!r}")
        return is_eligible(project, get_allow_list(cfg), always)

    def should_trigger(self, context: TriggerContext) -> bool:
        """Run guards 1-6 in order, stopping at the first that fails."""
        if self.host.is_prompt_surface(context):
            log_debug("trigger", f"{context}: prompt surface")
            return False
        if self.host.is_session_active():
            log_debug("trigger", f"{context}: clock already running")
            return False
        if self.selecting:
            log_debug("trigger", f"{context}: selection in progress")
            return False
        if context in self.suppressed:
            log_debug("trigger", f"{context}: suppressed")
            return False
        if not self.host.context_exists(context):
            log_debug("trigger", f"{context}: no backing file")
            return False
        if not self.matches_project(context):
            log_debug("trigger", f"{context}: project not eligible")
            return False
        return True

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def on_context_changed(self, context: TriggerContext) -> Optional[SelectionResult]:
        """Handle one context switch. Returns the selection result, if one ran."""
        # A selection is open on another thread: same as guard 3
        if not self._lock.acquire(blocking=False):
            return None
        try:
            if not self.should_trigger(context):
                return None
            return self._run_selection(context)
        finally:
            self._lock.release()

    def _run_selection(self, context: TriggerContext) -> SelectionResult:
        self.selecting = True
        try:
            result = self.selector.select()
            if result.is_completed:
                self.suppressed.clear()
            elif result.is_cancelled:
                self.suppressed.add(context)
                self.host.notify(INFO, f"Auto clock-in suppressed for {context}")
            else:
                self.host.notify(ERROR, result.reason)
            return result
        finally:
            self.selecting = False

    def on_session_started(self, location=None) -> None:
        """Install idle auto-stop the first time a clock starts."""
        if self._idle_installed:
            return
        minutes = self.host.idle_minutes()
        if minutes is None:
            return
        self.host.install_idle_stop(minutes)
        self._idle_installed = True

    # -------------------------------------------------------------------------
    # Manual command
    # -------------------------------------------------------------------------

    def select_task_now(self) -> SelectionResult:
        """Run the selector regardless of guards (suppression untouched).

        The selection flag is still raised so a context switch arriving
        while this prompt is open does not open a second one.
        """
        previous = self.selecting
        self.selecting = True
        try:
            result = self.selector.select()
        finally:
            self.selecting = previous
        if result.is_failed:
            self.host.notify(ERROR, result.reason)
        elif result.is_cancelled:
            self.host.notify(INFO, "Task selection cancelled")
        return result
