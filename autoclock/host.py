"""
Host capabilities consumed by the trigger and the selector.

Host bundles what autoclock needs from the application it runs inside:
session state and clock-in, prompt-surface detection, the task-source
list and outline scanning, the idle window, a picker and a notifier.
terminal_host() wires the defaults: OrgClock, the terminal picker and
stderr notices.
"""

from __future__ import annotations

import sys
from typing import Callable, Optional, Sequence

from ._config import (
    ClockConfig,
    config,
    get_display,
    get_idle_minutes,
    get_query,
    get_task_sources,
    get_todo_keywords,
)
from ._picker import pick as terminal_pick
from .clock import OrgClock
from .context import TriggerContext
from .events import EventBus
from .org_outline import Location
from .task_scanner import TaskEntry, scan

Picker = Callable[[str, Sequence[str]], int]
Notifier = Callable[[str, str], None]

INFO = "info"
WARNING = "warning"
ERROR = "error"

_NOTICE_PREFIX = {INFO: "ℹ️ ", WARNING: "⚠️ ", ERROR: "❌"}


def print_notice(level: str, message: str) -> None:
    """Default notifier: one line on stderr."""
    print(f"{_NOTICE_PREFIX.get(level, '')} {message}", file=sys.stderr)


class Host:
    """Capabilities provided by the host application."""

    def __init__(
        self,
        bus: Optional[EventBus] = None,
        clock: Optional[OrgClock] = None,
        cfg: ClockConfig = config,
        picker: Picker = terminal_pick,
        notifier: Notifier = print_notice,
    ):
        self.bus = bus if bus is not None else EventBus()
        self.config = cfg
        self.clock = clock if clock is not None else OrgClock(
            bus=self.bus, todo_keywords=get_todo_keywords(cfg)
        )
        self.picker = picker
        self.notifier = notifier

    # Session capability
    def is_session_active(self) -> bool:
        return self.clock.is_active()

    def start_session(self, location: Location) -> None:
        self.clock.start(location)

    def install_idle_stop(self, minutes: float) -> None:
        self.clock.install_idle_stop(minutes)

    def idle_minutes(self) -> Optional[float]:
        return get_idle_minutes(self.config)

    # Contexts
    def is_prompt_surface(self, context: TriggerContext) -> bool:
        return context.is_prompt

    def context_exists(self, context: TriggerContext) -> bool:
        return context.is_live()

    # Task sources
    def task_sources(self) -> list[str]:
        return get_task_sources(self.config)

    def query(self) -> str:
        return get_query(self.config)

    def scan(self, source: str, query: str) -> list[TaskEntry]:
        display = get_display(self.config)
        return scan(
            source,
            query,
            todo_keywords=get_todo_keywords(self.config),
            separator=display.get("separator", "/"),
            width=int(display.get("breadcrumb_width", 80)),
            color=bool(display.get("color", True)),
        )

    # User interaction
    def pick(self, prompt: str, choices: Sequence[str]) -> int:
        return self.picker(prompt, choices)

    def notify(self, level: str, message: str) -> None:
        self.notifier(level, message)


def terminal_host(cfg: ClockConfig = config, picker: Optional[Picker] = None) -> Host:
    """Host for the command line: org clock, terminal picker, stderr notices.

    A clock left running in a task source by an earlier process is adopted.
    """
    host = Host(cfg=cfg, picker=picker or terminal_pick)
    host.clock.recover(host.task_sources())
    return host
