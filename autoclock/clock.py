"""
Org clock: the time-tracking session backend.

Clocking in writes an open CLOCK line into the entry's :LOGBOOK: drawer:

    * TODO Write report
    :LOGBOOK:
    CLOCK: [2026-10-19 Mon 10:02]
    :END:

Clocking out closes it in place:

    CLOCK: [2026-10-19 Mon 10:02]--[2026-10-19 Mon 10:17] =>  0:15

Idle auto-stop does not use timers. The host reports activity through
touch(); once the configured idle window has passed since the last
activity, the clock is stopped at that last-activity time.
"""

from __future__ import annotations

import os
import re
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional, Sequence

from ._logging import log_debug, logger
from .errors import LocationNotFoundError
from .events import SESSION_STARTED, EventBus
from .org_outline import Location, OrgDocument, load_org

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_OPEN_CLOCK_RE = re.compile(r"^(\s*)CLOCK: \[([^\]]+)\]\s*$")
_PLANNING_RE = re.compile(r"^\s*(SCHEDULED|DEADLINE|CLOSED):")
_DRAWER_START_RE = re.compile(r"^\s*:([\w-]+):\s*$")
_DRAWER_END_RE = re.compile(r"^\s*:END:\s*$", re.IGNORECASE)


def format_timestamp(moment: datetime) -> str:
    """Inactive org timestamp, e.g. [2026-10-19 Mon 10:02]."""
    return f"[{moment:%Y-%m-%d} {_WEEKDAYS[moment.weekday()]} {moment:%H:%M}]"


def format_duration(delta: timedelta) -> str:
    minutes = max(0, int(delta.total_seconds() // 60))
    return f"{minutes // 60:2d}:{minutes % 60:02d}"


def _write_lines(path: str, lines: Sequence[str]) -> None:
    """Atomic rewrite of a task source."""
    text = "\n".join(lines) + "\n"
    target = Path(path)
    try:
        fd, tmp_path = tempfile.mkstemp(dir=target.parent, suffix=".org")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, target)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    except OSError:
        target.write_text(text, encoding="utf-8")


def _logbook_insert_index(doc: OrgDocument, headline_lineno: int, end_lineno: int) -> tuple[int, bool]:
    """Where to put a new CLOCK line for an entry.

    Returns (0-based index, drawer_exists). Skips planning lines and a
    leading :PROPERTIES: drawer; reuses an existing :LOGBOOK: drawer.
    """
    lines = doc.lines
    idx = headline_lineno  # 0-based index of the line after the headline
    end = end_lineno - 1

    while idx < end and _PLANNING_RE.match(lines[idx]):
        idx += 1

    while idx < end:
        match = _DRAWER_START_RE.match(lines[idx])
        if not match:
            break
        name = match.group(1).upper()
        if name == "LOGBOOK":
            return idx + 1, True
        if name != "PROPERTIES":
            break
        # Skip to the drawer's :END:
        j = idx + 1
        while j < end and not _DRAWER_END_RE.match(lines[j]):
            j += 1
        idx = j + 1

    return idx, False


class OrgClock:
    """Single active clock over org task sources."""

    def __init__(
        self,
        bus: Optional[EventBus] = None,
        todo_keywords: Optional[Sequence[str]] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.bus = bus
        self.todo_keywords = todo_keywords
        self.now = now
        self.location: Optional[Location] = None
        self.started_at: Optional[datetime] = None
        self.idle_minutes: Optional[float] = None
        self.last_activity: Optional[datetime] = None

    def is_active(self) -> bool:
        return self.location is not None

    # -------------------------------------------------------------------------
    # Clock in / out
    # -------------------------------------------------------------------------

    def start(self, location: Location) -> None:
        """Clock in at `location`, clocking out of any running entry first.

        Raises:
            LocationNotFoundError: If the headline cannot be found
        """
        if self.is_active():
            self.stop()

        doc = load_org(location.source, self.todo_keywords)
        headline = location.resolve_in(doc)
        moment = self.now().replace(second=0, microsecond=0)

        idx, has_drawer = _logbook_insert_index(doc, headline.lineno, doc.entry_end(headline))
        clock_line = f"CLOCK: {format_timestamp(moment)}"
        if has_drawer:
            new_lines = [clock_line]
        else:
            new_lines = [":LOGBOOK:", clock_line, ":END:"]
        doc.lines[idx:idx] = new_lines
        _write_lines(doc.path, doc.lines)

        self.location = Location.of(doc, headline)
        self.started_at = moment
        self.last_activity = moment
        logger.info("Clocked in: %s", "/".join(headline.outline_path))

        if self.bus is not None:
            self.bus.emit(SESSION_STARTED, self.location)

    def _open_clock_index(self, doc: OrgDocument, location: Location) -> Optional[int]:
        """0-based index of the open CLOCK line for `location` in `doc`.

        When the headline was renamed or removed, falls back to the open
        CLOCK line stamped with this clock's start time.
        """
        try:
            headline = location.resolve_in(doc)
        except LocationNotFoundError:
            log_debug("clock", f"{location} not found, searching whole file")
            candidates = [
                idx
                for idx, line in enumerate(doc.lines)
                if (match := _OPEN_CLOCK_RE.match(line))
                and _parse_timestamp(match.group(2)) == self.started_at
            ]
            return candidates[0] if len(candidates) == 1 else None

        for idx in range(headline.lineno, doc.entry_end(headline) - 1):
            if _OPEN_CLOCK_RE.match(doc.lines[idx]):
                return idx
        return None

    def stop(self, at: Optional[datetime] = None) -> Optional[timedelta]:
        """Clock out, closing the open CLOCK line. Returns the clocked duration.

        The clock is inactive afterwards even when the line cannot be
        closed; that case is logged as a warning.
        """
        if not self.is_active():
            return None

        location, started = self.location, self.started_at
        moment = (at or self.now()).replace(second=0, microsecond=0)
        duration = moment - started if started else timedelta(0)

        try:
            doc = load_org(location.source, self.todo_keywords)
            idx = self._open_clock_index(doc, location)
            if idx is None:
                logger.warning("No open CLOCK line for %s in %s", "/".join(location.outline), location.source)
            else:
                match = _OPEN_CLOCK_RE.match(doc.lines[idx])
                indent, opened = match.group(1), match.group(2)
                doc.lines[idx] = (
                    f"{indent}CLOCK: [{opened}]--{format_timestamp(moment)} => "
                    f"{format_duration(duration)}"
                )
                _write_lines(doc.path, doc.lines)
        except OSError as e:
            logger.warning("Cannot close clock in %s: %s", location.source, e)
        finally:
            self.location = None
            self.started_at = None

        logger.info("Clocked out: %s (%s)", "/".join(location.outline), format_duration(duration).strip())
        return duration

    # -------------------------------------------------------------------------
    # Idle auto-stop
    # -------------------------------------------------------------------------

    def install_idle_stop(self, minutes: float) -> bool:
        """Enable idle auto-stop. Returns False if already installed with this window."""
        if self.idle_minutes == minutes:
            return False
        self.idle_minutes = minutes
        log_debug("clock", f"idle auto-stop after {minutes} minutes")
        return True

    def check_idle(self, now: Optional[datetime] = None) -> bool:
        """Stop the clock if idle too long. Returns True when it stopped."""
        if not self.is_active() or not self.idle_minutes or self.last_activity is None:
            return False
        now = now or self.now()
        if now - self.last_activity < timedelta(minutes=self.idle_minutes):
            return False
        logger.info("Idle for %s minutes, clocking out", self.idle_minutes)
        self.stop(at=self.last_activity)
        return True

    def touch(self, now: Optional[datetime] = None) -> None:
        """Record user activity (checks the idle window first)."""
        now = now or self.now()
        self.check_idle(now)
        self.last_activity = now

    # -------------------------------------------------------------------------
    # Recovery
    # -------------------------------------------------------------------------

    def recover(self, sources: Sequence[str]) -> bool:
        """Adopt a clock left running in one of `sources` by an earlier process."""
        found = find_open_clock(sources, self.todo_keywords)
        if found is None:
            return False
        self.location, self.started_at = found
        self.last_activity = self.now()
        log_debug("clock", f"recovered running clock at {self.location}")
        return True


def _parse_timestamp(text: str) -> Optional[datetime]:
    """Parse '2026-10-19 Mon 10:02' (day name ignored)."""
    parts = text.split()
    if len(parts) < 2:
        return None
    try:
        return datetime.strptime(f"{parts[0]} {parts[-1]}", "%Y-%m-%d %H:%M")
    except ValueError:
        return None


def find_open_clock(
    sources: Sequence[str], todo_keywords: Optional[Sequence[str]] = None
) -> Optional[tuple[Location, datetime]]:
    """First open CLOCK line across `sources`, as (location, start time)."""
    for source in sources:
        try:
            doc = load_org(source, todo_keywords)
        except OSError as e:
            log_debug("clock", f"skipping unreadable source {source}: {e}")
            continue

        owner = None
        headlines = iter(doc.headlines)
        upcoming = next(headlines, None)
        for idx, line in enumerate(doc.lines):
            while upcoming is not None and upcoming.lineno <= idx + 1:
                owner, upcoming = upcoming, next(headlines, None)
            match = _OPEN_CLOCK_RE.match(line)
            if match and owner is not None:
                started = _parse_timestamp(match.group(2))
                if started is not None:
                    return Location.of(doc, owner), started
    return None
