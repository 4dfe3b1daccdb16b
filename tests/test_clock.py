"""Tests for the org clock session backend."""

from datetime import datetime, timedelta

from autoclock.clock import OrgClock, find_open_clock, format_duration, format_timestamp
from autoclock.events import SESSION_STARTED, EventBus
from autoclock.org_outline import Location, load_org

MONDAY = datetime(2026, 10, 19, 10, 2, 30)


class FakeNow:
    def __init__(self, start):
        self.value = start

    def __call__(self):
        return self.value

    def advance(self, minutes):
        self.value += timedelta(minutes=minutes)


def location_of(org_file, index):
    doc = load_org(str(org_file))
    return Location.of(doc, doc.headlines[index])


class TestFormatting:
    def test_timestamp(self):
        assert format_timestamp(MONDAY) == "[2026-10-19 Mon 10:02]"

    def test_duration(self):
        assert format_duration(timedelta(minutes=75)) == " 1:15"
        assert format_duration(timedelta(hours=12, minutes=5)) == "12:05"


class TestClockIn:
    def test_start_creates_logbook_drawer(self, org_file):
        # Arrange
        clock = OrgClock(now=FakeNow(MONDAY))

        # Act
        clock.start(location_of(org_file, 1))

        # Assert
        lines = org_file.read_text().splitlines()
        idx = lines.index("** TODO Collect numbers")
        assert lines[idx + 1 : idx + 4] == [":LOGBOOK:", "CLOCK: [2026-10-19 Mon 10:02]", ":END:"]
        assert clock.is_active()

    def test_start_reuses_existing_drawer_after_planning_and_properties(self, tmp_path):
        path = tmp_path / "t.org"
        path.write_text(
            "* TODO Task\n"
            "SCHEDULED: <2026-10-19 Mon>\n"
            ":PROPERTIES:\n:ID: 1\n:END:\n"
            ":LOGBOOK:\nCLOCK: [2026-10-18 Sun 09:00]--[2026-10-18 Sun 10:00] =>  1:00\n:END:\n"
            "Body text\n"
        )
        clock = OrgClock(now=FakeNow(MONDAY))

        clock.start(location_of(path, 0))

        lines = path.read_text().splitlines()
        assert lines[5] == ":LOGBOOK:"
        assert lines[6] == "CLOCK: [2026-10-19 Mon 10:02]"
        assert lines[7].startswith("CLOCK: [2026-10-18 Sun 09:00]--")
        assert lines.count(":LOGBOOK:") == 1

    def test_start_emits_session_started(self, org_file):
        bus = EventBus()
        seen = []
        bus.subscribe(SESSION_STARTED, seen.append)
        clock = OrgClock(bus=bus, now=FakeNow(MONDAY))
        location = location_of(org_file, 0)

        clock.start(location)

        assert seen == [location]

    def test_starting_another_task_clocks_out_first(self, org_file):
        now = FakeNow(MONDAY)
        clock = OrgClock(now=now)
        clock.start(location_of(org_file, 0))
        now.advance(30)

        clock.start(location_of(org_file, 1))

        text = org_file.read_text()
        assert "CLOCK: [2026-10-19 Mon 10:02]--[2026-10-19 Mon 10:32] =>  0:30" in text
        assert clock.location.outline == ("Write report", "Collect numbers")


class TestClockOut:
    def test_stop_closes_the_open_line(self, org_file):
        now = FakeNow(MONDAY)
        clock = OrgClock(now=now)
        clock.start(location_of(org_file, 0))
        now.advance(15)

        duration = clock.stop()

        assert duration == timedelta(minutes=15)
        assert "--[2026-10-19 Mon 10:17] =>  0:15" in org_file.read_text()
        assert not clock.is_active()

    def test_stop_without_clock_is_noop(self):
        assert OrgClock().stop() is None

    def test_stop_after_headline_renamed(self, org_file):
        # Arrange
        now = FakeNow(MONDAY)
        clock = OrgClock(now=now)
        clock.start(location_of(org_file, 0))
        org_file.write_text(org_file.read_text().replace("Write report", "Write the report"))
        now.advance(15)

        # Act
        duration = clock.stop()

        # Assert
        text = org_file.read_text()
        assert duration == timedelta(minutes=15)
        assert "--[2026-10-19 Mon 10:17] =>  0:15" in text
        assert find_open_clock([str(org_file)]) is None
        assert not clock.is_active()

    def test_idle_stop_survives_removed_headline(self, org_file):
        now = FakeNow(MONDAY)
        clock = OrgClock(now=now)
        clock.install_idle_stop(10)
        clock.start(location_of(org_file, 0))
        org_file.write_text("* TODO Something else\n")
        now.advance(30)

        clock.touch()

        assert not clock.is_active()
        assert org_file.read_text() == "* TODO Something else\n"

    def test_stop_with_missing_source(self, org_file):
        clock = OrgClock(now=FakeNow(MONDAY))
        clock.start(location_of(org_file, 0))
        org_file.unlink()

        assert clock.stop() == timedelta(0)
        assert not clock.is_active()

class TestIdleStop:
    def test_no_idle_stop_until_installed(self, org_file):
        now = FakeNow(MONDAY)
        clock = OrgClock(now=now)
        clock.start(location_of(org_file, 0))
        now.advance(120)

        assert clock.check_idle() is False
        assert clock.is_active()

    def test_install_is_idempotent(self):
        clock = OrgClock()
        assert clock.install_idle_stop(10) is True
        assert clock.install_idle_stop(10) is False

    def test_idle_clock_stops_at_last_activity(self, org_file):
        # Arrange
        now = FakeNow(MONDAY)
        clock = OrgClock(now=now)
        clock.install_idle_stop(10)
        clock.start(location_of(org_file, 0))
        now.advance(5)
        clock.touch()

        # Act
        now.advance(30)
        clock.touch()

        # Assert
        assert not clock.is_active()
        assert "--[2026-10-19 Mon 10:07] =>  0:05" in org_file.read_text()

    def test_activity_inside_window_keeps_clock(self, org_file):
        now = FakeNow(MONDAY)
        clock = OrgClock(now=now)
        clock.install_idle_stop(10)
        clock.start(location_of(org_file, 0))

        for _ in range(5):
            now.advance(8)
            clock.touch()

        assert clock.is_active()


class TestRecover:
    def test_finds_open_clock_in_sources(self, org_file):
        OrgClock(now=FakeNow(MONDAY)).start(location_of(org_file, 1))

        location, started = find_open_clock([str(org_file)])

        assert location.outline == ("Write report", "Collect numbers")
        assert started == datetime(2026, 10, 19, 10, 2)

    def test_recover_adopts_running_clock(self, org_file):
        OrgClock(now=FakeNow(MONDAY)).start(location_of(org_file, 0))
        clock = OrgClock(now=FakeNow(MONDAY + timedelta(minutes=20)))

        assert clock.recover([str(org_file)]) is True
        assert clock.is_active()
        assert clock.stop() == timedelta(minutes=20)

    def test_nothing_to_recover(self, org_file, tmp_path):
        clock = OrgClock()
        assert clock.recover([str(org_file), str(tmp_path / "missing.org")]) is False
        assert not clock.is_active()
