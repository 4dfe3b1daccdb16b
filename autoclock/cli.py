"""
autoclock command line.

Usage:
    autoclock select                      pick a task now and clock in
    autoclock watch [--events FIFO]       auto clock-in on focus changes
    autoclock out                         clock out of the running task
    autoclock scan SOURCE [--query Q]     list matching tasks in an org file
    autoclock resolve [PATH] [--resolver NAME]

`watch` reads one focused file path per line from --events. Editors
write focus changes to a FIFO; the picker then prompts on the terminal.
Reading events from stdin (the default) needs stdin to be a terminal,
since the picker reads its answers there too.

Lines starting with ":" are commands:

    :toggle   enable/disable automatic clock-in
    :select   pick a task now
    :out      clock out
    :quit     stop watching
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, TextIO

from ._config import config, get_allow_list, get_always, get_resolver_name
from ._logging import configure_logging, logger
from .context import TriggerContext
from .errors import ConfigurationError
from .events import CONTEXT_CHANGED
from .host import INFO, Host, terminal_host
from .match import is_eligible
from .project_detector import get_resolver, resolve_project
from .trigger import ContextTrigger


def setup_parser() -> argparse.ArgumentParser:
    """Standard parser: --debug on every invocation, one subcommand per action."""
    parser = argparse.ArgumentParser(
        prog="autoclock",
        description="Clock in to org tasks automatically when switching projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("select", help="Pick a task now and clock in")

    watch = sub.add_parser("watch", help="Clock in automatically on focus changes")
    watch.add_argument(
        "--events", default="-", help="File or FIFO with one focused path per line (default: stdin)"
    )

    sub.add_parser("out", help="Clock out of the running task")

    scan = sub.add_parser("scan", help="List matching tasks in an org file")
    scan.add_argument("source", help="Org file")
    scan.add_argument("--query", "-q", default=None, help="Match query (default: tasks.query)")

    resolve = sub.add_parser("resolve", help="Show the project owning a path")
    resolve.add_argument("path", nargs="?", default=None, help="File or directory (default: cwd)")
    resolve.add_argument("--resolver", default=None, help="Resolver name (default: projects.resolver)")

    return parser


# =============================================================================
# COMMANDS
# =============================================================================


def cmd_select(host: Host) -> int:
    result = ContextTrigger(host).select_task_now()
    return 0 if result.is_completed else 1


def cmd_out(host: Host) -> int:
    if not host.is_session_active():
        print("No running clock", file=sys.stderr)
        return 1
    location = host.clock.location
    duration = host.clock.stop()
    minutes = int(duration.total_seconds() // 60) if duration else 0
    print(f"✓ Clocked out of {'/'.join(location.outline)} after {minutes} min")
    return 0


def cmd_scan(host: Host, source: str, query: Optional[str]) -> int:
    entries = host.scan(source, query if query is not None else host.query())
    for entry in entries:
        print(f"{entry.location.lineno:>5}  {entry.display}")
    if not entries:
        print("No matching tasks", file=sys.stderr)
    return 0


def cmd_resolve(path: Optional[str], resolver_name: Optional[str]) -> int:
    context = TriggerContext.from_path(path or os.getcwd())
    resolver = get_resolver(resolver_name or get_resolver_name(config))
    project = resolve_project(resolver, context)
    eligible = is_eligible(project, get_allow_list(config), get_always(config))
    print(f"Project: {project or '(none)'}")
    print(f"Resolver: {resolver.name}")
    print(f"Auto clock-in: {'yes' if eligible else 'no'}")
    return 0


def _handle_command(line: str, trigger: ContextTrigger, host: Host) -> bool:
    """Run a ':' command from the event stream. Returns False to stop."""
    command = line[1:].strip().lower()
    if command == "quit":
        return False
    if command == "toggle":
        state = "enabled" if trigger.toggle() else "disabled"
        host.notify(INFO, f"Auto clock-in {state}")
    elif command == "select":
        trigger.select_task_now()
    elif command == "out":
        if host.is_session_active():
            host.clock.stop()
    else:
        logger.warning("Unknown command: %s", line)
    return True


def watch_stream(stream: TextIO, trigger: ContextTrigger, host: Host) -> None:
    """Feed focus changes from `stream` to the host's event bus."""
    for raw in stream:
        line = raw.strip()
        if not line:
            continue
        if line.startswith(":"):
            if not _handle_command(line, trigger, host):
                return
            continue
        host.clock.touch()
        host.bus.emit(CONTEXT_CHANGED, TriggerContext.from_path(line))


def cmd_watch(host: Host, events: str) -> int:
    if events == "-" and not sys.stdin.isatty():
        # The picker reads its answers from stdin
        raise ConfigurationError("watch needs --events FILE when stdin is not a terminal")
    trigger = ContextTrigger(host)
    trigger.enable()
    stream = sys.stdin if events == "-" else open(events, encoding="utf-8")
    try:
        watch_stream(stream, trigger, host)
    except KeyboardInterrupt:
        print(file=sys.stderr)
    finally:
        trigger.disable()
        if stream is not sys.stdin:
            stream.close()
    logger.info("Stopped watching")
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = setup_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    try:
        if args.command == "resolve":
            return cmd_resolve(args.path, args.resolver)

        host = terminal_host()
        if args.command == "select":
            return cmd_select(host)
        if args.command == "out":
            return cmd_out(host)
        if args.command == "scan":
            return cmd_scan(host, args.source, args.query)
        if args.command == "watch":
            return cmd_watch(host, args.events)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    parser.error(f"unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
