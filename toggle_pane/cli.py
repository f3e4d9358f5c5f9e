"""CLI interface for toggle-pane.

Entry point: toggle-pane [--home PATH] <subcommand> [args...]

tmux calls `toggle-pane toggle --pane %N` from the key binding installed
by `toggle-pane bind`.
"""

import argparse
import asyncio
import json
import logging
import os
import shlex
import shutil
import sys
from pathlib import Path


def _executable() -> str:
    """Command tmux should run: the installed script, or this interpreter as a module."""
    found = shutil.which("toggle-pane")
    if found:
        return found
    return f"{shlex.quote(sys.executable)} -m toggle_pane.cli"


# --- Subcommands ---


def cmd_toggle(args) -> int:
    """Toggle the terminal pane for the tab containing --pane.

    tmux runs this from the key binding and puts the pane into view mode
    when run-shell exits non-zero, so every handled failure is logged and
    the exit status stays 0.
    """
    from . import config
    from .controller import ToggleAction, ToggleController
    from .errors import ConfigError, HostError
    from .logging_config import get_logger, setup_process_logging
    from .registry import StateRegistry
    from .snapshot import SnapshotWriter
    from .tmux import TmuxHost, parse_pane_id

    setup_process_logging("toggle", level=args.log_level, console=False)
    logger = get_logger(__name__)

    pane_arg = args.pane or os.environ.get("TMUX_PANE")
    if not pane_arg:
        logger.error("No pane given and TMUX_PANE is not set")
        return 0
    try:
        pane_id = parse_pane_id(pane_arg)
    except ValueError as e:
        logger.error(str(e))
        return 0

    try:
        options = config.get_options()
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 0

    host = TmuxHost()
    pane = host.find_pane(pane_id)
    if pane is None:
        logger.error(f"Invoking pane {pane_arg} not found")
        return 0

    snapshots = SnapshotWriter()
    registry = StateRegistry.load(config.state_file())
    for tab_id in registry.bind_server(host.server_id()):
        snapshots.clear(tab_id)

    controller = ToggleController(host, registry, snapshots, options)
    try:
        result = controller.on_toggle_trigger(args.window, pane)
    except HostError as e:
        logger.error(f"Toggle failed: {e}")
        return 0
    finally:
        registry.save(config.state_file())

    if result.action == ToggleAction.FAILED:
        logger.error(f"Toggle in tab {result.tab_id} left the layout unchanged")
    return 0


def cmd_bind(args) -> int:
    """Install the tmux key binding for the configured key chord."""
    from . import config
    from .errors import ConfigError, HostError
    from .tmux import bind_args, bind_toggle_key

    try:
        options = config.get_options()
    except ConfigError as e:
        print(f"Error: invalid configuration: {e}")
        return 1

    executable = _executable()
    if args.print:
        print(shlex.join(["tmux", *bind_args(options.key, options.mods, executable)]))
        return 0

    try:
        bind_toggle_key(options.key, options.mods, executable)
    except (HostError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    print(f"Bound {options.mods}+{options.key} to toggle the terminal pane.")
    return 0


def cmd_unbind(args) -> int:
    """Remove the tmux key binding."""
    from . import config
    from .errors import ConfigError, HostError
    from .tmux import unbind_toggle_key

    try:
        options = config.get_options()
        unbind_toggle_key(options.key, options.mods)
    except (ConfigError, HostError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    print(f"Unbound {options.mods}+{options.key}.")
    return 0


def cmd_status(args) -> int:
    """Show tracked tabs and their snapshots."""
    from . import config
    from .registry import StateRegistry
    from .snapshot import SnapshotWriter

    registry = StateRegistry.load(config.state_file())
    snapshots = SnapshotWriter().read_all()

    if not len(registry) and not snapshots:
        print("No tabs tracked.")
        print("  Press the toggle key in a tmux pane, or run 'toggle-pane bind' first.")
        return 0

    print("=== Tracked Tabs ===")
    for tab_id in sorted(set(registry.tab_ids()) | set(snapshots)):
        state = registry.get(tab_id)
        snapshot = snapshots.get(tab_id)
        print(f"\n  tab @{tab_id}")
        if state is not None:
            pane = f"%{state.pane_id}" if state.is_active else "-"
            invoker = f"%{state.invoker_id}" if state.invoker_id is not None else "-"
            print(f"    Terminal: {pane}")
            print(f"    Invoker:  {invoker}")
            print(f"    Zoomed:   {'yes' if state.zoomed else 'no'}")
        if snapshot is not None:
            print(f"    Snapshot: %{snapshot.pane_id} (written {snapshot.timestamp})")
    return 0


def cmd_watch(args) -> int:
    """Print snapshot changes as JSON lines until interrupted."""
    from .logging_config import setup_process_logging
    from .watcher import SnapshotEvent, SnapshotWatcher

    setup_process_logging("watch", level=args.log_level)

    async def emit(event: SnapshotEvent) -> None:
        payload = {"tab_id": event.tab_id, "active": event.snapshot is not None}
        if event.snapshot is not None:
            payload["pane_id"] = event.snapshot.pane_id
            payload["timestamp"] = event.snapshot.timestamp
        print(json.dumps(payload), flush=True)

    async def run() -> None:
        watcher = SnapshotWatcher(emit, emit_existing=not args.no_existing)
        await watcher.start()
        try:
            await watcher.wait()
        finally:
            await watcher.stop()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass
    return 0


def main(argv: list[str] | None = None) -> int:
    from . import config

    parser = argparse.ArgumentParser(
        prog="toggle-pane",
        description="Toggle a per-window terminal pane in tmux",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--home", help="Base directory (default: $TOGGLE_PANE_HOME or ~/.config/toggle-pane)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    toggle_parser = subparsers.add_parser("toggle", help="Create, show, or hide the terminal pane")
    toggle_parser.add_argument("--pane", "-p", help="Invoking pane id, e.g. %%3 (default: $TMUX_PANE)")
    toggle_parser.add_argument("--window", "-w", help="Window label for the log (e.g. the session name)")
    toggle_parser.set_defaults(func=cmd_toggle)

    bind_parser = subparsers.add_parser("bind", help="Install the tmux key binding")
    bind_parser.add_argument("--print", action="store_true", help="Print the tmux command instead of running it")
    bind_parser.set_defaults(func=cmd_bind)

    unbind_parser = subparsers.add_parser("unbind", help="Remove the tmux key binding")
    unbind_parser.set_defaults(func=cmd_unbind)

    status_parser = subparsers.add_parser("status", help="Show tracked tabs and snapshots")
    status_parser.set_defaults(func=cmd_status)

    watch_parser = subparsers.add_parser("watch", help="Stream snapshot changes as JSON lines")
    watch_parser.add_argument("--no-existing", action="store_true", help="Skip snapshots present at startup")
    watch_parser.set_defaults(func=cmd_watch)

    args = parser.parse_args(argv)
    args.log_level = logging.DEBUG if args.verbose else logging.INFO

    config.init(Path(args.home).expanduser() if args.home else None)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
