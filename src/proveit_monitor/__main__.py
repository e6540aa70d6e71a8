"""CLI entry point for proveit-monitor."""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from proveit_monitor.constants import STATUSES


def parse_status_filter(value: str) -> list[str]:
    """Parses a comma separated status list such as 'fail,crash'."""
    statuses = [s.strip().upper() for s in value.split(",") if s.strip()]
    unknown = [s for s in statuses if s not in STATUSES]
    if unknown or not statuses:
        raise argparse.ArgumentTypeError(
            f"Invalid status: {', '.join(unknown) or value!r}. "
            f"Valid statuses are: {', '.join(STATUSES)}"
        )
    return statuses


class MonitorArgumentParser(argparse.ArgumentParser):
    """Argument parser whose usage errors exit with status 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = MonitorArgumentParser(
        prog="proveit-monitor",
        description="Tail hook results in real time.",
    )
    parser.add_argument(
        "session",
        nargs="?",
        default=None,
        help="Session id or unique prefix (default: most recent session)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--all", "-a", action="store_true", help="Tail all sessions and project logs"
    )
    mode.add_argument(
        "--list", "-l", action="store_true", help="List sessions and exit"
    )
    mode.add_argument(
        "--dashboard",
        "-d",
        action="store_true",
        help="Start the interactive Textual dashboard",
    )
    parser.add_argument(
        "--project",
        "-p",
        default=None,
        help="Tail every log of a project directory (filters --list and --dashboard)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show prompts, responses and command output under each entry",
    )
    parser.add_argument(
        "--status",
        "-s",
        type=parse_status_filter,
        default=None,
        help=f"Only show these statuses (comma separated: {','.join(STATUSES)})",
    )
    parser.add_argument(
        "--show-session",
        action="store_true",
        default=None,
        help="Prefix each entry with its session id (default for --all and --project)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Log diagnostics to stderr"
    )
    return parser


def setup_logging(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


async def async_main(argv: list[str] | None = None) -> int:
    """Main async function. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.debug)

    if args.session and (args.all or args.list or args.project or args.dashboard):
        parser.error(
            "a session id cannot be combined with --all, --list, --project or --dashboard"
        )

    from proveit_monitor.config import get_sessions_dir
    from proveit_monitor.errors import AmbiguousSessionError, SessionNotFoundError
    from proveit_monitor.monitor import Monitor
    from proveit_monitor.render import RenderConfig

    sessions_dir = get_sessions_dir()

    if args.dashboard:
        from proveit_monitor.ui import MonitorDashboard

        app = MonitorDashboard(sessions_dir, project_dir=args.project)
        await app.run_async()
        return 0

    config = RenderConfig.from_environment()
    console = Console(highlight=False, no_color=not config.color)
    show_session = args.show_session
    if show_session is None:
        show_session = bool(args.all or args.project)

    monitor = Monitor(
        sessions_dir,
        console=console,
        config=config,
        status_filter=args.status,
        show_session=show_session,
        verbose=args.verbose,
    )

    try:
        if args.list:
            monitor.list_sessions(args.project)
        elif args.all:
            await monitor.watch_all()
        elif args.project:
            await monitor.watch_project(args.project)
        else:
            await monitor.watch_session(args.session)
    except AmbiguousSessionError as err:
        print(f'Ambiguous session prefix "{err.prefix}". Matches:', file=sys.stderr)
        for candidate in err.candidates:
            print(f"  {candidate}", file=sys.stderr)
        return 1
    except SessionNotFoundError as err:
        print(str(err), file=sys.stderr)
        if err.sessions_dir is not None:
            print(f"Looked in: {err.sessions_dir}", file=sys.stderr)
        return 1
    finally:
        monitor.stop()
    return 0


def main():
    """Entry point for the CLI."""
    try:
        code = asyncio.run(async_main())
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
