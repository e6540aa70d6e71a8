import asyncio
import logging
import os
from collections.abc import Callable, Iterable
from pathlib import Path

from rich.console import Console
from rich.text import Text

from .constants import (
    EXCLUDED_PREFIXES,
    LOG_SUFFIX,
    POLL_INTERVAL,
    PROJECT_LOG_PREFIX,
    RECENT_ENTRY_LIMIT,
    RESCAN_INTERVAL,
    SHORT_ID_LENGTH,
)
from .discovery import (
    find_by_prefix,
    find_latest,
    list_all,
    list_for_project,
    project_log_name,
)
from .entry import Entry
from .errors import SessionNotFoundError
from .render import (
    RenderConfig,
    elide_left,
    format_datetime,
    format_entry,
    format_verbose,
)
from .sessions import list_session_summaries, load_session_info
from .tailer import LogTailer

logger = logging.getLogger(__name__)

WATCHING_BANNER = "watching for new entries… (ctrl-c to stop)"


def merge_entries(batches: Iterable[list[Entry]]) -> list[Entry]:
    """
    Merges the entries of several logs into one list ordered by timestamp.

    Equal timestamps keep discovery order (the order of batches), then line
    order within the file.
    """
    keyed = []
    for file_index, entries in enumerate(batches):
        for line_index, entry in enumerate(entries):
            keyed.append(((entry.at, file_index, line_index), entry))
    keyed.sort(key=lambda item: item[0])
    return [entry for _, entry in keyed]


class Monitor:
    """Prints existing log entries, then follows the logs as they grow."""

    def __init__(
        self,
        sessions_dir: Path,
        console: Console | None = None,
        config: RenderConfig | None = None,
        status_filter: Iterable[str] | None = None,
        show_session: bool = False,
        verbose: bool = False,
        poll_interval: float = POLL_INTERVAL,
        rescan_interval: float = RESCAN_INTERVAL,
    ):
        self.sessions_dir = Path(sessions_dir)
        self.config = config or RenderConfig.from_environment()
        self.console = console or Console(highlight=False)
        self.status_filter = set(status_filter) if status_filter else None
        self.show_session = show_session
        self.verbose = verbose
        self.poll_interval = poll_interval
        self.rescan_interval = rescan_interval
        self.tailers: dict[Path, LogTailer] = {}
        self._rescan_task: asyncio.Task | None = None
        self._done = asyncio.Event()

    # -- output --------------------------------------------------------------

    def accepts(self, entry: Entry) -> bool:
        return self.status_filter is None or entry.status in self.status_filter

    def emit(self, entry: Entry):
        """Renders one entry unless the status filter drops it."""
        if not self.accepts(entry):
            return
        self.console.print(
            format_entry(entry, self.config, show_session=self.show_session),
            soft_wrap=True,
        )
        if self.verbose:
            block = format_verbose(entry, self.config)
            if block is not None:
                self.console.print(block)

    def _say(self, message: str = ""):
        self.console.print(Text(message), soft_wrap=True)

    # -- tailing -------------------------------------------------------------

    def snapshot(self, path: Path) -> tuple[LogTailer, list[Entry]]:
        """
        Reads the complete lines a log holds right now.

        The returned tailer is still idle and positioned just after the last
        line read, so following it later neither skips nor repeats a line.
        """
        tailer = LogTailer(path, 0, None, self.poll_interval)
        return tailer, tailer.poll()

    def follow(self, tailer: LogTailer) -> LogTailer:
        """Starts emitting what a tailer reads, unless its file is already followed."""
        if tailer.path not in self.tailers:
            tailer.on_entry = self.emit
            self.tailers[tailer.path] = tailer.attach()
        return self.tailers[tailer.path]

    def rescan(self, discover: Callable[[], list[Path]]) -> list[Path]:
        """Tails any newly discovered log from its beginning."""
        added = []
        for path in discover():
            if path in self.tailers:
                continue
            logger.debug("Discovered new log %s", path)
            self.follow(LogTailer(path, 0, None, self.poll_interval))
            added.append(path)
        return added

    async def _rescan_loop(self, discover: Callable[[], list[Path]]):
        while True:
            await asyncio.sleep(self.rescan_interval)
            self.rescan(discover)

    def stop(self):
        """Detaches every tailer and cancels the rescan timer."""
        for tailer in self.tailers.values():
            tailer.detach()
        task, self._rescan_task = self._rescan_task, None
        if task is not None and not task.done():
            task.cancel()
        self._done.set()

    async def _wait(self):
        try:
            await self._done.wait()
        finally:
            self.stop()

    # -- modes ---------------------------------------------------------------

    def resolve_session(self, ref: str | None = None) -> str:
        """
        Turns a full id, a unique prefix or nothing (latest) into a session id.

        Raises:
            SessionNotFoundError: when nothing matches.
            AmbiguousSessionError: when a prefix matches several sessions.
        """
        if not ref:
            latest = find_latest(self.sessions_dir)
            if latest is None:
                raise SessionNotFoundError(
                    "No prove_it sessions found.", self.sessions_dir
                )
            return latest

        if (
            os.sep in ref
            or (os.altsep and os.altsep in ref)
            or ref.startswith(EXCLUDED_PREFIXES + (PROJECT_LOG_PREFIX,))
        ):
            raise SessionNotFoundError(f"Invalid session id: {ref}", self.sessions_dir)

        log_file = self.sessions_dir / f"{ref}{LOG_SUFFIX}"
        if log_file.is_file():
            return ref

        match = find_by_prefix(self.sessions_dir, ref)
        if match is None:
            raise SessionNotFoundError(
                f"Session log not found: {log_file}", self.sessions_dir
            )
        return match

    async def watch_session(self, ref: str | None = None):
        """Prints one session's log, then follows it and its project log."""
        session_id = self.resolve_session(ref)
        log_file = self.sessions_dir / f"{session_id}{LOG_SUFFIX}"
        info = load_session_info(self.sessions_dir, session_id)

        project = info.project_dir if info and info.project_dir else None
        started = format_datetime(info.started_at if info else None)
        self._say(
            f"Session: {session_id[:SHORT_ID_LENGTH]} | {project or '(unknown)'} "
            f"| started {started}"
        )
        self._say()

        tailer, entries = self.snapshot(log_file)
        for entry in entries:
            self.emit(entry)

        self.follow(tailer)
        if project:
            project_log = self.sessions_dir / project_log_name(project)
            if project_log.is_file():
                # Only new project entries are shown in single-session mode
                project_tailer, _ = self.snapshot(project_log)
                self.follow(project_tailer)

        if entries:
            self._say()
        self._say(WATCHING_BANNER)
        await self._wait()

    async def watch_all(self):
        """Follows every session and project log, picking up new ones."""
        await self._watch_many(
            lambda: list_all(self.sessions_dir), "No log files found."
        )

    async def watch_project(self, project_dir: str):
        """Follows the logs of one project, picking up new ones."""
        await self._watch_many(
            lambda: list_for_project(self.sessions_dir, project_dir),
            f"No logs found for project: {project_dir}",
        )

    async def _watch_many(self, discover: Callable[[], list[Path]], empty_message: str):
        paths = discover()
        if not paths:
            self._say(empty_message)
            return

        self._say(f"Monitoring {len(paths)} log files")
        self._say()

        snapshots = [self.snapshot(path) for path in paths]
        merged = merge_entries(entries for _, entries in snapshots)
        recent = [e for e in merged if self.accepts(e)][-RECENT_ENTRY_LIMIT:]
        for entry in recent:
            self.emit(entry)

        for tailer, _ in snapshots:
            self.follow(tailer)
        self._rescan_task = asyncio.get_running_loop().create_task(
            self._rescan_loop(discover)
        )

        if recent:
            self._say()
        self._say(WATCHING_BANNER)
        await self._wait()

    def list_sessions(self, project_dir: str | None = None):
        """Prints a table of sessions, newest first."""
        summaries = list_session_summaries(self.sessions_dir, project_dir)
        if not summaries:
            self._say("No sessions found.")
            return

        self._say(
            "ID        Project                              Started               Entries"
        )
        self._say(
            "--------  -----------------------------------  --------------------  -------"
        )
        for s in summaries:
            short_id = s.session_id[:SHORT_ID_LENGTH].ljust(SHORT_ID_LENGTH)
            project = elide_left(s.project_dir or "(unknown)", 35).ljust(35)
            started = format_datetime(s.started_at).ljust(20)
            self._say(f"{short_id}  {project}  {started}  {s.entry_count:>7}")

