from pathlib import Path

from rich.console import Group
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.widgets import Footer, Input, OptionList, Static
from textual.widgets.option_list import Option

from ..constants import FILTER_CYCLE, LOG_SUFFIX, POLL_INTERVAL, RESCAN_INTERVAL
from ..entry import Entry
from ..render import (
    RenderConfig,
    elide_left,
    format_datetime,
    format_entry,
    format_verbose,
)
from ..sessions import SessionSummary, list_session_summaries
from ..tailer import LogTailer


HELP_TEXT = """\
up/down   move through sessions or entries
tab       switch pane
f         cycle filter: ALL, PASS, FAIL, SKIP, CRASH
/         search entries (enter keeps the search, esc clears it)
r         refresh the session list
?         toggle this help
q         quit"""


class MonitorDashboard(App):
    """Sessions, entries and detail panes over the dispatcher's logs."""

    CSS = """
    #sessions {
        height: 30%;
        border: round $primary;
        border-title-align: left;
    }

    #entries {
        height: 1fr;
        border: round $primary;
        border-title-align: left;
    }

    #detail-pane {
        height: 35%;
        border: round $primary;
        border-title-align: left;
    }

    #search {
        display: none;
    }

    #help {
        display: none;
        height: auto;
        border: round $accent;
        border-title-align: left;
        padding: 0 1;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("r", "refresh", "Refresh", show=True),
        Binding("f", "cycle_filter", "Filter", show=True),
        Binding("slash", "start_search", "Search", show=True),
        Binding("escape", "clear_search", "Clear search", show=False),
        Binding("question_mark", "toggle_help", "Help", show=True),
    ]

    def __init__(
        self,
        sessions_dir: Path,
        project_dir: str | None = None,
        enable_polling: bool = True,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.sessions_dir = Path(sessions_dir)
        self.project_dir = project_dir
        self.enable_polling = enable_polling
        self.title = f"prove_it monitor - {self.sessions_dir}"
        self.summaries: list[SessionSummary] = []
        self.current_session: str | None = None
        self.tailer: LogTailer | None = None
        self.entries: list[Entry] = []
        self.visible_entries: list[Entry] = []
        self.filter_index = 0
        self.search_term = ""

    @property
    def status_filter(self) -> str | None:
        return FILTER_CYCLE[self.filter_index]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield OptionList(id="sessions")
            yield OptionList(id="entries")
            yield Input(placeholder="search reviewer, status or reason", id="search")
            yield Static(HELP_TEXT, id="help")
            with VerticalScroll(id="detail-pane"):
                yield Static(id="detail")
        yield Static(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#sessions").border_title = "Sessions"
        self.query_one("#entries").border_title = "Entries"
        self.query_one("#detail-pane").border_title = "Detail"
        self.query_one("#help").border_title = "Keys"
        self.refresh_sessions()
        if self.enable_polling:
            self.set_interval(POLL_INTERVAL, self.poll_entries)
            self.set_interval(RESCAN_INTERVAL, self.refresh_sessions)

    def _config(self) -> RenderConfig:
        return RenderConfig(color=True, width=max(self.size.width - 4, 40))

    def _entry_line(self, entry: Entry) -> Text:
        text = format_entry(entry, self._config())
        text.expand_tabs()
        return text

    def _session_line(self, summary: SessionSummary) -> Text:
        return Text.assemble(
            (summary.session_id[:8].ljust(10), "bold"),
            elide_left(summary.project_dir or "(unknown)", 35).ljust(37),
            (format_datetime(summary.started_at).ljust(20), "dim"),
            f"{summary.entry_count:>5}",
        )

    def refresh_sessions(self) -> None:
        """Reloads the session list, keeping the current selection."""
        self.summaries = list_session_summaries(self.sessions_dir, self.project_dir)
        sessions = self.query_one("#sessions", OptionList)
        sessions.clear_options()
        sessions.add_options(
            [Option(self._session_line(s), id=s.session_id) for s in self.summaries]
        )
        ids = [s.session_id for s in self.summaries]
        if self.current_session in ids:
            sessions.highlighted = ids.index(self.current_session)
        elif self.summaries:
            self.load_session(self.summaries[0].session_id)
        self.update_status_bar()

    def load_session(self, session_id: str) -> None:
        """Shows every entry of a session and starts following its log."""
        if session_id == self.current_session:
            return
        self.current_session = session_id
        self.tailer = LogTailer(self.sessions_dir / f"{session_id}{LOG_SUFFIX}")
        self.entries = self.tailer.poll()
        self.render_entries()
        self.query_one("#detail", Static).update(
            Text("(select an entry to view details)", style="dim")
        )

    def poll_entries(self) -> None:
        """Appends whatever the current session log gained since the last poll."""
        if self.tailer is None:
            return
        new_entries = self.tailer.poll()
        if not new_entries:
            return
        self.entries.extend(new_entries)
        entries = self.query_one("#entries", OptionList)
        for entry in new_entries:
            if self._accepts(entry):
                self.visible_entries.append(entry)
                entries.add_option(Option(self._entry_line(entry)))
        self.update_status_bar()

    def _accepts(self, entry: Entry) -> bool:
        if self.status_filter is not None and entry.status != self.status_filter:
            return False
        if self.search_term:
            haystack = f"{entry.reviewer or ''} {entry.reason or ''} {entry.status or ''}"
            return self.search_term.lower() in haystack.lower()
        return True

    def render_entries(self) -> None:
        self.visible_entries = [e for e in self.entries if self._accepts(e)]
        entries = self.query_one("#entries", OptionList)
        entries.clear_options()
        entries.add_options([Option(self._entry_line(e)) for e in self.visible_entries])
        self.update_status_bar()

    def show_detail(self, entry: Entry) -> None:
        verbose = format_verbose(entry, self._config())
        if verbose is None:
            verbose = Text("(no verbose data)", style="dim")
        self.query_one("#detail", Static).update(
            Group(self._entry_line(entry), Text(""), verbose)
        )

    def update_status_bar(self) -> None:
        label = self.status_filter or "ALL"
        status = Text.assemble(
            ("Filter: ", "dim"),
            (label, "bold"),
            ("  Sessions: ", "dim"),
            str(len(self.summaries)),
            ("  Entries: ", "dim"),
            f"{len(self.visible_entries)}/{len(self.entries)}",
        )
        if self.search_term:
            status.append("  Search: ", style="dim")
            status.append(self.search_term, style="bold")
        self.query_one("#status-bar", Static).update(status)

    def on_option_list_option_highlighted(
        self, event: OptionList.OptionHighlighted
    ) -> None:
        if event.option_list.id == "sessions":
            if event.option_id is not None:
                self.load_session(event.option_id)
        elif event.option_list.id == "entries":
            if 0 <= event.option_index < len(self.visible_entries):
                self.show_detail(self.visible_entries[event.option_index])

    def action_refresh(self) -> None:
        self.refresh_sessions()

    def action_cycle_filter(self) -> None:
        self.filter_index = (self.filter_index + 1) % len(FILTER_CYCLE)
        self.render_entries()

    def action_start_search(self) -> None:
        search = self.query_one("#search", Input)
        search.display = True
        search.value = self.search_term
        search.focus()

    def action_clear_search(self) -> None:
        """Drops the search, closes the help and returns to the entries."""
        search = self.query_one("#search", Input)
        search.value = ""
        search.display = False
        self.query_one("#help").display = False
        self.search_term = ""
        self.render_entries()
        self.query_one("#entries", OptionList).focus()

    def action_toggle_help(self) -> None:
        help_panel = self.query_one("#help")
        help_panel.display = not help_panel.display

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search":
            self.search_term = event.value.strip()
            self.render_entries()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search":
            event.input.display = False
            self.query_one("#entries", OptionList).focus()
