"""Terminal rendering of log entries.

The compact view is one tab-separated line per entry. Colors are carried on
rich spans rather than embedded escape codes, so ``Text.plain`` is always
the uncolored line and field boundaries never move when color is enabled.
"""

import os
import re
import shutil
import sys
from dataclasses import dataclass
from datetime import datetime

from rich.console import Group, RenderableType
from rich.padding import Padding
from rich.panel import Panel
from rich.text import Text

from .constants import DEFAULT_WIDTH, SHORT_ID_LENGTH, VERBOSE_INDENT
from .entry import AgentDetail, Entry, ScriptDetail
from .sessions import parse_iso

STATUS_COLORS = {
    "PASS": "green",
    "FAIL": "red",
    "SKIP": "yellow",
    "CRASH": "magenta",
    "RUNNING": "cyan",
    "APPEAL": "blue",
}

TAB_SIZE = 8
ELLIPSIS = "…"

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


@dataclass(frozen=True)
class RenderConfig:
    """Terminal facts resolved once per invocation and passed to every render call."""

    color: bool = False
    width: int = DEFAULT_WIDTH

    @classmethod
    def from_environment(cls, stream=None) -> "RenderConfig":
        stream = stream if stream is not None else sys.stdout
        try:
            is_tty = bool(stream.isatty())
        except (AttributeError, ValueError):
            is_tty = False
        color = is_tty and "NO_COLOR" not in os.environ
        width = shutil.get_terminal_size((DEFAULT_WIDTH, 24)).columns or DEFAULT_WIDTH
        return cls(color=color, width=width)


def strip_ansi(s: str) -> str:
    return _ANSI_RE.sub("", s)


def _advance(col: int, ch: str) -> int:
    if ch == "\t":
        return (col // TAB_SIZE + 1) * TAB_SIZE
    return col + 1


def visual_width(s: str, start: int = 0) -> int:
    """Column reached after printing s from column start, tabs expanded like a terminal."""
    col = start
    for ch in s:
        col = _advance(col, ch)
    return col - start


def _fit(s: str, start: int, max_width: int) -> str:
    """Cuts s with an ellipsis so that printing it from column start stays within max_width."""
    if start + visual_width(s, start) <= max_width:
        return s
    # Reserve one column for the ellipsis
    limit = max_width - 1
    if limit <= start:
        return ""
    col = start
    kept = []
    for ch in s:
        nxt = _advance(col, ch)
        if nxt > limit:
            break
        kept.append(ch)
        col = nxt
    return "".join(kept) + ELLIPSIS


def format_duration(ms: int | float | None) -> str:
    """Human duration: 850ms, 2.3s or 1m05s."""
    if ms is None:
        return ""
    if ms < 1000:
        return f"{int(ms)}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    mins = int(ms // 60000)
    secs = int((ms % 60000) // 1000)
    return f"{mins}m{secs:02d}s"


def format_time(epoch_ms: int | float) -> str:
    """Local 24-hour HH:MM:SS."""
    try:
        return datetime.fromtimestamp(epoch_ms / 1000).strftime("%H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return "??:??:??"


def format_datetime(iso: str | None) -> str:
    """Local date and time for headers and the session list."""
    dt = parse_iso(iso)
    if dt is None:
        return "(unknown)"
    return dt.astimezone().strftime("%m/%d/%Y, %H:%M")


def elide_left(s: str, width: int) -> str:
    """Keeps the end of s, marking the cut with a leading ellipsis."""
    if len(s) <= width:
        return s
    return ELLIPSIS + s[-(width - 1) :]


def format_entry(
    entry: Entry, config: RenderConfig, show_session: bool = False
) -> Text:
    """
    Formats an entry as one line:

        [session ]  HH:MM:SS  STATUS  reviewer  [dur] (hook) {progress}  reason

    Fields are tab separated. The reason is cut so the line never grows past
    config.width once tabs are expanded.
    """
    status = entry.status or "???"
    reviewer = entry.reviewer or "unknown"

    suffix_parts = []
    if entry.duration_ms is not None:
        suffix_parts.append((f"[{format_duration(entry.duration_ms)}]", None))
    if entry.hook_event:
        suffix_parts.append((f"({entry.hook_event})", "dim"))
    if entry.trigger_progress:
        suffix_parts.append((f"{{{entry.trigger_progress}}}", "dim"))

    text = Text(tab_size=TAB_SIZE, no_wrap=True, end="\n")

    def add(s: str, style: str | None = None):
        text.append(s, style=style if config.color else None)

    if show_session:
        short = (entry.session_id or "git")[:SHORT_ID_LENGTH]
        add(f"[{short.ljust(SHORT_ID_LENGTH)}]\t")
    add(f"{format_time(entry.at)}\t")
    add(status, STATUS_COLORS.get(status))
    add(f"\t{reviewer}")
    if suffix_parts:
        add("\t")
        for i, (part, style) in enumerate(suffix_parts):
            if i:
                add(" ")
            add(part, style)

    prefix_width = visual_width(text.plain + "\t")
    reason = _fit(entry.summary.rstrip("\r"), prefix_width, config.width)
    if reason:
        add(f"\t{reason}")
    elif visual_width(text.plain) > config.width:
        text = _crop(text, config.width)
    return text


def _crop(text: Text, max_width: int) -> Text:
    """Cuts a line whose fixed fields alone overflow, keeping its styles."""
    col = 0
    for i, ch in enumerate(text.plain):
        nxt = _advance(col, ch)
        if nxt > max_width - 1:
            cropped = text[:i]
            cropped.no_wrap = True
            cropped.tab_size = TAB_SIZE
            cropped.append(ELLIPSIS)
            return cropped
        col = nxt
    return text


def _panel(body: str | None, title: str, config: RenderConfig, subtitle=None):
    return Panel(
        Text(body if body else "(empty)"),
        title=Text(title),
        title_align="left",
        subtitle=Text(subtitle) if subtitle else None,
        subtitle_align="right",
        border_style="dim" if config.color else "none",
    )


def format_verbose(entry: Entry, config: RenderConfig) -> RenderableType | None:
    """Boxed detail block for an entry, or None when it carries no detail."""
    detail = entry.detail
    if isinstance(detail, ScriptDetail):
        subtitle = f"exit {detail.exit_code}" if detail.exit_code is not None else None
        panels = [
            _panel(detail.output or "(no output)", f"$ {detail.command}", config, subtitle)
        ]
    elif isinstance(detail, AgentDetail):
        prompt_title = f"prompt ({detail.model})" if detail.model else "prompt"
        panels = [
            _panel(detail.prompt, prompt_title, config),
            _panel(detail.response, "response", config),
        ]
        if detail.backchannel:
            panels.append(_panel(detail.backchannel, "backchannel", config))
    else:
        return None
    return Padding(Group(*panels), (0, 0, 0, VERBOSE_INDENT))
