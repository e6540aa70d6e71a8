"""prove_it monitor - tail and aggregate hook result logs."""

from proveit_monitor.entry import Entry, decode
from proveit_monitor.monitor import Monitor
from proveit_monitor.render import RenderConfig, format_entry, format_verbose
from proveit_monitor.tailer import LogTailer

__version__ = "0.1.0"

__all__ = [
    "Entry",
    "LogTailer",
    "Monitor",
    "RenderConfig",
    "decode",
    "format_entry",
    "format_verbose",
]
