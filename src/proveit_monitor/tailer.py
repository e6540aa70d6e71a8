import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from .constants import POLL_INTERVAL
from .entry import Entry, decode

logger = logging.getLogger(__name__)


class LogTailer:
    """
    Follows one append-only log by polling its size.

    The tailer is idle until attach() schedules a polling task on the running
    event loop, and idle again after detach(). Only complete lines are
    consumed: bytes after the last newline stay unread until the writer
    finishes the line, so nothing is emitted twice or half written.
    """

    def __init__(
        self,
        path: Path,
        offset: int = 0,
        on_entry: Callable[[Entry], None] | None = None,
        interval: float = POLL_INTERVAL,
    ):
        self.path = Path(path)
        self.offset = offset
        self.on_entry = on_entry
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def watching(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self) -> "LogTailer":
        """Starts polling on the running loop. Attaching twice is a no-op."""
        if not self.watching:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    def detach(self):
        """Stops polling. Safe to call any number of times."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.poll()
            except Exception:
                logger.exception("Error while polling %s", self.path)

    def _read_new_bytes(self) -> bytes:
        size = os.stat(self.path).st_size
        # A file that shrank was truncated or rotated: nothing new to read
        if size <= self.offset:
            return b""
        with open(self.path, "rb") as f:
            f.seek(self.offset)
            return f.read(size - self.offset)

    def poll(self) -> list[Entry]:
        """Reads whatever complete lines were appended since the last poll."""
        try:
            chunk = self._read_new_bytes()
        except OSError as e:
            logger.debug("Poll of %s failed, retrying next interval: %s", self.path, e)
            return []

        end = chunk.rfind(b"\n")
        if end == -1:
            return []
        self.offset += end + 1

        entries = []
        for line in chunk[: end + 1].split(b"\n"):
            entry = decode(line)
            if entry is None:
                continue
            entries.append(entry)
            if self.on_entry is not None:
                self.on_entry(entry)
        return entries
