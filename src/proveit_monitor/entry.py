"""Decoding of event-log lines into structured entries.

Each line of a session or project log is one JSON object written by the hook
dispatcher. Decoding never raises: anything that is not an object with a
numeric ``at`` timestamp is treated as corruption and yields ``None``.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Top-level keys the monitor understands; everything else lands in Entry.extra
_KNOWN_KEYS = {
    "at",
    "status",
    "reviewer",
    "reason",
    "durationMs",
    "hookEvent",
    "triggerProgress",
    "sessionId",
    "verbose",
}


@dataclass
class AgentDetail:
    """Verbose payload of an AI reviewer run."""

    prompt: str | None = None
    response: str | None = None
    model: str | None = None
    backchannel: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {"prompt": self.prompt, "response": self.response}
        if self.model is not None:
            data["model"] = self.model
        if self.backchannel is not None:
            data["backchannel"] = self.backchannel
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "AgentDetail":
        backchannel = data.get("backchannel")
        if backchannel is None:
            backchannel = data.get("backchannelContent")
        known = {"prompt", "response", "model", "backchannel", "backchannelContent"}
        return cls(
            prompt=_optional_str(data.get("prompt")),
            response=_optional_str(data.get("response")),
            model=_optional_str(data.get("model")),
            backchannel=_optional_str(backchannel),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class ScriptDetail:
    """Verbose payload of a script check run."""

    command: str
    output: str = ""
    exit_code: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {"command": self.command, "output": self.output}
        if self.exit_code is not None:
            data["exitCode"] = self.exit_code
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ScriptDetail":
        exit_code = data.get("exitCode")
        if not _is_number(exit_code):
            exit_code = None
        return cls(
            command=str(data.get("command")),
            output=_optional_str(data.get("output")) or "",
            exit_code=exit_code,
            extra={
                k: v
                for k, v in data.items()
                if k not in {"command", "output", "exitCode"}
            },
        )


Detail = AgentDetail | ScriptDetail


@dataclass
class Entry:
    """One check outcome recorded by the dispatcher."""

    at: int | float
    status: str | None = None
    reviewer: str | None = None
    reason: str | None = None
    duration_ms: int | float | None = None
    hook_event: str | None = None
    trigger_progress: str | None = None
    session_id: str | None = None
    detail: Detail | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def summary(self) -> str:
        """First line of the reason, as shown in the compact view."""
        return (self.reason or "").split("\n", 1)[0]

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"at": self.at}
        if self.status is not None:
            data["status"] = self.status
        if self.reviewer is not None:
            data["reviewer"] = self.reviewer
        data["reason"] = self.reason
        if self.duration_ms is not None:
            data["durationMs"] = self.duration_ms
        if self.hook_event is not None:
            data["hookEvent"] = self.hook_event
        if self.trigger_progress is not None:
            data["triggerProgress"] = self.trigger_progress
        if self.session_id is not None:
            data["sessionId"] = self.session_id
        if self.detail is not None:
            data["verbose"] = self.detail.to_dict()
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        duration = data.get("durationMs")
        return cls(
            at=data["at"],
            status=_optional_str(data.get("status")),
            reviewer=_optional_str(data.get("reviewer")),
            reason=_optional_str(data.get("reason")),
            duration_ms=duration if _is_number(duration) else None,
            hook_event=_optional_str(data.get("hookEvent")),
            trigger_progress=_optional_str(data.get("triggerProgress")),
            session_id=_optional_str(data.get("sessionId")),
            detail=decode_detail(data.get("verbose")),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def decode_detail(verbose: Any) -> Detail | None:
    """Picks the verbose variant from the fields that are present."""
    if not isinstance(verbose, dict):
        return None
    if "command" in verbose:
        return ScriptDetail.from_dict(verbose)
    if any(
        k in verbose for k in ("prompt", "response", "backchannel", "backchannelContent")
    ):
        return AgentDetail.from_dict(verbose)
    return None


def decode(line: str | bytes) -> Entry | None:
    """Parses one log line. Returns None for blank or malformed lines."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    line = line.strip()
    if not line:
        return None
    try:
        data = json.loads(line)
    except (ValueError, RecursionError):
        # ValueError covers JSONDecodeError and oversized integer literals
        return None
    if not isinstance(data, dict) or not _is_number(data.get("at")):
        return None
    return Entry.from_dict(data)


def encode(entry: Entry) -> str:
    """Serializes an entry the way the dispatcher writes it (no newline)."""
    return json.dumps(entry.to_dict())


def read_entries(path: Path) -> list[Entry]:
    """Reads every valid entry of a log file, in file order."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            lines = f.readlines()
    except OSError as e:
        logger.debug("Could not read %s: %s", path, e)
        return []

    entries = []
    for line in lines:
        entry = decode(line)
        if entry is not None:
            entries.append(entry)
    return entries


def count_entries(path: Path) -> int:
    """Counts non-empty lines of a log file; a missing file counts as zero."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return sum(1 for line in f if line.strip())
    except OSError:
        return 0
