import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .constants import EXCLUDED_PREFIXES, INFO_SUFFIX, LOG_SUFFIX, PROJECT_LOG_PREFIX
from .entry import count_entries

logger = logging.getLogger(__name__)


@dataclass
class SessionInfo:
    """Metadata the dispatcher records when a session starts."""

    project_dir: str | None = None
    started_at: str | None = None

    @property
    def started(self) -> datetime | None:
        """Parsed start time, or None when missing or unparseable."""
        return parse_iso(self.started_at)

    @classmethod
    def from_dict(cls, data: dict) -> "SessionInfo":
        project_dir = data.get("project_dir")
        started_at = data.get("started_at")
        return cls(
            project_dir=project_dir if isinstance(project_dir, str) else None,
            started_at=started_at if isinstance(started_at, str) else None,
        )


@dataclass
class SessionSummary:
    """One row of the session list."""

    session_id: str
    project_dir: str | None
    started_at: str | None
    entry_count: int


def canonical_path(path: str | Path) -> str:
    """Absolute path with symlinks resolved; the path need not exist."""
    return str(Path(path).expanduser().resolve(strict=False))


def parse_iso(value: str | None) -> datetime | None:
    """Parses an ISO-8601 timestamp, accepting a trailing 'Z'."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def load_session_info(sessions_dir: Path, session_id: str) -> SessionInfo | None:
    """Loads <session_id>.json. Missing or corrupt files give None."""
    info_file = Path(sessions_dir) / f"{session_id}{INFO_SUFFIX}"
    try:
        with open(info_file, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except (ValueError, RecursionError, OSError) as e:
        logger.debug("Ignoring unreadable session info %s: %s", info_file, e)
        return None

    if not isinstance(data, dict):
        return None
    return SessionInfo.from_dict(data)


def list_session_summaries(
    sessions_dir: Path, project_dir: str | None = None
) -> list[SessionSummary]:
    """
    Lists sessions that have an info record, newest first.

    Sessions without a start time sort after every dated session.
    When project_dir is given only sessions of that project are kept.
    """
    sessions_dir = Path(sessions_dir)
    try:
        names = sorted(p.name for p in sessions_dir.iterdir())
    except OSError:
        return []

    wanted_project = canonical_path(project_dir) if project_dir else None
    summaries = []
    for name in names:
        if not name.endswith(INFO_SUFFIX):
            continue
        if name.startswith(EXCLUDED_PREFIXES + (PROJECT_LOG_PREFIX,)):
            continue

        session_id = name[: -len(INFO_SUFFIX)]
        info = load_session_info(sessions_dir, session_id)
        if info is None:
            continue
        if wanted_project is not None and (
            not info.project_dir or canonical_path(info.project_dir) != wanted_project
        ):
            continue

        summaries.append(
            SessionSummary(
                session_id=session_id,
                project_dir=info.project_dir,
                started_at=info.started_at,
                entry_count=count_entries(sessions_dir / f"{session_id}{LOG_SUFFIX}"),
            )
        )

    def sort_key(s: SessionSummary):
        started = parse_iso(s.started_at)
        if started is None:
            # Group 1: undated sessions last, by id for stability
            return (1, 0.0, s.session_id)
        # Group 0: newest first
        return (0, -started.timestamp(), s.session_id)

    return sorted(summaries, key=sort_key)
