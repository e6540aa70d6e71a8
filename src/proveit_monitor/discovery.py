"""Finding event logs in the sessions directory."""

import hashlib
import logging
import os
from pathlib import Path

from .constants import (
    EXCLUDED_PREFIXES,
    LOG_SUFFIX,
    PROJECT_HASH_LENGTH,
    PROJECT_LOG_PREFIX,
)
from .errors import AmbiguousSessionError
from .sessions import canonical_path, load_session_info

logger = logging.getLogger(__name__)


def project_hash(project_dir: str | Path) -> str:
    """Short, stable digest of a project's canonical path."""
    digest = hashlib.sha256(canonical_path(project_dir).encode("utf-8")).hexdigest()
    return digest[:PROJECT_HASH_LENGTH]


def project_log_name(project_dir: str | Path) -> str:
    """File name of the project-aggregate log."""
    return f"{PROJECT_LOG_PREFIX}{project_hash(project_dir)}{LOG_SUFFIX}"


def session_id_for(path: Path) -> str:
    """Derives the session id from a log file path."""
    return Path(path).name[: -len(LOG_SUFFIX)]


def is_project_log(path: Path) -> bool:
    return Path(path).name.startswith(PROJECT_LOG_PREFIX)


def _scan_log_names(sessions_dir: Path) -> list[str]:
    """Sorted names of log files that may be surfaced."""
    names = []
    try:
        with os.scandir(sessions_dir) as it:
            for entry in it:
                if not entry.name.endswith(LOG_SUFFIX):
                    continue
                if entry.name.startswith(EXCLUDED_PREFIXES):
                    continue
                if entry.is_file():
                    names.append(entry.name)
    except OSError as e:
        logger.debug("Cannot scan %s: %s", sessions_dir, e)
        return []
    return sorted(names)


def list_all(sessions_dir: Path) -> list[Path]:
    """Every session and project log, in name order."""
    sessions_dir = Path(sessions_dir)
    return [sessions_dir / name for name in _scan_log_names(sessions_dir)]


def list_session_logs(sessions_dir: Path) -> list[Path]:
    """Per-session logs only, in name order."""
    return [p for p in list_all(sessions_dir) if not is_project_log(p)]


def list_for_project(sessions_dir: Path, project_dir: str | Path) -> list[Path]:
    """
    Logs belonging to one project.

    That is the project's aggregate log (when it exists) followed by every
    session log whose info record points at the same canonical directory.
    """
    sessions_dir = Path(sessions_dir)
    wanted = canonical_path(project_dir)
    aggregate = sessions_dir / project_log_name(project_dir)

    paths = []
    if aggregate.is_file():
        paths.append(aggregate)

    for path in list_session_logs(sessions_dir):
        info = load_session_info(sessions_dir, session_id_for(path))
        if info is None or not info.project_dir:
            continue
        if canonical_path(info.project_dir) == wanted:
            paths.append(path)
    return paths


def find_latest(sessions_dir: Path) -> str | None:
    """
    Finds the session whose log was modified most recently.

    Equal modification times are broken by name so the answer only depends
    on the state of the filesystem.
    """
    best = None
    for path in list_session_logs(sessions_dir):
        try:
            mtime = path.stat().st_mtime
        except OSError:
            continue
        key = (mtime, path.name)
        if best is None or key > best[0]:
            best = (key, path)

    if best is None:
        return None
    return session_id_for(best[1])


def find_by_prefix(sessions_dir: Path, prefix: str) -> str | None:
    """
    Resolves a (possibly shortened) session id.

    Raises:
        AmbiguousSessionError: if more than one session starts with prefix.
    """
    matches = [
        session_id_for(p)
        for p in list_session_logs(sessions_dir)
        if session_id_for(p).startswith(prefix)
    ]
    if len(matches) > 1:
        raise AmbiguousSessionError(prefix, matches)
    if matches:
        return matches[0]
    return None
