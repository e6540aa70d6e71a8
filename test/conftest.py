import io
import json
import sys
from pathlib import Path

import pytest
from rich.console import Console

# Add src to sys.path to ensure local package is used during tests
root_path = Path(__file__).parent.parent
src_path = str(root_path / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)


@pytest.fixture
def sessions_dir(tmp_path, monkeypatch):
    """A sessions directory wired up through PROVE_IT_DIR."""
    base = tmp_path / "prove_it"
    directory = base / "sessions"
    directory.mkdir(parents=True)
    monkeypatch.setenv("PROVE_IT_DIR", str(base))
    return directory


@pytest.fixture
def make_entry():
    """Factory for entry dicts as the dispatcher writes them."""

    def _factory(status="PASS", at=1_700_000_000_000, reviewer="tests", **extra):
        entry = {"at": at, "reviewer": reviewer, "status": status, "reason": "ok"}
        entry.update(extra)
        return entry

    return _factory


@pytest.fixture
def write_log():
    """Appends entry dicts (or raw strings) to a log file."""

    def _write(path: Path, *records):
        with open(path, "a", encoding="utf-8") as f:
            for record in records:
                if isinstance(record, str):
                    f.write(record)
                else:
                    f.write(json.dumps(record) + "\n")
        return path

    return _write


@pytest.fixture
def write_info():
    """Writes a <session>.json info record."""

    def _write(sessions_dir: Path, session_id: str, project_dir, started_at=None):
        data = {"project_dir": str(project_dir) if project_dir else None}
        if started_at:
            data["started_at"] = started_at
        (sessions_dir / f"{session_id}.json").write_text(json.dumps(data))

    return _write


@pytest.fixture
def console():
    """A console that records plain output."""
    return Console(file=io.StringIO(), width=200, highlight=False, color_system=None)
