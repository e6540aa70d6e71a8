import os
from pathlib import Path


def get_prove_it_dir() -> Path:
    """Returns the dispatcher's base directory, honouring PROVE_IT_DIR."""
    override = os.environ.get("PROVE_IT_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".claude" / "prove_it"


def get_sessions_dir() -> Path:
    """Returns the directory holding session logs and session info files."""
    return get_prove_it_dir() / "sessions"
