import pytest


@pytest.fixture
def populated(sessions_dir, write_info, write_log, make_entry):
    """Two sessions: 'newer' with PASS and FAIL entries, 'older' with one SKIP."""
    write_info(sessions_dir, "older-session", "/repo", "2026-01-01T10:00:00Z")
    write_info(sessions_dir, "newer-session", "/repo", "2026-02-01T10:00:00Z")
    write_log(
        sessions_dir / "newer-session.jsonl",
        make_entry(status="PASS", reviewer="lint"),
        make_entry(
            status="FAIL",
            reviewer="tests",
            verbose={"command": "npm test", "output": "1 failing", "exitCode": 1},
        ),
    )
    write_log(sessions_dir / "older-session.jsonl", make_entry(status="SKIP"))
    return sessions_dir
