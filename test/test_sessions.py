"""Tests for session info loading and the session list."""

from proveit_monitor import discovery
from proveit_monitor.sessions import (
    SessionInfo,
    canonical_path,
    list_session_summaries,
    load_session_info,
    parse_iso,
)


def test_load_session_info(sessions_dir, write_info):
    write_info(sessions_dir, "s1", "/repo", "2026-02-01T10:00:00.000Z")
    info = load_session_info(sessions_dir, "s1")
    assert info == SessionInfo(project_dir="/repo", started_at="2026-02-01T10:00:00.000Z")
    assert info.started is not None


def test_load_session_info_missing(sessions_dir):
    assert load_session_info(sessions_dir, "nope") is None


def test_load_session_info_corrupt(sessions_dir):
    (sessions_dir / "bad.json").write_text("{not json")
    (sessions_dir / "list.json").write_text("[1, 2]")
    (sessions_dir / "binary.json").write_bytes(b"\xff\xfe\x00")
    assert load_session_info(sessions_dir, "bad") is None
    assert load_session_info(sessions_dir, "list") is None
    assert load_session_info(sessions_dir, "binary") is None


def test_load_session_info_oversized_number(sessions_dir):
    (sessions_dir / "huge.json").write_text('{"project_dir": ' + "9" * 5000 + "}")
    assert load_session_info(sessions_dir, "huge") is None


def test_load_session_info_ignores_wrong_types(sessions_dir):
    (sessions_dir / "s.json").write_text('{"project_dir": 5, "started_at": null}')
    assert load_session_info(sessions_dir, "s") == SessionInfo()


def test_parse_iso():
    assert parse_iso(None) is None
    assert parse_iso("garbage") is None
    assert parse_iso("2026-02-01T10:00:00Z").tzinfo is not None


def test_list_session_summaries_sorting(sessions_dir, write_info, write_log, make_entry):
    write_info(sessions_dir, "older", "/repo", "2026-01-01T10:00:00Z")
    write_info(sessions_dir, "newer", "/repo", "2026-02-01T10:00:00Z")
    write_info(sessions_dir, "undated", "/repo")
    write_info(sessions_dir, "test-session-x", "/repo", "2026-03-01T10:00:00Z")
    (sessions_dir / "corrupt.json").write_text("{")
    write_log(sessions_dir / "newer.jsonl", make_entry(), make_entry(), make_entry())

    summaries = list_session_summaries(sessions_dir)
    assert [s.session_id for s in summaries] == ["newer", "older", "undated"]
    assert summaries[0].entry_count == 3
    assert summaries[1].entry_count == 0


def test_list_session_summaries_project_filter(sessions_dir, tmp_path, write_info):
    write_info(sessions_dir, "mine", tmp_path / "repo", "2026-01-01T10:00:00Z")
    write_info(sessions_dir, "theirs", tmp_path / "repo-other", "2026-01-01T10:00:00Z")
    write_info(sessions_dir, "nowhere", None)

    summaries = list_session_summaries(sessions_dir, str(tmp_path / "repo"))
    assert [s.session_id for s in summaries] == ["mine"]


def test_list_session_summaries_missing_dir(tmp_path):
    assert list_session_summaries(tmp_path / "missing") == []


def test_canonical_path_is_shared_with_discovery(tmp_path):
    real = tmp_path / "real"
    real.mkdir()
    link = tmp_path / "link"
    link.symlink_to(real)
    assert canonical_path(link) == str(real.resolve())
    assert canonical_path(tmp_path / "missing" / "..") == str(tmp_path.resolve())
    assert discovery.canonical_path is canonical_path
