"""Tests for log discovery and project hashing."""

import hashlib
import os

import pytest

from proveit_monitor import discovery
from proveit_monitor.errors import AmbiguousSessionError


def touch(path, mtime=None):
    path.write_text("")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def test_project_hash_is_stable_and_short(tmp_path):
    repo = tmp_path / "repo"
    first = discovery.project_hash(repo)
    assert first == discovery.project_hash(str(repo))
    assert len(first) == 12
    expected = hashlib.sha256(str(repo.resolve()).encode()).hexdigest()[:12]
    assert first == expected


def test_project_hash_differs_per_path(tmp_path):
    assert discovery.project_hash(tmp_path / "repo") != discovery.project_hash(
        tmp_path / "repo-other"
    )


def test_project_hash_canonicalizes(tmp_path):
    repo = tmp_path / "repo"
    repo.mkdir()
    link = tmp_path / "link"
    link.symlink_to(repo)
    assert discovery.project_hash(link) == discovery.project_hash(repo)
    assert discovery.project_hash(tmp_path / "repo" / ".." / "repo") == (
        discovery.project_hash(repo)
    )


def test_project_log_name(tmp_path):
    name = discovery.project_log_name(tmp_path / "repo")
    assert name == f"_project_{discovery.project_hash(tmp_path / 'repo')}.jsonl"


def test_list_all_missing_directory(tmp_path):
    assert discovery.list_all(tmp_path / "nope") == []


def test_list_all_excludes_fixtures_and_in_progress(sessions_dir):
    touch(sessions_dir / "b.jsonl")
    touch(sessions_dir / "a.jsonl")
    touch(sessions_dir / "_project_0123456789ab.jsonl")
    touch(sessions_dir / "test-session-1.jsonl")
    touch(sessions_dir / ".tmp-c.jsonl")
    touch(sessions_dir / "a.json")
    (sessions_dir / "dir.jsonl").mkdir()

    names = [p.name for p in discovery.list_all(sessions_dir)]
    assert names == ["_project_0123456789ab.jsonl", "a.jsonl", "b.jsonl"]


def test_find_latest_uses_mtime(sessions_dir):
    touch(sessions_dir / "old.jsonl", mtime=1000)
    touch(sessions_dir / "new.jsonl", mtime=2000)
    touch(sessions_dir / "_project_abc.jsonl", mtime=3000)
    touch(sessions_dir / "test-session.jsonl", mtime=4000)
    assert discovery.find_latest(sessions_dir) == "new"


def test_find_latest_tie_is_deterministic(sessions_dir):
    touch(sessions_dir / "aaa.jsonl", mtime=1000)
    touch(sessions_dir / "zzz.jsonl", mtime=1000)
    assert discovery.find_latest(sessions_dir) == "zzz"
    assert discovery.find_latest(sessions_dir) == "zzz"


def test_find_latest_empty(tmp_path):
    assert discovery.find_latest(tmp_path) is None
    assert discovery.find_latest(tmp_path / "missing") is None


class TestFindByPrefix:
    @pytest.fixture(autouse=True)
    def logs(self, sessions_dir):
        for sid in ("abc123", "abc999", "xyz000"):
            touch(sessions_dir / f"{sid}.jsonl")

    def test_ambiguous(self, sessions_dir):
        with pytest.raises(AmbiguousSessionError) as excinfo:
            discovery.find_by_prefix(sessions_dir, "abc")
        assert excinfo.value.prefix == "abc"
        assert excinfo.value.candidates == ["abc123", "abc999"]

    def test_unique(self, sessions_dir):
        assert discovery.find_by_prefix(sessions_dir, "xyz") == "xyz000"

    def test_none(self, sessions_dir):
        assert discovery.find_by_prefix(sessions_dir, "qqq") is None

    def test_case_sensitive(self, sessions_dir):
        assert discovery.find_by_prefix(sessions_dir, "XYZ") is None

    def test_ignores_project_logs(self, sessions_dir):
        touch(sessions_dir / "_project_abc.jsonl")
        assert discovery.find_by_prefix(sessions_dir, "_project") is None


def test_list_for_project(sessions_dir, tmp_path, write_info):
    repo = tmp_path / "repo"
    other = tmp_path / "repo-other"
    repo.mkdir()
    other.mkdir()

    aggregate = touch(sessions_dir / discovery.project_log_name(repo))
    touch(sessions_dir / discovery.project_log_name(other))
    mine = touch(sessions_dir / "s-mine.jsonl")
    touch(sessions_dir / "s-other.jsonl")
    touch(sessions_dir / "s-noinfo.jsonl")
    write_info(sessions_dir, "s-mine", f"{repo}/./")
    write_info(sessions_dir, "s-other", other)

    assert discovery.list_for_project(sessions_dir, repo) == [aggregate, mine]


def test_list_for_project_without_aggregate(sessions_dir, tmp_path, write_info):
    repo = tmp_path / "repo"
    mine = touch(sessions_dir / "s1.jsonl")
    write_info(sessions_dir, "s1", repo)
    assert discovery.list_for_project(sessions_dir, repo) == [mine]
