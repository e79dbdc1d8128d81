import os
from datetime import datetime
from pathlib import Path

from droidscope.project_picker import (
    ProjectEntry,
    ProjectPicker,
    default_root,
    display_path,
    scan,
    spawn_scan,
)


def _project(path: Path, mtime: float | None = None) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    (path / "gradlew").write_text("#!/bin/sh\n")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def _set_home(monkeypatch, home: Path) -> None:
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))


def test_scan_finds_projects_sorted_by_mtime(tmp_path):
    old = _project(tmp_path / "old", 1_000_000)
    new = _project(tmp_path / "group" / "new", 2_000_000)
    assert [e.path for e in scan(tmp_path)] == [new, old]


def test_scan_skips_hidden_and_ignored_dirs(tmp_path):
    _project(tmp_path / ".hidden" / "app")
    _project(tmp_path / "node_modules" / "app")
    _project(tmp_path / "build" / "app")
    keep = _project(tmp_path / "work" / "app")
    assert [e.path for e in scan(tmp_path)] == [keep]


def test_scan_does_not_descend_into_projects(tmp_path):
    outer = _project(tmp_path / "outer")
    _project(outer / "nested")
    assert [e.path for e in scan(tmp_path)] == [outer]


def test_scan_depth_limit(tmp_path):
    deep = tmp_path / "a" / "b" / "c" / "d" / "e"
    _project(deep)
    _project(deep / "f" / "g")
    (deep / "gradlew").unlink()
    assert scan(tmp_path) == []
    _project(deep)
    assert [e.path for e in scan(tmp_path)] == [deep]


def test_scan_missing_root(tmp_path):
    assert scan(tmp_path / "missing") == []


def test_display_path_under_home(monkeypatch, tmp_path):
    _set_home(monkeypatch, tmp_path)
    assert display_path(tmp_path / "proj") == "~/proj"
    assert display_path(tmp_path) == "~/"


def test_display_path_outside_home(monkeypatch, tmp_path):
    _set_home(monkeypatch, tmp_path / "home")
    other = tmp_path / "elsewhere"
    assert display_path(other) == str(other)


def test_default_root(monkeypatch, tmp_path):
    _set_home(monkeypatch, tmp_path)
    assert default_root() == tmp_path / "Documents"


def test_modified_label_round_trip():
    stamp = datetime(2024, 1, 2, 3, 4).timestamp()
    entry = ProjectEntry(Path("x"), "x", stamp)
    assert entry.modified_label() == "2024-01-02 03:04"


def test_picker_defaults(tmp_path):
    picker = ProjectPicker(tmp_path)
    assert picker.loading is True
    assert picker.entries == []
    assert picker.selected == 0


def test_spawn_scan_emits_result(tmp_path):
    proj = _project(tmp_path / "app")
    got = []
    thread = spawn_scan(tmp_path, got.append)
    thread.join(5)
    assert [e.path for e in got[0]] == [proj]