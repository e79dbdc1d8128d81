"""Finding Gradle projects on disk."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

SKIP_DIRS = frozenset(
    {
        "node_modules",
        ".gradle",
        ".git",
        ".idea",
        ".vscode",
        "build",
        "Pods",
        "DerivedData",
        ".dart_tool",
        ".kotlin",
        "target",
        ".cxx",
        ".cache",
        "Library",
    }
)

MAX_DEPTH = 5
MAX_ENTRIES = 256


@dataclass(frozen=True)
class ProjectEntry:
    """A directory holding a ``gradlew`` script."""

    path: Path
    display: str
    modified: float

    def modified_label(self) -> str:
        """Modification time in local time, minute precision."""
        return datetime.fromtimestamp(self.modified).strftime("%Y-%m-%d %H:%M")


@dataclass
class ProjectPicker:
    """State of the project selection dialog."""

    root: Path
    entries: list[ProjectEntry] = field(default_factory=list)
    selected: int = 0
    loading: bool = True


def _home() -> Optional[Path]:
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        return None


def default_root() -> Path:
    """Where project scans start: ~/Documents, or the current directory."""
    home = _home()
    return home / "Documents" if home is not None else Path(".")


def display_path(path: Path) -> str:
    """Show ``path`` relative to the home directory where possible."""
    path = Path(path)
    home = _home()
    if home is not None:
        try:
            rel = path.relative_to(home)
        except ValueError:
            pass
        else:
            return "~/" if not rel.parts else f"~/{rel}"
    return str(path)


def _walk(directory: Path, depth: int, out: list[ProjectEntry]) -> None:
    if depth > MAX_DEPTH:
        return
    if (directory / "gradlew").is_file():
        try:
            modified = directory.stat().st_mtime
        except OSError:
            modified = 0.0
        out.append(ProjectEntry(directory, display_path(directory), modified))
        return
    try:
        with os.scandir(directory) as it:
            children = [
                Path(entry.path)
                for entry in it
                if _is_real_dir(entry)
                and not entry.name.startswith(".")
                and entry.name not in SKIP_DIRS
            ]
    except OSError:
        return
    for child in children:
        _walk(child, depth + 1, out)


def _is_real_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def scan(root: Path) -> list[ProjectEntry]:
    """Find projects under ``root``, most recently modified first."""
    out: list[ProjectEntry] = []
    _walk(Path(root), 0, out)
    out.sort(key=lambda e: e.modified, reverse=True)
    return out[:MAX_ENTRIES]


def spawn_scan(
    root: Path, emit: Callable[[list[ProjectEntry]], None]
) -> threading.Thread:
    """Scan ``root`` in a background thread and pass the result to ``emit``."""
    thread = threading.Thread(
        target=lambda: emit(scan(root)), name="project-scan", daemon=True
    )
    thread.start()
    return thread