"""Process list sampling from the device."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from .adbshell import AdbError, run_shell

POLL_INTERVAL = 3.0

_UINT = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class ProcessInfo:
    """One row of the device process table."""

    pid: int
    user: str
    rss_kb: int
    name: str


@dataclass
class ProcessesState:
    """Current process list and selection."""

    processes: list[ProcessInfo] = field(default_factory=list)
    last_error: Optional[str] = None
    selected: int = 0

    def replace(self, processes: list[ProcessInfo]) -> None:
        self.processes = processes
        self.last_error = None
        if self.selected >= len(self.processes):
            self.selected = max(len(self.processes) - 1, 0)


def _uint(text: str) -> Optional[int]:
    return int(text) if _UINT.fullmatch(text) else None


def parse_ps(text: str) -> list[ProcessInfo]:
    """Parse ``ps -o PID,USER,RSS,NAME`` output, largest RSS first."""
    out = []
    for line in text.splitlines()[1:]:
        cols = line.split()
        if len(cols) < 4:
            continue
        pid = _uint(cols[0])
        rss = _uint(cols[2])
        if pid is None or rss is None:
            continue
        out.append(ProcessInfo(pid=pid, user=cols[1], rss_kb=rss, name=" ".join(cols[3:])))
    out.sort(key=lambda p: p.rss_kb, reverse=True)
    return out


def sample(serial: Optional[str]) -> list[ProcessInfo]:
    """Read the process table from the device."""
    return parse_ps(run_shell(serial, ["ps", "-A", "-o", "PID,USER,RSS,NAME"]))


def spawn_poller(
    serial: Optional[str],
    emit: Callable[[Union[list[ProcessInfo], AdbError]], None],
    stop: threading.Event,
) -> threading.Thread:
    """Poll the process table in a background thread until ``stop`` is set.

    ``emit`` receives each list, or an :class:`AdbError` when a poll fails.
    """

    def run() -> None:
        while not stop.is_set():
            try:
                procs = sample(serial)
            except AdbError as exc:
                emit(AdbError(f"processes: {exc}"))
            else:
                emit(procs)
            stop.wait(POLL_INTERVAL)

    thread = threading.Thread(target=run, name="processes-poller", daemon=True)
    thread.start()
    return thread