"""Battery and memory sampling for the device monitor panel."""

from __future__ import annotations

import re
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from .adbshell import AdbError, run_shell

HISTORY = 60
POLL_INTERVAL = 2.0

_UINT = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class MonitorSample:
    """One reading of battery and memory state."""

    battery_percent: int = 0
    battery_temp_c: float = 0.0
    mem_total_kb: int = 0
    mem_available_kb: int = 0

    def mem_used_kb(self) -> int:
        return max(self.mem_total_kb - self.mem_available_kb, 0)

    def mem_used_percent(self) -> float:
        if self.mem_total_kb == 0:
            return 0.0
        return self.mem_used_kb() / self.mem_total_kb * 100.0


@dataclass
class MonitorState:
    """Recent samples, newest last, bounded to a fixed history."""

    samples: deque = field(default_factory=lambda: deque(maxlen=HISTORY))
    last_error: Optional[str] = None

    def push(self, sample: MonitorSample) -> None:
        self.samples.append(sample)
        self.last_error = None

    def latest(self) -> Optional[MonitorSample]:
        return self.samples[-1] if self.samples else None


def _parse_uint(text: str, maximum: Optional[int] = None) -> Optional[int]:
    if not _UINT.fullmatch(text):
        return None
    value = int(text)
    if maximum is not None and value > maximum:
        return None
    return value


def _parse_kb(text: str) -> int:
    words = text.split()
    if not words:
        return 0
    value = _parse_uint(words[0])
    return 0 if value is None else value


def parse_battery(raw: str) -> tuple[int, float]:
    """Extract level percent and temperature (°C) from ``dumpsys battery``."""
    level = 0
    temp = 0.0
    for line in raw.splitlines():
        line = line.strip()
        if line.startswith("level:"):
            parsed = _parse_uint(line[len("level:"):].strip(), 255)
            level = 0 if parsed is None else parsed
        elif line.startswith("temperature:"):
            # Reported in tenths of a degree.
            try:
                tenths = float(line[len("temperature:"):].strip())
            except ValueError:
                tenths = 0.0
            temp = tenths / 10.0
    return level, temp


def parse_meminfo(raw: str) -> tuple[int, int]:
    """Extract MemTotal and MemAvailable (kB) from ``/proc/meminfo``."""
    total = 0
    available = 0
    for line in raw.splitlines():
        if line.startswith("MemTotal:"):
            total = _parse_kb(line[len("MemTotal:"):])
        elif line.startswith("MemAvailable:"):
            available = _parse_kb(line[len("MemAvailable:"):])
    return total, available


def sample(serial: Optional[str]) -> MonitorSample:
    """Take one reading from the device."""
    level, temp = parse_battery(run_shell(serial, ["dumpsys", "battery"]))
    total, available = parse_meminfo(run_shell(serial, ["cat", "/proc/meminfo"]))
    return MonitorSample(
        battery_percent=level,
        battery_temp_c=temp,
        mem_total_kb=total,
        mem_available_kb=available,
    )


def spawn_poller(
    serial: Optional[str],
    emit: Callable[[Union[MonitorSample, AdbError]], None],
    stop: threading.Event,
) -> threading.Thread:
    """Poll the device in a background thread until ``stop`` is set.

    ``emit`` receives each sample, or an :class:`AdbError` when a poll fails.
    """

    def run() -> None:
        while not stop.is_set():
            try:
                result = sample(serial)
            except AdbError as exc:
                emit(AdbError(f"monitor: {exc}"))
            else:
                emit(result)
            stop.wait(POLL_INTERVAL)

    thread = threading.Thread(target=run, name="monitor-poller", daemon=True)
    thread.start()
    return thread