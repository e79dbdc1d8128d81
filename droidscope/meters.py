"""Text and colour decisions for the device monitor panel."""

from __future__ import annotations

from typing import Iterable, Optional

from .monitor import MonitorSample, MonitorState
from .theme import RGB, Theme


def battery_color(level: int, theme: Theme) -> RGB:
    """Red below 20 %, amber below 50 %, green otherwise."""
    if level < 20:
        return theme.error
    if level < 50:
        return theme.warn
    return theme.success


def battery_label(sample: MonitorSample) -> str:
    """Battery line: level and temperature."""
    return f"battery  {sample.battery_percent}%  {sample.battery_temp_c:.1f}°C"


def memory_label(sample: MonitorSample) -> str:
    """Memory line: used percent and used/total in MB."""
    return (
        f"memory   {sample.mem_used_percent():.1f}%  "
        f"{sample.mem_used_kb() // 1024} MB / {sample.mem_total_kb // 1024} MB"
    )


def gauge_ratio(percent: float) -> float:
    """Fill ratio of a gauge for a percentage, clamped to 0..1."""
    return min(max(percent / 100.0, 0.0), 1.0)


def memory_history(samples: Iterable[MonitorSample]) -> list[int]:
    """Whole-percent memory use of each sample, oldest first."""
    return [int(s.mem_used_percent()) for s in samples]


def waiting_message(state: MonitorState) -> Optional[str]:
    """Placeholder text while no sample exists, else ``None``."""
    if state.latest() is not None:
        return None
    if state.last_error is not None:
        return "monitor error — check adb"
    return "waiting for first sample..."