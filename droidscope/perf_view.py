"""Text and colour decisions for the per-package performance panel."""

from __future__ import annotations

from typing import Iterable, Optional

from .perf import PerfSample
from .theme import RGB, Theme


def fmt_mb(kb: int) -> str:
    """Human size: whole MB from 10 MB up, one decimal from 1 MB, else KB."""
    if kb >= 10 * 1024:
        return f"{kb // 1024} MB"
    if kb >= 1024:
        return f"{kb / 1024.0:.1f} MB"
    return f"{kb} KB"


def cpu_color(pct: float, theme: Theme) -> RGB:
    """Green below 30 %, amber below 70 %, red otherwise."""
    if pct < 30.0:
        return theme.success
    if pct < 70.0:
        return theme.warn
    return theme.error


def jank_color(pct: float, theme: Theme) -> RGB:
    """Green below 1 % janky frames, amber below 5 %, red otherwise."""
    if pct < 1.0:
        return theme.success
    if pct < 5.0:
        return theme.warn
    return theme.error


def pct_color(ms: float, theme: Theme) -> RGB:
    """Green within one 60 Hz frame, amber within two, red beyond."""
    if ms <= 16.0:
        return theme.success
    if ms <= 33.0:
        return theme.warn
    return theme.error


def panel_title(package: Optional[str], sample: Optional[PerfSample]) -> str:
    """Border title naming the package and, once sampled, its pid."""
    if package is None:
        return " perf "
    if sample is None:
        return f" perf · {package} "
    return f" perf · {package} (pid {sample.pid}) "


def summary_lines(sample: PerfSample) -> list[str]:
    """The five text rows of the panel: totals, two breakdowns, heap/GC, jank."""
    gc_mark = " •" if sample.gc_delta > 0 else ""
    return [
        f"pss {fmt_mb(sample.pss_total_kb)} "
        f"rss {fmt_mb(sample.rss_total_kb)} "
        f"cpu {sample.cpu_percent:.1f}%",
        f"java {fmt_mb(sample.java_heap_kb)}  "
        f"native {fmt_mb(sample.native_heap_kb)}  "
        f"gfx {fmt_mb(sample.graphics_kb)}",
        f"code {fmt_mb(sample.code_kb)}  "
        f"stack {fmt_mb(sample.stack_kb)}  "
        f"other {fmt_mb(sample.private_other_kb)}  "
        f"sys {fmt_mb(sample.system_kb)}",
        f"heap {fmt_mb(sample.dalvik_heap_alloc_kb)} alloc  "
        f"native {fmt_mb(sample.native_heap_alloc_kb)} alloc  "
        f"gc {sample.gc_markers}{gc_mark}",
        f"jank {sample.jank_percent:.2f}% ({sample.frames_total} fr)  "
        f"p50 {sample.p50_ms:.0f}ms "
        f"p90 {sample.p90_ms:.0f}ms "
        f"p95 {sample.p95_ms:.0f}ms "
        f"p99 {sample.p99_ms:.0f}ms",
    ]


def pss_history(samples: Iterable[PerfSample]) -> list[int]:
    """Total PSS of each sample in whole MB, oldest first."""
    return [s.pss_total_kb // 1024 for s in samples]