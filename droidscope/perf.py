"""Per-package performance sampling: memory, CPU, frame jank and GC hints."""

from __future__ import annotations

import re
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from .adbshell import AdbError, run_shell

HISTORY = 60
POLL_INTERVAL = 2.0
CLK_TCK = 100
GC_DROP_THRESHOLD_KB = 512

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1
_UINT = re.compile(r"\+?[0-9]+")


class PackageHandle:
    """Thread-safe holder for the package currently being profiled."""

    def __init__(self, package: Optional[str] = None) -> None:
        self._lock = threading.Lock()
        self._package = package

    def get(self) -> Optional[str]:
        with self._lock:
            return self._package

    def set(self, package: Optional[str]) -> None:
        with self._lock:
            self._package = package


@dataclass(frozen=True)
class PerfSample:
    """One performance reading for a running package."""

    pid: int = 0
    pss_total_kb: int = 0
    rss_total_kb: int = 0
    java_heap_kb: int = 0
    native_heap_kb: int = 0
    code_kb: int = 0
    stack_kb: int = 0
    graphics_kb: int = 0
    private_other_kb: int = 0
    system_kb: int = 0
    dalvik_heap_alloc_kb: int = 0
    native_heap_alloc_kb: int = 0
    cpu_percent: float = 0.0
    jank_percent: float = 0.0
    frames_total: int = 0
    p50_ms: float = 0.0
    p90_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0
    gc_markers: int = 0
    gc_delta: int = 0


@dataclass
class PerfState:
    """Recent samples for the selected package, newest last."""

    package_handle: PackageHandle = field(default_factory=PackageHandle)
    samples: deque = field(default_factory=lambda: deque(maxlen=HISTORY))
    last_error: Optional[str] = None

    def push(self, sample: PerfSample) -> None:
        self.samples.append(sample)
        self.last_error = None

    def latest(self) -> Optional[PerfSample]:
        return self.samples[-1] if self.samples else None

    def current_package(self) -> Optional[str]:
        return self.package_handle.get()

    def set_package(self, pkg: Optional[str]) -> None:
        """Switch to another package, dropping the old history."""
        self.package_handle.set(pkg)
        self.samples.clear()
        self.last_error = None


@dataclass
class MemInfo:
    """Figures taken from ``dumpsys meminfo <package>``, in kB."""

    pss_total_kb: int = 0
    rss_total_kb: int = 0
    java_heap_kb: int = 0
    native_heap_kb: int = 0
    code_kb: int = 0
    stack_kb: int = 0
    graphics_kb: int = 0
    private_other_kb: int = 0
    system_kb: int = 0
    dalvik_heap_alloc_kb: int = 0
    native_heap_alloc_kb: int = 0


@dataclass
class GfxInfo:
    """Figures taken from ``dumpsys gfxinfo <package>``."""

    frames_total: int = 0
    jank_percent: float = 0.0
    p50_ms: float = 0.0
    p90_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0


def _parse_uint(text: str, maximum: int = _U64_MAX) -> Optional[int]:
    if not _UINT.fullmatch(text):
        return None
    value = int(text)
    return value if value <= maximum else None


def _parse_float(text: str) -> Optional[float]:
    if not text or "_" in text or text != text.strip():
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _parse_numbers(text: str) -> list[int]:
    return [n for n in (_parse_uint(w) for w in text.split()) if n is not None]


def _first_u64(text: str) -> int:
    return next((n for n in (_parse_uint(w) for w in text.split()) if n is not None), 0)


_SUMMARY_FIELDS = (
    ("Java Heap:", "java_heap_kb"),
    ("Native Heap:", "native_heap_kb"),
    ("Code:", "code_kb"),
    ("Stack:", "stack_kb"),
    ("Graphics:", "graphics_kb"),
    ("Private Other:", "private_other_kb"),
    ("System:", "system_kb"),
)


def parse_meminfo(raw: str) -> MemInfo:
    """Parse ``dumpsys meminfo`` for one package."""
    m = MemInfo()
    in_summary = False
    for line in raw.splitlines():
        t = line.strip()
        if t.startswith("App Summary"):
            in_summary = True
            continue
        if in_summary:
            for prefix, attr in _SUMMARY_FIELDS:
                if t.startswith(prefix):
                    setattr(m, attr, _first_u64(t[len(prefix):]))
                    break
            else:
                if t.startswith("TOTAL PSS:"):
                    v = t[len("TOTAL PSS:"):]
                    m.pss_total_kb = _first_u64(v)
                    idx = v.find("TOTAL RSS:")
                    if idx != -1:
                        m.rss_total_kb = _first_u64(v[idx + len("TOTAL RSS:"):])
        elif t.startswith("Native Heap"):
            cols = _parse_numbers(t[len("Native Heap"):])
            if len(cols) >= 7:
                m.native_heap_alloc_kb = cols[6]
        elif t.startswith("Dalvik Heap"):
            cols = _parse_numbers(t[len("Dalvik Heap"):])
            if len(cols) >= 7:
                m.dalvik_heap_alloc_kb = cols[6]
        elif t.startswith("TOTAL"):
            if m.pss_total_kb == 0:
                cols = _parse_numbers(t[len("TOTAL"):])
                if cols:
                    m.pss_total_kb = cols[0]
                if len(cols) >= 5 and m.rss_total_kb == 0:
                    m.rss_total_kb = cols[4]
    return m


def parse_ms(value: str) -> float:
    """Parse a duration such as ``12ms``; unparsable input gives 0."""
    text = value.strip()
    while text.endswith("ms"):
        text = text[:-2]
    parsed = _parse_float(text.strip())
    return 0.0 if parsed is None else parsed


def parse_gfxinfo(raw: str) -> GfxInfo:
    """Parse frame statistics from ``dumpsys gfxinfo``."""
    g = GfxInfo()
    percentiles = (
        ("50th percentile:", "p50_ms"),
        ("90th percentile:", "p90_ms"),
        ("95th percentile:", "p95_ms"),
        ("99th percentile:", "p99_ms"),
    )
    for line in raw.splitlines():
        t = line.strip()
        if t.startswith("Total frames rendered:"):
            parsed = _parse_uint(t[len("Total frames rendered:"):].strip())
            g.frames_total = 0 if parsed is None else parsed
        elif t.startswith("Janky frames:"):
            words = t[len("Janky frames:"):].split()
            if len(words) >= 2:
                parsed_pct = _parse_float(words[1].strip("()%"))
                g.jank_percent = 0.0 if parsed_pct is None else parsed_pct
        else:
            for prefix, attr in percentiles:
                if t.startswith(prefix):
                    setattr(g, attr, parse_ms(t[len(prefix):]))
                    break
    return g


def parse_proc_stat_ticks(raw: str) -> Optional[int]:
    """User plus system CPU ticks from a ``/proc/<pid>/stat`` line."""
    idx = raw.rfind(")")
    if idx == -1:
        return None
    fields = raw[idx + 1:].split()
    if len(fields) < 13:
        return None
    utime = _parse_uint(fields[11])
    stime = _parse_uint(fields[12])
    if utime is None or stime is None:
        return None
    return utime + stime


def _pidof(serial: Optional[str], package: str) -> int:
    words = run_shell(serial, ["pidof", "-s", package]).split()
    pid = _parse_uint(words[0], _U32_MAX) if words else None
    if pid is None:
        raise AdbError("process not running")
    return pid


@dataclass(frozen=True)
class _CpuPrev:
    at: float
    ticks: int
    pid: int


class PerfSampler:
    """Takes samples and keeps what is needed between them (CPU, GC drops)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.reset()

    def reset(self) -> None:
        """Forget CPU and heap history, e.g. after switching package."""
        self._prev_cpu: Optional[_CpuPrev] = None
        self._prev_dalvik_alloc: Optional[int] = None
        self.gc_markers = 0

    def sample(self, serial: Optional[str], package: str) -> PerfSample:
        """Read one sample of ``package``; raises :class:`AdbError` on failure."""
        pid = _pidof(serial, package)
        mem = parse_meminfo(run_shell(serial, ["dumpsys", "meminfo", package]))
        gfx = parse_gfxinfo(run_shell(serial, ["dumpsys", "gfxinfo", package]))
        ticks = parse_proc_stat_ticks(run_shell(serial, ["cat", f"/proc/{pid}/stat"]))
        now = self._clock()

        cpu_percent = 0.0
        prev = self._prev_cpu
        if prev is not None and ticks is not None and prev.pid == pid:
            dt = now - prev.at
            if dt > 0:
                delta = max(ticks - prev.ticks, 0)
                cpu_percent = (delta / CLK_TCK) / dt * 100.0
        if ticks is not None:
            self._prev_cpu = _CpuPrev(now, ticks, pid)

        gc_delta = 0
        prev_alloc = self._prev_dalvik_alloc
        alloc = mem.dalvik_heap_alloc_kb
        if prev_alloc is not None and prev_alloc > alloc and prev_alloc - alloc >= GC_DROP_THRESHOLD_KB:
            gc_delta = 1
            self.gc_markers = min(self.gc_markers + 1, _U32_MAX)
        self._prev_dalvik_alloc = alloc

        return PerfSample(
            pid=pid,
            pss_total_kb=mem.pss_total_kb,
            rss_total_kb=mem.rss_total_kb,
            java_heap_kb=mem.java_heap_kb,
            native_heap_kb=mem.native_heap_kb,
            code_kb=mem.code_kb,
            stack_kb=mem.stack_kb,
            graphics_kb=mem.graphics_kb,
            private_other_kb=mem.private_other_kb,
            system_kb=mem.system_kb,
            dalvik_heap_alloc_kb=mem.dalvik_heap_alloc_kb,
            native_heap_alloc_kb=mem.native_heap_alloc_kb,
            cpu_percent=cpu_percent,
            jank_percent=gfx.jank_percent,
            frames_total=gfx.frames_total,
            p50_ms=gfx.p50_ms,
            p90_ms=gfx.p90_ms,
            p95_ms=gfx.p95_ms,
            p99_ms=gfx.p99_ms,
            gc_markers=self.gc_markers,
            gc_delta=gc_delta,
        )


def spawn_poller(
    serial: Optional[str],
    handle: PackageHandle,
    emit: Callable[[Union[PerfSample, AdbError]], None],
    stop: threading.Event,
) -> threading.Thread:
    """Sample the package held by ``handle`` until ``stop`` is set.

    ``emit`` receives each sample, or an :class:`AdbError` when a poll fails.
    Nothing is sampled while no package is set.
    """

    def run() -> None:
        sampler = PerfSampler()
        last_pkg: Optional[str] = None
        while not stop.is_set():
            package = handle.get()
            if package is None:
                last_pkg = None
                sampler.reset()
                stop.wait(POLL_INTERVAL)
                continue
            if package != last_pkg:
                sampler.reset()
                last_pkg = package
            try:
                result = sampler.sample(serial, package)
            except AdbError as exc:
                emit(AdbError(f"perf: {exc}"))
            else:
                emit(result)
            stop.wait(POLL_INTERVAL)

    thread = threading.Thread(target=run, name="perf-poller", daemon=True)
    thread.start()
    return thread