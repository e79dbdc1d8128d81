import subprocess
import threading
from unittest import mock

import pytest

from droidscope.adbshell import AdbError
from droidscope.perf import (
    HISTORY,
    PackageHandle,
    PerfSample,
    PerfSampler,
    PerfState,
    parse_gfxinfo,
    parse_meminfo,
    parse_ms,
    parse_proc_stat_ticks,
    spawn_poller,
)

MEMINFO = """\
** MEMINFO in pid 12345 [com.example] **
                   Pss  Private  Private  SwapPss      Rss     Heap     Heap     Heap
                 Total    Dirty    Clean    Dirty    Total     Size    Alloc     Free
                ------   ------   ------   ------   ------   ------   ------   ------
  Native Heap     9324     9324        0        0    19832    12288    10284     2004
  Dalvik Heap     4216     4108        0        0     9704    11376     6232     5144
     TOTAL       41212    32776     1308       20   119567    23664    16516     7148

 App Summary
                       Pss(KB)                        Rss(KB)
                        ------                         ------
           Java Heap:     7728                          14868
         Native Heap:     9324                          19832
                Code:     9292                          65128
               Stack:       40                             44
            Graphics:    14020                          14020
       Private Other:     2068
              System:     3620

           TOTAL PSS:    41212            TOTAL RSS:   120192       TOTAL SWAP PSS:       20
"""

GFXINFO = """\
Total frames rendered: 412
Janky frames: 15 (3.64%)
50th percentile: 6ms
90th percentile: 12ms
95th percentile: 15ms
99th percentile: 28ms
"""

STAT = "1234 (com.ex ample) R 1 1 1 0 -1 4194304 100 0 0 0 50 30 0 0 20 0 1 0 12345 0 0 0 0"


def test_parses_meminfo_app_summary():
    m = parse_meminfo(MEMINFO)
    assert m.pss_total_kb == 41212
    assert m.rss_total_kb == 120192
    assert m.java_heap_kb == 7728
    assert m.native_heap_kb == 9324
    assert m.code_kb == 9292
    assert m.stack_kb == 40
    assert m.graphics_kb == 14020
    assert m.private_other_kb == 2068
    assert m.system_kb == 3620
    assert m.dalvik_heap_alloc_kb == 6232
    assert m.native_heap_alloc_kb == 10284


def test_meminfo_without_summary_uses_total_row():
    raw = "\n".join(MEMINFO.splitlines()[:7])
    m = parse_meminfo(raw)
    assert m.pss_total_kb == 41212
    assert m.rss_total_kb == 119567
    assert m.java_heap_kb == 0


def test_parses_gfxinfo():
    g = parse_gfxinfo(GFXINFO)
    assert g.frames_total == 412
    assert abs(g.jank_percent - 3.64) < 0.01
    assert abs(g.p50_ms - 6.0) < 0.01
    assert abs(g.p90_ms - 12.0) < 0.01
    assert abs(g.p95_ms - 15.0) < 0.01
    assert abs(g.p99_ms - 28.0) < 0.01


def test_gfxinfo_empty_is_zero():
    g = parse_gfxinfo("")
    assert (g.frames_total, g.jank_percent, g.p99_ms) == (0, 0.0, 0.0)


@pytest.mark.parametrize("value, expected", [(" 12ms", 12.0), ("6", 6.0), ("junk", 0.0), ("", 0.0)])
def test_parse_ms(value, expected):
    assert parse_ms(value) == expected


def test_parses_proc_stat_ticks():
    assert parse_proc_stat_ticks(STAT) == 80


def test_proc_stat_ticks_missing_fields():
    assert parse_proc_stat_ticks("1234 (app) R 1 2") is None
    assert parse_proc_stat_ticks("no paren here") is None


def test_package_handle_roundtrip():
    handle = PackageHandle()
    assert handle.get() is None
    handle.set("com.example.app")
    assert handle.get() == "com.example.app"


def test_perf_state_history_and_package_switch():
    state = PerfState()
    state.last_error = "boom"
    for pid in range(HISTORY + 5):
        state.push(PerfSample(pid=pid))
    assert len(state.samples) == HISTORY
    assert state.latest().pid == HISTORY + 4
    assert state.last_error is None
    state.set_package("com.example.app")
    assert state.current_package() == "com.example.app"
    assert state.latest() is None


def _meminfo_with_alloc(alloc):
    return MEMINFO.replace("11376     6232", f"11376     {alloc}")


def _fake_adb(outputs):
    def run(cmd, **kwargs):
        key = " ".join(cmd[cmd.index("shell") + 1:])
        value = outputs[key]
        if isinstance(value, list):
            value = value.pop(0)
        return subprocess.CompletedProcess(cmd, 0, stdout=value.encode(), stderr=b"")

    return run


def _outputs(stats, meminfos):
    return {
        "pidof -s com.example": "1234\n",
        "dumpsys meminfo com.example": meminfos,
        "dumpsys gfxinfo com.example": GFXINFO,
        "cat /proc/1234/stat": stats,
    }


def test_sampler_cpu_and_gc():
    times = iter([10.0, 11.0])
    sampler = PerfSampler(clock=lambda: next(times))
    stat2 = STAT.replace(" 50 30 ", " 150 30 ")
    outputs = _outputs([STAT, stat2], [_meminfo_with_alloc(6232), _meminfo_with_alloc(5000)])
    with mock.patch("droidscope.adbshell.subprocess.run", side_effect=_fake_adb(outputs)):
        first = sampler.sample(None, "com.example")
        second = sampler.sample(None, "com.example")
    assert first.pid == 1234
    assert first.cpu_percent == 0.0
    assert first.gc_delta == 0
    assert first.pss_total_kb == 41212
    assert first.frames_total == 412
    assert second.cpu_percent == pytest.approx(100.0)
    assert second.gc_delta == 1
    assert second.gc_markers == 1


def test_sampler_reset_clears_history():
    times = iter([1.0, 2.0])
    sampler = PerfSampler(clock=lambda: next(times))
    outputs = _outputs([STAT, STAT.replace(" 50 30 ", " 150 30 ")],
                       [_meminfo_with_alloc(6232), _meminfo_with_alloc(1000)])
    with mock.patch("droidscope.adbshell.subprocess.run", side_effect=_fake_adb(outputs)):
        sampler.sample(None, "com.example")
        sampler.reset()
        second = sampler.sample(None, "com.example")
    assert second.cpu_percent == 0.0
    assert second.gc_delta == 0
    assert second.gc_markers == 0


def test_sampler_process_not_running():
    outputs = _outputs(STAT, MEMINFO)
    outputs["pidof -s com.example"] = ""
    with mock.patch("droidscope.adbshell.subprocess.run", side_effect=_fake_adb(outputs)):
        with pytest.raises(AdbError, match="process not running"):
            PerfSampler().sample(None, "com.example")


def test_spawn_poller_emits_sample():
    handle = PackageHandle("com.example")
    stop = threading.Event()
    got = []

    def emit(item):
        got.append(item)
        stop.set()

    with mock.patch("droidscope.adbshell.subprocess.run", side_effect=_fake_adb(_outputs(STAT, MEMINFO))):
        thread = spawn_poller(None, handle, emit, stop)
        thread.join(5)
    assert not thread.is_alive()
    assert got[0].pid == 1234


def test_spawn_poller_emits_error():
    handle = PackageHandle("com.example")
    stop = threading.Event()
    got = []

    def emit(item):
        got.append(item)
        stop.set()

    outputs = _outputs(STAT, MEMINFO)
    outputs["pidof -s com.example"] = ""
    with mock.patch("droidscope.adbshell.subprocess.run", side_effect=_fake_adb(outputs)):
        thread = spawn_poller(None, handle, emit, stop)
        thread.join(5)
    assert not thread.is_alive()
    assert isinstance(got[0], AdbError)
    assert str(got[0]) == "perf: process not running"