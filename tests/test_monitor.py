import subprocess
import threading
from unittest import mock

import pytest

from droidscope.adbshell import AdbError
from droidscope.monitor import (
    HISTORY,
    MonitorSample,
    MonitorState,
    parse_battery,
    parse_meminfo,
    sample,
    spawn_poller,
)

BATTERY = """Current Battery Service state:
  AC powered: false
  level: 85
  scale: 100
  temperature: 283
"""

MEMINFO = """MemTotal:        3000000 kB
MemFree:          200000 kB
MemAvailable:    1000000 kB
"""


def _fake_run(cmd, **kwargs):
    if "battery" in cmd:
        out = BATTERY
    else:
        out = MEMINFO
    return subprocess.CompletedProcess(cmd, 0, stdout=out.encode(), stderr=b"")


def test_parse_battery():
    level, temp = parse_battery(BATTERY)
    assert level == 85
    assert temp == pytest.approx(28.3)


def test_parse_battery_bad_values_default_to_zero():
    assert parse_battery("level: lots\ntemperature: warm") == (0, 0.0)
    assert parse_battery("level: 300")[0] == 0


def test_parse_meminfo():
    assert parse_meminfo(MEMINFO) == (3000000, 1000000)


def test_parse_meminfo_missing():
    assert parse_meminfo("Cached: 12 kB") == (0, 0)


def test_mem_used():
    s = MonitorSample(mem_total_kb=1000, mem_available_kb=250)
    assert s.mem_used_kb() == 750
    assert s.mem_used_percent() == pytest.approx(75.0)


def test_mem_used_saturates_and_zero_total():
    s = MonitorSample(mem_total_kb=100, mem_available_kb=500)
    assert s.mem_used_kb() == 0
    assert MonitorSample().mem_used_percent() == 0.0


def test_state_history_bounded():
    state = MonitorState(last_error="boom")
    assert state.latest() is None
    for i in range(HISTORY + 1):
        state.push(MonitorSample(battery_percent=i))
    assert len(state.samples) == HISTORY
    assert state.samples[0].battery_percent == 1
    assert state.latest().battery_percent == HISTORY
    assert state.last_error is None


def test_sample_reads_device():
    with mock.patch("droidscope.adbshell.subprocess.run", side_effect=_fake_run):
        s = sample(None)
    assert s.battery_percent == 85
    assert s.mem_total_kb == 3000000
    assert s.mem_available_kb == 1000000


def test_poller_emits_samples_until_stopped():
    stop = threading.Event()
    got = []
    first = threading.Event()

    def emit(item):
        got.append(item)
        first.set()

    with mock.patch("droidscope.adbshell.subprocess.run", side_effect=_fake_run):
        thread = spawn_poller("serial-x", emit, stop)
        assert first.wait(5)
        stop.set()
        thread.join(5)
    assert not thread.is_alive()
    assert got[0].battery_percent == 85


def test_poller_emits_errors():
    stop = threading.Event()
    got = []
    first = threading.Event()

    def emit(item):
        got.append(item)
        first.set()

    failed = subprocess.CompletedProcess(["adb"], 1, stdout=b"", stderr=b"offline")
    with mock.patch("droidscope.adbshell.subprocess.run", return_value=failed):
        thread = spawn_poller(None, emit, stop)
        assert first.wait(5)
        stop.set()
        thread.join(5)
    assert not thread.is_alive()
    assert isinstance(got[0], AdbError)
    assert str(got[0]) == "monitor: offline"