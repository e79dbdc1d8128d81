# droidscope

Building blocks for watching an Android device over `adb`: device and app
metrics, process lists, Android project discovery, and an APK manifest
inspector.

`adb` must be on your `PATH`. The manifest inspector uses `aapt` or
`apkanalyzer` when it can find them. It looks on `PATH` first, then in the
Android SDK (`ANDROID_HOME`, `ANDROID_SDK_ROOT`, `~/Library/Android/sdk`,
`~/Android/Sdk`). If it finds neither tool, it reads `dumpsys package`
instead.

## Install

```
pip install .
```

## What is inside

- `droidscope.adbshell`
  - `adb_command(serial, *args)` builds an adb argument list.
  - `run_shell(serial, args)` runs `adb shell` and returns its output. On
    failure it raises `AdbError`.
- `droidscope.monitor`: battery level, battery temperature and memory use.
  - `sample(serial)` takes one reading.
  - `spawn_poller(serial, emit, stop)` takes a reading every two seconds in a
    background thread, until `stop` (a `threading.Event`) is set. `emit`
    receives each `MonitorSample`, or an `AdbError` when a poll fails.
  - `MonitorState` keeps the last 60 samples.
  - `parse_battery` and `parse_meminfo` parse the raw command output.
- `droidscope.processes`: the device process list, with the largest RSS first.
  - `sample(serial)` reads the list once.
  - `spawn_poller(serial, emit, stop)` reads it every three seconds.
  - `parse_ps(text)` parses `ps -A -o PID,USER,RSS,NAME` output.
  - `ProcessesState` keeps the list and the selection.
- `droidscope.perf`: samples one app at a time. Each sample has:
  - PSS, RSS and the memory breakdown;
  - CPU percentage, worked out from `/proc/<pid>/stat` between samples;
  - gfxinfo jank and frame-time percentiles;
  - a GC marker, counted when the Dalvik heap allocation drops by 512 kB or more.

  `PerfSampler.sample(serial, package)` takes one sample. For continuous
  sampling, use a `PackageHandle` with `spawn_poller(serial, handle, emit, stop)`.
  `PerfState` keeps the history. `parse_meminfo`, `parse_gfxinfo` and
  `parse_proc_stat_ticks` parse the raw command output.
- `droidscope.manifest`: parsers for manifest data.
  - `parse_aapt_xmltree` reads `aapt dump xmltree` output.
  - `parse_manifest_xml` reads pretty-printed manifest XML.
  - `parse_dumpsys` reads `dumpsys package` output.

  Each parser returns a `ParsedManifest`. `render_report(...)` turns one into
  a text report.
- `droidscope.manifest_inspect`
  - `inspect(serial, package)` finds the installed APK with `pm path`, pulls
    it and inspects it. It returns a `ManifestReport`.
  - `spawn_inspect(serial, package, emit)` does the same in a background
    thread.
  - `ManifestState` holds the panel state.
- `droidscope.project_picker`: `scan(root)` finds Gradle projects, meaning
  directories that hold `gradlew`.
  - It goes at most five levels deep and returns at most 256 projects, newest
    first.
  - The usual starting point is `default_root()` (`~/Documents`).
- Formatting helpers:
  - `droidscope.panel`: panel identifiers and key bindings.
  - `droidscope.theme`: the dark and light colour themes, and
    `hashed_color`, which gives each string a stable colour.
  - `droidscope.meters`, `droidscope.perf_view` and `droidscope.text`: the
    text lines and colour choices for the monitor, perf, process, network and
    manifest panels.

## Example

```python
from droidscope.manifest_inspect import inspect

report = inspect(None, "com.example.app")
print(report.summary)
print(report.output)
```

Pass a device serial instead of `None` when more than one device is connected.

## What it does not do

This package has no command-line entry point and does not draw a terminal
interface. The panel helpers only produce text and pick colours. Drawing
them, handling keys, logcat, Gradle tasks and the interactive `adb shell` are
left to the application that uses these modules.

## Tests

```
pip install .[test]
pytest
```