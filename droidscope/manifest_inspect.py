"""Inspecting the manifest of a package installed on a device."""

from __future__ import annotations

import os
import subprocess
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from .adbshell import AdbError, adb_command
from .manifest import (
    ParsedManifest,
    parse_aapt_xmltree,
    parse_dumpsys,
    parse_manifest_xml,
    render_report,
)

_Text = Union[str, bytes]


class _ToolError(RuntimeError):
    """A local SDK tool could not be started or reported failure."""


@dataclass(frozen=True)
class ManifestReport:
    """Outcome of one inspection, ready for display."""

    package: str
    success: bool
    summary: str
    output: str


@dataclass
class ManifestState:
    """State of the manifest panel."""

    running: bool = False
    scroll: int = 0
    last: Optional[ManifestReport] = None

    def reset_for_package(self) -> None:
        self.running = False
        self.scroll = 0
        self.last = None

    def scroll_down(self, n: int) -> None:
        self.scroll += n

    def scroll_up(self, n: int) -> None:
        self.scroll = max(self.scroll - n, 0)


def _decode(value: _Text) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def output_text(stdout: _Text, stderr: _Text) -> str:
    """Combine a command's output streams into one message."""
    out = _decode(stdout).strip()
    err = _decode(stderr).strip()
    if not err:
        return out
    if not out:
        return err
    return f"{out}\n{err}"


def validate_package(package: str) -> None:
    """Raise :class:`ValueError` unless ``package`` is a plausible package name."""
    if not package.strip():
        raise ValueError("target package is empty")
    if not all((c.isascii() and c.isalnum()) or c in "_." for c in package):
        raise ValueError("target package contains unsupported characters")


def short_tool(tool: str) -> str:
    """First word of an inspector label."""
    words = tool.split()
    return words[0] if words else tool


def _run(cmd: Sequence[str], error: type = AdbError) -> str:
    try:
        proc = subprocess.run(list(cmd), capture_output=True, check=False)
    except OSError as exc:
        raise error(str(exc)) from exc
    if proc.returncode != 0:
        raise error(output_text(proc.stdout, proc.stderr))
    return _decode(proc.stdout)


def find_in_path(name: str) -> Optional[Path]:
    """First regular file called ``name`` in a ``PATH`` directory."""
    paths = os.environ.get("PATH")
    if paths is None:
        return None
    for directory in paths.split(os.pathsep):
        candidate = Path(directory) / name
        if candidate.is_file():
            return candidate
    return None


def _sdk_roots() -> list[Path]:
    roots = [
        Path(os.environ[var])
        for var in ("ANDROID_HOME", "ANDROID_SDK_ROOT")
        if var in os.environ
    ]
    try:
        home = Path.home()
    except (RuntimeError, KeyError):
        home = None
    if home is not None:
        roots += [home / "Library/Android/sdk", home / "Android/Sdk"]
    return roots


def _nested_tools(root: Path, name: str) -> list[Path]:
    try:
        return [entry / name for entry in root.iterdir() if entry.is_dir()]
    except OSError:
        return []


def find_android_tool(group: str, name: str) -> Optional[Path]:
    """Locate ``name`` inside an Android SDK, preferring the newest version."""
    candidates: list[Path] = []
    for sdk in _sdk_roots():
        if group == "build-tools":
            candidates += _nested_tools(sdk / group, name)
        elif group == "cmdline-tools":
            candidates += _nested_tools(sdk / group, f"bin/{name}")
        elif group == "tools":
            candidates.append(sdk / "tools" / "bin" / name)
    return next((p for p in sorted(candidates, reverse=True) if p.is_file()), None)


def find_aapt() -> Optional[Path]:
    """Path of ``aapt``, if installed."""
    return find_in_path("aapt") or find_android_tool("build-tools", "aapt")


def find_apkanalyzer() -> Optional[Path]:
    """Path of ``apkanalyzer``, if installed."""
    return (
        find_in_path("apkanalyzer")
        or find_android_tool("cmdline-tools", "apkanalyzer")
        or find_android_tool("tools", "apkanalyzer")
    )


def installed_apk_paths(serial: Optional[str], package: str) -> list[str]:
    """APK files of ``package`` as reported by ``pm path``."""
    text = _run(adb_command(serial, "shell", "pm", "path", package))
    prefix = "package:"
    return [
        line.strip()[len(prefix):]
        for line in text.splitlines()
        if line.strip().startswith(prefix)
    ]


def _pull_and_inspect(
    serial: Optional[str],
    package: str,
    remote_apk: str,
    inspect_local: Callable[[Path], ParsedManifest],
) -> tuple[str, ParsedManifest]:
    safe = package.replace(".", "_")
    with tempfile.TemporaryDirectory(
        prefix=f"droidscope-apk-{safe}-{os.getpid()}-", ignore_cleanup_errors=True
    ) as tmp:
        local = Path(tmp) / "base.apk"
        _run(adb_command(serial, "pull", remote_apk, str(local)))
        manifest = inspect_local(local)
    return f"pulled {remote_apk}", manifest


def _run_aapt(aapt: Path, apk: Path) -> ParsedManifest:
    text = _run([str(aapt), "dump", "xmltree", str(apk), "AndroidManifest.xml"], _ToolError)
    return parse_aapt_xmltree(text)


def _run_apkanalyzer(apkanalyzer: Path, apk: Path) -> ParsedManifest:
    text = _run([str(apkanalyzer), "manifest", "print", str(apk)], _ToolError)
    return parse_manifest_xml(text)


def _failure(package: str, message: str) -> ManifestReport:
    return ManifestReport(package=package, success=False, summary=message, output=message)


def inspect(serial: Optional[str], package: str) -> ManifestReport:
    """Inspect the installed APK of ``package`` and build a report."""
    try:
        validate_package(package)
    except ValueError as exc:
        return _failure(package, str(exc))

    try:
        apk_paths = installed_apk_paths(serial, package)
    except AdbError as exc:
        return _failure(package, str(exc))
    if not apk_paths:
        return _failure(package, "pm path returned no APK paths")

    base_apk = next((p for p in apk_paths if p.endswith("/base.apk")), apk_paths[0])

    notes: list[str] = []
    parsed = ParsedManifest()
    tool_label = "dumpsys package fallback"
    success = True
    inspected = False

    tools = (
        ("aapt", find_aapt, _run_aapt),
        ("apkanalyzer", find_apkanalyzer, _run_apkanalyzer),
    )
    for label, finder, runner in tools:
        if inspected:
            break
        tool = finder()
        if tool is None:
            continue
        try:
            note, manifest = _pull_and_inspect(
                serial, package, base_apk, lambda local, t=tool, r=runner: r(t, local)
            )
        except (AdbError, _ToolError, OSError) as exc:
            notes.append(f"{label} failed: {exc}")
            success = False
        else:
            tool_label = f"{label} ({tool})"
            notes.append(note)
            parsed = manifest
            inspected = True

    if not inspected:
        if notes:
            notes.append("using dumpsys package summary fallback")
        else:
            notes.append("aapt/apkanalyzer not found; using dumpsys package summary")
        try:
            text = _run(adb_command(serial, "shell", "dumpsys", "package", package))
        except AdbError as exc:
            notes.append(f"dumpsys failed: {exc}")
            success = False
        else:
            parsed = parse_dumpsys(text)

    output = render_report(package, apk_paths, base_apk, tool_label, notes, parsed)
    if success:
        summary = f"manifest: {package} via {short_tool(tool_label)}"
    else:
        summary = f"manifest: {package} with warnings"
    return ManifestReport(package=package, success=success, summary=summary, output=output)


def spawn_inspect(
    serial: Optional[str], package: str, emit: Callable[[ManifestReport], None]
) -> threading.Thread:
    """Inspect in a background thread and pass the report to ``emit``."""
    thread = threading.Thread(
        target=lambda: emit(inspect(serial, package)),
        name="manifest-inspect",
        daemon=True,
    )
    thread.start()
    return thread