"""Running adb commands against a device."""

from __future__ import annotations

import subprocess
from typing import Optional, Sequence


class AdbError(RuntimeError):
    """An adb invocation could not be started or reported failure."""


def adb_command(serial: Optional[str], *args: str) -> list[str]:
    """Build the argument vector for an adb call aimed at ``serial``."""
    cmd = ["adb"]
    if serial:
        cmd += ["-s", serial]
    cmd.extend(args)
    return cmd


def run_shell(serial: Optional[str], args: Sequence[str]) -> str:
    """Run ``adb shell args`` and return its standard output."""
    try:
        proc = subprocess.run(
            adb_command(serial, "shell", *args),
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        raise AdbError(str(exc)) from exc
    if proc.returncode != 0:
        raise AdbError(proc.stderr.decode("utf-8", errors="replace").strip())
    return proc.stdout.decode("utf-8", errors="replace")