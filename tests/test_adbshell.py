import subprocess
from unittest import mock

import pytest

from droidscope.adbshell import AdbError, adb_command, run_shell


def test_adb_command_without_serial():
    assert adb_command(None, "shell", "ls") == ["adb", "shell", "ls"]


def test_adb_command_with_serial():
    assert adb_command("emulator-5554", "devices") == [
        "adb",
        "-s",
        "emulator-5554",
        "devices",
    ]


def test_run_shell_returns_stdout():
    done = subprocess.CompletedProcess(["adb"], 0, stdout=b"hello\n", stderr=b"")
    with mock.patch("droidscope.adbshell.subprocess.run", return_value=done) as run:
        assert run_shell("serial-x", ["echo", "hello"]) == "hello\n"
    assert run.call_args.args[0] == ["adb", "-s", "serial-x", "shell", "echo", "hello"]


def test_run_shell_failure_uses_trimmed_stderr():
    done = subprocess.CompletedProcess(["adb"], 1, stdout=b"", stderr=b"  no devices  \n")
    with mock.patch("droidscope.adbshell.subprocess.run", return_value=done):
        with pytest.raises(AdbError, match="^no devices$"):
            run_shell(None, ["true"])


def test_run_shell_missing_binary():
    with mock.patch(
        "droidscope.adbshell.subprocess.run", side_effect=FileNotFoundError("adb")
    ):
        with pytest.raises(AdbError):
            run_shell(None, ["true"])