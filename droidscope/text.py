"""Text layout for the processes, network and manifest panels."""

from __future__ import annotations

from typing import Optional

from .manifest_inspect import ManifestState
from .processes import ProcessInfo

NETWORK_KEYWORDS = (
    "okhttp",
    "retrofit",
    "http",
    "https",
    "socket",
    "websocket",
    "grpc",
    "apollo",
    "dns",
    "ssl",
    "tls",
    "request",
    "response",
)


def truncate_dots(s: str, max_len: int) -> str:
    """Fit ``s`` into ``max_len`` characters, ending in "..." when cut."""
    if max_len <= 0:
        return ""
    if len(s) <= max_len:
        return s
    if max_len <= 3:
        return "." * max_len
    return s[: max_len - 3] + "..."


def truncate_ellipsis(s: str, max_len: int) -> str:
    """Fit ``s`` into ``max_len`` characters, ending in "…" when cut."""
    if max_len <= 0:
        return ""
    if len(s) <= max_len:
        return s
    return s[: max_len - 1] + "…"


def shrink(text: str, max_len: int) -> str:
    """Cut ``text`` to ``max_len`` with "..."; widths of 3 or less keep it whole."""
    if max_len <= 3 or len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def is_network_line(tag: str, message: str) -> bool:
    """Whether a log line looks network related, by tag or message."""
    tag = tag.lower()
    message = message.lower()
    return any(word in tag or word in message for word in NETWORK_KEYWORDS)


def process_header() -> str:
    """Column header of the process table."""
    return f"{'PID':>7} {'USER':<10} {'RSS':>9}  NAME"


def process_row(info: ProcessInfo, width: int) -> str:
    """One row of the process table for a panel ``width`` columns wide."""
    name = truncate_ellipsis(info.name, max(width - 32, 0))
    user = truncate_ellipsis(info.user, 10)
    return f"{info.pid:>7} {user:<10} {info.rss_kb // 1024:>7} MB  {name}"


def network_row(timestamp: str, tag: str, message: str, width: int) -> str:
    """One row of the network panel for a panel ``width`` columns wide."""
    return f"{timestamp} {shrink(tag, 14):<14} {shrink(message, max(width - 28, 0))}"


def manifest_panel_lines(
    target_package: Optional[str], state: ManifestState, width: int
) -> list[str]:
    """Lines shown in the manifest panel before scrolling."""
    target = target_package if target_package is not None else "(unset)"
    lines = [f"target  {truncate_dots(target, width)}"]
    if state.running:
        lines.append("inspecting installed APK...")
    elif target_package is None:
        lines.append("Press P to set a target package.")
    elif state.last is not None:
        report = state.last
        lines.append(report.summary)
        lines.append(f"package {report.package}")
        lines.append("")
        lines.extend(report.output.splitlines())
    else:
        lines.append(
            "Press r to inspect installed APK path, version, manifest entries, and deep links."
        )
    return lines