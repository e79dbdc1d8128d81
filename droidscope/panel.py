"""Panel identifiers and their key bindings."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class PanelId(enum.Enum):
    """Every panel the interface can show; values are the serialised names."""

    LOGCAT = "logcat"
    MONITOR = "monitor"
    GRADLE = "gradle"
    PROCESSES = "processes"
    ISSUES = "issues"
    FILES = "files"
    NETWORK = "network"
    DEVICES = "devices"
    DEVICE_ACTIONS = "deviceactions"
    SHELL = "shell"
    APP_CONTROL = "appcontrol"
    APP_DATA = "appdata"
    MANIFEST = "manifest"
    INTENTS = "intents"
    FPS = "fps"
    PERF = "perf"

    def slug(self) -> str:
        """Short name used on screen and in configuration."""
        return _SLUGS[self]

    @classmethod
    def from_slug(cls, s: str) -> Optional["PanelId"]:
        """Look a panel up by its short name."""
        return next((p.id for p in PANELS if p.name == s), None)


_SLUGS = {
    PanelId.LOGCAT: "logcat",
    PanelId.MONITOR: "monitor",
    PanelId.GRADLE: "gradle",
    PanelId.PROCESSES: "processes",
    PanelId.ISSUES: "issues",
    PanelId.FILES: "files",
    PanelId.NETWORK: "network",
    PanelId.DEVICES: "devices",
    PanelId.DEVICE_ACTIONS: "actions",
    PanelId.SHELL: "shell",
    PanelId.APP_CONTROL: "app",
    PanelId.APP_DATA: "data",
    PanelId.MANIFEST: "manifest",
    PanelId.INTENTS: "intents",
    PanelId.FPS: "fps",
    PanelId.PERF: "perf",
}


class Feature(enum.Enum):
    """What a panel needs from the host to work."""

    NONE = "none"
    JVM = "jvm"


@dataclass(frozen=True)
class PanelDef:
    """Static description of a panel."""

    id: PanelId
    name: str
    toggle_key: str
    focus_key: str
    requires: Feature = Feature.NONE


PANELS: tuple[PanelDef, ...] = (
    PanelDef(PanelId.LOGCAT, "logcat", "1", "l"),
    PanelDef(PanelId.MONITOR, "monitor", "2", "m"),
    PanelDef(PanelId.GRADLE, "gradle", "3", "g", Feature.JVM),
    PanelDef(PanelId.PROCESSES, "processes", "4", "p"),
    PanelDef(PanelId.ISSUES, "issues", "5", "i"),
    PanelDef(PanelId.FILES, "files", "6", "f"),
    PanelDef(PanelId.NETWORK, "network", "7", "n"),
    PanelDef(PanelId.DEVICES, "devices", "8", "v"),
    PanelDef(PanelId.DEVICE_ACTIONS, "actions", "D", "o"),
    PanelDef(PanelId.SHELL, "shell", "9", "s"),
    PanelDef(PanelId.APP_CONTROL, "app", "A", "a"),
    PanelDef(PanelId.APP_DATA, "data", "B", "b"),
    PanelDef(PanelId.MANIFEST, "manifest", "M", "x"),
    PanelDef(PanelId.INTENTS, "intents", "U", "u"),
    PanelDef(PanelId.FPS, "fps", "F", "F"),
    PanelDef(PanelId.PERF, "perf", "H", "H"),
)


def by_toggle_key(c: str) -> Optional[PanelId]:
    """Panel whose visibility ``c`` toggles, if any."""
    return next((p.id for p in PANELS if p.toggle_key == c), None)


def by_focus_key(c: str) -> Optional[PanelId]:
    """Panel that ``c`` focuses, if any."""
    return next((p.id for p in PANELS if p.focus_key == c), None)


def definition(panel_id: PanelId) -> PanelDef:
    """Static definition of ``panel_id``."""
    for p in PANELS:
        if p.id == panel_id:
            return p
    raise LookupError(f"panel definition missing: {panel_id!r}")