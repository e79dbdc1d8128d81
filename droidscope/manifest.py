"""Parsing Android manifest dumps and rendering an inspection report."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

UNNAMED = "(unnamed)"

_HEX = re.compile(r"\+?[0-9a-fA-F]+")
_TAG_END = re.compile(r"[\s>/]")

_DATA_FIELDS = {
    "scheme": "scheme",
    "host": "host",
    "port": "port",
    "path": "path",
    "pathPrefix": "path_prefix",
    "pathPattern": "path_pattern",
    "mimeType": "mime_type",
}


@dataclass
class Component:
    """An activity, service or receiver declared in the manifest."""

    name: str = UNNAMED
    exported: Optional[str] = None
    enabled: Optional[str] = None


@dataclass
class DataSpec:
    """One ``<data>`` element of an intent filter."""

    scheme: Optional[str] = None
    host: Optional[str] = None
    port: Optional[str] = None
    path: Optional[str] = None
    path_prefix: Optional[str] = None
    path_pattern: Optional[str] = None
    mime_type: Optional[str] = None


@dataclass
class DeepLink:
    """An intent filter that carries data elements."""

    component: str
    actions: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    data: list[DataSpec] = field(default_factory=list)


@dataclass
class ParsedManifest:
    """What could be learnt about an installed package's manifest."""

    package: Optional[str] = None
    version_code: Optional[str] = None
    version_name: Optional[str] = None
    permissions: list[str] = field(default_factory=list)
    activities: list[Component] = field(default_factory=list)
    services: list[Component] = field(default_factory=list)
    receivers: list[Component] = field(default_factory=list)
    deeplinks: list[DeepLink] = field(default_factory=list)

    def sort(self) -> None:
        """Sort and deduplicate the collected entries for display."""
        self.permissions = sorted(set(self.permissions))
        self.activities.sort(key=lambda c: c.name)
        self.services.sort(key=lambda c: c.name)
        self.receivers.sort(key=lambda c: c.name)
        self.deeplinks.sort(key=lambda d: d.component)


@dataclass
class _FilterCtx:
    indent: int
    component: str
    actions: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    data: list[DataSpec] = field(default_factory=list)


def _push_unique(items: list[str], value: str) -> None:
    if value and value not in items:
        items.append(value)


def _leading_spaces(line: str) -> int:
    return len(line) - len(line.lstrip())


def short_key(key: str) -> str:
    """Attribute name without its namespace prefix."""
    return key.rsplit(":", 1)[-1]


def normalize_int(value: str) -> str:
    """Turn a ``0x``-prefixed hex number into decimal; leave others alone."""
    if value.startswith("0x"):
        digits = value[2:]
        if _HEX.fullmatch(digits):
            number = int(digits, 16)
            if number < 2**64:
                return str(number)
    return value


def normalize_bool(value: str) -> str:
    """Map aapt's encoded booleans to ``true``/``false``."""
    return {"0xffffffff": "true", "0x0": "false"}.get(value, value)


def parse_attr_value(raw: str) -> str:
    """Value of an aapt attribute: the first quoted string or the typed literal."""
    start = raw.find('"')
    if start != -1:
        end = raw.find('"', start + 1)
        if end != -1:
            return raw[start + 1:end]
    result = raw
    if raw.startswith("(type "):
        parts = raw[len("(type "):].split(")")
        if len(parts) > 1:
            result = parts[1]
    return result.strip()


def parse_aapt_attr(text: str) -> Optional[tuple[str, str]]:
    """Split an aapt ``A:`` line body into key and value."""
    if "=" not in text:
        return None
    left, right = text.split("=", 1)
    key = left.split("(", 1)[0].strip()
    return key, parse_attr_value(right.strip())


def xml_start_tag(line: str) -> Optional[str]:
    """Name of the element opened on ``line``, if it opens one."""
    if not line.startswith("<"):
        return None
    rest = line[1:]
    if rest.startswith(("/", "!", "?")):
        return None
    return _TAG_END.split(rest, maxsplit=1)[0]


def parse_xml_attrs(line: str) -> list[tuple[str, str]]:
    """All ``key="value"`` pairs on one line of XML."""
    attrs = []
    rest = line
    while "=" in rest:
        eq = rest.index("=")
        words = rest[:eq].split()
        key = (words[-1] if words else "").strip("<")
        after_eq = rest[eq + 1:].lstrip()
        if not after_eq or after_eq[0] not in "\"'":
            break
        quote = after_eq[0]
        end = after_eq.find(quote, 1)
        if end == -1:
            break
        if key:
            attrs.append((key, after_eq[1:end]))
        rest = after_eq[end + 1:]
    return attrs


def _apply_element_attr(parsed: ParsedManifest, tag: str, key: str, value: str) -> None:
    name = short_key(key)
    if tag == "manifest":
        if name == "package":
            parsed.package = value
        elif name == "versionCode":
            parsed.version_code = normalize_int(value)
        elif name == "versionName":
            parsed.version_name = value
    elif tag in ("uses-permission", "uses-permission-sdk-23") and name == "name":
        _push_unique(parsed.permissions, value)


def _apply_component_attr(component: Component, key: str, value: str) -> None:
    name = short_key(key)
    if name == "name":
        component.name = value
    elif name == "exported":
        component.exported = normalize_bool(value)
    elif name == "enabled":
        component.enabled = normalize_bool(value)


def _apply_filter_attr(ctx: _FilterCtx, tag: str, key: str, value: str) -> None:
    name = short_key(key)
    if tag == "action" and name == "name":
        _push_unique(ctx.actions, value)
    elif tag == "category" and name == "name":
        _push_unique(ctx.categories, value)
    elif tag == "data":
        if not ctx.data:
            ctx.data.append(DataSpec())
        attr = _DATA_FIELDS.get(name)
        if attr is not None:
            setattr(ctx.data[-1], attr, value)


class _Walker:
    """Indentation-driven context tracking shared by the line parsers."""

    def __init__(self) -> None:
        self.parsed = ParsedManifest()
        self.element: Optional[tuple[int, str]] = None
        self.component: Optional[tuple[int, Component]] = None
        self.filter: Optional[_FilterCtx] = None
        self.leaf: Optional[tuple[int, str]] = None

    def close(self, indent: int) -> None:
        if self.element is not None and indent <= self.element[0]:
            self.element = None
        if self.leaf is not None and indent <= self.leaf[0]:
            self.leaf = None
        if self.filter is not None and indent <= self.filter.indent:
            ctx, self.filter = self.filter, None
            if ctx.data:
                self.parsed.deeplinks.append(
                    DeepLink(ctx.component, ctx.actions, ctx.categories, ctx.data)
                )
        if self.component is not None and indent <= self.component[0]:
            self.component = None

    def open_component(self, indent: int, tag: str) -> Optional[Component]:
        if tag in ("activity", "activity-alias"):
            target = self.parsed.activities
        elif tag == "service":
            target = self.parsed.services
        elif tag == "receiver":
            target = self.parsed.receivers
        else:
            return None
        component = Component()
        target.append(component)
        self.component = (indent, component)
        return component

    def open_filter(self, indent: int) -> None:
        if self.component is not None:
            self.filter = _FilterCtx(indent, self.component[1].name)

    def open_leaf(self, indent: int, tag: str) -> bool:
        if self.filter is None:
            return False
        if tag == "data":
            self.filter.data.append(DataSpec())
        self.leaf = (indent, tag)
        return True

    def component_attr(self, key: str, value: str) -> None:
        if self.component is None:
            return
        component = self.component[1]
        _apply_component_attr(component, key, value)
        if self.filter is not None:
            self.filter.component = component.name

    def finish(self) -> ParsedManifest:
        self.close(0)
        self.parsed.sort()
        return self.parsed


def parse_aapt_xmltree(text: str) -> ParsedManifest:
    """Parse ``aapt dump xmltree`` output of AndroidManifest.xml."""
    walker = _Walker()
    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed:
            continue
        indent = _leading_spaces(line)
        walker.close(indent)

        if trimmed.startswith("E: "):
            words = trimmed[3:].split()
            tag = words[0] if words else ""
            walker.element = (indent, tag)
            if walker.open_component(indent, tag) is None:
                if tag == "intent-filter":
                    walker.open_filter(indent)
                elif tag in ("action", "category", "data"):
                    walker.open_leaf(indent, tag)
            continue

        if trimmed.startswith("A: "):
            attr = parse_aapt_attr(trimmed[3:])
            if attr is None:
                continue
            key, value = attr
            if walker.element is not None:
                _apply_element_attr(walker.parsed, walker.element[1], key, value)
            if walker.component is not None and walker.leaf is None:
                walker.component_attr(key, value)
            if walker.filter is not None and walker.leaf is not None:
                _apply_filter_attr(walker.filter, walker.leaf[1], key, value)

    return walker.finish()


def parse_manifest_xml(text: str) -> ParsedManifest:
    """Parse pretty-printed manifest XML, one element or attribute per line."""
    walker = _Walker()
    for line in text.splitlines():
        indent = _leading_spaces(line)
        trimmed = line.strip()
        walker.close(indent)
        if trimmed.startswith("</"):
            continue

        tag = xml_start_tag(trimmed)
        attrs = parse_xml_attrs(trimmed)
        if tag is None:
            if walker.leaf is not None:
                if walker.filter is not None:
                    for key, value in attrs:
                        _apply_filter_attr(walker.filter, walker.leaf[1], key, value)
            elif walker.component is not None:
                for key, value in attrs:
                    walker.component_attr(key, value)
            continue

        if tag in ("manifest", "uses-permission", "uses-permission-sdk-23"):
            for key, value in attrs:
                _apply_element_attr(walker.parsed, tag, key, value)
        elif tag == "intent-filter":
            walker.open_filter(indent)
        elif tag in ("action", "category", "data"):
            if walker.filter is not None:
                if tag == "data":
                    walker.filter.data.append(DataSpec())
                for key, value in attrs:
                    _apply_filter_attr(walker.filter, tag, key, value)
                walker.leaf = (indent, tag)
        else:
            component = walker.open_component(indent, tag)
            if component is not None:
                for key, value in attrs:
                    _apply_component_attr(component, key, value)

    return walker.finish()


def parse_dumpsys(text: str) -> ParsedManifest:
    """Pull version and permissions from ``dumpsys package`` output."""
    parsed = ParsedManifest()
    for line in text.splitlines():
        trimmed = line.strip()
        if trimmed.startswith("versionCode="):
            words = trimmed[len("versionCode="):].split()
            parsed.version_code = words[0] if words else None
        elif trimmed.startswith("versionName="):
            parsed.version_name = trimmed[len("versionName="):]
        elif trimmed.startswith("android.permission."):
            _push_unique(parsed.permissions, trimmed)
    return parsed


def render_data(data: DataSpec) -> str:
    """One-line description of a data element."""
    parts = [
        f"{label}={value}"
        for label, value in (
            ("scheme", data.scheme),
            ("host", data.host),
            ("port", data.port),
            ("path", data.path),
            ("pathPrefix", data.path_prefix),
            ("pathPattern", data.path_pattern),
            ("mimeType", data.mime_type),
        )
        if value is not None
    ]
    return " ".join(parts) if parts else "(empty data tag)"


def _render_list(label: str, items: Sequence[str]) -> list[str]:
    out = [f"{label} ({len(items)}):"]
    out += [f"  {item}" for item in items] or ["  (none found)"]
    out.append("")
    return out


def _render_components(label: str, items: Sequence[Component]) -> list[str]:
    out = [f"{label} ({len(items)}):"]
    if not items:
        out.append("  (none found)")
    for item in items:
        flags = []
        if item.exported is not None:
            flags.append(f"exported={item.exported}")
        if item.enabled is not None:
            flags.append(f"enabled={item.enabled}")
        if flags:
            out.append(f"  {item.name}  [{', '.join(flags)}]")
        else:
            out.append(f"  {item.name}")
    out.append("")
    return out


def _render_deeplinks(items: Sequence[DeepLink]) -> list[str]:
    out = [f"deeplinks ({len(items)}):"]
    if not items:
        out.append("  (none found)")
    for item in items:
        out.append(f"  {item.component}")
        if item.actions:
            out.append(f"    actions: {', '.join(item.actions)}")
        if item.categories:
            out.append(f"    categories: {', '.join(item.categories)}")
        out += [f"    data: {render_data(data)}" for data in item.data]
    return out


def render_report(
    target_package: str,
    apk_paths: Sequence[str],
    base_apk: str,
    tool: str,
    notes: Sequence[str],
    parsed: ParsedManifest,
) -> str:
    """Full text report of an inspection."""
    out = ["APK / Manifest inspector", f"target package: {target_package}"]
    if parsed.package is not None:
        out.append(f"manifest package: {parsed.package}")
    out.append(f"inspector: {tool}")
    out.append(f"base APK: {base_apk}")
    out.append("installed APK paths:")
    out += [f"  {path}" for path in apk_paths]
    if notes:
        out.append("notes:")
        out += [f"  {note}" for note in notes]
    out += [
        "",
        "version:",
        f"  versionCode: {parsed.version_code or '(unknown)' if parsed.version_code is not None else '(unknown)'}",
        f"  versionName: {parsed.version_name if parsed.version_name is not None else '(unknown)'}",
        "",
    ]
    out += _render_list("permissions", parsed.permissions)
    out += _render_components("activities", parsed.activities)
    out += _render_components("services", parsed.services)
    out += _render_components("receivers", parsed.receivers)
    out += _render_deeplinks(parsed.deeplinks)
    return "\n".join(out)