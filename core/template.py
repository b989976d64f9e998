"""Property interpolation for text resources."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence
import re


_WINDOWS_PATH_PATTERN = re.compile(r"[a-zA-Z]:\\")
_UNICODE_ESCAPE_PATTERN = re.compile(r"[0-9a-fA-F]{4}")
_MISSING = object()

DEFAULT_DELIMITERS: tuple[tuple[str, str], ...] = (("${", "}"), ("@", "@"))


class TemplateError(ValueError):
    """Raised when interpolation or property loading fails."""


def parse_properties(text: str) -> dict[str, str]:
    """Parse Java ``.properties`` content into an ordered mapping."""

    result: dict[str, str] = {}
    lines = text.splitlines()
    index = 0
    while index < len(lines):
        line = lines[index].lstrip()
        index += 1
        if not line or line[0] in "#!":
            continue
        while _has_continuation(line) and index < len(lines):
            line = line[:-1] + lines[index].lstrip()
            index += 1
        if _has_continuation(line):
            line = line[:-1]
        key, value = _split_property(line)
        result[_unescape(key)] = _unescape(value)
    return result


def _has_continuation(line: str) -> bool:
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _split_property(line: str) -> tuple[str, str]:
    position = 0
    length = len(line)
    while position < length:
        char = line[position]
        if char == "\\":
            position += 2
            continue
        if char in "=:" or char.isspace():
            break
        position += 1
    key = line[:position]
    rest = line[position:].lstrip(" \t\f")
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(" \t\f")
    return key, rest


def _unescape(text: str) -> str:
    if "\\" not in text:
        return text
    out: list[str] = []
    position = 0
    while position < len(text):
        char = text[position]
        if char != "\\" or position + 1 >= len(text):
            out.append(char)
            position += 1
            continue
        marker = text[position + 1]
        if marker == "u" and _UNICODE_ESCAPE_PATTERN.fullmatch(text[position + 2:position + 6]):
            out.append(chr(int(text[position + 2:position + 6], 16)))
            position += 6
            continue
        out.append({"t": "\t", "n": "\n", "r": "\r", "f": "\f"}.get(marker, marker))
        position += 2
    return "".join(out)


def load_properties(path: Path) -> dict[str, str]:
    """Load a ``.properties`` file, decoding as UTF-8 with an ISO-8859-1 fallback."""

    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise TemplateError(f"Unable to read filter file '{path}': {exc}") from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        text = raw.decode("iso-8859-1")
    return parse_properties(text)


def load_filter_properties(paths: Iterable[Path]) -> dict[str, str]:
    """Merge several properties files; later files override earlier ones."""

    merged: dict[str, str] = {}
    for path in paths:
        merged.update(load_properties(path))
    return merged


@dataclass(slots=True)
class TemplateResolver:
    """Resolves ``${key}`` references using a flat or nested mapping context.

    Values may themselves reference other keys; those are expanded
    recursively and circular references raise :class:`TemplateError`.
    Unknown keys resolve to ``None`` so callers can leave the token as is.
    """

    context: Mapping[str, Any]
    _cache: dict[str, str | None] = field(default_factory=dict, init=False, repr=False)

    def lookup(self, key: str) -> str | None:
        return self._resolve_key(key.strip(), stack=[])

    def resolve_text(self, text: str) -> str:
        """Expand every known ``${key}`` in *text*."""

        return self._expand(text, stack=[])

    def _resolve_key(self, key: str, *, stack: list[str]) -> str | None:
        if key in self._cache:
            return self._cache[key]
        if key in stack:
            cycle = " -> ".join(stack + [key])
            raise TemplateError(f"Circular dependency detected: {cycle}")

        raw_value = self._lookup_raw(key)
        if raw_value is _MISSING:
            return None
        stack.append(key)
        resolved = self._expand(_to_text(raw_value), stack=stack)
        stack.pop()
        self._cache[key] = resolved
        return resolved

    def _expand(self, text: str, *, stack: list[str]) -> str:
        if "${" not in text:
            return text
        out: list[str] = []
        position = 0
        while True:
            start = text.find("${", position)
            if start < 0:
                out.append(text[position:])
                break
            end = text.find("}", start + 2)
            if end < 0:
                out.append(text[position:])
                break
            out.append(text[position:start])
            key = text[start + 2:end].strip()
            value = self._resolve_key(key, stack=list(stack)) if key else None
            out.append(text[start:end + 1] if value is None else value)
            position = end + 1
        return "".join(out)

    def _lookup_raw(self, key: str) -> Any:
        current: Any = self.context
        if key in self.context:
            current = self.context[key]
        else:
            for part in key.split("."):
                if isinstance(current, Mapping) and part in current:
                    current = current[part]
                    continue
                return _MISSING
        if isinstance(current, Mapping):
            return _MISSING
        return current


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def escape_windows_path(value: str) -> str:
    """Double backslashes when *value* looks like a Windows path (``C:\\...``)."""

    if _WINDOWS_PATH_PATTERN.search(value):
        return value.replace("\\", "\\\\")
    return value


@dataclass(slots=True)
class FilterWrapper:
    """One interpolation pass over text for a single delimiter pair."""

    resolver: TemplateResolver
    begin: str = "${"
    end: str = "}"
    escape_string: str | None = None
    escape_windows_paths: bool = False

    def apply(self, text: str) -> str:
        out: list[str] = []
        position = 0
        while True:
            start = text.find(self.begin, position)
            if start < 0:
                out.append(text[position:])
                break
            stop = text.find(self.end, start + len(self.begin))
            if stop < 0:
                out.append(text[position:])
                break

            key = text[start + len(self.begin):stop]
            if not key or any(ch.isspace() for ch in key):
                # Not an expression; keep the opening delimiter and rescan after it.
                out.append(text[position:start + len(self.begin)])
                position = start + len(self.begin)
                continue

            token = text[start:stop + len(self.end)]
            prefix = text[position:start]
            if self.escape_string and prefix.endswith(self.escape_string):
                out.append(prefix[:-len(self.escape_string)])
                out.append(token)
                position = stop + len(self.end)
                continue

            out.append(prefix)
            value = self.resolver.lookup(key)
            if value is None:
                out.append(token)
            else:
                out.append(escape_windows_path(value) if self.escape_windows_paths else value)
            position = stop + len(self.end)
        return "".join(out)


def default_filter_wrappers(
    context: Mapping[str, Any],
    *,
    escape_string: str | None = None,
    escape_windows_paths: bool = False,
    delimiters: Sequence[tuple[str, str]] = DEFAULT_DELIMITERS,
) -> list[FilterWrapper]:
    """Build one :class:`FilterWrapper` per delimiter pair sharing a resolver."""

    resolver = TemplateResolver(context)
    return [
        FilterWrapper(
            resolver=resolver,
            begin=begin,
            end=end,
            escape_string=escape_string or None,
            escape_windows_paths=escape_windows_paths,
        )
        for begin, end in delimiters
    ]


def copy_file(
    source: Path,
    destination: Path,
    *,
    overwrite: bool,
    wrappers: Sequence[FilterWrapper],
    encoding: str = "utf-8",
) -> None:
    """Copy *source* to *destination*, running the content through *wrappers*.

    When *overwrite* is ``False`` an existing destination that is newer than
    the source is left untouched.
    """

    source = Path(source)
    destination = Path(destination)
    try:
        if (
            not overwrite
            and destination.exists()
            and destination.stat().st_mtime >= source.stat().st_mtime
        ):
            return
        with source.open("r", encoding=encoding, newline="") as handle:
            text = handle.read()
    except (OSError, UnicodeError, LookupError) as exc:
        raise TemplateError(f"Unable to read '{source}' as {encoding}: {exc}") from exc

    for wrapper in wrappers:
        text = wrapper.apply(text)

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("w", encoding=encoding, newline="") as handle:
            handle.write(text)
    except (OSError, UnicodeError) as exc:
        raise TemplateError(f"Unable to write '{destination}': {exc}") from exc


__all__ = [
    "DEFAULT_DELIMITERS",
    "FilterWrapper",
    "TemplateError",
    "TemplateResolver",
    "copy_file",
    "default_filter_wrappers",
    "escape_windows_path",
    "load_filter_properties",
    "load_properties",
    "parse_properties",
]
