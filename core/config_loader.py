"""Loading of packaging configuration files and coercion of their values."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Sequence

import json
import tomllib

import yaml


ConfigLoader = Callable[[str], Any]


FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": tomllib.loads,
    ".json": json.loads,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}
"""Suffix to text-decoder mapping; the order is the discovery order."""

_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0", ""})


def _label(field_name: str | None) -> str:
    return f"{field_name} " if field_name else ""


def register_loader(suffix: str, loader: ConfigLoader) -> None:
    """Decode files ending with ``suffix`` using ``loader(text)``."""

    normalized = suffix.lower()
    if not normalized.startswith("."):
        raise ValueError("Suffix must start with '.'")
    FILE_LOADERS[normalized] = loader


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Read ``path`` and return its top-level mapping.

    An empty document yields an empty mapping. Unknown suffixes raise
    ``ValueError``; a document whose root is not a mapping raises ``TypeError``.
    """

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS))
        raise ValueError(
            f"Unsupported configuration file extension: {suffix or '<none>'}. Supported: {supported}"
        )

    data = loader(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")
    return data


def find_config_file(directory: Path, stem: str) -> Path | None:
    """Return ``<directory>/<stem>.<suffix>`` for the one supported suffix present.

    ``None`` when no such file exists; ``ValueError`` when several formats do.
    """

    found = [
        directory / f"{stem}{suffix}"
        for suffix in FILE_LOADERS
        if (directory / f"{stem}{suffix}").is_file()
    ]
    if len(found) > 1:
        names = "', '".join(path.name for path in found)
        raise ValueError(
            f"Multiple configuration files found for '{stem}': '{names}'. "
            "Only one format may be present."
        )
    return found[0] if found else None


def merge_mappings(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge ``overlay`` onto ``base``; nested tables merge, anything else replaces."""

    result: Dict[str, Any] = dict(base)
    for key, value in overlay.items():
        existing = result.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            result[key] = merge_mappings(existing, value)
        else:
            result[key] = value
    return result


def normalize_bool(value: Any, *, field_name: str | None = None) -> bool:
    """Accept booleans and the usual yes/no spellings; ``None`` is ``False``."""

    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
    raise TypeError(f"{_label(field_name)}must be a boolean, got {value!r}")


def normalize_string_list(value: Any, *, field_name: str | None = None) -> List[str]:
    """Coerce a string or a sequence of strings into a list of trimmed, non-empty strings."""

    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    elif not isinstance(value, Sequence):
        raise TypeError(f"{_label(field_name)}must be a string or sequence of strings")

    items: List[str] = []
    for item in value:
        if not isinstance(item, str):
            raise TypeError(f"{_label(field_name)}entries must be strings")
        text = item.strip()
        if text:
            items.append(text)
    return items


def normalize_string_mapping(value: Any, *, field_name: str | None = None) -> Dict[str, str]:
    """Coerce a table into a ``str -> str`` mapping, keeping insertion order."""

    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"{_label(field_name)}must be a mapping")
    result: Dict[str, str] = {}
    for key, item in value.items():
        if isinstance(item, bool):
            result[str(key)] = "true" if item else "false"
        elif item is None:
            result[str(key)] = ""
        else:
            result[str(key)] = str(item)
    return result


__all__ = [
    "ConfigLoader",
    "FILE_LOADERS",
    "find_config_file",
    "load_config_file",
    "merge_mappings",
    "normalize_bool",
    "normalize_string_list",
    "normalize_string_mapping",
    "register_loader",
]
