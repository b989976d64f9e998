"""Archive management utilities reusable across projects."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Protocol, Sequence, runtime_checkable
import stat
import time
import zipfile

from .patterns import DirectoryScanner

MANIFEST_PATH = "META-INF/MANIFEST.MF"

_MANIFEST_LINE_LIMIT = 72

_SUFFIX_FORMATS: list[tuple[str, str]] = [
    (".jar", "jar"),
    (".war", "jar"),
    (".ear", "jar"),
    (".zip", "zip"),
]

class ArchiveError(RuntimeError):
    """Raised when an archive cannot be assembled or written."""


@runtime_checkable
class ArchiveConsole(Protocol):
    """Minimal console interface required by :class:`ArchiveManager`."""

    dry_run: bool

    def info(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def dry(self, message: str) -> None:
        ...


@dataclass(slots=True)
class Manifest:
    """Main section of a JAR manifest, written in attribute order."""

    attributes: dict[str, str] = field(default_factory=dict)

    @classmethod
    def created_by(
        cls,
        tool_name: str,
        group_id: str,
        artifact_id: str,
        *,
        tool_version: str | None = None,
        entries: Mapping[str, str] | None = None,
    ) -> "Manifest":
        manifest = cls({"Manifest-Version": "1.0"})
        manifest.attributes["Created-By"] = f"{tool_name} ({group_id}:{artifact_id})"
        if tool_version:
            manifest.attributes["Build-Tool-Version"] = tool_version
        for key, value in (entries or {}).items():
            manifest.set(key, value)
        return manifest

    def set(self, name: str, value: str) -> None:
        key = str(name).strip()
        if not key or ":" in key or any(ch.isspace() for ch in key):
            raise ArchiveError(f"Invalid manifest attribute name '{name}'")
        text = str(value)
        if "\n" in text or "\r" in text:
            raise ArchiveError(f"Manifest attribute '{key}' must not contain line breaks")
        self.attributes[key] = text

    def to_bytes(self) -> bytes:
        lines: list[bytes] = []
        for key, value in self.attributes.items():
            lines.extend(_wrap_manifest_line(f"{key}: {value}".encode("utf-8")))
        lines.append(b"")
        return b"\r\n".join(lines) + b"\r\n"


def _wrap_manifest_line(line: bytes) -> list[bytes]:
    # Continuation lines start with one space, so they carry one byte less.
    chunks: list[bytes] = []
    remainder = line
    limit = _MANIFEST_LINE_LIMIT
    while len(remainder) > limit:
        cut = limit
        # Never split a UTF-8 sequence between two lines.
        while cut > 1 and (remainder[cut] & 0xC0) == 0x80:
            cut -= 1
        chunks.append(remainder[:cut])
        remainder = remainder[cut:]
        limit = _MANIFEST_LINE_LIMIT - 1
    chunks.append(remainder)
    return [chunks[0], *(b" " + chunk for chunk in chunks[1:])]


@dataclass(slots=True)
class ArchiveArtifact:
    """Description of filesystem content to package into an archive."""

    source_dir: Path
    includes: Sequence[str] = ("**/**",)
    excludes: Sequence[str] = ()
    extra_files: dict[str, Path] = field(default_factory=dict)
    label: str | None = None

    def add_file(self, source: Path, arcname: str) -> None:
        """Register *source* at *arcname*, replacing any earlier registration."""

        self.extra_files[arcname.replace("\\", "/").lstrip("/")] = Path(source)


class ArchiveManager:
    """Create JAR/ZIP archives from directories."""

    def __init__(
        self,
        console: ArchiveConsole,
    ) -> None:
        self._console = console

    def collect_entries(self, artifact: ArchiveArtifact) -> dict[str, Path]:
        """Return the ordered ``arcname -> source file`` mapping for *artifact*."""

        source_dir = Path(artifact.source_dir).expanduser()
        if not source_dir.is_dir():
            raise ArchiveError(
                f"Archive source directory '{source_dir}' does not exist")

        scanner = DirectoryScanner(
            root=source_dir,
            includes=tuple(artifact.includes),
            excludes=tuple(artifact.excludes),
        )
        entries: dict[str, Path] = {}
        for relative in scanner.scan():
            if relative == MANIFEST_PATH:
                continue
            entries[relative] = source_dir / relative
        for arcname, source in artifact.extra_files.items():
            if arcname == MANIFEST_PATH:
                continue
            entries[arcname] = source
        return entries

    def create_archive(
        self,
        *,
        artifact: ArchiveArtifact,
        target_path: Path | str,
        manifest: Manifest | None = None,
        timestamp: datetime | None = None,
        entries: Mapping[str, Path] | None = None,
        overwrite: bool = True,
    ) -> Path:
        """Create an archive for *artifact* at *target_path*.

        Parameters
        ----------
        artifact:
            Data describing the directory, patterns and explicit files to archive.
        target_path:
            Exact path (including filename) for the archive that should be created.
        manifest:
            Manifest written as the first entry. ``None`` writes a plain archive.
        timestamp:
            Fixed modification time applied to every entry. When given, entry
            permissions are normalized as well so identical inputs produce
            byte-identical archives.
        entries:
            Pre-computed result of :meth:`collect_entries`. Computed on demand
            when omitted.
        overwrite:
            When ``False`` and the target already exists, an :class:`ArchiveError`
            is raised instead of replacing the file.
        """

        target = Path(target_path).expanduser()
        archive_format = self._resolve_archive_format(target)
        if archive_format == "jar" and manifest is None:
            manifest = Manifest({"Manifest-Version": "1.0"})

        resolved = dict(entries) if entries is not None else self.collect_entries(artifact)

        if self._console.dry_run:
            label = artifact.label or Path(artifact.source_dir).name
            self._console.dry(f"Would archive {label} ({len(resolved)} entries) to {target}")
            return target

        if target.exists() and not overwrite:
            raise ArchiveError(f"Archive target '{target}' already exists")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self._make_zip_archive(
                target_path=target,
                entries=resolved,
                manifest=manifest,
                timestamp=timestamp,
            )
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            raise ArchiveError(f"Failed to write archive '{target}': {exc}") from exc

        return target

    @staticmethod
    def _resolve_archive_format(target: Path) -> str:
        filename = target.name.lower()
        for suffix, fmt in _SUFFIX_FORMATS:
            if filename.endswith(suffix):
                return fmt

        raise ArchiveError(
            f"Unable to determine archive format from {target.name}. "
            "Use a .jar, .war, .ear or .zip suffix."
        )

    def _make_zip_archive(
        self,
        *,
        target_path: Path,
        entries: Mapping[str, Path],
        manifest: Manifest | None,
        timestamp: datetime | None,
    ) -> Path:
        with zipfile.ZipFile(
            target_path,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=9,
            allowZip64=True,
            strict_timestamps=False,
        ) as archive:
            if manifest is not None:
                info = self._entry_info(MANIFEST_PATH, source=None, timestamp=timestamp)
                archive.writestr(info, manifest.to_bytes())

            for arcname, source in entries.items():
                info = self._entry_info(arcname, source=source, timestamp=timestamp)
                archive.writestr(info, source.read_bytes())

        return target_path

    @staticmethod
    def _entry_info(
        arcname: str,
        *,
        source: Path | None,
        timestamp: datetime | None,
    ) -> zipfile.ZipInfo:
        if timestamp is not None:
            info = zipfile.ZipInfo(arcname, date_time=_zip_date_time(timestamp))
            info.external_attr = (stat.S_IFREG | 0o644) << 16
        elif source is not None:
            info = zipfile.ZipInfo.from_file(source, arcname=arcname, strict_timestamps=False)
        else:
            info = zipfile.ZipInfo(arcname, date_time=time.localtime()[:6])
            info.external_attr = (stat.S_IFREG | 0o644) << 16
        info.compress_type = zipfile.ZIP_DEFLATED
        info.create_system = 3
        return info


def _zip_date_time(moment: datetime) -> tuple[int, int, int, int, int, int]:
    utc = moment.astimezone(timezone.utc) if moment.tzinfo else moment
    return (utc.year, utc.month, utc.day, utc.hour, utc.minute, utc.second)


__all__ = [
    "ArchiveArtifact",
    "ArchiveConsole",
    "ArchiveError",
    "ArchiveManager",
    "MANIFEST_PATH",
    "Manifest",
]
