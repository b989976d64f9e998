"""Assembly of the EJB archive and its client archive."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

from core.archive import ArchiveArtifact, ArchiveError, ArchiveManager, Manifest
from core.template import TemplateError

from . import __version__
from .config import PackagingConfig
from .context import Console
from .descriptor import filter_descriptor
from .errors import ArchiveBuildError, FilteringError
from .selector import PatternSet, SelectionPolicy
from .validation import check_version_compliance, has_classifier, parse_output_timestamp

TOOL_NAME = "ejbpack"
TOOL_GROUP = "ejbpack"
TOOL_ARTIFACT = "ejbpack"
ARCHIVE_EXTENSION = "jar"

DEFAULT_INCLUDES: tuple[str, ...] = ("**/**",)
DEFAULT_CLIENT_EXCLUDES: tuple[str, ...] = (
    "**/*Bean.class",
    "**/*CMP.class",
    "**/*Session.class",
    "**/package.html",
)

DescriptorFilter = Callable[..., None]


class ArchiveProfile(Enum):
    """Which of the two archives is being assembled."""

    MAIN = "main"
    CLIENT = "client"

    @property
    def handles_descriptor(self) -> bool:
        return self is ArchiveProfile.MAIN

    @property
    def error_prefix(self) -> str:
        if self is ArchiveProfile.MAIN:
            return "There was a problem creating the EJB archive: "
        return "There was a problem creating the EJB client archive: "

    def selection_policy(self, config: PackagingConfig) -> SelectionPolicy:
        if self is ArchiveProfile.MAIN:
            # Only excludes are configurable for the main archive.
            return SelectionPolicy(
                default_includes=DEFAULT_INCLUDES,
                default_excludes=(config.ejb_jar, "**/package.html"),
                user_includes=(),
                user_excludes=config.excludes,
            )
        return SelectionPolicy(
            default_includes=DEFAULT_INCLUDES,
            default_excludes=DEFAULT_CLIENT_EXCLUDES,
            user_includes=config.client_includes,
            user_excludes=config.client_excludes,
        )

    def classifier(self, config: PackagingConfig) -> str | None:
        if self is ArchiveProfile.MAIN:
            return config.classifier
        return config.client_classifier


def resolve_output_path(
    output_directory: Path,
    base_name: str,
    classifier: str | None,
    *,
    extension: str = ARCHIVE_EXTENSION,
) -> Path:
    """Return ``<output_directory>/<base_name>[-<classifier>].<extension>``."""

    if output_directory is None:
        raise ValueError("output_directory is not allowed to be None")
    if base_name is None:
        raise ValueError("base_name is not allowed to be None")
    file_name = base_name
    if classifier is not None and has_classifier(classifier):
        file_name += f"-{classifier}"
    return Path(output_directory) / f"{file_name}.{extension}"


def descriptor_arcname(config: PackagingConfig) -> str:
    """Entry name of the deployment descriptor inside the main archive."""

    return config.ejb_jar.replace("\\", "/").lstrip("/")


@dataclass(slots=True)
class ArchiveSpec:
    """Everything needed to write one archive; built fresh for every run."""

    output_directory: Path
    base_name: str
    source_root: Path
    classifier: str | None = None
    manifest: Manifest = field(default_factory=Manifest)
    reproducible_timestamp: datetime | None = None

    @property
    def output_path(self) -> Path:
        return resolve_output_path(self.output_directory, self.base_name, self.classifier)


class ArchiveAssembler:
    """Build the main or client archive for a :class:`PackagingConfig`."""

    def __init__(
        self,
        config: PackagingConfig,
        console: Console,
        *,
        manager: ArchiveManager | None = None,
        descriptor_filter: DescriptorFilter = filter_descriptor,
    ) -> None:
        self._config = config
        self._console = console
        self._manager = manager or ArchiveManager(console)
        self._descriptor_filter = descriptor_filter

    def archive_spec(self, profile: ArchiveProfile) -> ArchiveSpec:
        config = self._config
        return ArchiveSpec(
            output_directory=config.output_directory,
            base_name=config.jar_name,
            source_root=config.source_directory,
            classifier=profile.classifier(config),
            manifest=Manifest.created_by(
                TOOL_NAME,
                TOOL_GROUP,
                TOOL_ARTIFACT,
                tool_version=__version__,
                entries=config.manifest_entries,
            ),
            reproducible_timestamp=parse_output_timestamp(config.output_timestamp),
        )

    def selection(self, profile: ArchiveProfile) -> PatternSet:
        return profile.selection_policy(self._config).resolve()

    def build(self, profile: ArchiveProfile) -> Path:
        """Assemble the archive for *profile* and return its path."""

        config = self._config
        spec = self.archive_spec(profile)
        target = spec.output_path
        descriptor = config.descriptor_path

        if profile is ArchiveProfile.MAIN:
            self._console.info(
                f"Building EJB {config.jar_name} with EJB version {config.ejb_version}")
            check_version_compliance(
                config.ejb_version, descriptor, descriptor_label=config.ejb_jar)
        else:
            self._console.info(f"Building EJB client {target}")

        artifact = self._artifact(profile, label=target.name)

        try:
            entries = self._collect(profile, artifact)
            if profile.handles_descriptor and descriptor.exists():
                if config.filter_deployment_descriptor:
                    self._filter(descriptor)
                artifact.add_file(descriptor, descriptor_arcname(config))
                entries.update(artifact.extra_files)

            for arcname in entries:
                self._console.debug(f"Adding {arcname}")

            return self._manager.create_archive(
                artifact=artifact,
                target_path=target,
                manifest=spec.manifest,
                timestamp=spec.reproducible_timestamp,
                entries=entries,
            )
        except (ArchiveError, OSError) as exc:
            raise ArchiveBuildError(f"{profile.error_prefix}{exc}") from exc

    def entry_names(self, profile: ArchiveProfile) -> list[str]:
        """List the entry names *profile* would produce, without writing."""

        artifact = self._artifact(profile)
        try:
            names = list(self._collect(profile, artifact))
        except ArchiveError as exc:
            raise ArchiveBuildError(f"{profile.error_prefix}{exc}") from exc
        arcname = descriptor_arcname(self._config)
        if profile.handles_descriptor and self._config.descriptor_path.exists() and arcname not in names:
            names.append(arcname)
        return names

    def _artifact(self, profile: ArchiveProfile, *, label: str | None = None) -> ArchiveArtifact:
        patterns = self.selection(profile)
        return ArchiveArtifact(
            source_dir=self._config.source_directory,
            includes=patterns.includes,
            excludes=patterns.excludes,
            label=label,
        )

    def _collect(self, profile: ArchiveProfile, artifact: ArchiveArtifact) -> dict[str, Path]:
        if self._console.dry_run and not Path(artifact.source_dir).is_dir():
            # A dry run never creates the missing source directory.
            return {}
        entries = self._manager.collect_entries(artifact)
        if not profile.handles_descriptor:
            # The client archive never carries the deployment descriptor.
            entries.pop(descriptor_arcname(self._config), None)
        return entries

    def _filter(self, descriptor: Path) -> None:
        config = self._config
        if self._console.dry_run:
            self._console.dry(f"Would filter deployment descriptor {descriptor}")
            return
        self._console.debug("Filtering deployment descriptor.")
        try:
            self._descriptor_filter(
                descriptor,
                list(config.filters),
                config.escape_backslashes_in_file_path,
                config.escape_string,
                config=config,
            )
        except (TemplateError, OSError, UnicodeError) as exc:
            raise FilteringError(
                f"There was a problem filtering the deployment descriptor: {exc}") from exc


def matched_entries(config: PackagingConfig, profile: ArchiveProfile, console: Console) -> Sequence[str]:
    """List the archive entry names *profile* would produce, without writing."""

    return ArchiveAssembler(config, console).entry_names(profile)


__all__ = [
    "ARCHIVE_EXTENSION",
    "ArchiveAssembler",
    "ArchiveProfile",
    "ArchiveSpec",
    "DEFAULT_CLIENT_EXCLUDES",
    "DEFAULT_INCLUDES",
    "matched_entries",
    "resolve_output_path",
]
