"""Top-level packaging run: main archive, then the optional client archive."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .artifacts import EJB_CLIENT_TYPE, EJB_TYPE, ProjectArtifacts
from .assembler import ArchiveAssembler, ArchiveProfile
from .config import PackagingConfig
from .context import Console
from .errors import ConfigurationError
from .validation import ClassifierValidator, has_classifier, is_classifier_valid


@dataclass(slots=True)
class PackagingResult:
    archive: Path
    client_archive: Path | None
    artifacts: ProjectArtifacts


class EjbPackager:
    """Build the EJB archive (and client archive) and record them as artifacts."""

    def __init__(
        self,
        config: PackagingConfig,
        console: Console,
        *,
        artifacts: ProjectArtifacts | None = None,
        assembler: ArchiveAssembler | None = None,
        classifier_validator: ClassifierValidator | None = None,
    ) -> None:
        self._config = config
        self._console = console
        if artifacts is None:
            artifacts = ProjectArtifacts(primary_file=config.project.primary_artifact)
        self._artifacts = artifacts
        self._assembler = assembler or ArchiveAssembler(config, console)
        self._classifier_validator = classifier_validator

    @property
    def artifacts(self) -> ProjectArtifacts:
        return self._artifacts

    def run(self) -> PackagingResult:
        config = self._config
        source_dir = config.source_directory
        if not source_dir.exists():
            self._console.warn(
                f"The created EJB jar will be empty cause the {source_dir} did not exist.")
            if self._console.dry_run:
                self._console.dry(f"Would create {source_dir}")
            else:
                source_dir.mkdir(parents=True, exist_ok=True)

        jar_file = self._assembler.build(ArchiveProfile.MAIN)
        self._attach_main(jar_file)

        client_file: Path | None = None
        if config.generate_client:
            client_file = self._assembler.build(ArchiveProfile.CLIENT)
            self._attach_client(client_file)

        return PackagingResult(archive=jar_file, client_archive=client_file, artifacts=self._artifacts)

    def _attach_main(self, jar_file: Path) -> None:
        classifier = self._config.classifier
        if classifier is not None and has_classifier(classifier):
            if not is_classifier_valid(classifier, self._classifier_validator):
                message = f"The given classifier '{classifier}' is not valid."
                self._console.error(message)
                raise ConfigurationError(message)
            self._artifacts.attach(EJB_TYPE, classifier, jar_file)
            return

        if self._artifacts.has_primary_file():
            raise ConfigurationError(
                "You have to use a classifier to attach supplemental artifacts "
                "to the project instead of replacing them."
            )
        self._artifacts.set_primary(jar_file)

    def _attach_client(self, client_file: Path) -> None:
        classifier = self._config.client_classifier
        if classifier is not None and has_classifier(classifier):
            if not is_classifier_valid(classifier, self._classifier_validator):
                message = f"The given client classifier '{classifier}' is not valid."
                self._console.error(message)
                raise ConfigurationError(message)
        # A blank client classifier is attached as is.
        self._artifacts.attach(EJB_CLIENT_TYPE, classifier, client_file)


def package(config: PackagingConfig, console: Console | None = None) -> PackagingResult:
    """Convenience wrapper running :class:`EjbPackager` with a default console."""

    return EjbPackager(config, console or Console()).run()


__all__ = [
    "EjbPackager",
    "PackagingResult",
    "package",
]
