"""Packaging configuration loaded from TOML, JSON or YAML files."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping
import json
import tomllib

import yaml

from core.config_loader import (
    find_config_file,
    load_config_file,
    merge_mappings,
    normalize_bool,
    normalize_string_list,
    normalize_string_mapping,
)

from .errors import ConfigurationError

DEFAULT_CLIENT_CLASSIFIER = "client"
DEFAULT_EJB_JAR = "META-INF/ejb-jar.xml"
DEFAULT_EJB_VERSION = "3.1"
DEFAULT_OUTPUT_DIRECTORY = "target"
DEFAULT_SOURCE_DIRECTORY = "target/classes"
CONFIG_FILE_STEM = "ejbpack"


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _resolve_path(value: Any, base_dir: Path) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base_dir / path


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    """Identity of the project whose classes are packaged."""

    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    name: str | None = None
    primary_artifact: Path | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, base_dir: Path) -> "ProjectInfo":
        primary = data.get("primary_artifact")
        return cls(
            group_id=_as_optional_str(data.get("group_id")),
            artifact_id=_as_optional_str(data.get("artifact_id")),
            version=_as_optional_str(data.get("version")),
            name=_as_optional_str(data.get("name")),
            primary_artifact=_resolve_path(primary, base_dir) if primary else None,
        )


@dataclass(frozen=True, slots=True)
class PackagingConfig:
    """Every setting needed to build the EJB archive and its client archive."""

    output_directory: Path
    source_directory: Path
    jar_name: str
    classifier: str | None = None
    client_classifier: str | None = DEFAULT_CLIENT_CLASSIFIER
    ejb_jar: str = DEFAULT_EJB_JAR
    generate_client: bool = False
    client_includes: tuple[str, ...] = ()
    client_excludes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()
    ejb_version: str = DEFAULT_EJB_VERSION
    filter_deployment_descriptor: bool = False
    filters: tuple[Path, ...] = ()
    escape_backslashes_in_file_path: bool = False
    escape_string: str | None = None
    output_timestamp: str | None = None
    manifest_entries: Mapping[str, str] = field(default_factory=dict)
    properties: Mapping[str, str] = field(default_factory=dict)
    project: ProjectInfo = field(default_factory=ProjectInfo)

    def __post_init__(self) -> None:
        # Read-only copies keep the frozen config immutable all the way down.
        object.__setattr__(self, "manifest_entries", MappingProxyType(dict(self.manifest_entries)))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def descriptor_path(self) -> Path:
        return self.source_directory / self.ejb_jar

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, base_dir: Path) -> "PackagingConfig":
        ejb_section = data.get("ejb", {})
        project_section = data.get("project", {})
        if not isinstance(ejb_section, Mapping):
            raise ConfigurationError("[ejb] section must be a mapping")
        if not isinstance(project_section, Mapping):
            raise ConfigurationError("[project] section must be a mapping")

        project = ProjectInfo.from_mapping(project_section, base_dir=base_dir)

        jar_name = ejb_section.get("jar_name")
        if not jar_name:
            if project.artifact_id and project.version:
                jar_name = f"{project.artifact_id}-{project.version}"
            elif project.artifact_id:
                jar_name = project.artifact_id
            else:
                raise ConfigurationError(
                    "ejb.jar_name is required when project.artifact_id is not set"
                )

        client_classifier = ejb_section.get("client_classifier", DEFAULT_CLIENT_CLASSIFIER)
        ejb_version = ejb_section.get("ejb_version")
        if ejb_version is None:
            ejb_version = DEFAULT_EJB_VERSION
        elif not isinstance(ejb_version, str):
            # Unquoted 3.10 arrives as the float 3.1.
            raise ConfigurationError(
                f"ejb.ejb_version must be a quoted string, got {ejb_version!r}"
            )
        output_timestamp = ejb_section.get("output_timestamp")

        try:
            return cls(
                output_directory=_resolve_path(
                    ejb_section.get("output_directory", DEFAULT_OUTPUT_DIRECTORY), base_dir),
                source_directory=_resolve_path(
                    ejb_section.get("source_directory", DEFAULT_SOURCE_DIRECTORY), base_dir),
                jar_name=str(jar_name),
                classifier=_as_optional_str(ejb_section.get("classifier")),
                client_classifier=_as_optional_str(client_classifier),
                ejb_jar=str(ejb_section.get("ejb_jar") or DEFAULT_EJB_JAR),
                generate_client=normalize_bool(
                    ejb_section.get("generate_client"), field_name="ejb.generate_client"),
                client_includes=tuple(normalize_string_list(
                    ejb_section.get("client_includes"), field_name="ejb.client_includes")),
                client_excludes=tuple(normalize_string_list(
                    ejb_section.get("client_excludes"), field_name="ejb.client_excludes")),
                excludes=tuple(normalize_string_list(
                    ejb_section.get("excludes"), field_name="ejb.excludes")),
                ejb_version=ejb_version,
                filter_deployment_descriptor=normalize_bool(
                    ejb_section.get("filter_deployment_descriptor"), field_name="ejb.filter_deployment_descriptor"),
                filters=tuple(
                    _resolve_path(entry, base_dir)
                    for entry in normalize_string_list(ejb_section.get("filters"), field_name="ejb.filters")
                ),
                escape_backslashes_in_file_path=normalize_bool(
                    ejb_section.get("escape_backslashes_in_file_path"), field_name="ejb.escape_backslashes_in_file_path"),
                escape_string=_as_optional_str(ejb_section.get("escape_string")),
                output_timestamp=_as_optional_str(output_timestamp),
                manifest_entries=normalize_string_mapping(
                    ejb_section.get("manifest_entries"), field_name="ejb.manifest_entries"),
                properties=normalize_string_mapping(
                    data.get("properties"), field_name="properties"),
                project=project,
            )
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc


def discover_config_file(directory: Path) -> Path | None:
    """Locate ``ejbpack.toml`` (or ``.json``/``.yaml``/``.yml``) in *directory*."""

    try:
        return find_config_file(Path(directory), CONFIG_FILE_STEM)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def load_packaging_config(
    path: Path | None,
    *,
    overrides: Mapping[str, Any] | None = None,
    workspace: Path | None = None,
) -> PackagingConfig:
    """Load *path* (when given), overlay *overrides* and build the configuration.

    Relative paths are resolved against the configuration file's directory,
    or *workspace* (default: the current directory) when no file is used.
    """

    data: Mapping[str, Any] = {}
    base_dir = Path(workspace) if workspace else Path.cwd()
    if path is not None:
        config_path = Path(path).expanduser()
        try:
            data = load_config_file(config_path)
        except (OSError, ValueError, TypeError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Unable to load configuration '{config_path}': {exc}") from exc
        base_dir = config_path.resolve().parent

    merged = merge_mappings(data, overrides or {})
    return PackagingConfig.from_mapping(merged, base_dir=base_dir)


def config_to_mapping(config: PackagingConfig) -> Dict[str, Any]:
    """Return a JSON-friendly view of *config*, used by ``--show-config``."""

    return {
        "ejb": {
            "output_directory": str(config.output_directory),
            "source_directory": str(config.source_directory),
            "jar_name": config.jar_name,
            "classifier": config.classifier,
            "client_classifier": config.client_classifier,
            "ejb_jar": config.ejb_jar,
            "generate_client": config.generate_client,
            "client_includes": list(config.client_includes),
            "client_excludes": list(config.client_excludes),
            "excludes": list(config.excludes),
            "ejb_version": config.ejb_version,
            "filter_deployment_descriptor": config.filter_deployment_descriptor,
            "filters": [str(path) for path in config.filters],
            "escape_backslashes_in_file_path": config.escape_backslashes_in_file_path,
            "escape_string": config.escape_string,
            "output_timestamp": config.output_timestamp,
            "manifest_entries": dict(config.manifest_entries),
        },
        "project": {
            "group_id": config.project.group_id,
            "artifact_id": config.project.artifact_id,
            "version": config.project.version,
            "name": config.project.name,
            "primary_artifact": str(config.project.primary_artifact) if config.project.primary_artifact else None,
        },
        "properties": dict(config.properties),
    }


def dump_config(config: PackagingConfig) -> str:
    return json.dumps(config_to_mapping(config), indent=2, sort_keys=False)


__all__ = [
    "DEFAULT_CLIENT_CLASSIFIER",
    "DEFAULT_EJB_JAR",
    "DEFAULT_EJB_VERSION",
    "CONFIG_FILE_STEM",
    "PackagingConfig",
    "ProjectInfo",
    "config_to_mapping",
    "discover_config_file",
    "dump_config",
    "load_packaging_config",
]
