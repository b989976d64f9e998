"""Package compiled EJB classes and their deployment descriptor into JAR archives."""
from __future__ import annotations

__version__ = "1.0.0"

from .artifacts import AttachedArtifact, ProjectArtifacts
from .assembler import ArchiveAssembler, ArchiveProfile, ArchiveSpec, resolve_output_path
from .config import PackagingConfig, ProjectInfo, load_packaging_config
from .errors import ArchiveBuildError, ConfigurationError, FilteringError, PackagingError
from .packager import EjbPackager, PackagingResult, package
from .selector import PatternSet, SelectionPolicy, is_effectively_unset, resolve

__all__ = [
    "__version__",
    "ArchiveAssembler",
    "ArchiveBuildError",
    "ArchiveProfile",
    "ArchiveSpec",
    "AttachedArtifact",
    "ConfigurationError",
    "EjbPackager",
    "FilteringError",
    "PackagingConfig",
    "PackagingError",
    "PackagingResult",
    "PatternSet",
    "ProjectArtifacts",
    "ProjectInfo",
    "SelectionPolicy",
    "is_effectively_unset",
    "load_packaging_config",
    "package",
    "resolve",
    "resolve_output_path",
]
