"""Shared core utilities for archive packaging and resource filtering."""

from .archive import ArchiveArtifact, ArchiveConsole, ArchiveError, ArchiveManager, Manifest
from .template import (
    FilterWrapper,
    TemplateError,
    TemplateResolver,
    copy_file,
    default_filter_wrappers,
    load_filter_properties,
)
from .patterns import DirectoryScanner, compile_pattern, matches
from .config_loader import (
    ConfigLoader,
    FILE_LOADERS,
    find_config_file,
    load_config_file,
    merge_mappings,
    normalize_bool,
    normalize_string_list,
    normalize_string_mapping,
    register_loader,
)

__all__ = [
    "FilterWrapper",
    "TemplateError",
    "TemplateResolver",
    "copy_file",
    "default_filter_wrappers",
    "load_filter_properties",
    "ArchiveConsole",
    "ArchiveError",
    "ArchiveManager",
    "ArchiveArtifact",
    "Manifest",
    "DirectoryScanner",
    "compile_pattern",
    "matches",
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
