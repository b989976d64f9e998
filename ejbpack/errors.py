"""Error types raised while packaging EJB archives."""
from __future__ import annotations


class PackagingError(RuntimeError):
    """Base class for every fatal packaging failure."""


class ConfigurationError(PackagingError):
    """Raised for invalid settings such as a bad version string or classifier."""


class ArchiveBuildError(PackagingError):
    """Raised when an archive cannot be assembled or written."""


class FilteringError(PackagingError):
    """Raised when the deployment descriptor cannot be interpolated."""


__all__ = [
    "ArchiveBuildError",
    "ConfigurationError",
    "FilteringError",
    "PackagingError",
]
