"""Classifier, EJB version and output timestamp validation helpers."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable
import re

from .errors import ConfigurationError


_VERSION_PATTERN = re.compile(r"[2-4]\.[0-9]")
_VERSION_2_PATTERN = re.compile(r"2\.[0-9]")
_CLASSIFIER_PATTERN = re.compile(r"[a-zA-Z]+[0-9a-zA-Z\-]*")

_MIN_TIMESTAMP = datetime(1980, 1, 1, 0, 0, 2, tzinfo=timezone.utc)
_MAX_TIMESTAMP = datetime(2099, 12, 31, 23, 59, 59, tzinfo=timezone.utc)

ClassifierValidator = Callable[[str], bool]


def has_classifier(classifier: str | None) -> bool:
    """Return ``True`` when *classifier* is set and not just whitespace."""

    return classifier is not None and classifier.strip() != ""


def default_classifier_validator(classifier: str) -> bool:
    """Accept classifiers made of letters followed by letters, digits or hyphens.

    This rules out path separators, whitespace, ``:`` and the other
    characters that would break an artifact coordinate.
    """

    return _CLASSIFIER_PATTERN.fullmatch(classifier) is not None


def is_classifier_valid(
    classifier: str,
    validator: ClassifierValidator | None = None,
) -> bool:
    check = validator or default_classifier_validator
    return bool(check(classifier))


def validate_version(version: str | None) -> bool:
    """Return ``True`` when *version* is exactly ``<2-4>.<digit>``."""

    if version is None:
        return False
    return _VERSION_PATTERN.fullmatch(version) is not None


def check_version_compliance(
    version: str | None,
    descriptor: Path,
    *,
    descriptor_label: str | None = None,
) -> None:
    """Raise :class:`ConfigurationError` unless *version* can be packaged.

    Version ``2.x`` additionally requires the deployment descriptor to exist.
    """

    if version is None or not validate_version(version):
        raise ConfigurationError(
            f"ejbVersion is not valid: {version}. Must be 2.x, 3.x or 4.x (where x is a digit)"
        )
    if _VERSION_2_PATTERN.fullmatch(version) and not descriptor.exists():
        label = descriptor_label or descriptor.name
        raise ConfigurationError(
            f"Error assembling EJB: {label} is required for ejbVersion 2.x"
        )


def parse_output_timestamp(value: str | int | None) -> datetime | None:
    """Parse a reproducible-build timestamp.

    Accepts seconds since the epoch or an ISO-8601 date-time with an explicit
    offset. ``None``, an empty string or a single character disables
    reproducible output and yields ``None``.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid output timestamp: {value!r}")
    if isinstance(value, int):
        text = str(value)
    else:
        text = str(value).strip()
    if len(text) < 2:
        return None

    if text.isdigit():
        moment = datetime.fromtimestamp(int(text), tz=timezone.utc)
    else:
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid output timestamp '{text}': expected ISO-8601 with offset "
                "(yyyy-MM-ddTHH:mm:ssXXX) or seconds since the epoch"
            ) from exc
        if parsed.tzinfo is None:
            raise ConfigurationError(
                f"Invalid output timestamp '{text}': a time zone offset is required"
            )
        moment = parsed.astimezone(timezone.utc).replace(microsecond=0)

    if moment < _MIN_TIMESTAMP or moment > _MAX_TIMESTAMP:
        raise ConfigurationError(
            f"Output timestamp '{text}' is outside the supported range "
            "1980-01-01T00:00:02Z to 2099-12-31T23:59:59Z"
        )
    return moment


__all__ = [
    "ClassifierValidator",
    "check_version_compliance",
    "default_classifier_validator",
    "has_classifier",
    "is_classifier_valid",
    "parse_output_timestamp",
    "validate_version",
]
