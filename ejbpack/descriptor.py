"""In-place interpolation of the deployment descriptor."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Sequence
import codecs
import os
import re
import shutil

from core.template import TemplateError, copy_file, default_filter_wrappers, load_filter_properties

from .config import PackagingConfig

UNFILTERED_SUFFIX = ".unfiltered"

_XML_DECLARATION = re.compile(
    rb"""^<\?xml[^>]*?\sencoding\s*=\s*["']([A-Za-z][A-Za-z0-9._\-]*)["']""",
)
_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF8, "UTF-8"),
    (codecs.BOM_UTF16_BE, "UTF-16BE"),
    (codecs.BOM_UTF16_LE, "UTF-16LE"),
)


def detect_encoding(xml_file: Path) -> str:
    """Return the encoding declared by *xml_file*, or ``UTF-8`` when absent.

    A byte order mark wins over the XML declaration.
    """

    with Path(xml_file).open("rb") as handle:
        head = handle.read(4096)

    for bom, name in _BOMS:
        if head.startswith(bom):
            return name
    if head.startswith(b"<\x00?\x00"):
        return "UTF-16LE"
    if head.startswith(b"\x00<\x00?"):
        return "UTF-16BE"

    match = _XML_DECLARATION.match(head)
    if not match:
        return "UTF-8"
    declared = match.group(1).decode("ascii")
    try:
        codecs.lookup(declared)
    except LookupError as exc:
        raise TemplateError(f"Unsupported encoding '{declared}' declared in '{xml_file}'") from exc
    return declared.upper()


def build_filter_context(
    config: PackagingConfig,
    *,
    filter_properties: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Dict[str, Any]:
    """Assemble the interpolation context, lowest precedence first.

    Project identity, then configured properties, then filter files, then
    ``env.*`` entries from the process environment.
    """

    project = config.project
    context: Dict[str, Any] = {}
    identity = {
        "project.groupId": project.group_id,
        "project.artifactId": project.artifact_id,
        "project.version": project.version,
        "project.name": project.name or project.artifact_id,
        "project.build.finalName": config.jar_name,
        "project.build.directory": str(config.output_directory),
        "project.build.outputDirectory": str(config.source_directory),
    }
    for key, value in identity.items():
        if value is not None:
            context[key] = value
    context.update(config.properties)
    context.update(filter_properties or {})
    for key, value in (os.environ if environ is None else environ).items():
        context[f"env.{key}"] = value
    return context


def filter_descriptor(
    descriptor: Path,
    filters: Sequence[Path],
    escape_backslashes: bool,
    escape_string: str | None,
    *,
    config: PackagingConfig,
) -> None:
    """Interpolate *descriptor* in place.

    The original is copied to a sibling ``.unfiltered`` file which is then
    filtered back onto the original path and removed. A failure part way
    through can leave the temporary copy behind.
    """

    encoding = detect_encoding(descriptor)
    context = build_filter_context(config, filter_properties=load_filter_properties(filters))
    wrappers = default_filter_wrappers(
        context,
        escape_string=escape_string,
        escape_windows_paths=escape_backslashes,
    )

    unfiltered = descriptor.with_name(descriptor.name + UNFILTERED_SUFFIX)
    shutil.copyfile(descriptor, unfiltered)
    copy_file(unfiltered, descriptor, overwrite=True, wrappers=wrappers, encoding=encoding)
    unfiltered.unlink()


__all__ = [
    "UNFILTERED_SUFFIX",
    "build_filter_context",
    "detect_encoding",
    "filter_descriptor",
]
