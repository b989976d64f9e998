"""Command line interface for ejbpack."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Any, Dict, Iterable
import sys

from .assembler import ArchiveProfile, matched_entries
from .config import PackagingConfig, discover_config_file, dump_config, load_packaging_config
from .context import Console
from .errors import ConfigurationError, PackagingError
from .packager import EjbPackager


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="ejbpack", description="Package compiled EJB classes into JAR archives")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Configuration file (.toml, .json, .yaml); defaults to ejbpack.<ext> in the current directory")
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Show what would be packaged without writing archives")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (maps to debug)")
    parser.add_argument(
        "-l",
        "--log",
        choices=list(Console.LEVELS),
        default=None,
        help="Set log level (default: info)")
    parser.add_argument("--source-dir", dest="source_directory", metavar="PATH")
    parser.add_argument("--output-dir", dest="output_directory", metavar="PATH")
    parser.add_argument("--jar-name", dest="jar_name", metavar="NAME")
    parser.add_argument("--classifier", metavar="NAME")
    parser.add_argument("--client-classifier", dest="client_classifier", metavar="NAME")
    parser.add_argument("--ejb-jar", dest="ejb_jar", metavar="PATH",
                        help="Deployment descriptor path relative to the source directory")
    parser.add_argument("--ejb-version", dest="ejb_version", metavar="VERSION")
    parser.add_argument("--generate-client", dest="generate_client", action="store_true", default=None)
    parser.add_argument("--client-include", dest="client_includes", action="append", metavar="PATTERN")
    parser.add_argument("--client-exclude", dest="client_excludes", action="append", metavar="PATTERN")
    parser.add_argument("--exclude", dest="excludes", action="append", metavar="PATTERN")
    parser.add_argument("--filter-descriptor", dest="filter_deployment_descriptor",
                        action="store_true", default=None)
    parser.add_argument("--filter", dest="filters", action="append", metavar="FILE",
                        help="Properties file used when filtering the descriptor (repeatable)")
    parser.add_argument("--escape-backslashes", dest="escape_backslashes_in_file_path",
                        action="store_true", default=None)
    parser.add_argument("--escape-string", dest="escape_string", metavar="TEXT")
    parser.add_argument("--output-timestamp", dest="output_timestamp", metavar="TIMESTAMP",
                        help="ISO-8601 date-time with offset or seconds since the epoch")
    parser.add_argument("--primary-artifact", dest="primary_artifact", metavar="PATH",
                        help="Primary artifact file already attached to the project")
    parser.add_argument("--artifacts-file", dest="artifacts_file", type=Path, metavar="PATH",
                        help="Write the produced artifacts as JSON")
    parser.add_argument("--show-config", action="store_true",
                        help="Print the resolved configuration and exit")
    parser.add_argument("--list-entries", action="store_true",
                        help="Print the entries each archive would contain and exit")
    return parser.parse_args(list(argv))


_EJB_OVERRIDE_KEYS = (
    "source_directory",
    "output_directory",
    "jar_name",
    "classifier",
    "client_classifier",
    "ejb_jar",
    "ejb_version",
    "generate_client",
    "client_includes",
    "client_excludes",
    "excludes",
    "filter_deployment_descriptor",
    "filters",
    "escape_backslashes_in_file_path",
    "escape_string",
    "output_timestamp",
)


def _collect_overrides(args: Namespace, workspace: Path) -> Dict[str, Any]:
    ejb: Dict[str, Any] = {}
    for key in _EJB_OVERRIDE_KEYS:
        value = getattr(args, key, None)
        if value is None:
            continue
        if key in {"source_directory", "output_directory"}:
            value = str(workspace / value)
        elif key == "filters":
            value = [str(workspace / entry) for entry in value]
        ejb[key] = value

    overrides: Dict[str, Any] = {}
    if ejb:
        overrides["ejb"] = ejb
    if args.primary_artifact:
        overrides["project"] = {"primary_artifact": str(workspace / args.primary_artifact)}
    return overrides


def _emit_entries(config: PackagingConfig, console: Console) -> None:
    profiles = [ArchiveProfile.MAIN]
    if config.generate_client:
        profiles.append(ArchiveProfile.CLIENT)
    for profile in profiles:
        print(f"{profile.value}:")
        for name in matched_entries(config, profile, console):
            print(f"  {name}")


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    workspace = Path.cwd()
    console = Console.from_options(args.log, args.verbose, args.dry_run)

    try:
        config_path = args.config or discover_config_file(workspace)
        config = load_packaging_config(
            config_path,
            overrides=_collect_overrides(args, workspace),
            workspace=workspace,
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if args.show_config:
        print(dump_config(config))
        return 0

    try:
        if args.list_entries:
            _emit_entries(config, console)
            return 0
        result = EjbPackager(config, console).run()
    except PackagingError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.artifacts_file:
        result.artifacts.write_json(args.artifacts_file)
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    raise SystemExit(main())
