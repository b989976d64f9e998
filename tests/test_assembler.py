from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import tempfile
import unittest
import zipfile

from core.archive import MANIFEST_PATH
from ejbpack.assembler import (
    DEFAULT_CLIENT_EXCLUDES,
    ArchiveAssembler,
    ArchiveProfile,
    matched_entries,
    resolve_output_path,
)
from ejbpack.config import PackagingConfig
from ejbpack.context import Console
from ejbpack.errors import ArchiveBuildError, ConfigurationError, FilteringError


def _names(archive_path: Path) -> list[str]:
    with zipfile.ZipFile(archive_path) as archive:
        return [name for name in archive.namelist() if name != MANIFEST_PATH]


class ResolveOutputPathTests(unittest.TestCase):
    def test_without_classifier(self) -> None:
        self.assertEqual(resolve_output_path(Path("/t"), "demo-1.0", None), Path("/t/demo-1.0.jar"))
        self.assertEqual(resolve_output_path(Path("/t"), "demo-1.0", "  "), Path("/t/demo-1.0.jar"))

    def test_with_classifier(self) -> None:
        self.assertEqual(
            resolve_output_path(Path("/t"), "demo-1.0", "client"), Path("/t/demo-1.0-client.jar"))

    def test_requires_base_name(self) -> None:
        with self.assertRaises(ValueError):
            resolve_output_path(Path("/t"), None, None)  # type: ignore[arg-type]


class ArchiveAssemblerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.classes = self.root / "classes"
        self.classes.mkdir()
        for name in ("Foo.class", "FooBean.class", "FooCMP.class", "FooSession.class", "package.html"):
            (self.classes / name).write_bytes(name.encode("ascii"))
        self.config = PackagingConfig(
            output_directory=self.root / "target",
            source_directory=self.classes,
            jar_name="demo-1.0",
        )
        self.console = Console(level="none")

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _write_descriptor(self, text: str = "<ejb-jar/>") -> Path:
        descriptor = self.classes / "META-INF" / "ejb-jar.xml"
        descriptor.parent.mkdir(parents=True, exist_ok=True)
        descriptor.write_text(text)
        return descriptor

    def test_client_defaults_strip_implementation_classes(self) -> None:
        target = ArchiveAssembler(self.config, self.console).build(ArchiveProfile.CLIENT)
        self.assertEqual(target, self.root / "target" / "demo-1.0-client.jar")
        self.assertEqual(_names(target), ["Foo.class"])

    def test_main_defaults_exclude_package_html_only(self) -> None:
        target = ArchiveAssembler(self.config, self.console).build(ArchiveProfile.MAIN)
        self.assertEqual(target, self.root / "target" / "demo-1.0.jar")
        self.assertEqual(
            _names(target),
            ["Foo.class", "FooBean.class", "FooCMP.class", "FooSession.class"],
        )

    def test_descriptor_added_exactly_once(self) -> None:
        self._write_descriptor()
        target = ArchiveAssembler(self.config, self.console).build(ArchiveProfile.MAIN)
        self.assertEqual(_names(target).count("META-INF/ejb-jar.xml"), 1)

        config = replace(self.config, excludes=("**/package.html",))
        target = ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN)
        self.assertEqual(_names(target).count("META-INF/ejb-jar.xml"), 1)

    def test_client_never_contains_descriptor(self) -> None:
        self._write_descriptor()
        config = replace(self.config, client_excludes=("**/*Bean.class",))
        target = ArchiveAssembler(config, self.console).build(ArchiveProfile.CLIENT)
        self.assertNotIn("META-INF/ejb-jar.xml", _names(target))

    def test_client_user_patterns_replace_defaults(self) -> None:
        config = replace(self.config, client_includes=("*Bean.class", "package.html"))
        target = ArchiveAssembler(config, self.console).build(ArchiveProfile.CLIENT)
        # Default excludes still apply to the includes axis.
        self.assertEqual(_names(target), [])

        config = replace(config, client_excludes=("**/*CMP.class",))
        target = ArchiveAssembler(config, self.console).build(ArchiveProfile.CLIENT)
        self.assertEqual(_names(target), ["FooBean.class", "package.html"])

    def test_main_user_excludes_replace_defaults(self) -> None:
        config = replace(self.config, excludes=("**/*Bean.class",))
        target = ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN)
        self.assertIn("package.html", _names(target))
        self.assertNotIn("FooBean.class", _names(target))

    def test_selection_tables_differ(self) -> None:
        assembler = ArchiveAssembler(self.config, self.console)
        main = assembler.selection(ArchiveProfile.MAIN)
        client = assembler.selection(ArchiveProfile.CLIENT)
        self.assertEqual(main.excludes, ("META-INF/ejb-jar.xml", "**/package.html"))
        self.assertEqual(client.excludes, DEFAULT_CLIENT_EXCLUDES)
        self.assertNotEqual(main.excludes, client.excludes)

    def test_version_2_without_descriptor_writes_nothing(self) -> None:
        config = replace(self.config, ejb_version="2.0")
        with self.assertRaises(ConfigurationError):
            ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN)
        self.assertFalse((self.root / "target" / "demo-1.0.jar").exists())

    def test_version_2_with_descriptor_builds(self) -> None:
        self._write_descriptor()
        config = replace(self.config, ejb_version="2.0")
        target = ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN)
        self.assertIn("META-INF/ejb-jar.xml", _names(target))

    def test_invalid_version_does_not_block_client(self) -> None:
        config = replace(self.config, ejb_version="9.9")
        with self.assertRaises(ConfigurationError):
            ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN)
        target = ArchiveAssembler(config, self.console).build(ArchiveProfile.CLIENT)
        self.assertTrue(target.exists())

    def test_filtered_descriptor_is_packaged(self) -> None:
        self._write_descriptor("<ejb-jar><display-name>${project.build.finalName}</display-name></ejb-jar>")
        config = replace(self.config, filter_deployment_descriptor=True)
        target = ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN)
        with zipfile.ZipFile(target) as archive:
            self.assertEqual(
                archive.read("META-INF/ejb-jar.xml"),
                b"<ejb-jar><display-name>demo-1.0</display-name></ejb-jar>",
            )
            self.assertNotIn("META-INF/ejb-jar.xml.unfiltered", archive.namelist())

    def test_descriptor_not_filtered_unless_enabled(self) -> None:
        self._write_descriptor("<a>${project.build.finalName}</a>")
        calls: list[Path] = []

        def _record(descriptor: Path, *args: object, **kwargs: object) -> None:
            calls.append(descriptor)

        ArchiveAssembler(self.config, self.console, descriptor_filter=_record).build(ArchiveProfile.MAIN)
        self.assertEqual(calls, [])

    def test_filter_failure_is_reported_separately(self) -> None:
        self._write_descriptor()
        config = replace(
            self.config,
            filter_deployment_descriptor=True,
            filters=(self.root / "missing.properties",),
        )
        with self.assertRaises(FilteringError) as ctx:
            ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN)
        self.assertTrue(
            str(ctx.exception).startswith("There was a problem filtering the deployment descriptor: "))
        self.assertFalse((self.root / "target" / "demo-1.0.jar").exists())

    def test_archive_failure_is_wrapped(self) -> None:
        blocker = self.root / "blocker"
        blocker.write_text("not a directory")
        config = replace(self.config, output_directory=blocker)
        with self.assertRaises(ArchiveBuildError) as ctx:
            ArchiveAssembler(config, self.console).build(ArchiveProfile.CLIENT)
        self.assertTrue(
            str(ctx.exception).startswith("There was a problem creating the EJB client archive: "))

    def test_reproducible_timestamp_gives_identical_bytes(self) -> None:
        self._write_descriptor()
        config = replace(self.config, output_timestamp="2024-01-01T00:00:00Z")
        first = ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN).read_bytes()
        second = ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN).read_bytes()
        self.assertEqual(first, second)

    def test_membership_is_stable_without_timestamp(self) -> None:
        first = _names(ArchiveAssembler(self.config, self.console).build(ArchiveProfile.MAIN))
        second = _names(ArchiveAssembler(self.config, self.console).build(ArchiveProfile.MAIN))
        self.assertEqual(first, second)

    def test_manifest_records_creator_and_entries(self) -> None:
        config = replace(self.config, manifest_entries={"Implementation-Title": "demo"})
        target = ArchiveAssembler(config, self.console).build(ArchiveProfile.MAIN)
        with zipfile.ZipFile(target) as archive:
            self.assertEqual(archive.namelist()[0], MANIFEST_PATH)
            manifest = archive.read(MANIFEST_PATH).decode("utf-8")
        self.assertIn("Created-By: ejbpack (ejbpack:ejbpack)", manifest)
        self.assertIn("Implementation-Title: demo", manifest)

    def test_dry_run_does_not_write_or_filter(self) -> None:
        self._write_descriptor("<a>${project.build.finalName}</a>")
        config = replace(self.config, filter_deployment_descriptor=True)
        console = Console(level="none", dry_run=True)
        target = ArchiveAssembler(config, console).build(ArchiveProfile.MAIN)
        self.assertFalse(target.exists())
        self.assertEqual(
            (self.classes / "META-INF" / "ejb-jar.xml").read_text(),
            "<a>${project.build.finalName}</a>",
        )

    def test_matched_entries(self) -> None:
        self._write_descriptor()
        main = matched_entries(self.config, ArchiveProfile.MAIN, self.console)
        client = matched_entries(self.config, ArchiveProfile.CLIENT, self.console)
        self.assertEqual(
            list(main),
            ["Foo.class", "FooBean.class", "FooCMP.class", "FooSession.class", "META-INF/ejb-jar.xml"],
        )
        self.assertEqual(list(client), ["Foo.class"])


if __name__ == "__main__":
    unittest.main()
