from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import tempfile
import unittest
import zipfile

from core.archive import MANIFEST_PATH, ArchiveArtifact, ArchiveError, ArchiveManager, Manifest


class _Console:
    def __init__(self, dry_run: bool = False) -> None:
        self.dry_run = dry_run
        self.messages: list[str] = []

    def info(self, message: str) -> None:
        self.messages.append(message)

    def error(self, message: str) -> None:
        self.messages.append(message)

    def dry(self, message: str) -> None:
        self.messages.append(f"[DRY] {message}")


class ManifestTests(unittest.TestCase):
    def test_created_by_orders_attributes(self) -> None:
        manifest = Manifest.created_by(
            "ejbpack", "grp", "art", tool_version="1.0", entries={"Class-Path": "lib/a.jar"})
        text = manifest.to_bytes().decode("utf-8")
        self.assertEqual(
            text,
            "Manifest-Version: 1.0\r\n"
            "Created-By: ejbpack (grp:art)\r\n"
            "Build-Tool-Version: 1.0\r\n"
            "Class-Path: lib/a.jar\r\n"
            "\r\n",
        )

    def test_long_lines_are_wrapped(self) -> None:
        manifest = Manifest({"Manifest-Version": "1.0"})
        manifest.set("Class-Path", " ".join(f"lib/dependency-{index}.jar" for index in range(10)))
        lines = manifest.to_bytes().split(b"\r\n")
        self.assertTrue(all(len(line) <= 72 for line in lines))
        continuation = [line for line in lines if line.startswith(b" ")]
        self.assertTrue(continuation)
        rebuilt = lines[1] + b"".join(line[1:] for line in continuation)
        self.assertIn(b"lib/dependency-9.jar", rebuilt)

    def test_invalid_attribute_names_are_rejected(self) -> None:
        manifest = Manifest()
        with self.assertRaises(ArchiveError):
            manifest.set("Bad Name", "x")
        with self.assertRaises(ArchiveError):
            manifest.set("Name", "two\nlines")


class ArchiveManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.source = self.root / "classes"
        (self.source / "com" / "acme").mkdir(parents=True)
        (self.source / "com" / "acme" / "Foo.class").write_bytes(b"foo")
        (self.source / "com" / "acme" / "FooBean.class").write_bytes(b"bean")
        (self.source / "META-INF").mkdir()
        (self.source / "META-INF" / "MANIFEST.MF").write_text("Manifest-Version: 9.9\n")
        self.console = _Console()
        self.manager = ArchiveManager(self.console)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_manifest_is_first_and_source_manifest_is_skipped(self) -> None:
        target = self.root / "out" / "demo.jar"
        artifact = ArchiveArtifact(self.source, excludes=("**/*Bean.class",))
        self.manager.create_archive(artifact=artifact, target_path=target)

        with zipfile.ZipFile(target) as archive:
            names = archive.namelist()
            self.assertEqual(names, [MANIFEST_PATH, "com/acme/Foo.class"])
            self.assertIn(b"Manifest-Version: 1.0", archive.read(MANIFEST_PATH))

    def test_explicit_file_replaces_scanned_entry(self) -> None:
        replacement = self.root / "Foo.override"
        replacement.write_bytes(b"override")
        artifact = ArchiveArtifact(self.source)
        artifact.add_file(replacement, "com/acme/Foo.class")
        target = self.root / "demo.jar"
        self.manager.create_archive(artifact=artifact, target_path=target)

        with zipfile.ZipFile(target) as archive:
            self.assertEqual(archive.namelist().count("com/acme/Foo.class"), 1)
            self.assertEqual(archive.read("com/acme/Foo.class"), b"override")

    def test_fixed_timestamp_gives_identical_archives(self) -> None:
        moment = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)
        first = self.root / "first.jar"
        second = self.root / "second.jar"
        for target in (first, second):
            self.manager.create_archive(
                artifact=ArchiveArtifact(self.source),
                target_path=target,
                manifest=Manifest.created_by("t", "g", "a"),
                timestamp=moment,
            )
        self.assertEqual(first.read_bytes(), second.read_bytes())
        with zipfile.ZipFile(first) as archive:
            for info in archive.infolist():
                self.assertEqual(info.date_time, (2024, 5, 1, 12, 30, 0))

    def test_dry_run_writes_nothing(self) -> None:
        manager = ArchiveManager(_Console(dry_run=True))
        target = self.root / "dry.jar"
        result = manager.create_archive(artifact=ArchiveArtifact(self.source), target_path=target)
        self.assertEqual(result, target)
        self.assertFalse(target.exists())

    def test_dry_run_reports_through_console_dry(self) -> None:
        console = _Console(dry_run=True)
        ArchiveManager(console).create_archive(
            artifact=ArchiveArtifact(self.source), target_path=self.root / "dry.jar")
        self.assertTrue(any(line.startswith("[DRY] Would archive") for line in console.messages))

    def test_missing_source_raises(self) -> None:
        with self.assertRaises(ArchiveError):
            self.manager.create_archive(
                artifact=ArchiveArtifact(self.root / "missing"),
                target_path=self.root / "x.jar",
            )

    def test_unknown_suffix_raises(self) -> None:
        with self.assertRaises(ArchiveError) as ctx:
            self.manager.create_archive(
                artifact=ArchiveArtifact(self.source),
                target_path=self.root / "x.rar",
            )
        self.assertIn("x.rar", str(ctx.exception))
        self.assertIn(".jar, .war, .ear or .zip", str(ctx.exception))

    def test_refuses_to_overwrite_when_asked(self) -> None:
        target = self.root / "exists.jar"
        target.write_bytes(b"old")
        with self.assertRaises(ArchiveError):
            self.manager.create_archive(
                artifact=ArchiveArtifact(self.source), target_path=target, overwrite=False)

    def test_write_failure_is_wrapped(self) -> None:
        blocker = self.root / "blocker"
        blocker.write_text("file, not a directory")
        with self.assertRaises(ArchiveError):
            self.manager.create_archive(
                artifact=ArchiveArtifact(self.source), target_path=blocker / "demo.jar")


if __name__ == "__main__":
    unittest.main()
