from __future__ import annotations

import os
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from polycheck.config import Config
from polycheck.discovery import discover_files
from polycheck.languages import classify
from polycheck.scanner import scan_path

CLEAN_PY = "import logging\n\nlogger = logging.getLogger(__name__)\n"
CLEAN_TEST = "def test_ok() -> None:\n    assert True\n"


class ScannerTests(unittest.TestCase):
    def _write(self, root: Path, relative: str, content: str) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def test_discovery_filters_extensions_and_excluded_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._write(root, "src/b.ts", "export {};\n")
            self._write(root, "src/a.py", CLEAN_PY)
            self._write(root, "README.md", "# readme\n")
            self._write(root, "node_modules/lib/index.js", "eval(x)\n")
            self._write(root, ".git/hooks/hook.py", "eval(x)\n")
            self._write(root, "bin/Debug/Gen.cs", "class A {}\n")

            files = discover_files(root, {".ts", ".py", ".js", ".cs"}, Config().scan.exclude)

            self.assertEqual([path.relative_to(root).as_posix() for path in files], ["src/a.py", "src/b.ts"])

    def test_discovery_missing_root_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                discover_files(Path(tmp) / "missing", {".py"}, [])

    def test_classifier_is_case_insensitive(self) -> None:
        self.assertEqual(classify("App.TSX"), "typescript")
        self.assertEqual(classify("query.SQL"), "sql")
        self.assertEqual(classify("Program.cs"), "csharp")
        self.assertEqual(classify("page.htm"), "html")
        self.assertIsNone(classify("notes.md"))

    def test_scan_missing_root_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                scan_path(Path(tmp) / "missing")

    def test_findings_use_relative_paths(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._write(root, "pkg/mod.py", "value = eval('2+2')\n")

            result = scan_path(root)
            critical = result.store.bucket("critical")

            self.assertEqual(result.files_scanned, 1)
            self.assertEqual([(f.file_path, f.line) for f in critical], [("pkg/mod.py", 1)])

    def test_duplicate_services_reported_once(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._write(root, "src/UserService.ts", "export const a = 1;\n")
            self._write(root, "legacy/userservice.js", "export const b = 2;\n")

            result = scan_path(root)
            duplicates = [f for f in result.store if f.rule_id == "PC601"]

            self.assertEqual(len(duplicates), 1)
            self.assertEqual(duplicates[0].severity, "critical")
            self.assertIn("src/UserService.ts", duplicates[0].message)
            self.assertIn("legacy/userservice.js", duplicates[0].message)

    def test_missing_tests_finding_disappears_after_adding_test(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._write(root, "app/main.py", CLEAN_PY)

            before = [f for f in scan_path(root).store if f.rule_id == "PC602"]
            self.assertEqual(len(before), 1)
            self.assertEqual(before[0].severity, "high")
            self.assertEqual(before[0].line, 0)

            self._write(root, "app/main.test.py", CLEAN_TEST)
            after = [f for f in scan_path(root).store if f.rule_id == "PC602"]
            self.assertEqual(after, [])

    def test_rerun_is_identical(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._write(root, "big.py", "x = 1\n" * 600)
            self._write(root, "web/index.html", "<img src='a.png'>\n")
            self._write(root, "db/seed.sql", "DROP TABLE users;\nSELECT * FROM users;\n")

            first = list(scan_path(root).store)
            second = list(scan_path(root).store)

            self.assertEqual(first, second)
            oversized = [f for f in first if f.rule_id == "PC001"]
            self.assertEqual([(f.file_path, f.line, f.severity) for f in oversized], [("big.py", 1, "high")])

    def test_parallel_scan_matches_sequential_order(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            for index in range(8):
                self._write(root, f"src/mod{index}.ts", f"console.log({index});\n// TODO {index}\n")

            sequential = list(scan_path(root).store)
            config = Config()
            config.scan.jobs = 4
            parallel = list(scan_path(root, config).store)

            self.assertEqual(sequential, parallel)

    def test_unreadable_file_does_not_abort_scan(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / "broken.py").write_bytes(b"\xff\xfe\xfa")
            self._write(root, "ok.ts", "console.log(1);\n")

            result = scan_path(root)
            rule_ids = {(f.file_path, f.rule_id) for f in result.store}

            self.assertEqual(result.files_scanned, 2)
            self.assertIn(("broken.py", "PC900"), rule_ids)
            self.assertIn(("ok.ts", "PC104"), rule_ids)

    def test_symlinked_file_keeps_relative_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, tempfile.TemporaryDirectory() as other:
            root = Path(tmp).resolve()
            target = self._write(Path(other).resolve(), "real.js", "eval(input);\n")
            os.symlink(target, root / "link.js")

            critical = scan_path(root).store.bucket("critical")

            self.assertEqual([(f.file_path, f.rule_id) for f in critical], [("link.js", "PC102")])

    def test_unreadable_directory_is_skipped(self) -> None:
        real_walk = os.walk
        reported: list[str] = []

        def walk(top, topdown=True, onerror=None, followlinks=False):
            if not reported and onerror is not None:
                locked = os.path.join(top, "locked")
                reported.append(locked)
                onerror(PermissionError(13, "Permission denied", locked))
            yield from real_walk(top, topdown, onerror, followlinks)

        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._write(root, "src/a.py", CLEAN_PY)

            with mock.patch("polycheck.discovery.os.walk", side_effect=walk):
                with self.assertLogs("polycheck.discovery", level="WARNING") as logs:
                    files = discover_files(root, {".py"}, [])

            self.assertEqual([path.relative_to(root).as_posix() for path in files], ["src/a.py"])
            self.assertTrue(any("locked" in message for message in logs.output))

    def test_own_package_directory_is_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._write(root, "tools/polycheck/engine.py", "eval(x)\n")
            self._write(root, "app/main.py", CLEAN_PY)

            with mock.patch("polycheck.discovery.SELF_DIR", root / "tools" / "polycheck"):
                files = discover_files(root, {".py"}, [])

            self.assertEqual([path.relative_to(root).as_posix() for path in files], ["app/main.py"])

    def test_cross_file_inspectors_run_against_root(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._write(root, "package.json", "{ not json")
            self._write(root, "Api/Api.csproj", "<Project><PropertyGroup><TargetFramework>net8.0")

            rule_ids = {f.rule_id for f in scan_path(root).store}

            self.assertIn("PC611", rule_ids)
            self.assertIn("PC620", rule_ids)


if __name__ == "__main__":
    unittest.main()
