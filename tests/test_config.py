from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from polycheck.config import Config, load_config, normalize_extensions, validate_config


class ConfigTests(unittest.TestCase):
    def test_defaults_are_valid(self) -> None:
        config = Config()
        self.assertEqual(validate_config(config), [])
        self.assertEqual(config.scan.max_file_lines, 500)
        self.assertEqual(config.scan.max_component_lines, 300)
        self.assertIn("node_modules", config.scan.exclude)

    def test_load_config_reads_all_sections(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "polycheck.toml"
            path.write_text(
                "\n".join(
                    [
                        "[scan]",
                        'exclude = ["vendor"]',
                        'include_extensions = [".py", "cs"]',
                        "max_file_lines = 250",
                        "jobs = 3",
                        "",
                        "[csharp]",
                        "async_lookahead = 10",
                        "using_lookbehind = 0",
                        "",
                        "[dotnet]",
                        "min_target_version = 8",
                        "",
                        "[report]",
                        'format = "json"',
                        'out = "build/report.json"',
                    ]
                ),
                encoding="utf-8",
            )

            config = load_config(str(path))

        self.assertEqual(config.scan.exclude, ["vendor"])
        self.assertEqual(normalize_extensions(config.scan.include_extensions), {".py", ".cs"})
        self.assertEqual(config.scan.max_file_lines, 250)
        self.assertEqual(config.scan.max_component_lines, 300)
        self.assertEqual(config.scan.jobs, 3)
        self.assertEqual(config.csharp.async_lookahead, 10)
        self.assertEqual(config.csharp.using_lookbehind, 0)
        self.assertEqual(config.dotnet.min_target_version, 8)
        self.assertEqual(config.report.output_format, "json")
        self.assertEqual(config.report.out, "build/report.json")
        self.assertEqual(validate_config(config), [])

    def test_missing_explicit_config_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                load_config(str(Path(tmp) / "absent.toml"))

    def test_validate_reports_each_problem(self) -> None:
        config = Config()
        config.scan.max_file_lines = 0
        config.scan.jobs = -2
        config.csharp.using_lookbehind = -1
        config.report.output_format = "xml"
        config.scan.include_extensions = []

        errors = validate_config(config)

        self.assertTrue(any("max_file_lines" in error for error in errors))
        self.assertTrue(any("jobs" in error for error in errors))
        self.assertTrue(any("using_lookbehind" in error for error in errors))
        self.assertTrue(any("format" in error for error in errors))
        self.assertTrue(any("include_extensions" in error for error in errors))
        self.assertEqual(len(errors), 5)

    def test_normalize_extensions(self) -> None:
        self.assertEqual(normalize_extensions(["TS", ".Py", ".cs"]), {".ts", ".py", ".cs"})


if __name__ == "__main__":
    unittest.main()
