from __future__ import annotations

from contextlib import redirect_stderr, redirect_stdout
import io
import json
from pathlib import Path
import tempfile
import unittest

from polycheck.cli import build_parser, main, merge_cli_with_config
from polycheck.config import Config

CLEAN_MODULE = "import logging\n\nlogger = logging.getLogger(__name__)\n"


class CLITests(unittest.TestCase):
    def _run(self, argv: list[str]) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as exc:
                main(argv)
        return exc.exception.code, stdout.getvalue(), stderr.getvalue()

    def _project(self, tmp: str, files: dict[str, str]) -> Path:
        root = Path(tmp)
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    def test_version_flag(self) -> None:
        parser = build_parser()
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as exc:
                parser.parse_args(["--version"])
        self.assertEqual(exc.exception.code, 0)

    def test_top_level_help_documents_exit_status(self) -> None:
        help_text = build_parser().format_help()
        self.assertIn("Exit status:", help_text)
        self.assertIn("polycheck scan path/to/project", help_text)

    def test_missing_root_exits_with_input_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            code, stdout, stderr = self._run(["scan", str(Path(tmp) / "missing")])

        self.assertEqual(code, 2)
        self.assertEqual(stdout, "")
        self.assertIn("[input]", stderr)

    def test_missing_config_exits_with_input_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            code, _, stderr = self._run(["scan", tmp, "--config", str(Path(tmp) / "nope.toml")])

        self.assertEqual(code, 2)
        self.assertIn("[config]", stderr)

    def test_invalid_override_exits_with_input_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            code, _, stderr = self._run(["scan", tmp, "--jobs", "0"])

        self.assertEqual(code, 2)
        self.assertIn("jobs must be >= 1", stderr)

    def test_critical_finding_fails(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = self._project(tmp, {"src/app.py": "eval(data)\n", "tests/test_app.py": CLEAN_MODULE})
            code, stdout, stderr = self._run(["scan", str(root)])

        self.assertEqual(code, 1)
        self.assertIn("QUALITY CHECK FAILED", stdout)
        self.assertIn("status=failed", stderr)

    def test_clean_project_passes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = self._project(tmp, {"src/app.py": CLEAN_MODULE, "tests/test_app.py": CLEAN_MODULE})
            code, stdout, stderr = self._run(["scan", "--project-root", str(root)])

        self.assertEqual(code, 0)
        self.assertIn("QUALITY CHECK PASSED", stdout)
        self.assertIn("[summary] files=2", stderr)
        self.assertIn("info=1", stderr)

    def test_warnings_only_project_passes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = self._project(
                tmp,
                {"src/app.ts": "console.log('hi');\n", "src/app.test.ts": "export {};\n"},
            )
            code, stdout, _ = self._run(["scan", str(root)])

        self.assertEqual(code, 0)
        self.assertIn("QUALITY CHECK PASSED WITH WARNINGS", stdout)

    def test_json_report_written_to_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = self._project(tmp, {"src/app.ts": "console.log('hi');\n"})
            out = Path(tmp) / "out" / "report.json"
            code, stdout, _ = self._run(["scan", str(root), "--format", "json", "--out", str(out)])
            payload = json.loads(out.read_text(encoding="utf-8"))

        self.assertEqual(code, 1)
        self.assertEqual(stdout, "")
        self.assertEqual(payload["status"], "failed")
        self.assertEqual(payload["rule_counts"]["PC602"], 1)

    def test_config_file_thresholds_apply(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = self._project(
                tmp,
                {
                    "src/app.py": CLEAN_MODULE + "x = 1\n" * 5,
                    "tests/test_app.py": CLEAN_MODULE,
                    "polycheck.toml": "[scan]\nmax_file_lines = 5\n",
                },
            )
            code, stdout, _ = self._run(["scan", str(root), "--config", str(root / "polycheck.toml")])

        self.assertEqual(code, 1)
        self.assertIn("src/app.py:1 [PC001]", stdout)

    def test_merge_cli_with_config(self) -> None:
        parser = build_parser()
        args = parser.parse_args(
            [
                "scan",
                ".",
                "--exclude",
                "vendor",
                "--include-ext",
                ".vue",
                "--max-file-lines",
                "800",
                "--max-component-lines",
                "150",
                "--jobs",
                "4",
                "--format",
                "json",
                "--out",
                "report.json",
            ]
        )

        merged = merge_cli_with_config(args, Config())

        self.assertIn("vendor", merged.scan.exclude)
        self.assertIn("node_modules", merged.scan.exclude)
        self.assertIn(".vue", merged.scan.include_extensions)
        self.assertEqual(merged.scan.max_file_lines, 800)
        self.assertEqual(merged.scan.max_component_lines, 150)
        self.assertEqual(merged.scan.jobs, 4)
        self.assertEqual(merged.report.output_format, "json")
        self.assertEqual(merged.report.out, "report.json")

    def test_merge_keeps_config_values_without_flags(self) -> None:
        args = build_parser().parse_args(["scan"])
        config = Config()
        config.scan.max_file_lines = 42

        merged = merge_cli_with_config(args, config)

        self.assertEqual(merged.scan.max_file_lines, 42)
        self.assertEqual(merged.report.output_format, "text")
        self.assertIsNone(args.path)


if __name__ == "__main__":
    unittest.main()
