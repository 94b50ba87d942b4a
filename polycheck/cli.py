from __future__ import annotations

import argparse
import logging
import sys

from polycheck import __version__
from polycheck.config import REPORT_FORMATS, Config, load_config, validate_config
from polycheck.models import ScanResult
from polycheck.quality_gate import evaluate_status, exit_code
from polycheck.reporters import render_report, write_report
from polycheck.scanner import scan_path

INPUT_ERROR_EXIT_CODE = 2

TOP_LEVEL_EPILOG = """Examples:
  polycheck scan
  polycheck scan path/to/project
  polycheck scan --project-root path/to/project --format json --out report.json

Exit status:
  0  passed, or passed with medium/low warnings
  1  at least one critical or high finding
  2  project root missing or invalid configuration
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polycheck",
        description="Multi-language code quality scanner.",
        epilog=TOP_LEVEL_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Scan a project tree and report findings.")
    scan.add_argument("path", nargs="?", default=None, help="Project root to scan (default: current directory).")
    scan.add_argument("--project-root", dest="project_root", help="Project root to scan (same as PATH).")
    scan.add_argument("--config", help="Path to polycheck TOML config.")
    scan.add_argument("--exclude", action="append", default=[], help="Extra directory names to skip (repeatable).")
    scan.add_argument("--include-ext", action="append", default=[], help="Extra extension to scan (repeatable).")
    scan.add_argument("--max-file-lines", type=int, help="Flag files longer than this many lines.")
    scan.add_argument("--max-component-lines", type=int, help="Flag UI components longer than this many lines.")
    scan.add_argument("--jobs", type=int, help="Number of files analyzed in parallel.")
    scan.add_argument("--format", choices=list(REPORT_FORMATS), help="Report output format.")
    scan.add_argument("--out", help="Write report to file. Defaults to stdout.")
    scan.add_argument("-v", "--verbose", action="store_true", help="Log progress and skipped files to stderr.")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "scan":
        raise SystemExit(run_scan(args))


def run_scan(args: argparse.Namespace) -> int:
    configure_logging(args.verbose)
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[config] {exc}", file=sys.stderr)
        return INPUT_ERROR_EXIT_CODE

    merged = merge_cli_with_config(args, config)
    validation_errors = validate_config(merged)
    if validation_errors:
        for error in validation_errors:
            print(f"[config] {error}", file=sys.stderr)
        return INPUT_ERROR_EXIT_CODE

    root = args.project_root or args.path or "."
    try:
        result = scan_path(root, merged)
    except (FileNotFoundError, NotADirectoryError) as exc:
        print(f"[input] {exc}", file=sys.stderr)
        return INPUT_ERROR_EXIT_CODE

    write_report(render_report(result, merged.report.output_format), merged.report.out)
    print_summary(result)
    return exit_code(evaluate_status(result.store))


def merge_cli_with_config(args: argparse.Namespace, config: Config) -> Config:
    merged = config
    if args.exclude:
        merged.scan.exclude = list(dict.fromkeys([*merged.scan.exclude, *args.exclude]))
    if args.include_ext:
        merged.scan.include_extensions = list(dict.fromkeys([*merged.scan.include_extensions, *args.include_ext]))
    if args.max_file_lines is not None:
        merged.scan.max_file_lines = args.max_file_lines
    if args.max_component_lines is not None:
        merged.scan.max_component_lines = args.max_component_lines
    if args.jobs is not None:
        merged.scan.jobs = args.jobs
    if args.format:
        merged.report.output_format = args.format
    if args.out:
        merged.report.out = args.out
    return merged


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def print_summary(result: ScanResult) -> None:
    counts = result.store.counts()
    line = (
        f"[summary] files={result.files_scanned} issues={result.store.total} "
        + " ".join(f"{severity}={count}" for severity, count in counts.items())
        + f" status={evaluate_status(result.store)}"
    )
    print(line, file=sys.stderr)


if __name__ == "__main__":
    main()
