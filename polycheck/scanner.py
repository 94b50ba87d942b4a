from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from functools import partial
import logging
from pathlib import Path

from polycheck.config import Config, normalize_extensions
from polycheck.cross_file import find_duplicate_services, find_missing_tests
from polycheck.discovery import discover_files, relative_path
from polycheck.engine import analyze_file
from polycheck.manifests import inspect_dotnet_projects, inspect_package_manifest
from polycheck.models import Finding, IssueStore, ScanResult

logger = logging.getLogger(__name__)


def resolve_root(root: str | Path) -> Path:
    """Resolve the project root; a missing root is the only fatal input error."""
    root_path = Path(root).resolve()
    if not root_path.exists():
        raise FileNotFoundError(f"Project root not found: {root_path}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Project root is not a directory: {root_path}")
    return root_path


def scan_path(root: str | Path, config: Config | None = None) -> ScanResult:
    config = config or Config()
    root_path = resolve_root(root)
    files = discover_files(
        root_path,
        extensions=normalize_extensions(config.scan.include_extensions),
        excludes=config.scan.exclude,
    )
    logger.info("Scanning %d files under %s", len(files), root_path)

    store = IssueStore()
    for file_findings in _analyze_files(files, root_path, config):
        store.extend(file_findings)

    relative_paths = [relative_path(path, root_path) for path in files]
    store.extend(find_duplicate_services(relative_paths))
    store.extend(find_missing_tests(relative_paths))
    store.extend(inspect_package_manifest(root_path))
    store.extend(inspect_dotnet_projects(root_path, config))
    return ScanResult(root=root_path, store=store, files_scanned=len(files))


def _analyze_files(files: list[Path], root: Path, config: Config) -> list[list[Finding]]:
    analyze = partial(analyze_file, root=root, config=config)
    if config.scan.jobs <= 1 or len(files) < 2:
        return [analyze(path) for path in files]
    # map() yields in submission order, so bucket order matches a sequential run.
    with ThreadPoolExecutor(max_workers=config.scan.jobs) as executor:
        return list(executor.map(analyze, files))
