from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

# The analyzer never scans its own sources, even when installed inside the project tree.
SELF_DIR = Path(__file__).resolve().parent


def discover_files(root: Path, extensions: set[str], excludes: list[str]) -> list[Path]:
    """Return the files under ``root`` with an allowed extension, in a stable depth-first order."""
    return [path for path in _walk(root, excludes) if path.suffix.lower() in extensions]


def find_named_files(root: Path, predicate: Callable[[str], bool], excludes: list[str]) -> list[Path]:
    return [path for path in _walk(root, excludes) if predicate(path.name)]


def relative_path(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _walk(root: Path, excludes: list[str]) -> Iterator[Path]:
    if not root.exists():
        raise FileNotFoundError(f"Project root not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Project root is not a directory: {root}")

    exclude_set = set(excludes)
    for dirpath, dirnames, filenames in os.walk(root, topdown=True, onerror=_log_walk_error, followlinks=False):
        dir_path = Path(dirpath)
        dirnames[:] = sorted(
            name for name in dirnames if name not in exclude_set and not _is_self_dir(dir_path / name)
        )
        for filename in sorted(filenames):
            file_path = dir_path / filename
            if file_path.is_file():
                yield file_path


def _is_self_dir(path: Path) -> bool:
    try:
        return path.resolve() == SELF_DIR
    except OSError:
        return False


def _log_walk_error(exc: OSError) -> None:
    logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc.strerror)
