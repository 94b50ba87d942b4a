from __future__ import annotations

from collections import defaultdict
from pathlib import PurePosixPath
import re

from polycheck.models import Finding

PROJECT_SCOPE = "project"
SERVICE_SUFFIX = "service"
TEST_PATH_MARKERS = (".test.", ".spec.")
TEST_DIR_NAMES = {"__tests__", "__test__", "tests", "test"}
TEST_FILE_PATTERN = re.compile(r"^(?:test_\w+\.py|\w+_test\.py|\w+Tests?\.cs)$")


def find_duplicate_services(relative_paths: list[str]) -> list[Finding]:
    """Flag service-like files that share a base name across extensions, casing or directories."""
    groups: dict[str, list[str]] = defaultdict(list)
    for path in relative_paths:
        base_name = PurePosixPath(path).stem.casefold()
        if base_name.endswith(SERVICE_SUFFIX):
            groups[base_name].append(path)

    findings: list[Finding] = []
    for base_name in sorted(groups):
        unique_paths = sorted(set(groups[base_name]))
        if len(unique_paths) < 2:
            continue
        findings.append(
            Finding(
                rule_id="PC601",
                severity="critical",
                message=f"Potential duplicate service files detected: {', '.join(unique_paths)}",
                file_path=unique_paths[0],
                line=0,
                excerpt="Consider consolidating into a single service file",
            )
        )
    return findings


def is_test_path(relative_path: str) -> bool:
    path = PurePosixPath(relative_path)
    if any(marker in path.name for marker in TEST_PATH_MARKERS):
        return True
    if any(part in TEST_DIR_NAMES for part in path.parts[:-1]):
        return True
    return bool(TEST_FILE_PATTERN.match(path.name))


def find_missing_tests(relative_paths: list[str]) -> list[Finding]:
    if any(is_test_path(path) for path in relative_paths):
        return []
    return [
        Finding(
            rule_id="PC602",
            severity="high",
            message="No test files found. Consider adding tests for critical functionality.",
            file_path=PROJECT_SCOPE,
            line=0,
            excerpt="Set up Vitest, Jest, pytest, xUnit or your preferred testing framework",
        )
    ]
