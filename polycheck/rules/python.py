from __future__ import annotations

import re

from polycheck.models import Finding
from polycheck.rules.base import WORK_MARKER_PATTERN, FileContext, profile, rule

FUNCTION_DEF_PATTERN = re.compile(r"^\s*(?:async\s+)?def\s+(\w+)\s*\(([^)]*)\)\s*(->\s*[^:]+)?:")
PARAM_ANNOTATION_PATTERN = re.compile(r":\s*\w+")
PRINT_CALL_PATTERN = re.compile(r"\bprint\s*\(")
LOGGING_IMPORT_PATTERN = re.compile(
    r"^\s*(?:import\s+(?:logging|structlog|loguru)\b|from\s+(?:logging|structlog|loguru)\b)",
    re.MULTILINE,
)

RULES = [
    rule("PC201", r"\beval\s*\(", "critical", "Security risk: eval() can execute arbitrary code"),
    rule("PC202", r"\bexec\s*\(", "critical", "Security risk: exec() can execute arbitrary code"),
    rule(
        "PC203",
        r"\bpickle\.loads?\s*\(",
        "critical",
        "Security risk: pickle.load() can execute arbitrary code. Use json or validate input",
    ),
    rule("PC204", r"\bprint\s*\(", "medium", "print() found (use logging module for production code)"),
    rule("PC205", r"\bAny\b", "high", "Type safety: Any type used (from typing). Prefer specific types"),
    rule("PC206", WORK_MARKER_PATTERN, "low", "TODO/FIXME comment found"),
]


def find_missing_return_annotations(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for idx, line in enumerate(ctx.lines, start=1):
        match = FUNCTION_DEF_PATTERN.match(line)
        if not match:
            continue
        name, params, returns = match.groups()
        if returns is None and PARAM_ANNOTATION_PATTERN.search(params):
            findings.append(
                ctx.finding(
                    "PC210",
                    "medium",
                    f"Function '{name}' has parameter type hints but missing return type hint. "
                    "Consider adding -> ReturnType",
                    idx,
                    line,
                )
            )
    return findings


def find_print_without_logging(ctx: FileContext) -> list[Finding]:
    if LOGGING_IMPORT_PATTERN.search(ctx.content):
        return []
    for idx, line in enumerate(ctx.lines, start=1):
        if PRINT_CALL_PATTERN.search(line):
            return [
                ctx.finding(
                    "PC211",
                    "medium",
                    "print() statements found but logging module not imported. Use logging.getLogger() instead",
                    idx,
                    line,
                )
            ]
    return []


PROFILE = profile("python", RULES, [find_missing_return_annotations, find_print_without_logging])
