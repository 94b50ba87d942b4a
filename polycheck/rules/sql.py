from __future__ import annotations

import re

from polycheck.models import Finding
from polycheck.rules.base import WORK_MARKER_PATTERN, FileContext, profile, rule

# Textual heuristics: a file that concatenates strings for any other purpose still trips the
# injection check, and ":word" matches casts as well as named parameters.
PLACEHOLDER_PATTERN = re.compile(r"[?$]\d+|(?<![\w?])\?(?![\w?])|(?<!:):[A-Za-z_]\w*|%s|%\(\w+\)s|@[A-Za-z_]\w*")
STRING_CONCAT_PATTERN = re.compile(r"['\"]\s*\+\s*['\"]")
DROP_PATTERN = re.compile(r"\bDROP\s+(TABLE|DATABASE|VIEW|INDEX|SCHEMA)\b", re.IGNORECASE)
DROP_GUARD_PATTERN = re.compile(
    r"\bIF\s+EXISTS\b|\bOBJECT_ID\s*\([^)]*\)\s+IS\s+NOT\s+NULL\b",
    re.IGNORECASE,
)
TRANSACTION_PATTERN = re.compile(
    r"\bBEGIN\s+TRAN(?:SACTION)?\b|\bBEGIN\s*;|\bSTART\s+TRANSACTION\b|\bCOMMIT\b|\bROLLBACK\b",
    re.IGNORECASE,
)
STATEMENT_END_PATTERN = re.compile(r";\s*$", re.MULTILINE)

RULES = [
    rule(
        "PC401",
        r"SELECT\s+.*\s+FROM\s+.*\s+WHERE\s+.*['\"]\s*\+\s*['\"]",
        "critical",
        "SQL injection risk: String concatenation in WHERE clause. Use parameterized queries",
        re.IGNORECASE,
    ),
    rule(
        "PC402",
        r"INSERT\s+INTO\s+.*\s+VALUES\s*\([^)]*['\"]\s*\+\s*['\"]",
        "critical",
        "SQL injection risk: String concatenation in INSERT. Use parameterized queries",
        re.IGNORECASE,
    ),
    rule(
        "PC403",
        r"UPDATE\s+.*\s+SET\s+.*['\"]\s*\+\s*['\"]",
        "critical",
        "SQL injection risk: String concatenation in UPDATE. Use parameterized queries",
        re.IGNORECASE,
    ),
    rule(
        "PC404",
        r"\b(?:password|pwd|passwd)\s*=\s*['\"][^'\"]+['\"]",
        "critical",
        "Hardcoded credentials found. Use environment variables or secure config",
        re.IGNORECASE,
    ),
    rule("PC405", r"SELECT\s+\*\s+FROM", "medium", "SELECT * found. Consider specifying columns explicitly", re.IGNORECASE),
    rule("PC406", WORK_MARKER_PATTERN, "low", "TODO/FIXME comment found"),
]


def find_unparameterized_concatenation(ctx: FileContext) -> list[Finding]:
    if PLACEHOLDER_PATTERN.search(ctx.content):
        return []
    for idx, line in enumerate(ctx.lines, start=1):
        if STRING_CONCAT_PATTERN.search(line):
            return [
                ctx.finding(
                    "PC410",
                    "critical",
                    "SQL file contains string concatenation but no parameterized queries detected. "
                    "High SQL injection risk.",
                    idx,
                    line,
                )
            ]
    return []


def find_unguarded_drops(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for idx, line in enumerate(ctx.lines, start=1):
        match = DROP_PATTERN.search(line)
        if match and not _has_drop_guard(ctx.lines, idx - 1, match.start()):
            findings.append(
                ctx.finding(
                    "PC411",
                    "high",
                    f"DROP {match.group(1).upper()} statement without IF EXISTS clause. Consider adding safety checks.",
                    idx,
                    line,
                )
            )
    return findings


def _has_drop_guard(lines: list[str], index: int, start: int) -> bool:
    """True when the DROP statement, or a bare guard line right before it, checks existence first."""
    line = lines[index]
    statement_start = line.rfind(";", 0, start) + 1
    statement_end = line.find(";", start)
    if DROP_GUARD_PATTERN.search(line, statement_start, len(line) if statement_end < 0 else statement_end):
        return True
    if line[statement_start:start].strip() or index == 0:
        return False
    previous = lines[index - 1].rstrip()
    return not previous.endswith(";") and DROP_GUARD_PATTERN.search(previous) is not None


def find_missing_transaction(ctx: FileContext) -> list[Finding]:
    statements = len(STATEMENT_END_PATTERN.findall(ctx.content))
    if statements <= 1 or TRANSACTION_PATTERN.search(ctx.content):
        return []
    return [
        ctx.finding(
            "PC412",
            "medium",
            f"Multiple SQL statements ({statements}) found without explicit transaction handling",
            1,
            "Wrap in BEGIN TRANSACTION ... COMMIT",
        )
    ]


PROFILE = profile(
    "sql",
    RULES,
    [find_unparameterized_concatenation, find_unguarded_drops, find_missing_transaction],
)
