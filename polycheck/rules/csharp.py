from __future__ import annotations

import re

from polycheck.models import Finding
from polycheck.rules.base import WORK_MARKER_PATTERN, FileContext, profile, rule

DISPOSABLE_TYPES = (
    "SqlConnection",
    "SqlCommand",
    "SqlDataReader",
    "NpgsqlConnection",
    "MySqlConnection",
    "FileStream",
    "StreamReader",
    "StreamWriter",
    "BinaryReader",
    "BinaryWriter",
    "MemoryStream",
    "HttpClient",
    "WebClient",
    "TcpClient",
)
DISPOSABLE_CTOR_PATTERN = re.compile(r"\bnew\s+(" + "|".join(DISPOSABLE_TYPES) + r")\s*\(")
USING_PATTERN = re.compile(r"\busing\s*\(|\busing\s+(?:var\b|[A-Z][\w.<>]*\s+\w+\s*=)")
ASYNC_METHOD_PATTERN = re.compile(r"\basync\s+[\w.]+(?:<[^()]*>)?\??\s+(\w+)\s*\(([^)]*)\)?")
AWAIT_PATTERN = re.compile(
    r"\bawait\b|\bTask\s*\.\s*(?:Run|FromResult|WhenAll|WhenAny|CompletedTask|Factory\s*\.\s*StartNew)\b"
)
ASYNC_VOID_PATTERN = re.compile(r"\basync\s+void\s+(\w+)\s*\(([^)]*)")
PUBLIC_MEMBER_PATTERN = re.compile(r"^\s*public\s+")
OVERRIDE_PATTERN = re.compile(r"\boverride\b")
ATTRIBUTE_LINE_PATTERN = re.compile(r"^\s*\[.*\]\s*$")
CATCH_PATTERN = re.compile(r"\bcatch\b(?:\s*\([^)]*\))?(?:\s*when\s*\(.*\))?")
CONNECTION_SECRET_PATTERN = re.compile(
    r"['\"][^'\"]*\b(?:Password|Pwd|AccountKey|SharedAccessKey)\s*=\s*(?![{$])[^;'\"\s]+",
    re.IGNORECASE,
)
CATCH_BODY_WINDOW = 20

RULES = [
    rule("PC501", r"\bConsole\s*\.\s*WriteLine\s*\(", "medium", "Console.WriteLine found (use ILogger for production code)"),
    rule(
        "PC502",
        r"\.\s*(?:Result\b|Wait\s*\(\s*\)|GetAwaiter\s*\(\s*\)\s*\.\s*GetResult\s*\()",
        "high",
        "Blocking on a task (.Result/.Wait()) can deadlock. Use await instead",
    ),
    rule("PC503", r"\bGC\s*\.\s*Collect\s*\(", "medium", "GC.Collect() call found. Let the runtime manage collections"),
    rule("PC504", r"#pragma\s+warning\s+disable", "low", "Compiler warning suppressed with #pragma warning disable"),
    rule("PC505", WORK_MARKER_PATTERN, "low", "TODO/FIXME comment found"),
]


def find_undisposed_resources(ctx: FileContext) -> list[Finding]:
    window = ctx.config.csharp.using_lookbehind
    findings: list[Finding] = []
    for idx, line in enumerate(ctx.lines, start=1):
        code = _strip_line_comment(line)
        match = DISPOSABLE_CTOR_PATTERN.search(code)
        if not match or code.lstrip().startswith("return "):
            continue
        preceding = ctx.lines[max(0, idx - 1 - window) : idx - 1]
        if USING_PATTERN.search(code) or any(USING_PATTERN.search(prev) for prev in preceding):
            continue
        findings.append(
            ctx.finding(
                "PC510",
                "medium",
                f"{match.group(1)} created without a using block. Wrap disposable resources in using",
                idx,
                line,
            )
        )
    return findings


def find_async_without_await(ctx: FileContext) -> list[Finding]:
    window = ctx.config.csharp.async_lookahead
    findings: list[Finding] = []
    for idx, line in enumerate(ctx.lines, start=1):
        code = _strip_line_comment(line)
        match = ASYNC_METHOD_PATTERN.search(code)
        if not match:
            continue
        body = _method_body(ctx.lines, idx - 1, match.end(), window)
        if AWAIT_PATTERN.search(body):
            continue
        findings.append(
            ctx.finding(
                "PC511",
                "medium",
                f"Async method '{match.group(1)}' never awaits. Remove async or await the asynchronous work",
                idx,
                line,
            )
        )
    return findings


def find_async_void(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for idx, line in enumerate(ctx.lines, start=1):
        match = ASYNC_VOID_PATTERN.search(_strip_line_comment(line))
        if not match or "EventArgs" in match.group(2):
            continue
        findings.append(
            ctx.finding(
                "PC512",
                "high",
                f"Async void method '{match.group(1)}': exceptions cannot be observed. Return Task instead",
                idx,
                line,
            )
        )
    return findings


def find_undocumented_public_members(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for idx, line in enumerate(ctx.lines, start=1):
        if not PUBLIC_MEMBER_PATTERN.search(line) or OVERRIDE_PATTERN.search(line):
            continue
        if _preceding_doc_comment(ctx.lines, idx - 1):
            continue
        findings.append(
            ctx.finding(
                "PC513",
                "low",
                "Public member missing XML documentation comment (///)",
                idx,
                line,
            )
        )
    return findings


def find_swallowed_exceptions(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for idx, line in enumerate(ctx.lines, start=1):
        code = _strip_line_comment(line)
        match = CATCH_PATTERN.search(code)
        if not match:
            continue
        body = _block_body(ctx.lines, idx - 1, match.end(), CATCH_BODY_WINDOW)
        if body is None:
            continue
        statement = " ".join(body.split())
        if not statement:
            findings.append(
                ctx.finding("PC514", "high", "Empty catch block swallows exceptions", idx, line)
            )
        elif statement == "throw;":
            findings.append(
                ctx.finding(
                    "PC515",
                    "low",
                    "Catch block only rethrows. Remove it or add handling",
                    idx,
                    line,
                )
            )
    return findings


def find_hardcoded_connection_secrets(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for idx, line in enumerate(ctx.lines, start=1):
        stripped = line.lstrip()
        if stripped.startswith(("//", "*", "/*")):
            continue
        if CONNECTION_SECRET_PATTERN.search(line):
            findings.append(
                ctx.finding(
                    "PC516",
                    "critical",
                    "Hardcoded credential in connection string. Use configuration secrets or environment variables",
                    idx,
                    line,
                )
            )
    return findings


def _strip_line_comment(line: str) -> str:
    quote: str | None = None
    escaped = False
    for index, char in enumerate(line):
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif line.startswith("//", index):
            return line[:index]
    return line


def _preceding_doc_comment(lines: list[str], index: int) -> bool:
    cursor = index - 1
    while cursor >= 0 and ATTRIBUTE_LINE_PATTERN.match(lines[cursor]):
        cursor -= 1
    return cursor >= 0 and lines[cursor].lstrip().startswith("///")


def _method_body(lines: list[str], start: int, offset: int, window: int) -> str:
    """Text of an async method from its signature, bounded by the closing brace or the window."""
    first = _strip_line_comment(lines[start])[offset:]
    if "=>" in first and "{" not in first:
        chunk: list[str] = []
        for line in lines[start : start + window]:
            chunk.append(_strip_line_comment(line))
            if ";" in line:
                break
        return "\n".join(chunk)
    body = _block_body(lines, start, offset, window)
    if body is None:
        return "\n".join(_strip_line_comment(line) for line in lines[start : start + window])
    return body


def _block_body(lines: list[str], start: int, offset: int, window: int) -> str | None:
    """Text between the first ``{`` at or after ``offset`` and its matching ``}``."""
    depth = 0
    body: list[str] = []
    for position, line in enumerate(lines[start : start + window]):
        code = _strip_line_comment(line)
        if position == 0:
            code = code[offset:]
        for char in code:
            if char == "{":
                depth += 1
                if depth == 1:
                    continue
            elif char == "}" and depth > 0:
                depth -= 1
                if depth == 0:
                    return "".join(body)
            if depth > 0:
                body.append(char)
        if depth > 0:
            body.append("\n")
    return None


PROFILE = profile(
    "csharp",
    RULES,
    [
        find_undisposed_resources,
        find_async_without_await,
        find_async_void,
        find_undocumented_public_members,
        find_swallowed_exceptions,
        find_hardcoded_connection_secrets,
    ],
)
