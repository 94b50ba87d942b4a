from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Callable

from polycheck.config import Config
from polycheck.languages import LANGUAGE_EXTENSIONS
from polycheck.models import Finding, Severity

DEFAULT_EXCERPT_LENGTH = 80
WORK_MARKER_PATTERN = r"TODO|FIXME|HACK|XXX"


@dataclass(frozen=True, slots=True)
class Rule:
    rule_id: str
    pattern: re.Pattern[str]
    severity: Severity
    message: str

    def matches(self, line: str) -> bool:
        # search() keeps no state between calls, so every line is evaluated independently.
        return self.pattern.search(line) is not None


@dataclass(slots=True)
class FileContext:
    relative_path: str
    content: str
    lines: list[str]
    config: Config = field(default_factory=Config)

    def finding(
        self,
        rule_id: str,
        severity: Severity,
        message: str,
        line: int,
        excerpt: str | None = None,
    ) -> Finding:
        return Finding(
            rule_id=rule_id,
            severity=severity,
            message=message,
            file_path=self.relative_path,
            line=line,
            excerpt=make_excerpt(excerpt, self.config.scan.excerpt_length) if excerpt is not None else None,
        )

    def line_of_offset(self, offset: int) -> int:
        return self.content.count("\n", 0, offset) + 1


StructuralCheck = Callable[[FileContext], list[Finding]]


@dataclass(frozen=True, slots=True)
class LanguageProfile:
    name: str
    extensions: frozenset[str]
    rules: tuple[Rule, ...]
    structural_checks: tuple[StructuralCheck, ...] = ()


def rule(rule_id: str, pattern: str, severity: Severity, message: str, flags: int = 0) -> Rule:
    return Rule(rule_id=rule_id, pattern=re.compile(pattern, flags), severity=severity, message=message)


def profile(name: str, rules: list[Rule], structural_checks: list[StructuralCheck]) -> LanguageProfile:
    return LanguageProfile(
        name=name,
        extensions=LANGUAGE_EXTENSIONS[name],
        rules=tuple(rules),
        structural_checks=tuple(structural_checks),
    )


def make_excerpt(text: str, limit: int = DEFAULT_EXCERPT_LENGTH) -> str:
    return text.strip()[:limit]


def split_lines(content: str) -> list[str]:
    """Split on ``\\n`` only, so form feeds and Unicode separators stay inside their line."""
    lines = [line.removesuffix("\r") for line in content.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()
    return lines
