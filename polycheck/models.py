from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Literal

Severity = Literal["critical", "high", "medium", "low", "info"]

SEVERITIES: tuple[Severity, ...] = ("critical", "high", "medium", "low", "info")
SEVERITY_RANK: dict[Severity, int] = {
    "info": 0,
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}


@dataclass(frozen=True, slots=True)
class Finding:
    rule_id: str
    severity: Severity
    message: str
    file_path: str
    line: int
    excerpt: str | None = None


class IssueStore:
    """Findings of one run, bucketed by severity in insertion order."""

    def __init__(self, findings: Iterable[Finding] = ()) -> None:
        self._buckets: dict[Severity, list[Finding]] = {severity: [] for severity in SEVERITIES}
        self.extend(findings)

    def add(self, finding: Finding) -> None:
        if finding.severity not in self._buckets:
            raise ValueError(f"Unknown severity: {finding.severity!r}")
        self._buckets[finding.severity].append(finding)

    def extend(self, findings: Iterable[Finding]) -> None:
        for finding in findings:
            self.add(finding)

    def bucket(self, severity: Severity) -> list[Finding]:
        return list(self._buckets[severity])

    def counts(self) -> dict[Severity, int]:
        return {severity: len(self._buckets[severity]) for severity in SEVERITIES}

    def rule_counts(self) -> dict[str, int]:
        return dict(sorted(Counter(finding.rule_id for finding in self).items()))

    @property
    def total(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    def __iter__(self) -> Iterator[Finding]:
        for severity in SEVERITIES:
            yield from self._buckets[severity]

    def __len__(self) -> int:
        return self.total


@dataclass(slots=True)
class ScanResult:
    root: Path
    store: IssueStore = field(default_factory=IssueStore)
    files_scanned: int = 0
