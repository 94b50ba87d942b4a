from __future__ import annotations

from typing import Literal

from polycheck.models import SEVERITY_RANK, IssueStore, Severity

Status = Literal["failed", "warnings", "passed"]

FAIL_ON: Severity = "high"
WARN_ON: Severity = "low"
EXIT_CODES: dict[Status, int] = {
    "failed": 1,
    "warnings": 0,
    "passed": 0,
}


def evaluate_status(store: IssueStore) -> Status:
    counts = store.counts()
    highest = max(
        (SEVERITY_RANK[severity] for severity, count in counts.items() if count),
        default=SEVERITY_RANK["info"],
    )
    if highest >= SEVERITY_RANK[FAIL_ON]:
        return "failed"
    if highest >= SEVERITY_RANK[WARN_ON]:
        return "warnings"
    return "passed"


def exit_code(status: Status) -> int:
    return EXIT_CODES[status]
