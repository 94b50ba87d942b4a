from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from polycheck.models import SEVERITIES, Finding, ScanResult
from polycheck.quality_gate import evaluate_status

RULE_WIDTH = 80
LISTED_SEVERITIES = ("critical", "high", "medium", "low")
VERDICTS = {
    "failed": ("QUALITY CHECK FAILED", "Please address critical and high-priority issues before proceeding."),
    "warnings": ("QUALITY CHECK PASSED WITH WARNINGS", "Consider addressing medium and low-priority issues."),
    "passed": ("QUALITY CHECK PASSED", None),
}


def _finding_to_dict(finding: Finding) -> dict[str, Any]:
    return {
        "rule_id": finding.rule_id,
        "severity": finding.severity,
        "message": finding.message,
        "file_path": finding.file_path,
        "line": finding.line,
        "excerpt": finding.excerpt,
    }


def to_text_report(result: ScanResult) -> str:
    store = result.store
    counts = store.counts()
    lines = [
        "=" * RULE_WIDTH,
        "CODE QUALITY CHECK REPORT",
        "=" * RULE_WIDTH,
        "",
        f"Project: {result.root}",
        f"Files scanned: {result.files_scanned}",
        f"Total Issues Found: {store.total}",
    ]
    lines.extend(f"  {severity.capitalize()}: {counts[severity]}" for severity in SEVERITIES)

    for severity in LISTED_SEVERITIES:
        bucket = store.bucket(severity)
        if not bucket:
            continue
        lines.extend(["", f"{severity.upper()} ISSUES:", "-" * RULE_WIDTH])
        for index, finding in enumerate(bucket, start=1):
            lines.append("")
            lines.append(f"{index}. {finding.file_path}:{finding.line} [{finding.rule_id}]")
            lines.append(f"   {finding.message}")
            if finding.excerpt:
                lines.append(f"   Code: {finding.excerpt}")

    headline, advice = VERDICTS[evaluate_status(store)]
    lines.extend(["", "=" * RULE_WIDTH, headline])
    if advice:
        lines.append(f"   {advice}")
    return "\n".join(lines)


def to_json_report(result: ScanResult) -> dict[str, Any]:
    store = result.store
    return {
        "project": str(result.root),
        "files_scanned": result.files_scanned,
        "files_with_issues": len({finding.file_path for finding in store}),
        "issues_total": store.total,
        "severity_counts": store.counts(),
        "rule_counts": store.rule_counts(),
        "status": evaluate_status(store),
        "issues": [_finding_to_dict(finding) for finding in store],
    }


def render_report(result: ScanResult, output_format: str) -> str:
    if output_format == "text":
        return to_text_report(result)
    if output_format == "json":
        return json.dumps(to_json_report(result), indent=2)
    raise ValueError(f"Unsupported report format: {output_format}")


def write_report(rendered: str, out: str | None) -> None:
    if out is None:
        print(rendered)
        return
    output_path = Path(out)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(rendered + "\n", encoding="utf-8")
