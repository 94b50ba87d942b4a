from __future__ import annotations

from polycheck.rules.base import WORK_MARKER_PATTERN, profile, rule

RULES = [
    rule(
        "PC101",
        r"dangerouslySetInnerHTML",
        "critical",
        "XSS vulnerability: dangerouslySetInnerHTML without sanitization",
    ),
    rule(
        "PC102",
        r"\beval\s*\(|\bnew\s+Function\s*\(",
        "critical",
        "Security risk: eval()/new Function() executes arbitrary code",
    ),
    rule("PC103", r":\s*any(\[|\s|;|\)|,|>|$)", "high", "Type safety issue: any type used"),
    rule("PC104", r"console\.log\(", "medium", "console.log found (use proper logging)"),
    rule("PC105", WORK_MARKER_PATTERN, "low", "TODO/FIXME comment found"),
]

PROFILE = profile("typescript", RULES, [])
