from __future__ import annotations

import logging
from pathlib import Path

from polycheck.config import Config, normalize_extensions
from polycheck.discovery import relative_path
from polycheck.languages import classify
from polycheck.models import Finding
from polycheck.rules import FileContext, LanguageProfile, get_profile
from polycheck.rules.base import make_excerpt, split_lines

logger = logging.getLogger(__name__)


def analyze_file(file_path: Path, root: Path, config: Config) -> list[Finding]:
    """Run size checks, line rules and structural checks against one file.

    Never raises for problems with the file itself: unreadable files and crashing
    structural checks are reported as findings so the run can continue.
    """
    relative = relative_path(file_path, root)
    language_profile = get_profile(classify(file_path))
    if language_profile is None:
        return []

    try:
        content = file_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Unable to read %s: %s", relative, exc)
        return [
            Finding(
                rule_id="PC900",
                severity="medium",
                message=f"Unable to read file during scan: {exc}",
                file_path=relative,
                line=1,
            )
        ]

    ctx = FileContext(relative_path=relative, content=content, lines=split_lines(content), config=config)
    findings: list[Finding] = []
    findings.extend(_check_size(ctx, file_path))
    findings.extend(_apply_line_rules(ctx, language_profile))
    findings.extend(_run_structural_checks(ctx, language_profile))
    logger.debug("Analyzed %s as %s: %d findings", relative, language_profile.name, len(findings))
    return findings


def _check_size(ctx: FileContext, file_path: Path) -> list[Finding]:
    scan = ctx.config.scan
    line_count = len(ctx.lines)
    first_line = ctx.lines[0] if ctx.lines else ""
    findings: list[Finding] = []
    if line_count > scan.max_file_lines:
        findings.append(
            ctx.finding(
                "PC001",
                "high",
                f"File is too large ({line_count} lines). Consider splitting. "
                f"Max recommended: {scan.max_file_lines} lines",
                1,
                first_line,
            )
        )
    is_component = file_path.suffix.lower() in normalize_extensions(scan.component_extensions)
    if is_component and line_count > scan.max_component_lines:
        findings.append(
            ctx.finding(
                "PC002",
                "medium",
                f"Component is large ({line_count} lines). Consider extracting logic into custom hooks. "
                f"Max recommended: {scan.max_component_lines} lines",
                1,
                first_line,
            )
        )
    return findings


def _apply_line_rules(ctx: FileContext, language_profile: LanguageProfile) -> list[Finding]:
    findings: list[Finding] = []
    for idx, line in enumerate(ctx.lines, start=1):
        for line_rule in language_profile.rules:
            if line_rule.matches(line):
                findings.append(ctx.finding(line_rule.rule_id, line_rule.severity, line_rule.message, idx, line))
    return findings


def _run_structural_checks(ctx: FileContext, language_profile: LanguageProfile) -> list[Finding]:
    findings: list[Finding] = []
    for check in language_profile.structural_checks:
        try:
            findings.extend(check(ctx))
        except Exception as exc:
            logger.exception("Structural check %s failed on %s", check.__name__, ctx.relative_path)
            findings.append(
                Finding(
                    rule_id="PC901",
                    severity="low",
                    message=f"Structural check '{check.__name__}' failed: {exc}",
                    file_path=ctx.relative_path,
                    line=0,
                    excerpt=make_excerpt(repr(exc), ctx.config.scan.excerpt_length),
                )
            )
    return findings
