from __future__ import annotations

import re

from polycheck.models import Finding
from polycheck.rules.base import WORK_MARKER_PATTERN, FileContext, profile, rule

IMG_TAG_PATTERN = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
ALT_ATTR_PATTERN = re.compile(r"(?<![\w-])alt\s*=", re.IGNORECASE)
INPUT_TAG_PATTERN = re.compile(r"<input\b[^>]*>", re.IGNORECASE)
LABEL_TAG_PATTERN = re.compile(r"<label\b[^>]*>", re.IGNORECASE)
ID_ATTR_PATTERN = re.compile(r"(?<![\w-])id\s*=\s*['\"]([^'\"]+)['\"]", re.IGNORECASE)
FOR_ATTR_PATTERN = re.compile(r"(?<![\w-])for\s*=\s*['\"]([^'\"]+)['\"]", re.IGNORECASE)

RULES = [
    rule(
        "PC301",
        r"<script(?![^>]*\b(?:nonce|src)\b)[^>]*>[^<]*</script>",
        "critical",
        "Inline script without nonce/CSP protection (XSS risk)",
        re.IGNORECASE,
    ),
    rule(
        "PC302",
        r"onclick\s*=",
        "high",
        "Inline event handler (onclick) - XSS risk. Use addEventListener instead",
        re.IGNORECASE,
    ),
    rule(
        "PC303",
        r"onerror\s*=|onload\s*=|onmouseover\s*=",
        "high",
        "Inline event handler - XSS risk. Use addEventListener instead",
        re.IGNORECASE,
    ),
    rule(
        "PC304",
        r"<style(?![^>]*\bnonce\b)[^>]*>[^<]*</style>",
        "medium",
        "Inline styles without nonce/CSP protection",
        re.IGNORECASE,
    ),
    rule("PC305", r"javascript:", "critical", "javascript: protocol in href/src (XSS risk)", re.IGNORECASE),
    rule("PC306", WORK_MARKER_PATTERN, "low", "TODO/FIXME comment found"),
]


def find_missing_doctype(ctx: FileContext) -> list[Finding]:
    if ctx.content.lstrip().lower().startswith("<!doctype"):
        return []
    return [ctx.finding("PC310", "low", "HTML file missing DOCTYPE declaration", 1, "<!DOCTYPE html>")]


def find_images_without_alt(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for match in IMG_TAG_PATTERN.finditer(ctx.content):
        tag = match.group(0)
        if ALT_ATTR_PATTERN.search(tag):
            continue
        findings.append(
            ctx.finding(
                "PC311",
                "medium",
                "Image missing alt attribute (accessibility issue)",
                ctx.line_of_offset(match.start()),
                " ".join(tag.split()),
            )
        )
    return findings


def find_inputs_without_labels(ctx: FileContext) -> list[Finding]:
    input_lines: dict[str, int] = {}
    for match in INPUT_TAG_PATTERN.finditer(ctx.content):
        id_match = ID_ATTR_PATTERN.search(match.group(0))
        if id_match:
            input_lines.setdefault(id_match.group(1), ctx.line_of_offset(match.start()))

    label_targets: set[str] = set()
    for match in LABEL_TAG_PATTERN.finditer(ctx.content):
        for_match = FOR_ATTR_PATTERN.search(match.group(0))
        if for_match:
            label_targets.add(for_match.group(1))

    return [
        ctx.finding(
            "PC312",
            "medium",
            f'Input with id="{input_id}" missing corresponding label (accessibility issue)',
            line,
            f'<label for="{input_id}">...</label>',
        )
        for input_id, line in input_lines.items()
        if input_id not in label_targets
    ]


PROFILE = profile("html", RULES, [find_missing_doctype, find_images_without_alt, find_inputs_without_labels])
