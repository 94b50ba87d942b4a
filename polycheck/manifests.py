"""Inspectors for project manifests and framework descriptors.

``package.json`` is validated against a pydantic schema so missing sections are a
designed case. MSBuild ``*.csproj`` descriptors are read with ElementTree, and the
runtime configuration files that ship next to them are scanned as text for secrets.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import re
import xml.etree.ElementTree as ET

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from polycheck.config import Config
from polycheck.discovery import find_named_files, relative_path
from polycheck.models import Finding
from polycheck.rules.base import make_excerpt, split_lines

logger = logging.getLogger(__name__)

PACKAGE_MANIFEST = "package.json"
LINT_PACKAGES = ("eslint", "@typescript-eslint/parser", "@biomejs/biome")
TEST_PACKAGES = ("vitest", "jest", "@testing-library/react", "mocha", "ava")
MODERN_TARGET_PATTERN = re.compile(r"^net(\d+)\.(\d+)", re.IGNORECASE)
FRAMEWORK_TARGET_PATTERN = re.compile(r"^net(\d{2,3})$", re.IGNORECASE)
CORE_TARGET_PATTERN = re.compile(r"^netcoreapp(\d+(?:\.\d+)?)$", re.IGNORECASE)
RUNTIME_CONFIG_PATTERN = re.compile(r"^(?:appsettings(?:\.[\w-]+)?\.json|web\.config|app\.config)$", re.IGNORECASE)
SECRET_PATTERNS = (
    re.compile(
        r"\b(?P<key>Password|Pwd|AccountKey|SharedAccessKey)\s*=\s*(?![{$])[^;'\"\s<]+",
        re.IGNORECASE,
    ),
    re.compile(
        r"\"(?P<key>[\w.-]*(?:password|secret|apikey|api_key|token))\"\s*:\s*\"(?![$<{])[^\"]+\"",
        re.IGNORECASE,
    ),
    re.compile(
        r"\bkey\s*=\s*\"(?P<key>[^\"]*(?:password|secret|apikey|api_key|token)[^\"]*)\"\s+value\s*=\s*\"(?![$<{])[^\"]+\"",
        re.IGNORECASE,
    ),
    re.compile(r"<(?P<key>\w*(?:Password|Secret|ApiKey))>(?![$<{])[^<]+</(?P=key)>", re.IGNORECASE),
)


class PackageManifest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    scripts: dict[str, str] = Field(default_factory=dict)

    def declares_any(self, packages: tuple[str, ...]) -> bool:
        return any(package in self.dependencies or package in self.dev_dependencies for package in packages)


@dataclass(slots=True)
class DotnetProject:
    """Settings read from one ``*.csproj`` descriptor; ``None`` means the property is not set."""

    target_frameworks: list[str]
    nullable: str | None
    treat_warnings_as_errors: str | None
    legacy_framework_version: str | None


def inspect_package_manifest(root: Path) -> list[Finding]:
    manifest_path = root / PACKAGE_MANIFEST
    if not manifest_path.exists():
        return [
            Finding(
                rule_id="PC610",
                severity="info",
                message="No package.json found. This may not be a Node.js project.",
                file_path=PACKAGE_MANIFEST,
                line=0,
            )
        ]

    try:
        manifest = PackageManifest.model_validate_json(manifest_path.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError) as exc:
        return [_unreadable_manifest(str(exc))]
    except ValidationError as exc:
        first_error = exc.errors()[0]
        location = ".".join(str(part) for part in first_error.get("loc", ())) or "<root>"
        return [_unreadable_manifest(f"{location}: {first_error.get('msg', 'invalid value')}")]

    findings: list[Finding] = []
    if not manifest.declares_any(LINT_PACKAGES):
        findings.append(
            Finding(
                rule_id="PC612",
                severity="medium",
                message="ESLint not configured. Consider adding for code quality enforcement.",
                file_path=PACKAGE_MANIFEST,
                line=0,
                excerpt="npm install -D eslint",
            )
        )
    if not manifest.declares_any(TEST_PACKAGES):
        findings.append(
            Finding(
                rule_id="PC613",
                severity="high",
                message="No testing framework found. Add Vitest, Jest, or your preferred testing framework.",
                file_path=PACKAGE_MANIFEST,
                line=0,
                excerpt="npm install -D vitest @testing-library/react",
            )
        )
    return findings


def inspect_dotnet_projects(root: Path, config: Config) -> list[Finding]:
    excludes = config.scan.exclude
    project_files = find_named_files(root, lambda name: name.lower().endswith(".csproj"), excludes)
    if not project_files:
        return []

    findings: list[Finding] = []
    for project_file in project_files:
        findings.extend(_inspect_project_file(project_file, root, config))
    for config_file in find_named_files(root, lambda name: bool(RUNTIME_CONFIG_PATTERN.match(name)), excludes):
        findings.extend(_find_secrets(config_file, root))
    return findings


def read_dotnet_project(project_file: Path) -> DotnetProject:
    tree = ET.parse(project_file)
    properties: dict[str, str] = {}
    for element in tree.getroot().iter():
        tag = element.tag.rsplit("}", 1)[-1]
        if element.text and element.text.strip():
            properties.setdefault(tag, element.text.strip())

    raw_targets = properties.get("TargetFrameworks") or properties.get("TargetFramework") or ""
    return DotnetProject(
        target_frameworks=[target.strip() for target in raw_targets.split(";") if target.strip()],
        nullable=properties.get("Nullable"),
        treat_warnings_as_errors=properties.get("TreatWarningsAsErrors"),
        legacy_framework_version=properties.get("TargetFrameworkVersion"),
    )


def _inspect_project_file(project_file: Path, root: Path, config: Config) -> list[Finding]:
    relative = relative_path(project_file, root)
    try:
        project = read_dotnet_project(project_file)
        lines = split_lines(project_file.read_text(encoding="utf-8-sig"))
    except (ET.ParseError, OSError, UnicodeDecodeError) as exc:
        logger.warning("Unable to parse %s: %s", relative, exc)
        return [
            Finding(
                rule_id="PC620",
                severity="critical",
                message=f"Could not parse project file: {exc}",
                file_path=relative,
                line=0,
            )
        ]

    findings: list[Finding] = []
    if project.legacy_framework_version:
        findings.append(
            Finding(
                rule_id="PC622",
                severity="high",
                message=(
                    f"Project targets legacy .NET Framework {project.legacy_framework_version}. "
                    f"Migrate to .NET {config.dotnet.min_target_version} or later"
                ),
                file_path=relative,
                line=_line_of(lines, "<TargetFrameworkVersion"),
            )
        )
    elif not project.target_frameworks:
        findings.append(
            Finding(
                rule_id="PC621",
                severity="medium",
                message="Project file does not declare a TargetFramework",
                file_path=relative,
                line=0,
            )
        )

    for target in project.target_frameworks:
        if _is_outdated_target(target, config.dotnet.min_target_version):
            findings.append(
                Finding(
                    rule_id="PC622",
                    severity="high",
                    message=(
                        f"Target framework '{target}' is below the supported minimum "
                        f"(net{config.dotnet.min_target_version}.0)"
                    ),
                    file_path=relative,
                    line=_line_of(lines, "<TargetFramework"),
                    excerpt=target,
                )
            )

    if project.nullable is None:
        findings.append(
            Finding(
                rule_id="PC623",
                severity="medium",
                message="Nullable reference types not configured. Add <Nullable>enable</Nullable>",
                file_path=relative,
                line=0,
                excerpt="<Nullable>enable</Nullable>",
            )
        )
    elif project.nullable.lower() != "enable":
        findings.append(
            Finding(
                rule_id="PC623",
                severity="medium",
                message=f"Nullable reference types set to '{project.nullable}'. Use <Nullable>enable</Nullable>",
                file_path=relative,
                line=_line_of(lines, "<Nullable"),
                excerpt=f"<Nullable>{project.nullable}</Nullable>",
            )
        )

    if (project.treat_warnings_as_errors or "").lower() != "true":
        findings.append(
            Finding(
                rule_id="PC624",
                severity="low",
                message="TreatWarningsAsErrors is not enabled. Consider enforcing a warning-free build",
                file_path=relative,
                line=0,
                excerpt="<TreatWarningsAsErrors>true</TreatWarningsAsErrors>",
            )
        )

    findings.extend(_find_secrets_in_lines(lines, relative))
    return findings


def _is_outdated_target(target: str, min_version: int) -> bool:
    modern = MODERN_TARGET_PATTERN.match(target)
    if modern:
        return int(modern.group(1)) < min_version
    if FRAMEWORK_TARGET_PATTERN.match(target) or CORE_TARGET_PATTERN.match(target):
        return True
    # netstandardX.Y describes an API surface for libraries, not a runtime.
    return False


def _find_secrets(config_file: Path, root: Path) -> list[Finding]:
    relative = relative_path(config_file, root)
    try:
        lines = split_lines(config_file.read_text(encoding="utf-8-sig"))
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
    return _find_secrets_in_lines(lines, relative)


def _find_secrets_in_lines(lines: list[str], relative: str) -> list[Finding]:
    findings: list[Finding] = []
    for idx, line in enumerate(lines, start=1):
        for pattern in SECRET_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue
            findings.append(
                Finding(
                    rule_id="PC625",
                    severity="critical",
                    message="Hardcoded secret in configuration. Use user secrets, environment variables or a vault",
                    file_path=relative,
                    line=idx,
                    excerpt=f"{match.group('key')}=***",
                )
            )
            break
    return findings


def _unreadable_manifest(detail: str) -> Finding:
    return Finding(
        rule_id="PC611",
        severity="critical",
        message="Could not read package.json",
        file_path=PACKAGE_MANIFEST,
        line=0,
        excerpt=make_excerpt(detail),
    )


def _line_of(lines: list[str], needle: str) -> int:
    for idx, line in enumerate(lines, start=1):
        if needle in line:
            return idx
    return 0
