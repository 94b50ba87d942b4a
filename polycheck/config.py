from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib


DEFAULT_EXCLUDES = [
    "node_modules",
    "dist",
    "build",
    ".git",
    ".next",
    ".nuxt",
    "coverage",
    ".vscode",
    ".idea",
    "__pycache__",
    ".venv",
    "venv",
    "bin",
    "obj",
]
DEFAULT_INCLUDE_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx", ".py", ".html", ".htm", ".sql", ".cs"]
DEFAULT_COMPONENT_EXTENSIONS = [".tsx"]
REPORT_FORMATS = ("text", "json")


@dataclass(slots=True)
class ScanConfig:
    exclude: list[str] = field(default_factory=lambda: DEFAULT_EXCLUDES.copy())
    include_extensions: list[str] = field(default_factory=lambda: DEFAULT_INCLUDE_EXTENSIONS.copy())
    component_extensions: list[str] = field(default_factory=lambda: DEFAULT_COMPONENT_EXTENSIONS.copy())
    max_file_lines: int = 500
    max_component_lines: int = 300
    excerpt_length: int = 80
    jobs: int = 1


@dataclass(slots=True)
class CSharpConfig:
    async_lookahead: int = 40
    using_lookbehind: int = 2


@dataclass(slots=True)
class DotnetConfig:
    min_target_version: int = 6


@dataclass(slots=True)
class ReportConfig:
    output_format: str = "text"
    out: str | None = None


@dataclass(slots=True)
class Config:
    scan: ScanConfig = field(default_factory=ScanConfig)
    csharp: CSharpConfig = field(default_factory=CSharpConfig)
    dotnet: DotnetConfig = field(default_factory=DotnetConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def normalize_extensions(extensions: list[str]) -> set[str]:
    return {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions}


def load_config(path: str | None) -> Config:
    if path is None:
        default = Path("polycheck.toml")
        if not default.exists():
            return Config()
        path = str(default)

    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("rb") as fh:
        payload = tomllib.load(fh)

    scan = payload.get("scan", {})
    csharp = payload.get("csharp", {})
    dotnet = payload.get("dotnet", {})
    report = payload.get("report", {})

    config = Config()
    config.scan.exclude = list(scan.get("exclude", config.scan.exclude))
    config.scan.include_extensions = list(scan.get("include_extensions", config.scan.include_extensions))
    config.scan.component_extensions = list(scan.get("component_extensions", config.scan.component_extensions))
    config.scan.max_file_lines = int(scan.get("max_file_lines", config.scan.max_file_lines))
    config.scan.max_component_lines = int(scan.get("max_component_lines", config.scan.max_component_lines))
    config.scan.excerpt_length = int(scan.get("excerpt_length", config.scan.excerpt_length))
    config.scan.jobs = int(scan.get("jobs", config.scan.jobs))
    config.csharp.async_lookahead = int(csharp.get("async_lookahead", config.csharp.async_lookahead))
    config.csharp.using_lookbehind = int(csharp.get("using_lookbehind", config.csharp.using_lookbehind))
    config.dotnet.min_target_version = int(dotnet.get("min_target_version", config.dotnet.min_target_version))
    config.report.output_format = report.get("format", config.report.output_format)
    config.report.out = report.get("out")
    return config


def validate_config(config: Config) -> list[str]:
    errors: list[str] = []
    positive_values: list[tuple[str, int]] = [
        ("max_file_lines", config.scan.max_file_lines),
        ("max_component_lines", config.scan.max_component_lines),
        ("excerpt_length", config.scan.excerpt_length),
        ("jobs", config.scan.jobs),
        ("async_lookahead", config.csharp.async_lookahead),
    ]
    for name, value in positive_values:
        if value < 1:
            errors.append(f"{name} must be >= 1")
    if config.csharp.using_lookbehind < 0:
        errors.append("using_lookbehind must be >= 0")
    if config.dotnet.min_target_version < 1:
        errors.append("min_target_version must be >= 1")
    if config.report.output_format not in REPORT_FORMATS:
        errors.append(f"format must be one of: {', '.join(REPORT_FORMATS)}")
    if not config.scan.include_extensions:
        errors.append("include_extensions must be non-empty")
    return errors
