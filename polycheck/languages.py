from __future__ import annotations

from pathlib import Path

LANGUAGE_EXTENSIONS: dict[str, frozenset[str]] = {
    "typescript": frozenset({".ts", ".tsx", ".js", ".jsx"}),
    "python": frozenset({".py"}),
    "html": frozenset({".html", ".htm"}),
    "sql": frozenset({".sql"}),
    "csharp": frozenset({".cs"}),
}

_EXTENSION_TO_LANGUAGE: dict[str, str] = {
    ext: language for language, extensions in LANGUAGE_EXTENSIONS.items() for ext in extensions
}


def classify(path: str | Path) -> str | None:
    """Map a file path to its language tag by extension, or ``None`` when unsupported."""
    return _EXTENSION_TO_LANGUAGE.get(Path(path).suffix.lower())
