from polycheck.rules import csharp, html, python, sql, typescript
from polycheck.rules.base import FileContext, LanguageProfile, Rule

REGISTRY: dict[str, LanguageProfile] = {
    language_profile.name: language_profile
    for language_profile in (
        typescript.PROFILE,
        python.PROFILE,
        html.PROFILE,
        sql.PROFILE,
        csharp.PROFILE,
    )
}


def get_profile(language: str | None) -> LanguageProfile | None:
    if language is None:
        return None
    return REGISTRY.get(language)


__all__ = [
    "FileContext",
    "LanguageProfile",
    "REGISTRY",
    "Rule",
    "get_profile",
]
