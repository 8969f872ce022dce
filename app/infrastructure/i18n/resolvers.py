"""Locale resolution for free-form language preferences.

Users store a language tag such as ``fr``, ``fr-CA`` or ``en-US``. The
resolver picks the supported Locale that matches it exactly, then by
language only, then falls back to the default.
"""

from typing import Iterable, Optional

from infrastructure.i18n.models import Locale


def matches_language(requested: str, available: str, strict: bool = False) -> bool:
    """Check whether an available language tag satisfies a requested one.

    With ``strict`` False, a language-only match counts ("fr-CA" matches
    "fr-FR").
    """
    if requested.lower() == available.lower():
        return True
    if strict:
        return False
    return requested.split("-")[0].lower() == available.split("-")[0].lower()


def resolve_locale(
    language: Optional[str],
    default: Locale = Locale.EN_US,
    supported: Optional[Iterable[Locale]] = None,
) -> Locale:
    """Resolve a user language tag to a supported Locale.

    Args:
        language: Stored language preference, may be None or empty
        default: Locale used when nothing matches
        supported: Candidate locales (all Locale members if omitted)

    Returns:
        The best matching Locale
    """
    if not language:
        return default

    candidates = list(supported or Locale)
    for strict in (True, False):
        for locale in candidates:
            if matches_language(language, locale.value, strict=strict):
                return locale
    return default
