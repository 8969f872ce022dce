"""i18n system - localized notification labels.

Main components:
- models: Locale, TranslationKey, TranslationCatalog
- loader: TranslationLoader and YAMLTranslationLoader
- translator: Translator with fallback-locale lookup
- resolvers: resolve_locale for stored user language tags
- factory: create_translator
"""

from infrastructure.i18n.factory import create_translator
from infrastructure.i18n.loader import TranslationLoader, YAMLTranslationLoader
from infrastructure.i18n.models import Locale, TranslationCatalog, TranslationKey
from infrastructure.i18n.resolvers import matches_language, resolve_locale
from infrastructure.i18n.translator import Translator

__all__ = [
    "Locale",
    "TranslationKey",
    "TranslationCatalog",
    "TranslationLoader",
    "YAMLTranslationLoader",
    "Translator",
    "create_translator",
    "matches_language",
    "resolve_locale",
]
