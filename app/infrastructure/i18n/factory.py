"""Factory for creating translators."""

from pathlib import Path

import structlog

from infrastructure.i18n.loader import YAMLTranslationLoader
from infrastructure.i18n.models import Locale
from infrastructure.i18n.translator import Translator

logger = structlog.get_logger()


def create_translator(
    translations_dir: Path,
    fallback_locale: Locale = Locale.EN_US,
    use_cache: bool = True,
    preload: bool = True,
) -> Translator:
    """Create a Translator backed by YAML files in ``translations_dir``.

    Args:
        translations_dir: Directory holding ``*.<locale>.yml`` files
        fallback_locale: Locale used when a key is missing
        use_cache: Whether the loader caches parsed catalogs
        preload: Whether to load every locale immediately

    Raises:
        ValueError: If translations_dir does not exist

    Usage:
        translator = create_translator(Path(__file__).parent / "locales")

        # Lazy loading
        translator = create_translator(locales_dir, preload=False)
        translator.load_locale(Locale.EN_US)
    """
    loader = YAMLTranslationLoader(
        translations_dir=translations_dir,
        use_cache=use_cache,
    )
    translator = Translator(loader=loader, fallback_locale=fallback_locale)

    if preload:
        translator.load_all()

    logger.debug(
        "translator_created",
        translations_dir=str(translations_dir),
        preload=preload,
        locale_count=len(translator.get_available_locales()),
    )
    return translator
