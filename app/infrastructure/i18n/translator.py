"""Translation service for retrieving translated messages."""

from typing import Dict, List, Optional

from infrastructure.i18n.loader import TranslationLoader
from infrastructure.i18n.models import Locale, TranslationCatalog, TranslationKey
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class Translator:
    """Looks up translated messages across loaded locale catalogs.

    Attributes:
        loader: TranslationLoader for loading translation files.
        catalogs: Loaded TranslationCatalogs by locale.
        fallback_locale: Locale to use when a key is missing.
    """

    def __init__(
        self,
        loader: TranslationLoader,
        fallback_locale: Locale = Locale.EN_US,
    ):
        self.loader = loader
        self.fallback_locale = fallback_locale
        self.catalogs: Dict[Locale, TranslationCatalog] = {}

    def load_all(self) -> None:
        self.catalogs = self.loader.load_all()
        logger.debug("loaded_all_translations", locale_count=len(self.catalogs))

    def load_locale(self, locale: Locale) -> None:
        self.catalogs[locale] = self.loader.load(locale)

    def translate_message(self, key: TranslationKey, locale: Locale) -> str:
        """Return the message for ``key`` in ``locale``.

        Falls back to ``fallback_locale`` when the requested locale has no
        such message.

        Raises:
            KeyError: If neither locale has the message.
        """
        catalog = self.catalogs.get(locale)
        message = catalog.get_message(key) if catalog else None

        if message is None and locale != self.fallback_locale:
            fallback_catalog = self.catalogs.get(self.fallback_locale)
            message = fallback_catalog.get_message(key) if fallback_catalog else None
            if message is not None:
                logger.debug(
                    "used_fallback_translation",
                    key=str(key),
                    requested_locale=locale.value,
                    fallback_locale=self.fallback_locale.value,
                )

        if message is None:
            logger.error(
                "translation_not_found",
                key=str(key),
                locale=locale.value,
                fallback_locale=self.fallback_locale.value,
            )
            raise KeyError(
                f"Translation not found for key {key} in {locale.value} "
                f"or fallback {self.fallback_locale.value}"
            )

        return message

    def has_message(self, key: TranslationKey, locale: Locale) -> bool:
        catalog = self.catalogs.get(locale)
        return catalog.has_message(key) if catalog else False

    def get_available_locales(self) -> List[Locale]:
        return list(self.catalogs.keys())

    def get_catalog(self, locale: Locale) -> Optional[TranslationCatalog]:
        return self.catalogs.get(locale)
