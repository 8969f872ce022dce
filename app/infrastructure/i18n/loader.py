"""Translation loading interface and YAML implementation.

Translation files are named ``<domain>.<locale>.yml`` and hold one mapping
per namespace:

    notifications:
      encrypted_message: Encrypted message
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict

import structlog
import yaml

from infrastructure.i18n.models import Locale, TranslationCatalog

logger = structlog.get_logger()


class TranslationLoader(ABC):
    """Abstract base for translation loaders."""

    @abstractmethod
    def load(self, locale: Locale) -> TranslationCatalog:
        """Load translations for a specific locale.

        Raises:
            FileNotFoundError: If no translation files exist for the locale.
            ValueError: If a translation file cannot be parsed.
        """

    @abstractmethod
    def load_all(self) -> Dict[Locale, TranslationCatalog]:
        """Load translations for every locale with at least one file."""


class YAMLTranslationLoader(TranslationLoader):
    """Loader for YAML translation files in a single directory.

    Attributes:
        translations_dir: Directory containing ``*.<locale>.yml`` files.
        cache: Loaded catalogs by locale, when caching is enabled.
    """

    def __init__(self, translations_dir: Path, use_cache: bool = True):
        self.translations_dir = Path(translations_dir)
        self.use_cache = use_cache
        self.cache: Dict[Locale, TranslationCatalog] = {}

        if not self.translations_dir.exists():
            raise ValueError(
                f"Translations directory not found: {self.translations_dir}"
            )

        logger.debug(
            "initialized_yaml_loader",
            translations_dir=str(self.translations_dir),
            use_cache=use_cache,
        )

    def load(self, locale: Locale) -> TranslationCatalog:
        if self.use_cache and locale in self.cache:
            return self.cache[locale]

        catalog = TranslationCatalog(locale=locale)
        yaml_files = sorted(self.translations_dir.glob(f"*.{locale.value}.yml"))

        if not yaml_files:
            raise FileNotFoundError(
                f"No translation files found for locale {locale.value} "
                f"in {self.translations_dir}"
            )

        for yaml_file in yaml_files:
            try:
                with open(yaml_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                logger.error("yaml_parse_error", file=str(yaml_file), error=str(e))
                raise ValueError(f"Failed to parse {yaml_file}: {e}") from e
            if data:
                self._merge_yaml_data(catalog, data, yaml_file)

        logger.debug(
            "loaded_translations",
            locale=locale.value,
            file_count=len(yaml_files),
            namespace_count=len(catalog.messages),
        )

        if self.use_cache:
            self.cache[locale] = catalog

        return catalog

    def load_all(self) -> Dict[Locale, TranslationCatalog]:
        """Load every locale found in the directory.

        Files whose locale suffix is not a supported Locale are ignored.

        Raises:
            ValueError: If no translation files are found at all.
        """
        locales_found = set()
        for yaml_file in self.translations_dir.glob("*.yml"):
            # "notifications.en-US.yml" -> "en-US"
            parts = yaml_file.stem.split(".")
            if len(parts) < 2:
                continue
            try:
                locales_found.add(Locale.from_string(parts[-1]))
            except ValueError:
                logger.warning("unsupported_locale_file", file=str(yaml_file))

        if not locales_found:
            raise ValueError(f"No translation files found in {self.translations_dir}")

        return {locale: self.load(locale) for locale in locales_found}

    def _merge_yaml_data(
        self, catalog: TranslationCatalog, data: Dict, source_file: Path
    ) -> None:
        if not isinstance(data, dict):
            logger.warning(
                "invalid_yaml_format", file=str(source_file), expected="dict"
            )
            return

        for namespace, messages in data.items():
            if not isinstance(messages, dict):
                logger.warning(
                    "invalid_namespace_format",
                    file=str(source_file),
                    namespace=namespace,
                    expected="dict",
                )
                continue
            catalog.merge_namespace(namespace, messages)

    def clear_cache(self) -> None:
        self.cache.clear()
