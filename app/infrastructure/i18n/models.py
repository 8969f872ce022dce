"""Translation models for i18n system.

Defines the locale identifiers, translation keys and per-locale catalogs
used to render localized notification labels.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class Locale(str, Enum):
    """Supported locale identifiers.

    Uses IETF BCP 47 language tag format (e.g., en-US, fr-FR).
    """

    EN_US = "en-US"
    FR_FR = "fr-FR"

    @classmethod
    def from_string(cls, locale_str: str) -> "Locale":
        """Convert string to Locale enum.

        Raises:
            ValueError: If locale string is not supported.
        """
        try:
            return cls(locale_str)
        except ValueError as e:
            raise ValueError(f"Unsupported locale: {locale_str}") from e

    @property
    def language(self) -> str:
        """Language part of the locale (e.g., "en" from "en-US")."""
        return self.value.split("-")[0]


@dataclass(frozen=True)
class TranslationKey:
    """Key of a translated message, e.g. ``notifications.encrypted_message``.

    Attributes:
        namespace: Top-level namespace (e.g., "notifications").
        message_key: Message identifier within the namespace.
    """

    namespace: str
    message_key: str

    def __str__(self) -> str:
        return f"{self.namespace}.{self.message_key}"

    @classmethod
    def from_string(cls, key_string: str) -> "TranslationKey":
        """Create TranslationKey from a dot-separated string.

        Raises:
            ValueError: If key_string has no namespace part.
        """
        parts = key_string.split(".", 1)
        if len(parts) != 2:
            raise ValueError(
                f"Translation key must be in format 'namespace.key': {key_string}"
            )
        return cls(namespace=parts[0], message_key=parts[1])


@dataclass
class TranslationCatalog:
    """Translations for one locale, organized as ``{namespace: {key: text}}``."""

    locale: Locale
    messages: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def get_message(self, key: TranslationKey) -> Optional[str]:
        return self.messages.get(key.namespace, {}).get(key.message_key)

    def has_message(self, key: TranslationKey) -> bool:
        return self.get_message(key) is not None

    def merge_namespace(self, namespace: str, messages: Dict[str, str]) -> None:
        """Merge messages into a namespace; later entries override earlier ones."""
        self.messages.setdefault(namespace, {}).update(messages)
