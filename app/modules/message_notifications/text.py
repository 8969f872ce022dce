"""Notification text helpers.

- TextTransformPipeline: ordered extension point run on the message body
  before the notification text is computed
- replace_mentioned_usernames_with_full_names: real-name substitution
- parse_message_text_per_user: per-recipient text (uploads, encrypted),
  with labels from the YAML catalog in ``locales/``
- message_contains_highlight: highlight keyword detection
"""

import re
from functools import lru_cache
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from infrastructure.i18n import (
    TranslationKey,
    Translator,
    create_translator,
    resolve_locale,
)
from modules.message_notifications.models import Mention, Message, Receiver
from modules.message_notifications.protocols import LabelTranslator

TextTransform = Callable[[str], str]

ENCRYPTED_MESSAGE_TYPE = "e2e"
LOCALES_DIR = Path(__file__).resolve().parent / "locales"

LABEL_NAMESPACE = "notifications"
USER_UPLOADED_IMAGE = TranslationKey(LABEL_NAMESPACE, "user_uploaded_image")
USER_UPLOADED_FILE = TranslationKey(LABEL_NAMESPACE, "user_uploaded_file")
ENCRYPTED_MESSAGE = TranslationKey(LABEL_NAMESPACE, "encrypted_message")


@lru_cache
def get_label_translator() -> Translator:
    """Process-wide translator over the bundled label catalog."""
    return create_translator(LOCALES_DIR)


class TextTransformPipeline:
    """Ordered list of text transforms applied before notifications.

    Transforms run synchronously in registration order; each receives the
    output of the previous one.

    Example:
        pipeline = TextTransformPipeline([strip_markdown])
        pipeline.register(redact_tokens)
        text = pipeline.run(message.msg)
    """

    def __init__(self, transforms: Optional[Iterable[TextTransform]] = None):
        self._transforms: List[TextTransform] = list(transforms or [])

    def register(self, transform: TextTransform) -> TextTransform:
        self._transforms.append(transform)
        return transform

    @property
    def transforms(self) -> List[TextTransform]:
        return list(self._transforms)

    def run(self, text: str) -> str:
        for transform in self._transforms:
            text = transform(text)
        return text


def translate_label(
    translator: LabelTranslator, key: TranslationKey, language: Optional[str]
) -> str:
    """Render a label in the recipient's language.

    The translator falls back to English when the language has no entry.
    """
    return translator.translate_message(key, resolve_locale(language))


def replace_mentioned_usernames_with_full_names(
    text: str, mentions: Sequence[Mention]
) -> str:
    """Replace ``@username`` with the mentioned user's display name.

    Only the first occurrence per mention is replaced. Mentions without a
    username or a display name are left untouched.
    """
    for mention in mentions:
        if mention.is_group or not mention.username or not mention.name:
            continue
        text = text.replace(f"@{mention.username}", mention.name, 1)
    return text


def parse_message_text_per_user(
    notification_message: str,
    message: Message,
    receiver: Receiver,
    translator: Optional[LabelTranslator] = None,
) -> str:
    """Render the notification text for one recipient.

    Args:
        notification_message: Base text computed once per message
        message: Source message
        receiver: Recipient snapshot (its language picks the label)
        translator: Label translator (bundled catalog if omitted)

    Returns:
        Text to show this recipient
    """
    if not message.msg and message.attachments:
        key = (
            USER_UPLOADED_IMAGE
            if message.attachments[0].image_type
            else USER_UPLOADED_FILE
        )
    elif message.msg and message.t == ENCRYPTED_MESSAGE_TYPE:
        key = ENCRYPTED_MESSAGE
    else:
        return notification_message

    return translate_label(translator or get_label_translator(), key, receiver.language)


def message_contains_highlight(message: Message, highlights: Sequence[str]) -> bool:
    """Check whether the message body contains any highlight keyword.

    Matching is a case-insensitive literal search.
    """
    if not highlights:
        return False
    return any(
        re.search(re.escape(highlight), message.msg, re.IGNORECASE)
        for highlight in highlights
        if highlight
    )
