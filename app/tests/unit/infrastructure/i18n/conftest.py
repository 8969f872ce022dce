"""Fixtures for i18n tests."""

import pytest
import yaml

from infrastructure.i18n import YAMLTranslationLoader


@pytest.fixture
def temp_translations_dir(tmp_path):
    """Directory with label catalogs for two locales.

    - notifications.en-US.yml
    - notifications.fr-FR.yml (no ``encrypted_message`` entry)
    - digest.en-US.yml
    """
    files = {
        "notifications.en-US.yml": {
            "notifications": {
                "user_uploaded_file": "User uploaded a file",
                "encrypted_message": "Encrypted message",
            }
        },
        "notifications.fr-FR.yml": {
            "notifications": {
                "user_uploaded_file": "L'utilisateur a téléversé un fichier",
            }
        },
        "digest.en-US.yml": {"digest": {"subject": "Unread messages"}},
    }
    for name, data in files.items():
        with open(tmp_path / name, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True)
    return tmp_path


@pytest.fixture
def yaml_loader(temp_translations_dir):
    return YAMLTranslationLoader(temp_translations_dir, use_cache=False)
