"""
Localized operator messages.

Message catalogs are YAML mappings of message id to text, one file per
locale in the locales/ directory next to this module. A Translator is built
once at startup and handed to whatever needs localized text.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

# Locale used when LANG is unset, "C", malformed, or has no catalog
DEFAULT_LOCALE = "en-US"

LOCALES_DIR = Path(__file__).parent / "locales"

logger = logging.getLogger(__name__)


def is_valid_locale(code: str) -> bool:
    """Check for two alphanumeric parts joined by "-", e.g. "ja-JP"."""
    parts = code.split("-")
    return len(parts) == 2 and all(part.isalnum() for part in parts)


def get_locale_from_env(lang: Optional[str] = None) -> str:
    """
    Derive the locale from the LANG environment variable.

    "ja_JP.UTF-8" becomes "ja-JP". "C", an empty value, or anything that is
    not of the form xx-YY yields the default locale.

    Args:
        lang: Value to use instead of reading $LANG

    Returns:
        Locale code such as "en-US"
    """
    if lang is None:
        lang = os.environ.get("LANG", "")

    if lang == "C" or not lang:
        return DEFAULT_LOCALE

    code = lang.split(".")[0].replace("_", "-")
    if is_valid_locale(code):
        return code
    return DEFAULT_LOCALE


def load_catalog(locale: str, locales_dir: Path = LOCALES_DIR) -> dict[str, str]:
    """
    Load the message catalog for a locale.

    Raises:
        FileNotFoundError: If no catalog exists for the locale
        ValueError: If the catalog is not a YAML mapping
    """
    path = locales_dir / f"{locale}.yaml"
    with open(path, encoding="utf-8") as f:
        catalog = yaml.safe_load(f)

    if not isinstance(catalog, dict):
        raise ValueError(f"Message catalog {path} must be a YAML mapping")

    return {str(key): str(value) for key, value in catalog.items()}


class Translator:
    """
    Looks up localized text by message id.

    Unknown message ids are returned unchanged, so a lookup never fails.

    Attributes:
        locale: Locale of the loaded catalog
        messages: Message id to text mapping

    Usage:
        translate = Translator.for_locale(get_locale_from_env())
        click.echo(translate("op-cancel"))
    """

    def __init__(self, messages: dict[str, str], locale: str = DEFAULT_LOCALE):
        self.messages = messages
        self.locale = locale

    @classmethod
    def for_locale(
        cls, locale: str, locales_dir: Path = LOCALES_DIR
    ) -> "Translator":
        """
        Build a translator for a locale, falling back to en-US.

        Args:
            locale: Locale code such as "ja-JP"
            locales_dir: Directory holding <locale>.yaml catalogs

        Returns:
            Translator for the locale, or for en-US if the locale has no
            catalog
        """
        try:
            return cls(load_catalog(locale, locales_dir), locale)
        except FileNotFoundError:
            logger.debug(f"No message catalog for {locale}, using {DEFAULT_LOCALE}")

        return cls(load_catalog(DEFAULT_LOCALE, locales_dir), DEFAULT_LOCALE)

    def translate(self, message_id: str) -> str:
        return self.messages.get(message_id, message_id)

    def __call__(self, message_id: str) -> str:
        return self.translate(message_id)

    def __repr__(self) -> str:
        return f"Translator(locale={self.locale!r}, messages={len(self.messages)})"
