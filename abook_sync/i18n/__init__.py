"""
abook_sync.i18n - Localized operator messages
"""

from abook_sync.i18n.translator import (
    DEFAULT_LOCALE,
    Translator,
    get_locale_from_env,
)

__all__ = ["DEFAULT_LOCALE", "Translator", "get_locale_from_env"]
