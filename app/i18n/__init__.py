# -*- coding: utf-8 -*-
"""
I18N lookup. No hardcoded UI strings in handlers.

Language resolution:
- If language not in LANGUAGES → use DEFAULT_LANGUAGE
- If key missing in the requested language → fallback to DEFAULT_LANGUAGE
- If key missing everywhere → return the key (never crash)
"""

import logging
from typing import Optional

from . import en

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

LANGUAGES = {
    "en": en.LANG,
}


def resolve_language(language_code: Optional[str]) -> str:
    """Map a Telegram language_code ("en-US", "de", None) to a supported language."""
    if not language_code:
        return DEFAULT_LANGUAGE
    base = language_code.split("-")[0].lower()
    return base if base in LANGUAGES else DEFAULT_LANGUAGE


def get_text(language: str, key: str, **kwargs) -> str:
    """
    Get localized text for key in the given language.

    Args:
        language: Language code
        key: Dot-separated key (e.g. "start.welcome")
        **kwargs: Format placeholders

    Returns:
        Localized string, optionally formatted. Never raises.
    """
    lang_dict = LANGUAGES.get(language, LANGUAGES[DEFAULT_LANGUAGE])
    text = lang_dict.get(key)

    if text is None:
        text = LANGUAGES[DEFAULT_LANGUAGE].get(key)
        if text is None:
            logger.error("I18N_KEY_MISSING key=%s", key)
            return key
        logger.warning("I18N fallback to %s for key=%s, lang=%s", DEFAULT_LANGUAGE, key, language)

    if kwargs:
        return text.format(**kwargs)
    return text
