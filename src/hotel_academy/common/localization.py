from __future__ import annotations

from typing import Mapping, Optional, Union

FALLBACK_LANGUAGES = ("en", "tr")

LocalizedString = Mapping[str, str]


def get_localized_content(value: Union[LocalizedString, str, None], lang: Optional[str] = None) -> str:
    """Pick the best translation of a localized field.

    Order: requested language, then en, then tr, then the first non-empty entry.
    Plain strings are returned unchanged.
    """
    if not value:
        return ""
    if isinstance(value, str):
        return value

    for code in ((lang,) if lang else ()) + FALLBACK_LANGUAGES:
        text = value.get(code)
        if text:
            return text

    for text in value.values():
        if text:
            return text
    return ""
