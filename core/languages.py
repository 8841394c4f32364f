"""ISO 639-1 checks and native language names, used to group Azure voices."""
from typing import Optional

import langcodes


def _language(code: str) -> Optional[langcodes.Language]:
    # two lower-case letters only: "zho" or "ZH" are not ISO 639-1 codes
    if not (isinstance(code, str) and len(code) == 2 and code.isalpha() and code.islower()):
        return None
    try:
        language = langcodes.Language.get(code, normalize=False)
    except ValueError:
        return None
    return language if language.is_valid() else None


def is_valid_iso639_1(code: str) -> bool:
    return _language(code) is not None


def native_name(code: str) -> Optional[str]:
    """Name of the language in itself, e.g. ``"de"`` -> ``"Deutsch"``."""
    language = _language(code)
    if language is None:
        return None
    name = language.autonym()
    return name[:1].upper() + name[1:]
