"""
Small numeric and text helpers shared by carriers.
"""
import unicodedata
from typing import Any, Dict, List

# Bulgarian streamlined system
CYRILLIC_TO_LATIN = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ж": "zh",
    "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m", "н": "n",
    "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u", "ф": "f",
    "х": "h", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "sht", "ъ": "a",
    "ь": "y", "ю": "yu", "я": "ya",
}


def int_to_float(value: int, precision: int = 2) -> float:
    """Convert a minor-unit integer (cents, grams) to its major unit."""
    return round(value / (10 ** precision), precision)


def to_ascii(text: str) -> str:
    """
    Transliterate ``text`` to plain ASCII.

    Cyrillic is transliterated letter by letter, keeping the case of the
    first output letter; other accented letters lose their diacritics.
    """
    if not text:
        return ""

    chars = []
    for char in text:
        latin = CYRILLIC_TO_LATIN.get(char.lower())
        if latin is None:
            chars.append(char)
        elif char.isupper():
            chars.append(latin[0].upper() + latin[1:])
        else:
            chars.append(latin)

    normalized = unicodedata.normalize("NFKD", "".join(chars))
    normalized = "".join(c for c in normalized if not unicodedata.combining(c))
    return normalized.encode("ascii", "ignore").decode("ascii")


def as_dict(value: Any) -> Dict[str, Any]:
    """``value`` if it is a decoded JSON object, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> List[Any]:
    """``value`` if it is a decoded JSON array, otherwise an empty list."""
    return value if isinstance(value, list) else []
