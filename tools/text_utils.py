"""Text and number helpers shared by the classifiers and prompt builders."""

import math
import re
from typing import Iterable


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up.

    Python's round() uses banker's rounding (2.5 -> 2); score arithmetic
    here expects 2.5 -> 3 and -7.5 -> -7.
    """
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int = 0, high: int = 100) -> int:
    """Clamp an integer score into [low, high]."""
    return max(low, min(high, value))


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring test against a keyword list."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def matches_word(text: str, keyword: str) -> bool:
    """True if a word in `text` starts with `keyword` (case-insensitive).

    "hateful" matches "hate", while "distrust" does not match "trust" and
    "hatred" does not match "hate".
    """
    return re.search(rf"\b{re.escape(keyword)}", text, re.IGNORECASE) is not None


def truncate(text: str, limit: int = 50) -> str:
    """Trim text to `limit` characters, adding an ellipsis when cut."""
    if not text or len(text) <= limit:
        return text or ""
    return text[:limit].rstrip() + "..."


def split_ability_name(latent_ability: str) -> str:
    """Return the ability name from a seed's 'Name — description' text."""
    for separator in ("—", " - ", "--"):
        if separator in latent_ability:
            return latent_ability.split(separator)[0].strip()
    return latent_ability.strip()
