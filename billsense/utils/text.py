"""
Text normalization helpers shared by the extractors and the classifier.
"""

import re
import unicodedata

_NON_WORD = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')


def fold_text(text: str) -> str:
    """
    Case-fold and strip diacritics.

    OCR frequently drops accents ("TEDAS" for "TEDAŞ", "fallig" for
    "fällig"), so both the text and every keyword are folded before
    comparison.

    Examples:
        >>> fold_text("Fälligkeit")
        'falligkeit'
        >>> fold_text("İSKİ")
        'iski'
    """
    decomposed = unicodedata.normalize('NFKD', text)
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    # Turkish dotless i has no decomposition
    return stripped.casefold().replace('ı', 'i')


def normalize_text(text: str) -> str:
    """
    Fold, replace punctuation with spaces and collapse whitespace.

    Examples:
        >>> normalize_text("E.ON Energie-Rechnung!")
        'e on energie rechnung'
    """
    folded = fold_text(text or '')
    spaced = _NON_WORD.sub(' ', folded)
    # `_` is a word character for re but punctuation on a bill
    spaced = spaced.replace('_', ' ')
    return _WHITESPACE.sub(' ', spaced).strip()


def _keyword_regex(keyword: str) -> re.Pattern:
    folded = normalize_text(keyword)
    term = re.escape(folded).replace(r'\ ', r'\s+')
    # Short terms ("su", "tv", "gb") must stand alone; longer ones may carry
    # inflection suffixes ("tüketim" matches "tüketimi")
    if len(folded) <= 3:
        return re.compile(rf'(?<!\w){term}(?!\w)')
    return re.compile(rf'(?<!\w){term}')


def contains_keyword(normalized: str, keyword: str) -> bool:
    """
    Check whether a keyword occurs in already-normalized text.

    The keyword must start on a word boundary; keywords of three characters
    or fewer must also end on one.
    """
    if not keyword or not normalize_text(keyword):
        return False
    return _keyword_regex(keyword).search(normalized) is not None


def find_keywords(normalized: str, keywords) -> list:
    """Return the keywords (original spelling) present in normalized text."""
    return [kw for kw in keywords if contains_keyword(normalized, kw)]
