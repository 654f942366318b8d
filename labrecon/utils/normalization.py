"""
Normalization helpers for free-text comparison.

Bank descriptions, boleto digit lines and beneficiary names arrive with
arbitrary spacing, punctuation and accents. Everything is canonicalized
here before any comparison is made.

Examples:
    normalize_digit_line("23793.38128 60000.000003") -> "2379338128600000000003"
    normalize_name("Laboratório São José Ltda.") -> "laboratoriosaojoseltda"
    to_cents("R$ 1.234,56") -> 123456
"""

import re
import unicodedata
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from rapidfuzz import fuzz


_NON_ALNUM = re.compile(r"[^a-z0-9]")
_NON_DIGIT = re.compile(r"[^\d]")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def strip_accents(value: str) -> str:
    """Remove diacritics (NFD decomposition, combining marks dropped)."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def normalize_digit_line(value: Optional[str]) -> str:
    """Lowercase and strip everything that is not a letter or digit."""
    if not value:
        return ""
    return _NON_ALNUM.sub("", value.lower())


def digits_only(value: Optional[str]) -> Optional[str]:
    """Keep digits only; None when nothing is left (barcodes, CNPJ)."""
    if not value:
        return None
    digits = _NON_DIGIT.sub("", value)
    return digits or None


def normalize_name(value: Optional[str]) -> str:
    """Accent-free, lowercase, alphanumeric-only form of a name."""
    if not value:
        return ""
    return _NON_ALNUM.sub("", strip_accents(value.lower()))


def normalize_text(value: Optional[str]) -> str:
    """Accent-free lowercase text with punctuation removed, words kept apart."""
    if not value:
        return ""
    text = _PUNCTUATION.sub(" ", strip_accents(value.lower()))
    return _WHITESPACE.sub(" ", text).strip()


def name_similarity(name1: Optional[str], name2: Optional[str]) -> float:
    """
    Similarity between two beneficiary names in [0, 1].

    1.0 for identical normalized names, 0.8 when one contains the other,
    otherwise the token-sorted fuzzy ratio.
    """
    n1 = normalize_text(name1)
    n2 = normalize_text(name2)
    if not n1 or not n2:
        return 0.0
    if n1 == n2:
        return 1.0
    if n1 in n2 or n2 in n1:
        return 0.8
    return fuzz.token_sort_ratio(n1, n2) / 100.0


def days_between(date1: Optional[date], date2: Optional[date]) -> Optional[int]:
    """Absolute number of days between two dates, None if either is missing."""
    if date1 is None or date2 is None:
        return None
    return abs((date2 - date1).days)


def values_within(
    value1: Optional[int],
    value2: Optional[int],
    tolerance: float,
) -> bool:
    """True when the relative difference to the larger value is within tolerance."""
    if value1 is None or value2 is None:
        return False
    if value1 == 0 and value2 == 0:
        return True
    if value1 == 0 or value2 == 0:
        return False
    diff = abs(value1 - value2)
    return diff / max(abs(value1), abs(value2)) <= tolerance


def to_cents(value: Union[int, float, Decimal, str, None]) -> int:
    """
    Convert a currency value to integer cents.

    Accepts numbers and Brazilian formatted strings ("R$ 1.234,56").
    Unparseable values become 0.
    """
    if value is None:
        return 0
    if isinstance(value, str):
        cleaned = value.replace("R$", "").strip()
        if "," in cleaned:
            cleaned = cleaned.replace(".", "").replace(",", ".")
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return 0
    else:
        amount = Decimal(str(value))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
