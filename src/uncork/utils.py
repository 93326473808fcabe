"""
Utility functions for Uncork.

Includes logging, clamping, text normalization and age helpers.
"""

import logging
import math
import re
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

from uncork.constants import AlgorithmConstants

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# =======================
# NUMERIC HELPERS
# =======================

def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from zero (Python's round() uses banker's rounding)."""
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


def is_missing(value) -> bool:
    """True for None and NaN."""
    if value is None:
        return True
    try:
        return math.isnan(value)
    except TypeError:
        return False


# =======================
# TEXT NORMALIZATION
# =======================

def normalize_text(text: Optional[str]) -> str:
    """Lowercase, strip accents we care about and collapse whitespace."""
    if is_missing(text) or not text:
        return ""
    text = str(text).lower()
    for accented, plain in (("é", "e"), ("è", "e"), ("ô", "o"), ("ñ", "n"), ("ü", "u")):
        text = text.replace(accented, plain)
    return re.sub(r'\s+', ' ', text).strip()


def split_ingredients(ingredients: Union[str, Iterable[str], None]) -> List[str]:
    """
    Normalize an ingredient/variety list.

    Accepts a comma/semicolon/slash separated string or any iterable of
    strings. Missing values (None, NaN) give an empty list and any other
    scalar is treated as a single entry. Empty entries are dropped; order is
    preserved.
    """
    if is_missing(ingredients):
        return []
    if isinstance(ingredients, str):
        parts = re.split(r'[,;/]|\band\b', ingredients)
    elif isinstance(ingredients, Iterable):
        parts = [str(part) for part in ingredients if not is_missing(part)]
    else:
        parts = [str(ingredients)]
    return [normalize_text(part) for part in parts if normalize_text(part)]


# =======================
# AGE HELPERS
# =======================

def age_from_vintage(vintage: Optional[int], reference_year: int) -> Optional[int]:
    """
    Years since vintage, or None when the vintage is missing or unparseable.

    Vintages before 1900 or more than one year in the future are treated as
    unparseable.
    """
    if is_missing(vintage):
        return None
    try:
        vintage = int(vintage)
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Unparseable vintage: {vintage!r}")
        return None

    if vintage < AlgorithmConstants.MIN_VINTAGE or vintage > reference_year + 1:
        logger.warning(f"Vintage {vintage} outside {AlgorithmConstants.MIN_VINTAGE}-{reference_year + 1}, treating as missing")
        return None
    return reference_year - vintage


def age_from_purchase(purchased: Union[date, datetime, str, None], reference_date: date) -> Optional[int]:
    """Whole years between purchase date and reference date, or None."""
    if purchased is None:
        return None
    if isinstance(purchased, str):
        try:
            purchased = date.fromisoformat(purchased[:10])
        except ValueError:
            logger.warning(f"Unparseable purchase date: {purchased!r}")
            return None
    if isinstance(purchased, datetime):
        purchased = purchased.date()
    if isinstance(reference_date, datetime):
        reference_date = reference_date.date()

    years = reference_date.year - purchased.year
    if (reference_date.month, reference_date.day) < (purchased.month, purchased.day):
        years -= 1
    return years


def plural(count: float, word: str) -> str:
    """'1 year' / '2.5 years'."""
    return f"{count:g} {word}" if abs(count) == 1 else f"{count:g} {word}s"
