"""
Uncork Constants and Enums

Closed enums for every categorical input the engine reads, plus the
documented algorithm constants used by the readiness, pairing and lineup
components.
"""

from enum import Enum
from typing import Optional


# =======================
# WINE ATTRIBUTE ENUMS
# =======================

class WineCategory(str, Enum):
    """Wine categories. Free text is parsed with RED as the default branch."""
    RED = "red"
    WHITE = "white"
    ROSE = "rose"
    SPARKLING = "sparkling"
    DESSERT = "dessert"
    FORTIFIED = "fortified"

    @classmethod
    def parse(cls, value) -> 'WineCategory':
        """Parse a category from an enum member or loose string."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.RED

        text = str(value).strip().lower().replace("é", "e")
        for member in cls:
            if text == member.value:
                return member

        for keyword, member in _CATEGORY_KEYWORDS:
            if keyword in text:
                return member
        return cls.RED

    @property
    def is_structured(self) -> bool:
        """Structured categories age on the long threshold table."""
        return self in (WineCategory.RED, WineCategory.FORTIFIED)


_CATEGORY_KEYWORDS = (
    ("sparkl", WineCategory.SPARKLING),
    ("champagne", WineCategory.SPARKLING),
    ("cava", WineCategory.SPARKLING),
    ("prosecco", WineCategory.SPARKLING),
    ("rose", WineCategory.ROSE),
    ("rosado", WineCategory.ROSE),
    ("white", WineCategory.WHITE),
    ("blanc", WineCategory.WHITE),
    ("dessert", WineCategory.DESSERT),
    ("sweet", WineCategory.DESSERT),
    ("port wine", WineCategory.FORTIFIED),
    ("tawny", WineCategory.FORTIFIED),
    ("madeira", WineCategory.FORTIFIED),
    ("sherry", WineCategory.FORTIFIED),
    ("fortified", WineCategory.FORTIFIED),
)


class Confidence(str, Enum):
    """Confidence tiers shared by profiles and readiness results."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def parse(cls, value, default: Optional['Confidence'] = None) -> 'Confidence':
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper()
        aliases = {"MED": cls.MEDIUM, "MID": cls.MEDIUM}
        if text in aliases:
            return aliases[text]
        try:
            return cls(text)
        except ValueError:
            return default if default is not None else cls.LOW

    @classmethod
    def from_score(cls, score: float) -> 'Confidence':
        """Map a 0-1 confidence score onto a tier."""
        if score >= AlgorithmConstants.CONFIDENCE_HIGH_CUTOFF:
            return cls.HIGH
        elif score >= AlgorithmConstants.CONFIDENCE_MEDIUM_CUTOFF:
            return cls.MEDIUM
        else:
            return cls.LOW


class ProfileSource(str, Enum):
    """Where a profile came from."""
    HEURISTIC = "HEURISTIC"
    ESTIMATED = "ESTIMATED"


class ReadinessStatus(str, Enum):
    """Readiness labels."""
    HOLD = "HOLD"
    READY = "READY"


class AgingTier(str, Enum):
    """Aging potential tiers derived from power."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def from_power(cls, power: int) -> 'AgingTier':
        """Get aging tier from a 1-10 power value (<=3 LOW, 4-6 MEDIUM, >=7 HIGH)."""
        if power <= AlgorithmConstants.AGING_LOW_MAX_POWER:
            return cls.LOW
        elif power <= AlgorithmConstants.AGING_MEDIUM_MAX_POWER:
            return cls.MEDIUM
        else:
            return cls.HIGH


# =======================
# FOOD ATTRIBUTE ENUMS
# =======================

class Protein(str, Enum):
    """Primary ingredient of a meal."""
    BEEF = "beef"
    LAMB = "lamb"
    POULTRY = "poultry"
    FISH = "fish"
    VEGETARIAN = "vegetarian"
    NONE = "none"


class Level(str, Enum):
    """Low/medium/high intensity used for fat, spice and smoke."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Sauce(str, Enum):
    """Sauce families."""
    TOMATO = "tomato-based"
    SMOKY = "smoky/BBQ"
    CREAMY = "creamy"
    NONE = "none"


FOOD_ALIASES = {
    "chicken": Protein.POULTRY,
    "turkey": Protein.POULTRY,
    "duck": Protein.POULTRY,
    "seafood": Protein.FISH,
    "veggie": Protein.VEGETARIAN,
    "vegan": Protein.VEGETARIAN,
    "med": Level.MEDIUM,
    "mid": Level.MEDIUM,
    "tomato": Sauce.TOMATO,
    "bbq": Sauce.SMOKY,
    "smoky": Sauce.SMOKY,
    "cream": Sauce.CREAMY,
}


# =======================
# ALGORITHM CONSTANTS
# =======================

class AlgorithmConstants:
    """
    Algorithm constants with documentation.

    Tuned by inspection against typical cellar contents, not fitted to data.
    """

    # PROFILE SCALES
    ORDINAL_MIN = 0
    ORDINAL_MAX = 5
    POWER_MIN = 1
    POWER_MAX = 10
    MIN_STRENGTH = 0.0
    MAX_STRENGTH = 25.0

    # STRENGTH NORMALIZATION
    # ABV mapped onto the 0-5 ordinal scale: 8% -> 0, 16% -> 5
    STRENGTH_FLOOR = 8.0
    STRENGTH_SPAN = 8.0
    DEFAULT_STRENGTH = 13.0

    # AGING TIERS (inclusive upper power bounds)
    AGING_LOW_MAX_POWER = 3
    AGING_MEDIUM_MAX_POWER = 6

    # READINESS CONFIDENCE
    # In-window score: 1 - 0.4 * (distance / half_width)^2
    # Past the window the score falls linearly from 0.6 to 0 at 1.25x prime_end
    IN_WINDOW_EDGE_PENALTY = 0.4
    OVERSHOOT_START_SCORE = 0.6
    OVERSHOOT_MULTIPLE = 1.25
    CONFIDENCE_HIGH_CUTOFF = 0.67
    CONFIDENCE_MEDIUM_CUTOFF = 0.34

    # VINTAGE SANITY
    MIN_VINTAGE = 1900

    # EXPLANATIONS
    MIN_REASONS = 3
    MAX_REASONS = 5

    # PAIRING
    PAIRING_BASELINE = 50.0
    PAIRING_MIN = 0.0
    PAIRING_MAX = 100.0
    SPICE_STRENGTH_PIVOT = 13.0

    # LINEUP COMPOSITE SCORE
    READY_BONUS = 100.0
    QUALITY_THRESHOLD = 4.2
    QUALITY_BONUS = 20.0
    HIGH_TANNIN = 4

    # PROFILE CACHE
    PROFILE_MAX_AGE_DAYS = 30

    # BACKFILL RETRIES
    MAX_RETRIES = 3
    RETRY_MIN_WAIT_SECONDS = 2
    RETRY_MAX_WAIT_SECONDS = 10
    RETRY_MULTIPLIER = 1


# Age thresholds (young_end, prime_end) keyed by (structured?, tier)
AGE_THRESHOLDS = {
    (True, AgingTier.LOW): (2, 8),
    (True, AgingTier.MEDIUM): (3, 12),
    (True, AgingTier.HIGH): (5, 20),
    (False, AgingTier.LOW): (0, 3),
    (False, AgingTier.MEDIUM): (1, 5),
    (False, AgingTier.HIGH): (2, 10),
}


# =======================
# LINEUP LABELS
# =======================

class SlotLabels:
    """Positional labels for lineup slots."""

    SOLO = "Main"
    OPENING = "Opening"
    MIDDLE = "Mid"
    MAIN = "Main"
    CLOSING = "Closing"
