"""Pydantic schemas for Uncork data validation."""

import math
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator

from uncork.constants import (
    AgingTier,
    AlgorithmConstants,
    Confidence,
    FOOD_ALIASES,
    Level,
    ProfileSource,
    Protein,
    ReadinessStatus,
    Sauce,
    WineCategory,
)
from uncork.power_formula import compute_power
from uncork.utils import clamp, is_missing, round_half_up, split_ingredients, logger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =======================
# ITEM
# =======================

class Item(BaseModel):
    """A stored bottle. Owned by the surrounding application; read-only here."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable identifier")
    name: str = Field("", description="Wine name")
    producer: Optional[str] = Field(None, description="Producer/winery name")
    category: WineCategory = Field(WineCategory.RED, description="Wine category")
    sub_category: Optional[str] = Field(None, description="Region or regional style")
    rating: Optional[float] = Field(None, description="Quality signal (0-5)")
    vintage: Optional[int] = Field(None, description="Vintage year")
    purchase_date: Optional[date] = Field(None, description="Used for age when vintage is missing")
    varieties: Tuple[str, ...] = Field((), description="Grape varieties / ingredients")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if value is not None else value

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value):
        return WineCategory.parse(value)

    @field_validator("varieties", mode="before")
    @classmethod
    def _split_varieties(cls, value):
        return tuple(split_ingredients(value))

    @field_validator("rating", mode="before")
    @classmethod
    def _clamp_rating(cls, value):
        if is_missing(value):
            return None
        rating = float(value)
        if not 0.0 <= rating <= 5.0:
            logger.warning(f"Rating {rating} outside 0-5, clamping")
        return clamp(rating, 0.0, 5.0)

    @field_validator("vintage", mode="before")
    @classmethod
    def _loose_vintage(cls, value):
        if is_missing(value) or value == "":
            return None
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Unparseable vintage {value!r}, treating as missing")
            return None


# =======================
# PROFILE
# =======================

class Profile(BaseModel):
    """
    Structural profile of a wine.

    Immutable. `power` is derived from body, tannin, oak and strength on
    every access; a `power` passed to the constructor is ignored.
    """

    model_config = ConfigDict(frozen=True)

    body: int = Field(..., ge=0, le=5, description="Body (0=light, 5=full)")
    tannin: int = Field(..., ge=0, le=5, description="Tannin (0-5)")
    acidity: int = Field(..., ge=0, le=5, description="Acidity (0-5)")
    oak: int = Field(..., ge=0, le=5, description="Oak influence (0-5)")
    sweetness: int = Field(0, ge=0, le=5, description="Sweetness (0=dry, 5=lusciously sweet)")
    estimated_strength: Optional[float] = Field(None, ge=0.0, le=25.0, description="Estimated ABV %")
    confidence: Confidence = Confidence.LOW
    source: ProfileSource = ProfileSource.HEURISTIC
    style_tags: Tuple[str, ...] = ()
    updated_at: datetime = Field(default_factory=_utcnow)

    @computed_field
    @property
    def power(self) -> int:
        """1-10 intensity score."""
        return compute_power(self.body, self.tannin, self.oak, self.estimated_strength)

    def evolve(self, **changes) -> 'Profile':
        """Return a new Profile with changes applied and a fresh updated_at."""
        data = self.model_dump(exclude={"power"})
        data.update(changes)
        if "updated_at" not in changes:
            data["updated_at"] = _utcnow()
        return Profile(**data)


class ExternalEstimate(BaseModel):
    """
    Profile-shaped JSON returned by the attribute-estimation collaborator.

    Out-of-range ordinals are rounded and clamped rather than rejected. Any
    `power` in the payload is accepted for compatibility and discarded.
    """

    body: int
    tannin: int
    acidity: int
    oak: int
    sweetness: int = 0
    estimated_strength: Optional[float] = Field(
        None, validation_alias=AliasChoices("estimated_strength", "estimatedStrength", "alcohol_est")
    )
    confidence: Confidence = Confidence.MEDIUM
    style_tags: List[str] = Field(default_factory=list)
    power: Optional[float] = Field(None, description="Ignored; power is always recomputed")

    @field_validator("body", "tannin", "acidity", "oak", "sweetness", mode="before")
    @classmethod
    def _clamp_ordinal(cls, value, info):
        if is_missing(value):
            raise ValueError(f"{info.field_name} is required")
        number = float(value)
        if math.isinf(number):
            clamped = AlgorithmConstants.ORDINAL_MAX if number > 0 else AlgorithmConstants.ORDINAL_MIN
        else:
            clamped = int(clamp(
                round_half_up(number),
                AlgorithmConstants.ORDINAL_MIN,
                AlgorithmConstants.ORDINAL_MAX
            ))
        if clamped != number:
            logger.warning(f"Estimate {info.field_name}={value!r} coerced to {clamped}")
        return clamped

    @field_validator("estimated_strength", mode="before")
    @classmethod
    def _clamp_strength(cls, value):
        if is_missing(value) or value == "":
            return None
        strength = float(value)
        if not AlgorithmConstants.MIN_STRENGTH <= strength <= AlgorithmConstants.MAX_STRENGTH:
            logger.warning(f"Estimated strength {strength} clamped")
        return clamp(strength, AlgorithmConstants.MIN_STRENGTH, AlgorithmConstants.MAX_STRENGTH)

    @field_validator("confidence", mode="before")
    @classmethod
    def _parse_confidence(cls, value):
        return Confidence.parse(value, default=Confidence.MEDIUM)

    @field_validator("style_tags", mode="before")
    @classmethod
    def _tags(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(tag) for tag in value]


# =======================
# READINESS
# =======================

class ReadinessResult(BaseModel):
    """Readiness classification with its drink window and reasons."""

    model_config = ConfigDict(frozen=True)

    status: ReadinessStatus
    window_start: Optional[int] = Field(None, description="First calendar year of the drink window")
    window_end: Optional[int] = Field(None, description="Last calendar year of the drink window")
    confidence: Confidence
    reasons: Tuple[str, ...] = Field(..., min_length=1, max_length=AlgorithmConstants.MAX_REASONS)
    assumptions: Optional[str] = Field(None, description="Only set when confidence is LOW")
    aging_tier: AgingTier
    age_years: Optional[float] = None


class FamilyMember(BaseModel):
    """One classified item inside a same-family comparison."""

    model_config = ConfigDict(frozen=True)

    item_id: str = ""
    family: str = ""
    age_years: Optional[float] = None
    status: ReadinessStatus


class ConsistencyIssue(BaseModel):
    """An older item on HOLD while a younger sibling is READY."""

    family: str
    older_item_id: str
    older_age: float
    younger_item_id: str
    younger_age: float
    issue: str
    suggestion: str


class ConsistencyReport(BaseModel):
    """Advisory output of the family consistency validator."""

    valid: bool
    issues: List[ConsistencyIssue] = Field(default_factory=list)
    families_checked: int = 0
    members_checked: int = 0
    skipped: int = Field(0, description="Members without a usable age")


# =======================
# FOOD & PAIRING
# =======================

def _food_value(enum_cls, value, default):
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip().lower()
    alias = FOOD_ALIASES.get(text)
    if isinstance(alias, enum_cls):
        return alias
    for member in enum_cls:
        if text == member.value.lower():
            return member
    logger.warning(f"Unknown {enum_cls.__name__} {value!r}, using {default.value}")
    return default


class FoodContext(BaseModel):
    """Normalized description of a meal."""

    model_config = ConfigDict(frozen=True)

    primary: Protein = Protein.NONE
    fat: Level = Level.MEDIUM
    sauce: Sauce = Sauce.NONE
    spice: Level = Level.LOW
    smoke: Level = Level.LOW

    @field_validator("primary", mode="before")
    @classmethod
    def _primary(cls, value):
        return _food_value(Protein, value, Protein.NONE)

    @field_validator("fat", mode="before")
    @classmethod
    def _fat(cls, value):
        return _food_value(Level, value, Level.MEDIUM)

    @field_validator("sauce", mode="before")
    @classmethod
    def _sauce(cls, value):
        return _food_value(Sauce, value, Sauce.NONE)

    @field_validator("spice", "smoke", mode="before")
    @classmethod
    def _intensity(cls, value):
        return _food_value(Level, value, Level.LOW)

    def describe(self) -> str:
        """Short human description, e.g. 'fatty beef with tomato-based sauce'."""
        parts = []
        if self.fat == Level.HIGH:
            parts.append("fatty")
        if self.spice == Level.HIGH:
            parts.append("spicy")
        if self.smoke == Level.HIGH:
            parts.append("smoky")
        parts.append("dish" if self.primary == Protein.NONE else self.primary.value)
        text = " ".join(parts)
        if self.sauce != Sauce.NONE:
            text += f" with {self.sauce.value} sauce"
        return text


class PairingContribution(BaseModel):
    """One rule's delta, traceable to a (profile dimension, food attribute) pair."""

    model_config = ConfigDict(frozen=True)

    dimension: str
    food_attribute: str
    delta: float
    note: str


class PairingScore(BaseModel):
    """Pairing score (0-100) with its explanation."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=0.0, le=100.0)
    explanation: str = Field(..., min_length=1)
    contributions: Tuple[PairingContribution, ...] = ()


# =======================
# LINEUP
# =======================

class LineupCandidate(BaseModel):
    """An item offered to the lineup builder with its profile and readiness."""

    model_config = ConfigDict(frozen=True)

    item: Item
    profile: Profile
    readiness: ReadinessResult

    @property
    def status(self) -> ReadinessStatus:
        return self.readiness.status


class LineupSlot(BaseModel):
    """One position in an ordered lineup."""

    model_config = ConfigDict(frozen=True)

    item: Item
    profile: Profile
    position: int = Field(..., ge=1)
    label: str
    pairing_explanation: str = Field(..., min_length=1)
    pairing_score: Optional[float] = None
    status: ReadinessStatus = ReadinessStatus.READY
    readiness: Optional[ReadinessResult] = None
