"""
Readiness Classifier

Deterministic, explainable drink-window classification.

Age is the only input compared against thresholds; the thresholds come from
a lookup keyed by category style and the aging tier of the profile's power.
For a fixed family (same category and profile) an older bottle can
therefore never be HOLD while a younger one is READY.
"""

import math
from datetime import date
from typing import List, Optional, Sequence, Tuple, Union

from uncork.constants import (
    AGE_THRESHOLDS,
    AgingTier,
    AlgorithmConstants,
    Confidence,
    ReadinessStatus,
    WineCategory,
)
from uncork.schema import FamilyMember, Item, Profile, ReadinessResult
from uncork.utils import age_from_purchase, age_from_vintage, is_missing, plural, round_half_up, logger


def aging_tier(power: int) -> AgingTier:
    """Aging tier from power: <=3 LOW, 4-6 MEDIUM, >=7 HIGH."""
    return AgingTier.from_power(power)


def age_thresholds(category: Union[WineCategory, str, None], tier: AgingTier) -> Tuple[int, int]:
    """
    (young_end, prime_end) for a category and tier.

    Structured styles (red, fortified) use the long table, everything else
    the light table.
    """
    wine_category = WineCategory.parse(category)
    return AGE_THRESHOLDS[(wine_category.is_structured, tier)]


def item_age(item: Item, reference_date: date) -> Optional[int]:
    """Age in years from the vintage, falling back to the purchase date."""
    age = age_from_vintage(item.vintage, reference_date.year)
    if age is None and item.purchase_date is not None:
        age = age_from_purchase(item.purchase_date, reference_date)
    return age


def _fmt(value: float) -> str:
    return f"{value:g}"


def _in_window_score(age: float, young_end: int, prime_end: int) -> float:
    """1.0 at the centre of the window, falling quadratically to 0.6 at its edges."""
    half_width = (prime_end - young_end) / 2
    if half_width <= 0:
        return 1.0
    distance = abs(age - (young_end + half_width)) / half_width
    return 1.0 - AlgorithmConstants.IN_WINDOW_EDGE_PENALTY * distance ** 2


def _overshoot_limit(prime_end: int) -> float:
    return prime_end * AlgorithmConstants.OVERSHOOT_MULTIPLE


def _overshoot_score(age: float, prime_end: int) -> float:
    """Linear decay from 0.6 at prime_end to 0 at OVERSHOOT_MULTIPLE x prime_end."""
    span = _overshoot_limit(prime_end) - prime_end
    if span <= 0:
        return 0.0
    fraction = (age - prime_end) / span
    return max(0.0, AlgorithmConstants.OVERSHOOT_START_SCORE * (1 - fraction))


def _missing_age_result(profile: Profile, category: WineCategory) -> ReadinessResult:
    tier = aging_tier(profile.power)
    young_end, prime_end = age_thresholds(category, tier)
    return ReadinessResult(
        status=ReadinessStatus.READY,
        window_start=None,
        window_end=None,
        confidence=Confidence.LOW,
        reasons=(
            "No vintage or purchase date to compute an age from",
            "Defaulting to READY so the bottle stays recommendable",
            f"Power {profile.power}/10 suggests {tier.value.lower()} aging potential "
            f"({young_end}-{prime_end} year window once the age is known)",
        ),
        assumptions="Age unknown; readiness assumed. Check the vintage before relying on this window.",
        aging_tier=tier,
        age_years=None,
    )


def classify(
    age_years: Optional[float],
    profile: Profile,
    previous: Optional[Sequence[FamilyMember]] = None,
    *,
    category: Union[WineCategory, str, None] = WineCategory.RED,
    reference_year: int
) -> ReadinessResult:
    """
    Classify an item's readiness.

    Args:
        age_years: Age in years; None (or NaN) when unknown
        profile: Structural profile of the item
        previous: Earlier classifications of the same family. A HOLD that
                  contradicts a strictly younger READY sibling is lifted to
                  READY with LOW confidence.
        category: Wine category, selects light vs. structured thresholds
        reference_year: Calendar year the age is measured against

    Returns:
        ReadinessResult with 3-5 reasons citing the numbers used
    """
    wine_category = WineCategory.parse(category)

    if is_missing(age_years) or not math.isfinite(float(age_years)):
        logger.warning("Missing age, defaulting to READY with low confidence")
        return _missing_age_result(profile, wine_category)

    raw_age = float(age_years)
    clamped = raw_age < 0
    age = 0.0 if clamped else raw_age
    if clamped:
        logger.warning(f"Negative age {_fmt(raw_age)} clamped to 0")

    tier = aging_tier(profile.power)
    young_end, prime_end = age_thresholds(wine_category, tier)
    start_offset = young_end - age
    window_start = round_half_up(reference_year + start_offset)
    window_end = round_half_up(reference_year + prime_end - age)

    style = "structured" if wine_category.is_structured else "light"
    reasons: List[str] = []
    assumptions: Optional[str] = None

    if age < young_end:
        status = ReadinessStatus.HOLD
        score = None
        confidence = Confidence.MEDIUM
        reasons.append(f"{plural(age, 'year')} old, below the {young_end}-year opening threshold")
    elif age <= prime_end:
        status = ReadinessStatus.READY
        score = _in_window_score(age, young_end, prime_end)
        confidence = Confidence.from_score(score)
        reasons.append(f"{plural(age, 'year')} old, inside the {young_end}-{prime_end} year drinking window")
    else:
        status = ReadinessStatus.READY
        score = _overshoot_score(age, prime_end)
        confidence = Confidence.from_score(score)
        reasons.append(f"{plural(age, 'year')} old, {_fmt(age - prime_end)} past the {prime_end}-year peak")

    reasons.append(f"Power {profile.power}/10 gives {tier.value.lower()} aging potential")
    reasons.append(
        f"{wine_category.value.capitalize()} ({style}) thresholds: ready at {young_end}, "
        f"peak through {prime_end} years"
    )

    if status == ReadinessStatus.HOLD:
        reasons.append(f"Hold about {plural(start_offset, 'more year')}, until {window_start}")
    elif age <= prime_end:
        reasons.append(f"{plural(prime_end - age, 'year')} of peak window left, through {window_end}")
    else:
        limit = _overshoot_limit(prime_end)
        reasons.append(f"Likely past peak, open soon; confidence bottoms out past {_fmt(limit)} years")
        assumptions = "Past the expected peak; quality now depends heavily on storage conditions."

    if clamped:
        confidence = Confidence.LOW
        assumptions = f"Age {_fmt(raw_age)} is negative (vintage in the future?); treated as 0."

    if previous and status == ReadinessStatus.HOLD:
        younger_ready = [
            member for member in previous
            if member.status == ReadinessStatus.READY
            and not is_missing(member.age_years)
            and member.age_years < age
        ]
        if younger_ready:
            sibling = max(younger_ready, key=lambda member: member.age_years)
            status = ReadinessStatus.READY
            confidence = Confidence.LOW
            window_start = min(window_start, reference_year)
            reasons[-1] = (
                f"A younger bottle of this family ({_fmt(sibling.age_years)} years) is already READY"
            )
            assumptions = "Lifted to READY so older bottles are never held behind a younger READY sibling."
            logger.warning(
                f"Lifted HOLD at age {_fmt(age)} to READY: sibling {sibling.item_id or '?'} "
                f"at age {_fmt(sibling.age_years)} is READY"
            )

    if profile.confidence == Confidence.LOW or len(reasons) < AlgorithmConstants.MIN_REASONS:
        reasons.append(f"Profile is {profile.source.value.lower()} with {profile.confidence.value.lower()} confidence")

    if confidence != Confidence.LOW:
        assumptions = None

    result = ReadinessResult(
        status=status,
        window_start=window_start,
        window_end=window_end,
        confidence=confidence,
        reasons=tuple(reasons[:AlgorithmConstants.MAX_REASONS]),
        assumptions=assumptions,
        aging_tier=tier,
        age_years=age,
    )
    logger.debug(
        f"Readiness: age={_fmt(age)} power={profile.power} tier={tier.value} "
        f"-> {status.value}/{confidence.value} (score={score})"
    )
    return result


def classify_item(
    item: Item,
    profile: Profile,
    reference_date: date,
    previous: Optional[Sequence[FamilyMember]] = None
) -> ReadinessResult:
    """Classify an Item, deriving its age against reference_date."""
    return classify(
        item_age(item, reference_date),
        profile,
        previous,
        category=item.category,
        reference_year=reference_date.year,
    )
