"""
Heuristic Profile Estimator

Derives a Profile from coarse metadata (category, region/style, variety
list) when no richer estimate exists. Table-driven, no I/O, never fails.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple, Union

from uncork.constants import AlgorithmConstants, Confidence, ProfileSource, WineCategory
from uncork.schema import Item, Profile
from uncork.utils import clamp, normalize_text, split_ingredients, logger


@dataclass(frozen=True)
class Adjustment:
    """A keyword rule: relative steps, absolute overrides and tags."""
    keywords: Tuple[str, ...]
    steps: Dict[str, int] = field(default_factory=dict)
    sets: Dict[str, float] = field(default_factory=dict)
    tags: Tuple[str, ...] = ()


# Category defaults: body, tannin, acidity, oak, sweetness, strength
CATEGORY_DEFAULTS = {
    WineCategory.RED: dict(body=3, tannin=3, acidity=3, oak=2, sweetness=0, estimated_strength=13.0),
    WineCategory.WHITE: dict(body=2, tannin=1, acidity=4, oak=1, sweetness=0, estimated_strength=12.5),
    WineCategory.ROSE: dict(body=2, tannin=2, acidity=4, oak=1, sweetness=0, estimated_strength=12.0),
    WineCategory.SPARKLING: dict(body=2, tannin=1, acidity=5, oak=1, sweetness=1, estimated_strength=12.0),
    WineCategory.DESSERT: dict(body=4, tannin=1, acidity=4, oak=1, sweetness=5, estimated_strength=11.0),
    WineCategory.FORTIFIED: dict(body=5, tannin=3, acidity=3, oak=3, sweetness=4, estimated_strength=19.5),
}

CATEGORY_TAGS = {
    WineCategory.RED: ("red-wine",),
    WineCategory.WHITE: ("white-wine",),
    WineCategory.ROSE: ("rose",),
    WineCategory.SPARKLING: ("sparkling", "refreshing"),
    WineCategory.DESSERT: ("dessert", "sweet"),
    WineCategory.FORTIFIED: ("fortified", "age-worthy"),
}

# First matching region rule wins
REGION_RULES = (
    Adjustment(("bordeaux", "napa", "medoc", "pauillac"),
               steps={"body": 1, "tannin": 1, "oak": 1}, tags=("structured", "age-worthy")),
    Adjustment(("burgundy", "bourgogne", "willamette", "cote de nuits"),
               steps={"body": -1, "acidity": 1, "oak": 1}, tags=("elegant", "terroir-driven")),
    Adjustment(("rioja", "barolo", "barbaresco", "ribera"),
               steps={"tannin": 1, "oak": 1}, tags=("traditional", "complex")),
    Adjustment(("rhone", "barossa", "priorat", "mendoza"),
               steps={"body": 1, "oak": -1}, tags=("bold", "fruit-forward")),
    Adjustment(("beaujolais", "loire", "mosel"),
               steps={"body": -1, "tannin": -1, "acidity": 1}, tags=("light", "fresh")),
)

# First matching variety rule wins
VARIETY_RULES = (
    Adjustment(("cabernet", "syrah", "shiraz", "nebbiolo", "tannat"),
               steps={"body": 1, "tannin": 1}, sets={"estimated_strength": 14.0},
               tags=("full-bodied", "powerful")),
    Adjustment(("pinot noir", "gamay"),
               steps={"body": -1, "tannin": -1, "acidity": 1}, tags=("elegant", "silky")),
    Adjustment(("merlot",),
               sets={"body": 3, "tannin": 3, "oak": 3}, tags=("smooth", "approachable")),
    Adjustment(("chardonnay",),
               sets={"body": 3, "oak": 3}, tags=("versatile",)),
    Adjustment(("sauvignon blanc", "riesling", "albarino"),
               sets={"body": 2, "acidity": 5, "oak": 1}, tags=("crisp", "refreshing")),
    Adjustment(("tempranillo", "sangiovese"),
               steps={"tannin": 1, "acidity": 1}, tags=("savory",)),
)

STYLE_RULES = (
    Adjustment(("gran reserva", "reserva", "reserve", "riserva"),
               steps={"oak": 1, "body": 1}, tags=("premium", "age-worthy")),
)

ORDINALS = ("body", "tannin", "acidity", "oak", "sweetness")
MAX_TAGS = 8


def _match(rules: Iterable[Adjustment], text: str) -> Optional[Adjustment]:
    for rule in rules:
        if any(keyword in text for keyword in rule.keywords):
            return rule
    return None


def _apply(values: Dict[str, float], rule: Adjustment) -> None:
    for name, value in rule.sets.items():
        values[name] = value
    for name, step in rule.steps.items():
        values[name] = values[name] + step
    for name in ORDINALS:
        values[name] = int(clamp(values[name], AlgorithmConstants.ORDINAL_MIN, AlgorithmConstants.ORDINAL_MAX))


def estimate(
    category: Union[WineCategory, str, None],
    sub_category: Optional[str] = None,
    ingredients: Union[str, Iterable[str], None] = None,
    computed_at: Optional[datetime] = None
) -> Profile:
    """
    Estimate a profile from category, region/style and variety list.

    Args:
        category: WineCategory or free text (defaults to red)
        sub_category: Region or regional style, free text
        ingredients: Variety list, as a list or comma separated string
        computed_at: Timestamp for updated_at (defaults to now)

    Returns:
        Profile with source HEURISTIC and confidence LOW, or MEDIUM when
        both a region rule and a variety rule matched
    """
    wine_category = WineCategory.parse(category)
    region = normalize_text(sub_category)
    varieties = " ".join(split_ingredients(ingredients))

    values: Dict[str, float] = dict(CATEGORY_DEFAULTS[wine_category])
    tags: List[str] = list(CATEGORY_TAGS[wine_category])

    region_rule = _match(REGION_RULES, region)
    variety_rule = _match(VARIETY_RULES, varieties)
    style_rule = _match(STYLE_RULES, region)

    for rule in (region_rule, variety_rule, style_rule):
        if rule is not None:
            _apply(values, rule)
            tags.extend(rule.tags)

    # Ensure at least 3 tags
    if len(tags) < 3:
        if values["body"] >= 4:
            tags.append("full-bodied")
        if values["tannin"] >= 4:
            tags.append("structured")
        if values["acidity"] >= 4:
            tags.append("fresh")

    confidence = Confidence.MEDIUM if (region_rule and variety_rule) else Confidence.LOW

    profile_kwargs = dict(
        body=values["body"],
        tannin=values["tannin"],
        acidity=values["acidity"],
        oak=values["oak"],
        sweetness=values["sweetness"],
        estimated_strength=values["estimated_strength"],
        confidence=confidence,
        source=ProfileSource.HEURISTIC,
        style_tags=tuple(dict.fromkeys(tags))[:MAX_TAGS],
    )
    if computed_at is not None:
        profile_kwargs["updated_at"] = computed_at

    profile = Profile(**profile_kwargs)
    logger.debug(
        f"Heuristic profile for {wine_category.value}/{region or '-'}: "
        f"power={profile.power}, confidence={confidence.value}"
    )
    return profile


def estimate_for_item(item: Item, computed_at: Optional[datetime] = None) -> Profile:
    """Heuristic profile for an Item."""
    return estimate(item.category, item.sub_category, item.varieties, computed_at=computed_at)
