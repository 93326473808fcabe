"""
Pairing Scorer

Scores how well a wine profile fits a meal with a small, auditable rule
table. Every rule links one profile dimension to one food attribute, so
the explanation can always cite the deciding factors.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from uncork.config import get_settings
from uncork.constants import AlgorithmConstants, Level, Protein, Sauce
from uncork.schema import FoodContext, PairingContribution, PairingScore, Profile
from uncork.utils import clamp, is_missing, logger

_INTENSITY = {Level.HIGH: 1.0, Level.MEDIUM: 0.5, Level.LOW: 0.0}


@dataclass(frozen=True)
class PairingRule:
    """
    One (profile dimension, food attribute) rule.

    `weight` returns 0 when the rule does not apply to the meal; `delta`
    is the unweighted score change for the profile. Notes are formatted
    with the profile value and the food attribute.
    """
    dimension: str
    food_attribute: str
    weight: Callable[[FoodContext], float]
    delta: Callable[[Profile], float]
    value: Callable[[Profile], float]
    positive_note: str
    negative_note: str


def _strength(profile: Profile) -> float:
    if is_missing(profile.estimated_strength):
        return get_settings().default_strength
    return profile.estimated_strength


def _is_light_protein(food: FoodContext) -> float:
    return 1.0 if food.primary in (Protein.FISH, Protein.VEGETARIAN) else 0.0


PAIRING_RULES = (
    PairingRule(
        "tannin", "fat",
        weight=lambda food: _INTENSITY[food.fat],
        delta=lambda p: 3 * p.tannin,
        value=lambda p: p.tannin,
        positive_note="Tannin ({value:g}/5) cuts through the fat",
        negative_note="Tannin ({value:g}/5) against the fat",
    ),
    PairingRule(
        "body", "fat",
        weight=lambda food: _INTENSITY[food.fat],
        delta=lambda p: 2 * p.body,
        value=lambda p: p.body,
        positive_note="Body ({value:g}/5) stands up to a rich dish",
        negative_note="Body ({value:g}/5) against a rich dish",
    ),
    PairingRule(
        "acidity", "sauce",
        weight=lambda food: 1.0 if food.sauce == Sauce.TOMATO else 0.0,
        delta=lambda p: 6 * (p.acidity - 2.5),
        value=lambda p: p.acidity,
        positive_note="Acidity ({value:g}/5) balances the tomato sauce",
        negative_note="Low acidity ({value:g}/5) tastes flat against tomato",
    ),
    PairingRule(
        "tannin", "spice",
        weight=lambda food: _INTENSITY[food.spice],
        delta=lambda p: -3 * p.tannin,
        value=lambda p: p.tannin,
        positive_note="Tannin ({value:g}/5) with the spice",
        negative_note="Tannin ({value:g}/5) turns bitter with chili heat",
    ),
    PairingRule(
        "estimated_strength", "spice",
        weight=lambda food: _INTENSITY[food.spice],
        delta=lambda p: -4 * max(0.0, _strength(p) - AlgorithmConstants.SPICE_STRENGTH_PIVOT),
        value=_strength,
        positive_note="Moderate alcohol (~{value:g}%) with the spice",
        negative_note="Alcohol (~{value:g}%) amplifies the burn",
    ),
    PairingRule(
        "sweetness", "spice",
        weight=lambda food: _INTENSITY[food.spice],
        delta=lambda p: 4 * p.sweetness,
        value=lambda p: p.sweetness,
        positive_note="A touch of sweetness ({value:g}/5) tames the heat",
        negative_note="Sweetness ({value:g}/5) with the heat",
    ),
    PairingRule(
        "oak", "smoke",
        weight=lambda food: _INTENSITY[food.smoke],
        delta=lambda p: 3 * p.oak,
        value=lambda p: p.oak,
        positive_note="Oak ({value:g}/5) echoes the smoky flavors",
        negative_note="Oak ({value:g}/5) with the smoke",
    ),
    PairingRule(
        "oak", "sauce",
        weight=lambda food: 1.0 if food.sauce == Sauce.SMOKY else 0.0,
        delta=lambda p: 2 * p.oak,
        value=lambda p: p.oak,
        positive_note="Oak ({value:g}/5) matches the smoky/BBQ sauce",
        negative_note="Oak ({value:g}/5) with the BBQ sauce",
    ),
    PairingRule(
        "body", "sauce",
        weight=lambda food: 1.0 if food.sauce == Sauce.CREAMY else 0.0,
        delta=lambda p: 2 * (p.body - 2),
        value=lambda p: p.body,
        positive_note="Body ({value:g}/5) matches the creamy sauce",
        negative_note="Light body ({value:g}/5) is lost in the cream",
    ),
    PairingRule(
        "acidity", "sauce",
        weight=lambda food: 1.0 if food.sauce == Sauce.CREAMY else 0.0,
        delta=lambda p: 2 * (p.acidity - 2),
        value=lambda p: p.acidity,
        positive_note="Acidity ({value:g}/5) lifts the creamy sauce",
        negative_note="Low acidity ({value:g}/5) feels heavy with cream",
    ),
    PairingRule(
        "tannin", "primary",
        weight=_is_light_protein,
        delta=lambda p: -5 * max(0, p.tannin - 3),
        value=lambda p: p.tannin,
        positive_note="Tannin ({value:g}/5) suits the delicate dish",
        negative_note="High tannin ({value:g}/5) overpowers a delicate dish",
    ),
    PairingRule(
        "body", "primary",
        weight=_is_light_protein,
        delta=lambda p: -4 * max(0, p.body - 3),
        value=lambda p: p.body,
        positive_note="Body ({value:g}/5) suits the delicate dish",
        negative_note="Heavy body ({value:g}/5) smothers a delicate dish",
    ),
    PairingRule(
        "acidity", "primary",
        weight=lambda food: 1.0 if food.primary == Protein.FISH else 0.0,
        delta=lambda p: 2 * (p.acidity - 2),
        value=lambda p: p.acidity,
        positive_note="Acidity ({value:g}/5) works like a squeeze of lemon on fish",
        negative_note="Low acidity ({value:g}/5) dulls the fish",
    ),
    PairingRule(
        "body", "primary",
        weight=lambda food: 1.0 if food.primary in (Protein.BEEF, Protein.LAMB) else 0.0,
        delta=lambda p: 2 * (p.body - 2),
        value=lambda p: p.body,
        positive_note="Body ({value:g}/5) matches red meat",
        negative_note="Light body ({value:g}/5) is outmuscled by red meat",
    ),
)

MAX_CITED = 2


def contributions(profile: Profile, food: FoodContext) -> List[PairingContribution]:
    """Non-zero rule deltas for a profile and meal, in rule-table order."""
    found = []
    for rule in PAIRING_RULES:
        weight = rule.weight(food)
        if weight == 0:
            continue
        delta = weight * rule.delta(profile)
        if delta == 0:
            continue
        template = rule.positive_note if delta > 0 else rule.negative_note
        found.append(PairingContribution(
            dimension=rule.dimension,
            food_attribute=f"{rule.food_attribute}={getattr(food, rule.food_attribute).value}",
            delta=round(delta, 2),
            note=template.format(value=rule.value(profile)),
        ))
    return found


def explain(found: List[PairingContribution], food: FoodContext) -> str:
    """Cite the 1-2 largest-magnitude contributions."""
    if not found:
        return f"No strong pairing signals with {food.describe()}; a neutral match"

    ranked = sorted(enumerate(found), key=lambda pair: (-abs(pair[1].delta), pair[0]))
    cited = [contribution for _, contribution in ranked[:MAX_CITED]]
    parts = [f"{c.note} ({c.delta:+.0f})" for c in cited]
    return "; ".join(parts)


def score(profile: Profile, food: Optional[FoodContext]) -> PairingScore:
    """
    Score a profile against a meal.

    Baseline 50, plus every applicable rule delta, clamped to 0-100.
    Without a food context the score is the neutral baseline.

    Args:
        profile: Wine profile
        food: Meal description, or None

    Returns:
        PairingScore with score, explanation and the contributing deltas
    """
    if food is None:
        return PairingScore(
            score=AlgorithmConstants.PAIRING_BASELINE,
            explanation="No meal given; pairing not scored",
        )

    found = contributions(profile, food)
    total = AlgorithmConstants.PAIRING_BASELINE + sum(c.delta for c in found)
    final = round(clamp(total, AlgorithmConstants.PAIRING_MIN, AlgorithmConstants.PAIRING_MAX), 1)

    logger.debug(f"Pairing power={profile.power} with {food.describe()}: {final} ({len(found)} rules)")

    return PairingScore(
        score=final,
        explanation=explain(found, food),
        contributions=tuple(found),
    )
