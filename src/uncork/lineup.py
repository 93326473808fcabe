"""
Lineup Builder

Selects and orders bottles for one session:
1. Eligibility filter (READY only, unless that leaves nothing)
2. Composite score = readiness bonus + quality bonus + pairing score
3. Top-N selection with a stable, documented tie-break
4. Light-to-bold sequencing by power, with one smoothing pass that breaks
   up adjacent high-tannin bottles
5. Positional labels and a pairing explanation per slot

Deterministic: no randomness, ties resolved by insertion order.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from uncork import pairing
from uncork.constants import AlgorithmConstants, ReadinessStatus, SlotLabels
from uncork.consistency import family_key
from uncork.profile import resolve_profile
from uncork.readiness import classify_item, item_age
from uncork.schema import (
    FamilyMember,
    FoodContext,
    Item,
    LineupCandidate,
    LineupSlot,
    PairingScore,
    Profile,
    ReadinessResult,
)
from uncork.utils import logger


@dataclass(frozen=True)
class _Entry:
    """Working row: a candidate with its scores and original index."""
    index: int
    item: Item
    profile: Profile
    status: ReadinessStatus
    composite: float
    pairing: Optional[PairingScore]
    readiness: Optional[ReadinessResult] = None

    @property
    def rating(self) -> float:
        return self.item.rating if self.item.rating is not None else 0.0

    @property
    def high_tannin(self) -> bool:
        return self.profile.tannin >= AlgorithmConstants.HIGH_TANNIN


# =======================
# SCORING & SELECTION
# =======================

def eligible(candidate_pool: Sequence[LineupCandidate]) -> List[int]:
    """Indices of READY candidates; every index when none is READY."""
    ready = [i for i, c in enumerate(candidate_pool) if c.status == ReadinessStatus.READY]
    if ready:
        return ready
    if candidate_pool:
        logger.info("No READY candidates, falling back to HOLD bottles")
    return list(range(len(candidate_pool)))


def _score_entries(
    candidate_pool: Sequence[LineupCandidate],
    indices: Sequence[int],
    food_context: Optional[FoodContext]
) -> List[_Entry]:
    if not indices:
        return []

    candidates = [candidate_pool[i] for i in indices]
    pairings = [pairing.score(c.profile, food_context) if food_context else None for c in candidates]

    ready = np.array([c.status == ReadinessStatus.READY for c in candidates], dtype=float)
    ratings = np.array([
        c.item.rating if c.item.rating is not None else 0.0 for c in candidates
    ], dtype=float)
    quality = np.where(ratings >= AlgorithmConstants.QUALITY_THRESHOLD, AlgorithmConstants.QUALITY_BONUS, 0.0)
    pairing_scores = np.array([p.score if p is not None else 0.0 for p in pairings], dtype=float)

    composite = ready * AlgorithmConstants.READY_BONUS + quality + pairing_scores

    return [
        _Entry(
            index=index,
            item=candidate.item,
            profile=candidate.profile,
            status=candidate.status,
            composite=round(float(score), 4),
            pairing=pairing_score,
            readiness=candidate.readiness,
        )
        for index, candidate, score, pairing_score in zip(indices, candidates, composite, pairings)
    ]


def _selection_key(entry: _Entry):
    # Higher composite, then higher rating, then lower power, then insertion order
    return (-entry.composite, -entry.rating, entry.profile.power, entry.index)


# =======================
# SEQUENCING
# =======================

def _conflict(order: Sequence[_Entry], j: int) -> int:
    return int(order[j].high_tannin and order[j + 1].high_tannin)


def _local_conflicts(order: Sequence[_Entry], a: int, b: int) -> int:
    """Adjacent high-tannin pairs touching positions a..b."""
    start = max(0, a - 1)
    stop = min(len(order) - 1, b + 1)
    return sum(_conflict(order, j) for j in range(start, stop))


def smooth(order: Sequence[_Entry]) -> List[_Entry]:
    """
    One left-to-right pass over adjacent high-tannin pairs.

    For each conflicting pair, try swapping the second bottle with its right
    neighbour, then the first with its left neighbour; keep the first swap
    that lowers the local conflict count. No backtracking: a pair already
    passed is not revisited, so a conflict can remain behind a swap even when
    a conflict-free order exists (H,H,H,L,L becomes H,H,L,H,L).
    """
    order = list(order)
    for i in range(len(order) - 1):
        if not _conflict(order, i):
            continue
        for a, b in ((i + 1, i + 2), (i - 1, i)):
            if a < 0 or b >= len(order):
                continue
            before = _local_conflicts(order, a, b)
            order[a], order[b] = order[b], order[a]
            if _local_conflicts(order, a, b) < before:
                logger.debug(f"Swapped lineup positions {a + 1} and {b + 1} to split high-tannin wines")
                break
            order[a], order[b] = order[b], order[a]
    return order


def sequence(selected: Sequence[_Entry]) -> List[_Entry]:
    """Ascending power (ties keep selection order), then smoothing."""
    ranked = sorted(enumerate(selected), key=lambda pair: (pair[1].profile.power, pair[0]))
    return smooth([entry for _, entry in ranked])


def slot_labels(count: int) -> List[str]:
    """Opening / Mid... / Main / Closing."""
    if count <= 0:
        return []
    if count == 1:
        return [SlotLabels.SOLO]
    if count == 2:
        return [SlotLabels.OPENING, SlotLabels.CLOSING]
    middles = [SlotLabels.MIDDLE] * (count - 3) + [SlotLabels.MAIN]
    return [SlotLabels.OPENING] + middles + [SlotLabels.CLOSING]


def _readiness_explanation(entry: _Entry) -> str:
    if entry.readiness is None:
        return f"No meal given; power {entry.profile.power}/10 in a light-to-bold order"
    readiness = entry.readiness
    return (
        f"No meal given; {readiness.status.value} with {readiness.confidence.value.lower()} confidence: "
        f"{readiness.reasons[0]}"
    )


def _to_slots(order: Sequence[_Entry], food_context: Optional[FoodContext]) -> List[LineupSlot]:
    labels = slot_labels(len(order))
    slots = []
    for position, (entry, label) in enumerate(zip(order, labels), start=1):
        if food_context is not None:
            scored = entry.pairing or pairing.score(entry.profile, food_context)
            explanation = scored.explanation
            pairing_score = scored.score
        else:
            explanation = _readiness_explanation(entry)
            pairing_score = None

        slots.append(LineupSlot(
            item=entry.item,
            profile=entry.profile,
            position=position,
            label=label,
            pairing_explanation=explanation,
            pairing_score=pairing_score,
            status=entry.status,
            readiness=entry.readiness,
        ))
    return slots


# =======================
# PUBLIC API
# =======================

def build(
    candidate_pool: Sequence[LineupCandidate],
    desired_count: int,
    food_context: Optional[FoodContext] = None
) -> List[LineupSlot]:
    """
    Build an ordered, explained lineup.

    Args:
        candidate_pool: Candidates with profile and readiness
        desired_count: Number of bottles wanted
        food_context: Optional meal to pair against

    Returns:
        min(desired_count, eligible pool size) slots; [] for an empty pool
    """
    pool = list(candidate_pool)
    if desired_count <= 0 or not pool:
        return []

    entries = _score_entries(pool, eligible(pool), food_context)
    selected = sorted(entries, key=_selection_key)[:desired_count]
    slots = _to_slots(sequence(selected), food_context)

    logger.info(
        f"Built lineup of {len(slots)}/{desired_count} from {len(pool)} candidates: "
        f"{[slot.item.id for slot in slots]}"
    )
    return slots


def _entry_from_slot(slot: LineupSlot, index: int) -> _Entry:
    return _Entry(
        index=index,
        item=slot.item,
        profile=slot.profile,
        status=slot.status,
        composite=0.0,
        pairing=None,
        readiness=slot.readiness,
    )


def _slot_at(lineup: Sequence[LineupSlot], position: int) -> LineupSlot:
    for slot in lineup:
        if slot.position == position:
            return slot
    raise ValueError(f"No slot at position {position}")


def suggest_alternatives(
    lineup: Sequence[LineupSlot],
    candidate_pool: Sequence[LineupCandidate],
    position: int,
    food_context: Optional[FoodContext] = None,
    limit: int = 3
) -> List[LineupCandidate]:
    """
    Rank unused candidates that could replace the bottle at `position`.

    Same eligibility and composite score as build(), with closeness in power
    to the replaced bottle as the first tie-break.
    """
    current = _slot_at(lineup, position)
    used = {slot.item.id for slot in lineup}
    pool = [c for c in candidate_pool if c.item.id not in used]
    if not pool or limit <= 0:
        return []

    entries = _score_entries(pool, eligible(pool), food_context)
    ranked = sorted(entries, key=lambda e: (
        -e.composite,
        abs(e.profile.power - current.profile.power),
        -e.rating,
        e.index,
    ))
    return [pool[entry.index] for entry in ranked[:limit]]


def replace_slot(
    lineup: Sequence[LineupSlot],
    position: int,
    candidate: LineupCandidate,
    food_context: Optional[FoodContext] = None
) -> List[LineupSlot]:
    """Swap in a candidate at `position`, then resequence and relabel."""
    _slot_at(lineup, position)
    entries = []
    for index, slot in enumerate(sorted(lineup, key=lambda s: s.position)):
        if slot.position == position:
            entries.append(_Entry(
                index=index,
                item=candidate.item,
                profile=candidate.profile,
                status=candidate.status,
                composite=0.0,
                pairing=None,
                readiness=candidate.readiness,
            ))
        else:
            entries.append(_entry_from_slot(slot, index))
    return _to_slots(sequence(entries), food_context)


def prepare_candidates(
    items: Sequence[Item],
    profiles: Optional[Mapping[str, Profile]],
    reference_date: date,
    now: Optional[datetime] = None
) -> List[LineupCandidate]:
    """
    Resolve profiles and classify items into lineup candidates.

    Items are classified youngest first within each family, passing earlier
    siblings as `previous` so an older bottle is never held behind a younger
    READY one. Results come back in input order.
    """
    profiles = profiles or {}
    if now is None:
        now = datetime.combine(reference_date, time.min, tzinfo=timezone.utc)

    ages = [item_age(item, reference_date) for item in items]
    order = sorted(range(len(items)), key=lambda i: (ages[i] is None, ages[i] or 0, i))

    siblings: Dict[str, List[FamilyMember]] = {}
    candidates: Dict[int, LineupCandidate] = {}
    for i in order:
        item = items[i]
        family = family_key(item)
        profile = resolve_profile(item, profiles.get(item.id), now)
        readiness = classify_item(item, profile, reference_date, previous=siblings.get(family))
        siblings.setdefault(family, []).append(FamilyMember(
            item_id=item.id,
            family=family,
            age_years=readiness.age_years,
            status=readiness.status,
        ))
        candidates[i] = LineupCandidate(item=item, profile=profile, readiness=readiness)

    return [candidates[i] for i in range(len(items))]
