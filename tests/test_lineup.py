"""
Tests for the lineup builder.

Covers selection, light-to-bold ordering, high-tannin smoothing, labels,
swap alternatives and candidate preparation.
"""

from datetime import date, datetime, timezone

import pytest

from uncork.constants import AlgorithmConstants, Confidence, ProfileSource, ReadinessStatus
from uncork.lineup import build, prepare_candidates, replace_slot, slot_labels, suggest_alternatives
from uncork.readiness import classify_item
from uncork.schema import FoodContext, Item, LineupCandidate, Profile

REFERENCE_DATE = date(2024, 6, 1)
STEAK = FoodContext(primary="beef", fat="high")

# power 3, 7, 5, 9, 2
LIGHT = Profile(body=2, tannin=1, acidity=3, oak=1, estimated_strength=12.0)
FIRM = Profile(body=4, tannin=4, acidity=3, oak=2, estimated_strength=13.0)
MEDIUM = Profile(body=3, tannin=2, acidity=3, oak=2, estimated_strength=13.0)
BOLD = Profile(body=5, tannin=5, acidity=3, oak=4, estimated_strength=14.5)
DELICATE = Profile(body=1, tannin=1, acidity=3, oak=0, estimated_strength=11.0)


def _candidate(item_id, profile, rating=None, vintage=2016):
    item = Item(id=item_id, name=item_id, category="red", rating=rating, vintage=vintage)
    readiness = classify_item(item, profile, REFERENCE_DATE)
    return LineupCandidate(item=item, profile=profile, readiness=readiness)


def _ids(slots):
    return [slot.item.id for slot in slots]


def _tannin_conflicts(slots):
    return sum(
        a.profile.tannin >= AlgorithmConstants.HIGH_TANNIN and b.profile.tannin >= AlgorithmConstants.HIGH_TANNIN
        for a, b in zip(slots, slots[1:])
    )


def _adjacent_high_tannin(slots):
    return any(
        a.profile.tannin >= AlgorithmConstants.HIGH_TANNIN and b.profile.tannin >= AlgorithmConstants.HIGH_TANNIN
        for a, b in zip(slots, slots[1:])
    )


@pytest.fixture
def pool():
    """Five READY bottles of increasing weight."""
    return [
        _candidate("light", LIGHT, rating=4.5),
        _candidate("firm", FIRM, rating=3.0),
        _candidate("medium", MEDIUM, rating=4.5),
        _candidate("bold", BOLD),
        _candidate("delicate", DELICATE),
    ]


class TestFixtures:
    """Sanity checks on the fixture profiles."""

    def test_powers(self):
        """Profiles span the power scale."""
        assert [p.power for p in (LIGHT, FIRM, MEDIUM, BOLD, DELICATE)] == [3, 7, 5, 9, 2]

    def test_all_ready(self, pool):
        """2016 vintages are READY for every tier."""
        assert all(c.status == ReadinessStatus.READY for c in pool)


class TestBuild:
    """Test lineup construction."""

    def test_three_of_five_with_food(self, pool):
        """Exactly three slots, ascending power, no adjacent high-tannin wines."""
        slots = build(pool, 3, STEAK)
        assert len(slots) == 3
        assert _ids(slots) == ["light", "medium", "bold"]
        powers = [slot.profile.power for slot in slots]
        assert powers == sorted(powers)
        assert not _adjacent_high_tannin(slots)

    def test_positions_and_labels(self, pool):
        """Positions are 1-based and labelled Opening/Main/Closing."""
        slots = build(pool, 3, STEAK)
        assert [slot.position for slot in slots] == [1, 2, 3]
        assert [slot.label for slot in slots] == ["Opening", "Main", "Closing"]

    def test_pairing_explanations(self, pool):
        """Each slot carries a pairing explanation and score."""
        for slot in build(pool, 3, STEAK):
            assert slot.pairing_explanation
            assert 0 <= slot.pairing_score <= 100

    def test_without_food(self, pool):
        """Without food, slots are still explained but unscored."""
        slots = build(pool, 2)
        assert len(slots) == 2
        assert all(slot.pairing_score is None for slot in slots)
        assert all("No meal" in slot.pairing_explanation for slot in slots)
        assert all("READY with" in slot.pairing_explanation for slot in slots)
        assert all(slot.readiness is not None for slot in slots)

    def test_empty_pool(self):
        """An empty pool returns an empty lineup."""
        assert build([], 3) == []

    def test_non_positive_count(self, pool):
        """Zero or negative counts return an empty lineup."""
        assert build(pool, 0) == []
        assert build(pool, -2) == []

    def test_size_bound(self, pool):
        """Never more slots than requested or available."""
        for count in range(1, 8):
            assert len(build(pool, count)) == min(count, len(pool))

    def test_hold_excluded_when_ready_exists(self, pool):
        """HOLD bottles are dropped while READY ones remain."""
        young = _candidate("young", BOLD, rating=5.0, vintage=2023)
        assert young.status == ReadinessStatus.HOLD
        assert "young" not in _ids(build(pool + [young], 5, STEAK))

    def test_hold_used_when_nothing_ready(self):
        """An all-HOLD pool still yields a lineup."""
        young = [_candidate("a", BOLD, vintage=2023), _candidate("b", FIRM, vintage=2023)]
        assert all(c.status == ReadinessStatus.HOLD for c in young)
        slots = build(young, 2)
        assert len(slots) == 2
        assert all(slot.status == ReadinessStatus.HOLD for slot in slots)

    def test_quality_bonus_breaks_pairing_ties(self):
        """Highly rated bottles win over identical unrated ones."""
        pool = [_candidate("plain", MEDIUM), _candidate("star", MEDIUM, rating=4.6)]
        assert _ids(build(pool, 1)) == ["star"]

    def test_ties_keep_insertion_order(self):
        """Fully tied candidates are taken in pool order."""
        pool = [_candidate(str(i), MEDIUM) for i in range(4)]
        assert _ids(build(pool, 2)) == ["0", "1"]

    def test_deterministic(self, pool):
        """Same pool, same lineup."""
        assert build(pool, 3, STEAK) == build(pool, 3, STEAK)


class TestSmoothing:
    """High-tannin wines are split up when possible."""

    def test_split_adjacent_high_tannin(self):
        """Ascending order would pair firm and bold; smoothing breaks it."""
        pool = [_candidate("medium", MEDIUM), _candidate("firm", FIRM), _candidate("bold", BOLD)]
        slots = build(pool, 3)
        assert sorted(_ids(slots)) == ["bold", "firm", "medium"]
        assert not _adjacent_high_tannin(slots)

    def test_no_alternative_keeps_ascending(self):
        """When every wine is tannic, order stays light-to-bold."""
        pool = [_candidate("bold", BOLD), _candidate("firm", FIRM)]
        assert _ids(build(pool, 2)) == ["firm", "bold"]

    def test_single_pass_reduces_conflicts(self):
        """One pass lowers conflicts but does not revisit pairs behind it."""
        # power 3 with tannin 4, power 7 with tannin 0
        tight = Profile(body=1, tannin=4, acidity=3, oak=0, estimated_strength=8.0)
        soft = Profile(body=5, tannin=0, acidity=3, oak=5, estimated_strength=16.0)
        assert (tight.power, soft.power) == (3, 7)
        pool = [_candidate(f"t{i}", tight) for i in range(1, 4)] + [_candidate(f"s{i}", soft) for i in range(1, 3)]
        slots = build(pool, 5)
        assert _ids(slots) == ["t1", "t2", "s1", "t3", "s2"]
        assert _tannin_conflicts(slots) == 1


class TestSlotLabels:
    """Test positional labels."""

    def test_labels(self):
        """Labels depend on lineup length."""
        assert slot_labels(0) == []
        assert slot_labels(1) == ["Main"]
        assert slot_labels(2) == ["Opening", "Closing"]
        assert slot_labels(5) == ["Opening", "Mid", "Mid", "Main", "Closing"]


class TestSwaps:
    """Test alternatives and slot replacement."""

    def test_suggest_alternatives_excludes_used(self, pool):
        """Alternatives come from bottles not already in the lineup."""
        slots = build(pool, 3, STEAK)
        alternatives = suggest_alternatives(slots, pool, position=2, food_context=STEAK)
        ids = [c.item.id for c in alternatives]
        assert set(ids) == {"firm", "delicate"}
        assert ids[0] == "firm"

    def test_suggest_alternatives_limit(self, pool):
        """At most `limit` alternatives."""
        slots = build(pool, 2, STEAK)
        assert len(suggest_alternatives(slots, pool, position=1, limit=1)) == 1

    def test_unknown_position(self, pool):
        """Asking for a missing position is an error."""
        slots = build(pool, 2)
        with pytest.raises(ValueError):
            suggest_alternatives(slots, pool, position=9)

    def test_replace_slot_resequences(self, pool):
        """Replacing a bottle keeps the lineup ordered and relabelled."""
        slots = build(pool, 3, STEAK)
        delicate = pool[4]
        replaced = replace_slot(slots, 3, delicate, STEAK)
        assert _ids(replaced) == ["delicate", "light", "medium"]
        assert [slot.position for slot in replaced] == [1, 2, 3]
        assert replaced[0].label == "Opening"


class TestPrepareCandidates:
    """Test profile resolution and classification for a collection."""

    def test_heuristic_profiles_when_uncached(self):
        """Items without cached profiles get heuristic ones."""
        items = [Item(id="a", category="white", vintage=2022), Item(id="b", category="red", vintage=2010)]
        candidates = prepare_candidates(items, None, REFERENCE_DATE)
        assert [c.item.id for c in candidates] == ["a", "b"]
        assert all(c.profile.source == ProfileSource.HEURISTIC for c in candidates)
        assert all(c.status == ReadinessStatus.READY for c in candidates)

    def test_family_lifting(self):
        """An older sibling is not held behind a younger READY one."""
        fresh = datetime(2024, 5, 20, tzinfo=timezone.utc)
        soft = DELICATE.evolve(source=ProfileSource.ESTIMATED, confidence=Confidence.HIGH, updated_at=fresh)
        firm = FIRM.evolve(source=ProfileSource.ESTIMATED, confidence=Confidence.HIGH, updated_at=fresh)
        items = [
            Item(id="old", category="red", sub_category="Rioja", vintage=2021),
            Item(id="young", category="red", sub_category="Rioja", vintage=2022),
        ]
        candidates = prepare_candidates(items, {"old": firm, "young": soft}, REFERENCE_DATE)
        old, young = candidates
        assert young.status == ReadinessStatus.READY
        assert old.status == ReadinessStatus.READY
        assert old.readiness.confidence == Confidence.LOW
