"""
Tests for the family consistency validator.
"""

from datetime import date

import pandas as pd
import pytest

from uncork.consistency import family_key, members_from_results, validate_family_consistency
from uncork.constants import ReadinessStatus
from uncork.readiness import classify_item
from uncork.schema import FamilyMember, Item, Profile

READY = ReadinessStatus.READY
HOLD = ReadinessStatus.HOLD


def _member(item_id, age, status, family="red::bordeaux::merlot"):
    return FamilyMember(item_id=item_id, family=family, age_years=age, status=status)


class TestFamilyKey:
    """Test family identity."""

    def test_normalized_key(self):
        """Region is normalized and varieties sorted."""
        item = Item(id="a", category="Red", sub_category="  Bordeaux ", varieties="Merlot, Cabernet Franc")
        assert family_key(item) == "red::bordeaux::cabernet franc+merlot"

    def test_missing_parts(self):
        """Missing region and varieties use a placeholder."""
        assert family_key(Item(id="a", category="white")) == "white::-::-"


class TestValidateFamilyConsistency:
    """Test inversion detection."""

    def test_consistent_family(self):
        """HOLDs younger than every READY are fine."""
        report = validate_family_consistency([
            _member("a", 1, HOLD),
            _member("b", 4, READY),
            _member("c", 9, READY),
        ])
        assert report.valid
        assert report.issues == []
        assert report.families_checked == 1
        assert report.members_checked == 3

    def test_inversion_reported(self):
        """An older HOLD behind a younger READY is flagged."""
        report = validate_family_consistency([
            _member("young", 3, READY),
            _member("old", 7, HOLD),
        ])
        assert not report.valid
        assert len(report.issues) == 1
        issue = report.issues[0]
        assert issue.older_item_id == "old"
        assert issue.younger_item_id == "young"
        assert issue.older_age == 7
        assert "HOLD" in issue.issue
        assert issue.suggestion

    def test_nearest_younger_ready_cited(self):
        """Each HOLD is reported once, against the nearest younger READY."""
        report = validate_family_consistency([
            _member("r1", 2, READY),
            _member("r2", 4, READY),
            _member("h1", 6, HOLD),
            _member("h2", 8, HOLD),
        ])
        assert [(i.older_item_id, i.younger_item_id) for i in report.issues] == [("h1", "r2"), ("h2", "r2")]

    def test_same_age_is_not_inversion(self):
        """Equal ages are not older/younger."""
        report = validate_family_consistency([
            _member("a", 5, READY),
            _member("b", 5, HOLD),
        ])
        assert report.valid

    def test_families_isolated(self):
        """Different families are never compared."""
        report = validate_family_consistency([
            _member("a", 2, READY, family="white::-::-"),
            _member("b", 9, HOLD, family="red::-::-"),
        ])
        assert report.valid
        assert report.families_checked == 2

    def test_missing_age_skipped(self):
        """Members without an age are skipped, not failed."""
        report = validate_family_consistency([
            _member("a", None, HOLD),
            _member("b", 4, READY),
        ])
        assert report.valid
        assert report.skipped == 1

    def test_empty_input(self):
        """No members is trivially valid."""
        report = validate_family_consistency([])
        assert report.valid
        assert report.families_checked == 0

    def test_dataframe_input(self):
        """A DataFrame with the member columns is accepted."""
        df = pd.DataFrame({
            "item_id": ["a", "b"],
            "family": ["f", "f"],
            "age_years": [2, 10],
            "status": ["READY", "HOLD"],
        })
        report = validate_family_consistency(df)
        assert not report.valid

    def test_dataframe_missing_columns(self):
        """DataFrames without the required columns are rejected."""
        with pytest.raises(ValueError):
            validate_family_consistency(pd.DataFrame({"item_id": ["a"]}))


class TestMembersFromResults:
    """Test building members from classifications."""

    def test_classified_family_is_consistent(self):
        """One profile across a family never produces inversions."""
        profile = Profile(body=4, tannin=4, acidity=3, oak=4, estimated_strength=14.0)
        items = [
            Item(id=str(vintage), category="red", sub_category="Pauillac", varieties="Cabernet", vintage=vintage)
            for vintage in range(1995, 2024, 2)
        ]
        results = [classify_item(item, profile, date(2024, 6, 1)) for item in items]
        report = validate_family_consistency(members_from_results(items, results))
        assert report.valid
        assert report.members_checked == len(items)

    def test_length_mismatch(self):
        """Items and results must line up."""
        with pytest.raises(ValueError):
            members_from_results([Item(id="a")], [])
