"""
Tests for collection insights.
"""

from datetime import date

import pytest

from uncork.insights import FRAME_COLUMNS, PROFILE_COLUMNS, bucket_counts, readiness_frame, tonight_signal
from uncork.readiness import classify_item
from uncork.schema import Item, LineupCandidate, Profile

REFERENCE_DATE = date(2024, 6, 1)
PROFILE = Profile(body=4, tannin=4, acidity=3, oak=4, estimated_strength=14.0)


@pytest.fixture
def collection():
    """Two READY bottles (one highly rated), one HOLD and one without an age."""
    items = [
        Item(id="ready-star", name="Star", rating=4.5, vintage=2014),
        Item(id="ready-plain", name="Plain", rating=3.5, vintage=2012),
        Item(id="hold", name="Young", rating=4.8, vintage=2022),
        Item(id="unknown", name="Mystery"),
    ]
    results = [classify_item(item, PROFILE, REFERENCE_DATE) for item in items]
    return items, results


class TestReadinessFrame:
    """Test the tabular collection view."""

    def test_columns_and_rows(self, collection):
        """One row per item with every column."""
        items, results = collection
        df = readiness_frame(items, results)
        assert list(df.columns) == FRAME_COLUMNS
        assert len(df) == 4
        assert df.set_index("item_id").loc["hold", "status"] == "HOLD"

    def test_length_mismatch(self, collection):
        """Items and results must line up."""
        items, results = collection
        with pytest.raises(ValueError):
            readiness_frame(items, results[:2])

    def test_profile_columns_and_power(self, collection):
        """Profiles add structural columns and a power matching the profile."""
        items, results = collection
        soft = Profile(body=2, tannin=1, acidity=3, oak=1)
        profiles = [PROFILE, PROFILE, soft, soft]
        df = readiness_frame(items, results, profiles)
        assert list(df.columns) == FRAME_COLUMNS + PROFILE_COLUMNS
        assert list(df["power"]) == [p.power for p in profiles]
        assert df.set_index("item_id").loc["hold", "tannin"] == 1

    def test_profile_length_mismatch(self, collection):
        """Profiles must line up with items."""
        items, results = collection
        with pytest.raises(ValueError):
            readiness_frame(items, results, [PROFILE])


class TestBucketCounts:
    """Test readiness buckets."""

    def test_counts(self, collection):
        """Missing ages count as READY."""
        _, results = collection
        assert bucket_counts(results) == {"HOLD": 1, "READY": 3}

    def test_empty(self):
        """Every bucket is present, even with no results."""
        assert bucket_counts([]) == {"HOLD": 0, "READY": 0}


class TestTonightSignal:
    """Test the 'worth opening tonight' count."""

    def test_ready_and_highly_rated(self, collection):
        """Only READY bottles at or above 4.2 count."""
        items, results = collection
        candidates = [
            LineupCandidate(item=item, profile=PROFILE, readiness=result)
            for item, result in zip(items, results)
        ]
        assert tonight_signal(candidates) == 1
        assert tonight_signal(candidates, threshold=3.0) == 2
