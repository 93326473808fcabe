"""
Tests for the profile backfill job.

Retries use the real tenacity decorator with sleeping disabled.
"""

from datetime import datetime, timezone

import pytest

from uncork.backfill import BackfillJob, JobStatus
from uncork.constants import ProfileSource
from uncork.error_handling import EstimationUnavailable
from uncork.schema import Item

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)
ITEMS = [Item(id="a", category="red"), Item(id="b", category="white")]


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Skip exponential backoff waits."""
    monkeypatch.setattr(BackfillJob._estimate_with_retry.retry, "sleep", lambda seconds: None)


class FlakyEstimator:
    """Estimator that is unavailable for the first `failures` calls per item."""

    def __init__(self, failures=0, payload=None):
        self.failures = failures
        self.payload = payload or {"body": 4, "tannin": 4, "acidity": 3, "oak": 3, "confidence": "HIGH"}
        self.calls = {}

    def __call__(self, item):
        self.calls[item.id] = self.calls.get(item.id, 0) + 1
        if self.calls[item.id] <= self.failures:
            raise EstimationUnavailable(f"estimator busy for {item.id}")
        return self.payload


class TestBackfillJob:
    """Test job lifecycle and fallbacks."""

    def test_new_job_pending(self):
        """Jobs start PENDING with an id."""
        job = BackfillJob()
        assert job.status == JobStatus.PENDING
        assert job.id

    def test_successful_estimates(self):
        """Valid payloads become ESTIMATED profiles."""
        job = BackfillJob()
        profiles = job.run(ITEMS, FlakyEstimator(), now=NOW)
        assert set(profiles) == {"a", "b"}
        assert all(p.source == ProfileSource.ESTIMATED for p in profiles.values())
        assert all(p.updated_at == NOW for p in profiles.values())
        assert job.status == JobStatus.COMPLETED
        assert (job.total, job.processed, job.estimated, job.fallback, job.failed) == (2, 2, 2, 0, 0)

    def test_transient_failure_retried(self):
        """A temporarily unavailable estimator is retried."""
        estimator = FlakyEstimator(failures=2)
        job = BackfillJob()
        profiles = job.run(ITEMS[:1], estimator, now=NOW)
        assert estimator.calls["a"] == 3
        assert profiles["a"].source == ProfileSource.ESTIMATED

    def test_exhausted_retries_fall_back(self):
        """After three attempts the heuristic estimate is used."""
        estimator = FlakyEstimator(failures=10)
        job = BackfillJob()
        profiles = job.run(ITEMS, estimator, now=NOW)
        assert estimator.calls == {"a": 3, "b": 3}
        assert all(p.source == ProfileSource.HEURISTIC for p in profiles.values())
        assert (job.estimated, job.fallback, job.failed) == (0, 2, 2)
        assert job.status == JobStatus.COMPLETED

    def test_invalid_payload_falls_back(self):
        """Malformed payloads are not retried; the heuristic is used."""
        estimator = FlakyEstimator(payload={"body": 3})
        job = BackfillJob()
        profiles = job.run(ITEMS[:1], estimator, now=NOW)
        assert estimator.calls["a"] == 1
        assert profiles["a"].source == ProfileSource.HEURISTIC
        assert (job.fallback, job.failed) == (1, 0)

    def test_infinite_payload_is_clamped(self):
        """Infinite ordinals are clamped; the job still completes."""
        payload = {"body": float("inf"), "tannin": 3, "acidity": 3, "oak": float("-inf")}
        job = BackfillJob()
        profiles = job.run(ITEMS[:1], FlakyEstimator(payload=payload), now=NOW)
        assert profiles["a"].source == ProfileSource.ESTIMATED
        assert (profiles["a"].body, profiles["a"].oak) == (5, 0)
        assert job.status == JobStatus.COMPLETED

    def test_unexpected_error_fails_job(self):
        """Non-retryable errors mark the job FAILED and propagate."""
        def broken(item):
            raise RuntimeError("boom")

        job = BackfillJob()
        with pytest.raises(RuntimeError):
            job.run(ITEMS, broken, now=NOW)
        assert job.status == JobStatus.FAILED
        assert "boom" in job.error
        assert job.processed == 0
