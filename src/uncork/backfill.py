"""
Profile backfill job.

Walks a batch of items through a caller-supplied estimator (typically an
LLM-backed attribute estimator) and falls back to the heuristic estimator
whenever an estimate cannot be had. The engine never calls this itself;
it only consumes the profiles it produces.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from uncork.constants import AlgorithmConstants
from uncork.error_handling import EstimationUnavailable
from uncork.heuristics import estimate_for_item
from uncork.profile import profile_from_estimate
from uncork.schema import Item, Profile

logger = logging.getLogger(__name__)

Estimator = Callable[[Item], Any]


class JobStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass
class BackfillJob:
    """
    One backfill run with progress counters.

    Counters:
        total: Items in the batch
        processed: Items handled so far
        estimated: Items that got a valid external estimate
        fallback: Items that ended up with the heuristic estimate
        failed: Items whose estimator stayed unavailable after all retries
    """
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.PENDING
    total: int = 0
    processed: int = 0
    estimated: int = 0
    fallback: int = 0
    failed: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @retry(
        stop=stop_after_attempt(AlgorithmConstants.MAX_RETRIES),
        wait=wait_exponential(
            multiplier=AlgorithmConstants.RETRY_MULTIPLIER,
            min=AlgorithmConstants.RETRY_MIN_WAIT_SECONDS,
            max=AlgorithmConstants.RETRY_MAX_WAIT_SECONDS
        ),
        retry=retry_if_exception_type(EstimationUnavailable),
        reraise=True
    )
    def _estimate_with_retry(self, estimator: Estimator, item: Item) -> Any:
        """Call the estimator, retrying while it reports itself unavailable."""
        logger.debug(f"Requesting estimate for {item.id}")
        return estimator(item)

    def _profile_for(self, estimator: Estimator, item: Item, computed_at: datetime) -> Profile:
        heuristic = estimate_for_item(item, computed_at=computed_at)
        try:
            payload = self._estimate_with_retry(estimator, item)
        except EstimationUnavailable as e:
            logger.warning(f"Estimator unavailable for {item.id} after retries, using heuristic: {e}")
            self.failed += 1
            self.fallback += 1
            return heuristic

        profile = profile_from_estimate(payload, fallback=None, computed_at=computed_at)
        if profile is None:
            self.fallback += 1
            return heuristic

        self.estimated += 1
        return profile

    def run(
        self,
        items: Sequence[Item],
        estimator: Estimator,
        now: Optional[datetime] = None
    ) -> Dict[str, Profile]:
        """
        Backfill profiles for every item.

        Args:
            items: Items to profile
            estimator: Callable returning a profile-shaped dict for an item;
                       raises EstimationUnavailable on transient failure
            now: Timestamp stamped on every produced profile

        Returns:
            Profiles keyed by item id
        """
        computed_at = now or datetime.now(timezone.utc)
        self.status = JobStatus.RUNNING
        self.started_at = computed_at
        self.total = len(items)
        logger.info(f"Backfill {self.id} started for {self.total} item(s)")

        profiles: Dict[str, Profile] = {}
        try:
            for item in items:
                profiles[item.id] = self._profile_for(estimator, item, computed_at)
                self.processed += 1
        except Exception as e:
            self.status = JobStatus.FAILED
            self.error = f"{type(e).__name__}: {e}"
            logger.error(f"Backfill {self.id} failed after {self.processed} item(s): {self.error}")
            raise

        self.status = JobStatus.COMPLETED
        self.completed_at = datetime.now(timezone.utc)
        logger.info(
            f"Backfill {self.id} completed: {self.estimated} estimated, "
            f"{self.fallback} fallback, {self.failed} failed"
        )
        return profiles
