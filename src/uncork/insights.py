"""
Collection insights.

Summaries over a classified collection: a tabular view for analysis,
readiness bucket counts and the "worth opening tonight" signal.
"""

import logging
from typing import Dict, Optional, Sequence

import pandas as pd

from uncork.constants import AlgorithmConstants, ReadinessStatus
from uncork.power_formula import add_power_to_dataframe
from uncork.schema import Item, LineupCandidate, Profile, ReadinessResult

logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    "item_id", "name", "category", "vintage", "rating",
    "age_years", "status", "confidence", "window_start", "window_end",
]
PROFILE_COLUMNS = ["body", "tannin", "oak", "estimated_strength", "power"]


def readiness_frame(
    items: Sequence[Item],
    results: Sequence[ReadinessResult],
    profiles: Optional[Sequence[Profile]] = None
) -> pd.DataFrame:
    """
    One row per item with its readiness classification.

    Args:
        items: Items in the same order as results
        results: Readiness results
        profiles: Optional profiles, also in item order; adds the structural
            columns and a vectorized power column

    Returns:
        DataFrame with FRAME_COLUMNS, plus PROFILE_COLUMNS when profiles are given
    """
    if len(items) != len(results):
        raise ValueError(f"{len(items)} items but {len(results)} results")
    if profiles is not None and len(profiles) != len(items):
        raise ValueError(f"{len(items)} items but {len(profiles)} profiles")

    rows = [
        {
            "item_id": item.id,
            "name": item.name,
            "category": item.category.value,
            "vintage": item.vintage,
            "rating": item.rating,
            "age_years": result.age_years,
            "status": result.status.value,
            "confidence": result.confidence.value,
            "window_start": result.window_start,
            "window_end": result.window_end,
        }
        for item, result in zip(items, results)
    ]
    if profiles is None:
        return pd.DataFrame(rows, columns=FRAME_COLUMNS)

    for row, profile in zip(rows, profiles):
        row.update(
            body=profile.body,
            tannin=profile.tannin,
            oak=profile.oak,
            estimated_strength=profile.estimated_strength,
        )
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS + PROFILE_COLUMNS)
    return add_power_to_dataframe(df)


def bucket_counts(results: Sequence[ReadinessResult]) -> Dict[str, int]:
    """Count per readiness status; every status is present, even at zero."""
    statuses = pd.Series([result.status.value for result in results], dtype=object)
    counts = statuses.value_counts()
    return {status.value: int(counts.get(status.value, 0)) for status in ReadinessStatus}


def tonight_signal(
    candidates: Sequence[LineupCandidate],
    threshold: float = AlgorithmConstants.QUALITY_THRESHOLD
) -> int:
    """Number of READY bottles rated at or above threshold."""
    count = sum(
        1 for candidate in candidates
        if candidate.status == ReadinessStatus.READY
        and candidate.item.rating is not None
        and candidate.item.rating >= threshold
    )
    logger.debug(f"{count} READY bottle(s) rated >= {threshold}")
    return count
