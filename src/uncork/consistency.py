"""
Family consistency validator.

Advisory cross-item check of the monotonicity invariant: inside a family
(same category, region and varieties) an older bottle should never be HOLD
while a younger one is READY. Cached classifications drift (a profile is
re-estimated, a year boundary passes), so this is re-run over whatever the
caller currently has stored. It reports; it never raises or fixes.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Union

import pandas as pd

from uncork.constants import ReadinessStatus
from uncork.schema import ConsistencyIssue, ConsistencyReport, FamilyMember, Item, ReadinessResult
from uncork.utils import normalize_text

logger = logging.getLogger(__name__)

MEMBER_COLUMNS = ["item_id", "family", "age_years", "status"]


def family_key(item: Item) -> str:
    """Normalized family identity: category::region::sorted varieties."""
    varieties = "+".join(sorted(item.varieties)) or "-"
    region = normalize_text(item.sub_category) or "-"
    return f"{item.category.value}::{region}::{varieties}"


def members_from_results(items: Sequence[Item], results: Sequence[ReadinessResult]) -> List[FamilyMember]:
    """Pair items with their classifications."""
    if len(items) != len(results):
        raise ValueError(f"{len(items)} items but {len(results)} results")
    return [
        FamilyMember(
            item_id=item.id,
            family=family_key(item),
            age_years=result.age_years,
            status=result.status,
        )
        for item, result in zip(items, results)
    ]


def _parse_status(value) -> Optional[str]:
    try:
        return ReadinessStatus(value).value
    except ValueError:
        return None


def _to_frame(members: Union[Iterable[FamilyMember], pd.DataFrame]) -> pd.DataFrame:
    if isinstance(members, pd.DataFrame):
        missing = [column for column in MEMBER_COLUMNS if column not in members.columns]
        if missing:
            raise ValueError(f"members DataFrame missing columns: {missing}")
        df = members[MEMBER_COLUMNS].copy()
    else:
        df = pd.DataFrame([member.model_dump() for member in members], columns=MEMBER_COLUMNS)

    df["item_id"] = df["item_id"].fillna("").map(str)
    df["family"] = df["family"].fillna("").map(str)
    df["age_years"] = pd.to_numeric(df["age_years"], errors="coerce")
    df["status"] = df["status"].map(_parse_status)
    return df


def _scan_family(family: str, group: pd.DataFrame) -> List[ConsistencyIssue]:
    """Single pass over one family sorted by age."""
    issues = []
    nearest_ready = None  # (item_id, age) of the oldest READY strictly younger than the current age

    for age, same_age in group.groupby("age_years", sort=True):
        if nearest_ready is not None:
            for row in same_age[same_age["status"] == ReadinessStatus.HOLD.value].itertuples(index=False):
                younger_id, younger_age = nearest_ready
                issues.append(ConsistencyIssue(
                    family=family,
                    older_item_id=row.item_id,
                    older_age=float(age),
                    younger_item_id=younger_id,
                    younger_age=float(younger_age),
                    issue=(
                        f"{row.item_id} ({age:g} years) is HOLD but "
                        f"{younger_id} ({younger_age:g} years) is READY"
                    ),
                    suggestion="Re-classify the family with one profile; older bottles should be at least as ready",
                ))
                logger.warning(f"Readiness inversion in {family}: {issues[-1].issue}")

        ready = same_age[same_age["status"] == ReadinessStatus.READY.value]
        if len(ready) > 0:
            nearest_ready = (ready["item_id"].iloc[-1], age)

    return issues


def validate_family_consistency(
    members: Union[Iterable[FamilyMember], pd.DataFrame]
) -> ConsistencyReport:
    """
    Flag every HOLD that is older than a READY member of the same family.

    Each offending HOLD is reported once, against the nearest younger READY.
    Members without an age (or with an unknown status) are skipped.

    Args:
        members: FamilyMember records, or a DataFrame with columns
                 item_id, family, age_years, status

    Returns:
        ConsistencyReport (valid when no inversions were found)
    """
    df = _to_frame(members)
    total = len(df)
    usable = df.dropna(subset=["age_years", "status"])
    skipped = total - len(usable)

    issues: List[ConsistencyIssue] = []
    families = 0
    if len(usable) > 0:
        ordered = usable.sort_values(["family", "age_years"], kind="mergesort")
        for family, group in ordered.groupby("family", sort=True):
            families += 1
            issues.extend(_scan_family(family, group))

    if skipped:
        logger.info(f"Consistency check skipped {skipped} member(s) without a usable age")

    return ConsistencyReport(
        valid=not issues,
        issues=issues,
        families_checked=families,
        members_checked=len(usable),
        skipped=skipped,
    )
