"""
Profile construction and resolution.

Turns external estimation payloads into Profiles and decides, per item,
whether a cached profile is still usable or the heuristic estimator has
to step in.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError

from uncork.config import get_settings
from uncork.constants import ProfileSource
from uncork.error_handling import InsufficientDataError, InvalidInputError, recover
from uncork.heuristics import estimate_for_item
from uncork.schema import ExternalEstimate, Item, Profile

logger = logging.getLogger(__name__)


def profile_from_estimate(
    payload: Any,
    fallback: Optional[Profile] = None,
    computed_at: Optional[datetime] = None
) -> Optional[Profile]:
    """
    Validate an external estimation payload and build a Profile.

    Ordinals are clamped, any supplied power is discarded and recomputed.

    Args:
        payload: Dict (or ExternalEstimate) from the estimation collaborator
        fallback: Returned when the payload cannot be used
        computed_at: Timestamp for updated_at (defaults to now)

    Returns:
        Profile with source ESTIMATED, or fallback
    """
    try:
        if payload is None:
            raise InsufficientDataError("no estimate returned")
        elif isinstance(payload, ExternalEstimate):
            estimate = payload
        elif isinstance(payload, dict):
            estimate = ExternalEstimate(**payload)
        else:
            raise InvalidInputError(f"expected a JSON object, got {type(payload).__name__}")
    except (ValidationError, InvalidInputError, InsufficientDataError) as e:
        return recover(e, "profile estimate validation", fallback)

    if estimate.power is not None:
        logger.debug(f"Discarding externally supplied power={estimate.power}")

    kwargs: Dict[str, Any] = dict(
        body=estimate.body,
        tannin=estimate.tannin,
        acidity=estimate.acidity,
        oak=estimate.oak,
        sweetness=estimate.sweetness,
        estimated_strength=estimate.estimated_strength,
        confidence=estimate.confidence,
        source=ProfileSource.ESTIMATED,
        style_tags=tuple(estimate.style_tags),
    )
    if computed_at is not None:
        kwargs["updated_at"] = computed_at
    return Profile(**kwargs)


def is_stale(profile: Profile, now: datetime, max_age_days: Optional[int] = None) -> bool:
    """True when the profile is older than max_age_days at `now`."""
    if max_age_days is None:
        max_age_days = get_settings().profile_max_age_days

    updated_at = profile.updated_at
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    return now - updated_at > timedelta(days=max_age_days)


def resolve_profile(
    item: Item,
    cached: Optional[Profile],
    now: datetime,
    max_age_days: Optional[int] = None
) -> Profile:
    """
    Return the profile the engine should use for an item.

    A fresh cached profile wins; a missing or stale one is replaced by the
    heuristic estimate.
    """
    if cached is not None:
        if not is_stale(cached, now, max_age_days):
            return cached
        logger.info(f"Cached profile for {item.id} is stale, using heuristic estimate")
    else:
        logger.debug(f"No cached profile for {item.id}, using heuristic estimate")

    return estimate_for_item(item, computed_at=now)
