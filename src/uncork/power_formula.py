"""
Centralized Power Formula

SINGLE SOURCE OF TRUTH for the 1-10 power score. Profiles, the heuristic
estimator and collection reports all call into this module.
"""

from typing import Optional

import numpy as np
import pandas as pd

from uncork.config import PowerWeights, get_settings
from uncork.constants import AlgorithmConstants
from uncork.utils import clamp, is_missing, round_half_up, logger


def normalize_strength(estimated_strength: Optional[float], default_strength: Optional[float] = None) -> float:
    """
    Map an ABV-like percentage onto the 0-5 ordinal scale.

    8% -> 0, 16% -> 5, clamped. Missing strength uses the configured default.
    """
    if is_missing(estimated_strength):
        estimated_strength = (
            default_strength if default_strength is not None else get_settings().default_strength
        )
    scaled = (estimated_strength - AlgorithmConstants.STRENGTH_FLOOR) / AlgorithmConstants.STRENGTH_SPAN * 5
    return clamp(scaled, AlgorithmConstants.ORDINAL_MIN, AlgorithmConstants.ORDINAL_MAX)


def compute_power(
    body: float,
    tannin: float,
    oak: float,
    estimated_strength: Optional[float] = None,
    weights: Optional[PowerWeights] = None,
    default_strength: Optional[float] = None
) -> int:
    """
    Compute power from the structural dimensions.

    Formula:
        weighted = (wb*body + wt*tannin + wo*oak + ws*strength_norm) / (wb+wt+wo+ws)
        power = round_half_up(clamp(2 * weighted, 1, 10))

    Only body, tannin, oak and strength participate, so two profiles that
    agree on those always share a power.
    """
    if weights is None:
        weights = get_settings().power_weights

    strength_norm = normalize_strength(estimated_strength, default_strength)
    weighted = (
        weights.body * body +
        weights.tannin * tannin +
        weights.oak * oak +
        weights.strength * strength_norm
    ) / weights.total

    return round_half_up(clamp(
        2 * weighted,
        AlgorithmConstants.POWER_MIN,
        AlgorithmConstants.POWER_MAX
    ))


def add_power_to_dataframe(df: pd.DataFrame, weights: Optional[PowerWeights] = None) -> pd.DataFrame:
    """
    Add a power column to a DataFrame with body/tannin/oak/estimated_strength.

    Vectorized equivalent of compute_power for collection reports.
    """
    if len(df) == 0:
        return df

    if weights is None:
        weights = get_settings().power_weights
    default_strength = get_settings().default_strength

    df = df.copy()
    strength = df.get("estimated_strength", pd.Series(np.nan, index=df.index)).astype(float)
    strength = strength.fillna(default_strength)
    strength_norm = np.clip(
        (strength - AlgorithmConstants.STRENGTH_FLOOR) / AlgorithmConstants.STRENGTH_SPAN * 5,
        AlgorithmConstants.ORDINAL_MIN,
        AlgorithmConstants.ORDINAL_MAX
    )

    weighted = (
        weights.body * df["body"] +
        weights.tannin * df["tannin"] +
        weights.oak * df["oak"] +
        weights.strength * strength_norm
    ) / weights.total

    scaled = np.clip(2 * weighted, AlgorithmConstants.POWER_MIN, AlgorithmConstants.POWER_MAX)
    df["power"] = np.floor(scaled + 0.5).astype(int)

    logger.debug(f"Added power to {len(df)} wines")

    return df


__all__ = [
    'normalize_strength',
    'compute_power',
    'add_power_to_dataframe',
]
