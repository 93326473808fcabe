"""Uncork - readiness, pairing and lineup engine for a personal wine cellar."""

from uncork.heuristics import estimate as estimate_profile
from uncork.lineup import build as build_lineup
from uncork.pairing import score as score_pairing
from uncork.readiness import classify as classify_readiness
from uncork.consistency import validate_family_consistency
from uncork.schema import FoodContext, Item, LineupCandidate, LineupSlot, Profile, ReadinessResult

__version__ = "0.1.0"

__all__ = [
    'estimate_profile',
    'build_lineup',
    'score_pairing',
    'classify_readiness',
    'validate_family_consistency',
    'FoodContext',
    'Item',
    'LineupCandidate',
    'LineupSlot',
    'Profile',
    'ReadinessResult',
    '__version__',
]
