"""
Uncork Configuration
Centralized, overridable engine settings
"""

import json
import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from uncork.constants import AlgorithmConstants

logger = logging.getLogger(__name__)

POWER_WEIGHTS_ENV = "UNCORK_POWER_WEIGHTS"
PROFILE_MAX_AGE_ENV = "UNCORK_PROFILE_MAX_AGE_DAYS"


class PowerWeights(BaseModel):
    """
    Weights of the power formula.

    Empirical defaults (0.3/0.3/0.2/0.2). Divided by their total when
    applied, so the weighted value stays on the 0-5 ordinal scale.
    """

    body: float = Field(0.3, ge=0.0)
    tannin: float = Field(0.3, ge=0.0)
    oak: float = Field(0.2, ge=0.0)
    strength: float = Field(0.2, ge=0.0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_total(self) -> 'PowerWeights':
        if self.total <= 0:
            raise ValueError("power weights must not all be zero")
        return self

    @property
    def total(self) -> float:
        return self.body + self.tannin + self.oak + self.strength


class EngineSettings(BaseModel):
    """Engine settings; every field has a working default."""

    power_weights: PowerWeights = Field(default_factory=PowerWeights)
    default_strength: float = Field(AlgorithmConstants.DEFAULT_STRENGTH, ge=0.0, le=25.0)
    profile_max_age_days: int = Field(AlgorithmConstants.PROFILE_MAX_AGE_DAYS, ge=0)

    model_config = {"frozen": True}


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """
    Load settings from the environment (and a local .env file).

    Invalid overrides are logged and ignored. Call get_settings.cache_clear()
    after changing the environment.
    """
    load_dotenv()

    overrides = {}

    raw_weights = os.getenv(POWER_WEIGHTS_ENV)
    if raw_weights:
        try:
            overrides["power_weights"] = PowerWeights(**json.loads(raw_weights))
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning(f"Ignoring invalid {POWER_WEIGHTS_ENV}={raw_weights!r}: {e}")

    raw_max_age = os.getenv(PROFILE_MAX_AGE_ENV)
    if raw_max_age:
        try:
            overrides["profile_max_age_days"] = int(raw_max_age)
        except ValueError:
            logger.warning(f"Ignoring invalid {PROFILE_MAX_AGE_ENV}={raw_max_age!r}")

    try:
        return EngineSettings(**overrides)
    except ValidationError as e:
        logger.warning(f"Invalid engine settings, using defaults: {e}")
        return EngineSettings()
