"""Planner settings: the knobs a caller sets once and pushes into builders.

Settings never reach a profile directly; ``PlannerSettings.apply`` copies
them onto an ``EndpointConfig`` (and its parameter constraint builders)
before ``build()``.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from api_test_planner.catalog.complexity import TestComplexity
from api_test_planner.errors import ConfigurationError
from api_test_planner.generator.prioritizer import RankingStrategy
from api_test_planner.model.tiers import SecurityLevel, tier_by_name
from api_test_planner.profile.endpoint import EndpointConfig

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION_CACHE_SIZE = 256


class PlannerSettings(BaseModel):
    """Generation settings, usually loaded from a YAML file."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    max_test_cases: int | None = None
    include_security: bool = True
    include_performance: bool = True
    include_advanced: bool = False
    security_level: SecurityLevel | None = None
    test_complexity: TestComplexity | None = None
    ranking: RankingStrategy = RankingStrategy.NUMERIC_PRIORITY
    seed: int | None = None
    max_variations_per_parameter: int | None = None
    recommendation_cache_size: int = DEFAULT_RECOMMENDATION_CACHE_SIZE

    @field_validator("security_level", mode="before")
    @classmethod
    def _security_level_by_name(cls, v):
        return tier_by_name(SecurityLevel, v)

    @field_validator("max_test_cases", "max_variations_per_parameter")
    @classmethod
    def _positive_or_unset(cls, v: int | None, info) -> int | None:
        if v is not None and v <= 0:
            logger.warning("Ignoring non-positive %s=%d, using the derived default", info.field_name, v)
            return None
        return v

    @field_validator("seed")
    @classmethod
    def _non_negative_seed(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            logger.warning("Ignoring negative seed %d, output will not be reproducible", v)
            return None
        return v

    @field_validator("recommendation_cache_size")
    @classmethod
    def _cache_size(cls, v: int) -> int:
        if v <= 0:
            logger.warning("Ignoring recommendation_cache_size=%d, using %d", v, DEFAULT_RECOMMENDATION_CACHE_SIZE)
            return DEFAULT_RECOMMENDATION_CACHE_SIZE
        return v

    def apply(self, config: EndpointConfig) -> EndpointConfig:
        """Push these settings onto an endpoint config in place and return it."""
        config.include_security = self.include_security
        config.include_performance = self.include_performance
        config.include_advanced = self.include_advanced
        config.ranking = self.ranking
        if self.max_test_cases is not None:
            config.max_test_cases = self.max_test_cases
        for parameter in config.parameters:
            builder = parameter.constraint
            if self.security_level is not None:
                builder.escalate(self.security_level)
            if self.test_complexity is not None:
                builder.test_complexity = self.test_complexity
            if self.max_variations_per_parameter is not None and builder.max_test_variations is None:
                builder.max_test_variations = self.max_variations_per_parameter
        return config


def load_settings(path: Path | None) -> PlannerSettings:
    """Read settings from a YAML file; ``None`` gives the defaults."""
    if path is None:
        return PlannerSettings()
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: settings must be a mapping")
    try:
        return PlannerSettings(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"{path}: invalid settings\n{exc}") from exc
