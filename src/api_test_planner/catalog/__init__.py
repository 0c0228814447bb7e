"""Closed, static taxonomy of testing strategies and scenarios."""

from api_test_planner.catalog.complexity import TIERS, ComplexityTier, TestComplexity, tier
from api_test_planner.catalog.scenarios import (
    DEFAULT_SCENARIO,
    SCENARIOS,
    Scenario,
    ScenarioCategory,
    ScenarioInfo,
    compatible_scenarios,
    recommended_strategy,
    scenario,
    scenarios_in,
)
from api_test_planner.catalog.strategies import (
    DEFAULT_STRATEGY,
    STRATEGIES,
    BusinessImpact,
    ResourceLevel,
    Strategy,
    StrategyCategory,
    StrategyType,
    alternatives,
    strategies_in,
    strategy,
)

__all__ = [
    "DEFAULT_SCENARIO",
    "DEFAULT_STRATEGY",
    "SCENARIOS",
    "STRATEGIES",
    "TIERS",
    "BusinessImpact",
    "ComplexityTier",
    "ResourceLevel",
    "Scenario",
    "ScenarioCategory",
    "ScenarioInfo",
    "Strategy",
    "StrategyCategory",
    "StrategyType",
    "TestComplexity",
    "alternatives",
    "compatible_scenarios",
    "recommended_strategy",
    "scenario",
    "scenarios_in",
    "strategies_in",
    "strategy",
    "tier",
]
