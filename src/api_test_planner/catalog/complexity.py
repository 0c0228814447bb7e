"""Test-complexity tiers and the default strategy/scenario sets they enable."""

from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from api_test_planner.catalog.scenarios import SCENARIOS, Scenario
from api_test_planner.catalog.strategies import STRATEGIES, StrategyType


class TestComplexity(StrEnum):
    __test__ = False

    MINIMAL = "minimal"
    STANDARD = "standard"
    COMPREHENSIVE = "comprehensive"
    EXHAUSTIVE = "exhaustive"


class ComplexityTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_variations: int
    default_strategy: StrategyType
    default_scenario: Scenario
    strategies: frozenset[StrategyType]
    scenarios: frozenset[Scenario]


TIERS = MappingProxyType({
    TestComplexity.MINIMAL: ComplexityTier(
        max_variations=5,
        default_strategy=StrategyType.FUNCTIONAL_BASIC,
        default_scenario=Scenario.HAPPY_PATH,
        strategies=frozenset({StrategyType.FUNCTIONAL_BASIC}),
        scenarios=frozenset({Scenario.HAPPY_PATH}),
    ),
    TestComplexity.STANDARD: ComplexityTier(
        max_variations=15,
        default_strategy=StrategyType.FUNCTIONAL_COMPREHENSIVE,
        default_scenario=Scenario.BOUNDARY_VALUES,
        strategies=frozenset({
            StrategyType.FUNCTIONAL_BASIC,
            StrategyType.FUNCTIONAL_COMPREHENSIVE,
        }),
        scenarios=frozenset({Scenario.HAPPY_PATH, Scenario.BOUNDARY_VALUES}),
    ),
    TestComplexity.COMPREHENSIVE: ComplexityTier(
        max_variations=30,
        default_strategy=StrategyType.FUNCTIONAL_BOUNDARY,
        default_scenario=Scenario.EDGE_CASES,
        strategies=frozenset({
            StrategyType.FUNCTIONAL_BASIC,
            StrategyType.FUNCTIONAL_COMPREHENSIVE,
            StrategyType.FUNCTIONAL_BOUNDARY,
        }),
        scenarios=frozenset({
            Scenario.HAPPY_PATH,
            Scenario.BOUNDARY_VALUES,
            Scenario.ERROR_HANDLING,
        }),
    ),
    TestComplexity.EXHAUSTIVE: ComplexityTier(
        max_variations=50,
        default_strategy=StrategyType.ADVANCED_AI_DRIVEN,
        default_scenario=Scenario.AI_DRIVEN_EXPLORATION,
        strategies=frozenset(STRATEGIES),
        scenarios=frozenset(SCENARIOS),
    ),
})


def tier(complexity: TestComplexity) -> ComplexityTier:
    return TIERS[TestComplexity(complexity)]
