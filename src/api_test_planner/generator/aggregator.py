"""Assemble ranked test cases into a scored TestSuite."""

from collections import Counter
from collections.abc import Sequence

from api_test_planner.catalog.scenarios import ScenarioCategory
from api_test_planner.catalog.scenarios import scenario as scenario_info
from api_test_planner.catalog.strategies import strategy as strategy_info
from api_test_planner.generator.context import GenerationContext
from api_test_planner.generator.prioritizer import RankingStrategy
from api_test_planner.model.testcase import QualityMetrics, TestCase, TestSuite

_GRADES = ((0.9, "A"), (0.8, "B"), (0.7, "C"), (0.6, "D"))


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def quality_score(cases: Sequence[TestCase]) -> float:
    """clamp(0.5 + avg(complexity)/10 + min(count/10, 0.3), 0, 1)."""
    count = len(cases)
    average = sum(case.complexity for case in cases) / count if count else 0.0
    return _clamp(0.5 + average / 10 + min(count / 10, 0.3))


def grade(score: float) -> str:
    for threshold, letter in _GRADES:
        if score >= threshold:
            return letter
    return "F"


def compute_metrics(cases: Sequence[TestCase]) -> QualityMetrics:
    by_strategy = Counter(strategy_info(case.strategy).category.value for case in cases)
    by_scenario = Counter(scenario_info(case.scenario).category.value for case in cases)
    count = len(cases)
    return QualityMetrics(
        total_cases=count,
        by_strategy_category=dict(sorted(by_strategy.items())),
        by_scenario_category=dict(sorted(by_scenario.items())),
        security_cases=sum(1 for case in cases if case.is_security),
        average_complexity=sum(case.complexity for case in cases) / count if count else 0.0,
        coverage_score=len(by_scenario) / len(ScenarioCategory),
        grade=grade(quality_score(cases)),
    )


def build_suite(
    cases: Sequence[TestCase],
    context: GenerationContext,
    endpoint_key: str = "",
    cap: int = 0,
    ranking: RankingStrategy = RankingStrategy.NUMERIC_PRIORITY,
) -> TestSuite:
    """Wrap already ordered cases; the order is kept as given."""
    return TestSuite(
        execution_id=context.execution_id(),
        endpoint_key=endpoint_key,
        generated_at=context.now(),
        test_cases=tuple(cases),
        quality_score=quality_score(cases),
        cap=cap,
        ranking=RankingStrategy(ranking).value,
        metrics=compute_metrics(cases),
    )
