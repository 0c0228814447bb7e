"""Endpoint-level generation: representative scenario cases and full case lists.

The functions here take an EndpointProfile; they only read its public
properties, so they sit below the profile package.
"""

import logging

from api_test_planner.catalog.scenarios import Scenario
from api_test_planner.catalog.scenarios import scenario as scenario_info
from api_test_planner.catalog.strategies import DEFAULT_STRATEGY
from api_test_planner.generator.aggregator import build_suite
from api_test_planner.generator.context import GenerationContext
from api_test_planner.generator.prioritizer import RankingStrategy, limit, rank
from api_test_planner.generator.synthesizer import synthesize_scenario_case
from api_test_planner.model.cache import canonical_form
from api_test_planner.model.testcase import TestCase, TestSuite

logger = logging.getLogger(__name__)


def _resolve(endpoint, cap: int | None, ranking: RankingStrategy | None) -> tuple[int, RankingStrategy]:
    if cap is None:
        cap = endpoint.max_test_cases or endpoint.estimated_test_count
    return cap, RankingStrategy(ranking or endpoint.ranking)


def _happy_path_case(endpoint, context: GenerationContext) -> TestCase:
    return synthesize_scenario_case(
        Scenario.HAPPY_PATH,
        DEFAULT_STRATEGY,
        endpoint.target,
        context,
        endpoint.business_criticality.urgency,
        scenario_info(Scenario.HAPPY_PATH).complexity,
    )


def representative_cases(endpoint, context: GenerationContext) -> list[TestCase]:
    """One case per active scenario; a scenario that fails is logged and skipped."""
    target = endpoint.target
    priority = endpoint.business_criticality.urgency
    cases = []
    for scenario in endpoint.active_scenarios():
        try:
            cases.append(synthesize_scenario_case(
                scenario,
                endpoint.strategy_for(scenario),
                target,
                context,
                priority,
                scenario_info(scenario).complexity,
            ))
        except Exception:
            logger.warning("Skipping scenario %s for %s", scenario, endpoint.key, exc_info=True)
    return cases


def _bounded(
    candidates: list[TestCase],
    cap: int,
    ranking: RankingStrategy,
    endpoint,
    context: GenerationContext,
) -> list[TestCase]:
    """Rank, truncate to ``cap`` and make sure a happy-path case survives."""
    kept = limit(candidates, cap, ranking)
    if any(case.scenario is Scenario.HAPPY_PATH and case.parameter is None for case in kept):
        return kept
    happy = next(
        (c for c in candidates if c.scenario is Scenario.HAPPY_PATH and c.parameter is None),
        None,
    )
    if happy is None:
        logger.info("No happy-path case for %s, adding the default one", endpoint.key)
        happy = _happy_path_case(endpoint, context)
    if cap > 0 and len(kept) >= cap:
        kept = kept[:cap - 1]
    return rank([*kept, happy], ranking)


def comprehensive_suite(
    endpoint,
    context: GenerationContext,
    cap: int | None = None,
    ranking: RankingStrategy | None = None,
) -> TestSuite:
    cap, ranking = _resolve(endpoint, cap, ranking)
    candidates = representative_cases(endpoint, context)
    cases = _bounded(candidates, cap, ranking, endpoint, context)
    logger.info("Suite for %s: %d of %d candidates kept (cap %d, %s)",
                endpoint.key, len(cases), len(candidates), cap, ranking)
    return build_suite(cases, context, endpoint.key, cap, ranking)


def _dedupe(cases: list[TestCase]) -> list[TestCase]:
    seen = set()
    unique = []
    for case in cases:
        key = (case.parameter, case.scenario, case.strategy, canonical_form(case.input_value))
        if key in seen:
            continue
        seen.add(key)
        unique.append(case)
    return unique


def endpoint_test_cases(
    endpoint,
    context: GenerationContext,
    cap: int | None = None,
    ranking: RankingStrategy | None = None,
) -> list[TestCase]:
    """Parameter cases plus representative cases, de-duplicated and bounded."""
    cap, ranking = _resolve(endpoint, cap, ranking)
    candidates = []
    for parameter in endpoint.parameters:
        candidates.extend(parameter.generate_test_cases(endpoint, context))
    candidates.extend(representative_cases(endpoint, context))
    unique = _dedupe(candidates)
    logger.debug("%s: %d candidates, %d after de-duplication", endpoint.key, len(candidates), len(unique))
    return _bounded(unique, cap, ranking, endpoint, context)
