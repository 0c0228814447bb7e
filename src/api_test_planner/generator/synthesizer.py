"""Turn scenarios and constraint values into concrete TestCases."""

import logging
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict

from api_test_planner.catalog.scenarios import Scenario, ScenarioCategory
from api_test_planner.catalog.scenarios import scenario as scenario_info
from api_test_planner.catalog.strategies import StrategyType
from api_test_planner.catalog.strategies import strategy as strategy_info
from api_test_planner.generator.context import GenerationContext
from api_test_planner.model.testcase import (
    AssertionKind,
    Outcome,
    StepKind,
    TestAssertion,
    TestCase,
    TestStep,
)
from api_test_planner.model.tiers import SECURITY_CATEGORIES, ValueCategory

logger = logging.getLogger(__name__)

V = ValueCategory

# Value categories a scenario draws from a parameter's constraint. Scenarios
# missing here are exercised with one representative request.
SCENARIO_VALUE_CATEGORIES = MappingProxyType({
    Scenario.HAPPY_PATH: (V.HAPPY_PATH,),
    Scenario.ERROR_HANDLING: (V.ERROR_HANDLING, V.INVALID_TYPE),
    Scenario.INPUT_VALIDATION_BASIC: (V.INVALID_TYPE, V.INVALID_PATTERN, V.INVALID_ENUM),
    Scenario.BOUNDARY_VALUES: (V.BOUNDARY, V.INVALID_RANGE, V.INVALID_LENGTH),
    Scenario.BOUNDARY_VALUE_ANALYSIS: (V.BOUNDARY, V.INVALID_RANGE, V.INVALID_LENGTH),
    Scenario.NULL_VALUE_TESTING: (V.ERROR_HANDLING,),
    Scenario.REGEX_PATTERN_TESTING: (V.HAPPY_PATH, V.INVALID_PATTERN),
    Scenario.NESTED_OBJECT_TESTING: (V.HAPPY_PATH, V.EDGE_CASE),
    Scenario.ARRAY_BOUNDARY_TESTING: (V.BOUNDARY, V.INVALID_LENGTH),
    Scenario.EDGE_CASES: (V.EDGE_CASE,),
    Scenario.SQL_INJECTION_BASIC: (V.SQL_INJECTION,),
    Scenario.XSS_REFLECTED: (V.XSS,),
    Scenario.XSS_STORED: (V.XSS,),
    Scenario.PATH_TRAVERSAL: (V.PATH_TRAVERSAL,),
    Scenario.BUFFER_OVERFLOW_TEST: (V.LARGE_PAYLOAD,),
    Scenario.FUZZING_INPUT: (V.FUZZ,),
    Scenario.MUTATION_TESTING: (V.FUZZ, V.EDGE_CASE),
    Scenario.AI_DRIVEN_EXPLORATION: (V.HAPPY_PATH, V.BOUNDARY, V.EDGE_CASE, V.SQL_INJECTION),
})

_SCENARIO_STATUS = MappingProxyType({
    Scenario.AUTH_BYPASS: 401,
    Scenario.PRIVILEGE_ESCALATION: 403,
    Scenario.CSRF_PROTECTION: 403,
    Scenario.FILE_UPLOAD_MALICIOUS: 400,
    Scenario.XML_EXTERNAL_ENTITY: 400,
    Scenario.DESERIALIZATION_ATTACK: 400,
})

_DEFAULT_SUCCESS = {"POST": 201, "DELETE": 204}


def default_success_status(method: str) -> int:
    return _DEFAULT_SUCCESS.get(method.upper(), 200)


class CaseTarget(BaseModel):
    """The request a case is aimed at."""

    model_config = ConfigDict(frozen=True)

    key: str = ""
    method: str = "GET"
    path: str = "/"
    success_status: int = 200
    documented_responses: bool = False


def expected_status(scenario: Scenario, outcome: Outcome, target: CaseTarget) -> int:
    if scenario in _SCENARIO_STATUS:
        return _SCENARIO_STATUS[scenario]
    if outcome is Outcome.SUCCESS:
        return target.success_status
    return 400


def primary_category(scenario: Scenario) -> ValueCategory | None:
    """Value category a representative case for the scenario is ranked under."""
    categories = SCENARIO_VALUE_CATEGORIES.get(scenario)
    if categories:
        return categories[0]
    if scenario_info(scenario).category is ScenarioCategory.SECURITY:
        return V.SECURITY
    return None


def _tags(scenario: Scenario, strategy: StrategyType, category: ValueCategory | None,
          extra: tuple[str, ...] = ()) -> tuple[str, ...]:
    tags = {
        scenario.value,
        scenario_info(scenario).category.value,
        strategy_info(strategy).category.value,
        *extra,
    }
    if category is not None:
        tags.add(category.value)
    return tuple(sorted(tags))


def _steps(target: CaseTarget, setup: str, status: int) -> tuple[TestStep, ...]:
    return (
        TestStep(kind=StepKind.SETUP, description=setup),
        TestStep(kind=StepKind.EXECUTE, description=f"Send {target.method} {target.path}"),
        TestStep(kind=StepKind.VERIFY, description=f"Expect HTTP {status}"),
    )


def _assertions(scenario: Scenario, outcome: Outcome, status: int, target: CaseTarget,
                security: bool) -> tuple[TestAssertion, ...]:
    assertions = [
        TestAssertion(kind=AssertionKind.STATUS_CODE, expected=status,
                      description=f"Status code is {status}"),
    ]
    if outcome is Outcome.SUCCESS and target.documented_responses:
        assertions.append(TestAssertion(kind=AssertionKind.RESPONSE_SCHEMA,
                                        description="Body matches the documented response"))
    if security:
        assertions.append(TestAssertion(kind=AssertionKind.SECURITY, expected=False,
                                        description="Payload is neither executed nor reflected"))
    if scenario_info(scenario).category is ScenarioCategory.PERFORMANCE:
        assertions.append(TestAssertion(kind=AssertionKind.RESPONSE_TIME, expected=2000,
                                        description="Responds within 2000 ms"))
    return tuple(assertions)


def build_case(
    *,
    context: GenerationContext,
    target: CaseTarget,
    scenario: Scenario,
    strategy: StrategyType,
    name: str,
    description: str,
    priority: int,
    complexity: int,
    outcome: Outcome = Outcome.SUCCESS,
    value_category: ValueCategory | None = None,
    parameter: str | None = None,
    input_value: Any = None,
    extra_tags: tuple[str, ...] = (),
) -> TestCase:
    """Assemble one TestCase with its steps and assertions."""
    security = value_category in SECURITY_CATEGORIES or (
        scenario_info(scenario).category is ScenarioCategory.SECURITY
    )
    if security:
        extra_tags = (*extra_tags, "security")
    status = expected_status(scenario, outcome, target)
    if parameter is None:
        setup = f"Prepare a {scenario_info(scenario).description.lower()} request"
    else:
        setup = f"Set {parameter} = {input_value!r}"
    return TestCase(
        id=context.new_id(),
        name=name,
        description=description,
        endpoint_key=target.key,
        scenario=scenario,
        strategy=strategy,
        parameter=parameter,
        value_category=value_category,
        input_value=input_value,
        expected_outcome=outcome,
        expected_status=status,
        steps=_steps(target, setup, status),
        assertions=_assertions(scenario, outcome, status, target, security),
        priority=max(1, min(5, priority)),
        complexity=max(1, complexity),
        tags=_tags(scenario, strategy, value_category, extra_tags),
        estimated_duration_seconds=scenario_info(scenario).duration_seconds,
        created_at=context.now(),
    )


def synthesize_parameter_cases(
    parameter,
    scenario: Scenario,
    strategy: StrategyType,
    target: CaseTarget,
    context: GenerationContext,
) -> list[TestCase]:
    """Cases for one parameter under one scenario.

    ``parameter`` is a ParameterProfile. Each generated value becomes a case;
    its expected outcome is what the constraint says about the value, except
    that security payloads are always expected to be rejected.
    """
    constraint = parameter.constraint
    urgency = 6 - parameter.priority
    complexity = strategy_info(strategy).complexity
    categories = SCENARIO_VALUE_CATEGORIES.get(scenario)

    if categories is None:
        value = constraint.happy_value()
        return [build_case(
            context=context,
            target=target,
            scenario=scenario,
            strategy=strategy,
            name=f"{parameter.name}: {scenario.value}",
            description=f"{scenario_info(scenario).description} via {parameter.name}",
            priority=urgency,
            complexity=complexity,
            outcome=Outcome.FAILURE if scenario in _SCENARIO_STATUS else Outcome.SUCCESS,
            value_category=primary_category(scenario),
            parameter=parameter.name,
            input_value=value,
            extra_tags=(parameter.location.value,),
        )]

    cases = []
    for category in categories:
        rng = context.child_rng() if category is V.FUZZ else None
        for index, value in enumerate(constraint.generate(category, rng), start=1):
            if category in SECURITY_CATEGORIES:
                outcome = Outcome.FAILURE
            elif constraint.validate(value, context.cache):
                outcome = Outcome.SUCCESS
            else:
                outcome = Outcome.FAILURE
            cases.append(build_case(
                context=context,
                target=target,
                scenario=scenario,
                strategy=strategy,
                name=f"{parameter.name}: {category.value} #{index}",
                description=(
                    f"{scenario_info(scenario).description}: {parameter.name} "
                    f"expected to {'pass' if outcome is Outcome.SUCCESS else 'be rejected'}"
                ),
                priority=urgency,
                complexity=complexity,
                outcome=outcome,
                value_category=category,
                parameter=parameter.name,
                input_value=value,
                extra_tags=(parameter.location.value,),
            ))
    logger.debug("Synthesized %d cases for %s/%s", len(cases), parameter.name, scenario)
    return cases


def synthesize_scenario_case(
    scenario: Scenario,
    strategy: StrategyType,
    target: CaseTarget,
    context: GenerationContext,
    priority: int,
    complexity: int,
) -> TestCase:
    """One representative endpoint-level case for a scenario."""
    category = primary_category(scenario)
    security = category in SECURITY_CATEGORIES
    expected_failure = security or scenario in _SCENARIO_STATUS or category in (
        V.ERROR_HANDLING, V.INVALID_TYPE, V.INVALID_PATTERN, V.INVALID_ENUM,
    )
    return build_case(
        context=context,
        target=target,
        scenario=scenario,
        strategy=strategy,
        name=f"{target.key or target.path}: {scenario.value}".strip(),
        description=scenario_info(scenario).description,
        priority=priority,
        complexity=complexity,
        outcome=Outcome.FAILURE if expected_failure else Outcome.SUCCESS,
        value_category=category,
    )
