"""Endpoint profile: one API operation, its parameters and its classification.

``EndpointConfig`` is what an ingestion collaborator fills in.
``derive_endpoint`` builds every parameter, runs the complexity analysis and
resolves criticality, performance profile and the enabled strategy/scenario
sets. The resulting ``EndpointProfile`` is frozen; ``evolve`` re-derives.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from api_test_planner.catalog.scenarios import (
    Scenario,
    ScenarioCategory,
    catalog_order,
    recommended_strategy,
)
from api_test_planner.catalog.scenarios import scenario as scenario_info
from api_test_planner.catalog.strategies import DEFAULT_STRATEGY, StrategyType
from api_test_planner.errors import ConfigurationError
from api_test_planner.generator.context import GenerationContext
from api_test_planner.generator.prioritizer import RankingStrategy
from api_test_planner.generator.recommendation import (
    RecommendationCache,
    StrategyRecommendation,
    recommend_strategy,
)
from api_test_planner.generator.suite import comprehensive_suite, endpoint_test_cases
from api_test_planner.generator.synthesizer import CaseTarget, default_success_status
from api_test_planner.model.constraint import Constraint, ConstraintBuilder
from api_test_planner.model.testcase import TestCase, TestSuite
from api_test_planner.model.tiers import BusinessCriticality
from api_test_planner.profile.analysis import (
    CRITICALITY_STRATEGY,
    PERFORMANCE_TESTING,
    RISK_TESTING,
    ComplexityAnalysis,
    ComplexityLevel,
    PerformanceProfile,
    SecurityRisk,
    TestCategory,
    complexity_level,
    endpoint_complexity_score,
    is_data_modifying,
    perform_complexity_analysis,
)
from api_test_planner.profile.parameter import ParameterConfig, ParameterFlag, ParameterProfile

logger = logging.getLogger(__name__)

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})
READ_ONLY_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class ResponseSpec(BaseModel):
    """A documented response."""

    model_config = ConfigDict(frozen=True)

    description: str = ""
    content_type: str | None = None
    body_schema: dict | None = None


class RequestBodySpec(BaseModel):
    required: bool = False
    content_type: str = "application/json"
    constraint: ConstraintBuilder | None = None


class EndpointConfig(BaseModel):
    """Mutable endpoint description; ``build()`` derives the profile."""

    model_config = ConfigDict(validate_assignment=True)

    method: str | None = None
    path: str | None = None
    operation_id: str = ""
    summary: str = ""
    parameters: list[ParameterConfig] = Field(default_factory=list)
    request_body: RequestBodySpec | None = None
    responses: dict[str, ResponseSpec] = Field(default_factory=dict)
    security_schemes: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    business_criticality: BusinessCriticality | None = None
    performance_profile: PerformanceProfile | None = None
    extra_strategies: set[StrategyType] = Field(default_factory=set)
    extra_scenarios: set[Scenario] = Field(default_factory=set)
    extra_risks: set[SecurityRisk] = Field(default_factory=set)
    include_security: bool = True
    include_performance: bool = True
    include_advanced: bool = False
    max_test_cases: int | None = None
    ranking: RankingStrategy = RankingStrategy.NUMERIC_PRIORITY

    def add_parameter(self, parameter: ParameterConfig | None = None, **fields: Any) -> "EndpointConfig":
        self.parameters.append(parameter if parameter is not None else ParameterConfig(**fields))
        return self

    def add_response(self, status: str | int, description: str = "", **fields: Any) -> "EndpointConfig":
        self.responses[str(status)] = ResponseSpec(description=description, **fields)
        return self

    def build(self) -> "EndpointProfile":
        return derive_endpoint(self)


class EndpointProfile(BaseModel):
    """Frozen, fully classified endpoint."""

    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    operation_id: str = ""
    summary: str = ""
    parameters: tuple[ParameterProfile, ...] = ()
    body_constraint: Constraint | None = None
    body_required: bool = False
    responses: dict[str, ResponseSpec] = Field(default_factory=dict)
    security_schemes: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    read_only: bool
    data_modifying: bool
    has_validation_rules: bool = False
    business_criticality: BusinessCriticality
    performance_profile: PerformanceProfile
    security_risks: frozenset[SecurityRisk] = frozenset()
    enabled_strategies: frozenset[StrategyType]
    enabled_scenarios: frozenset[Scenario]
    analysis: ComplexityAnalysis
    complexity_score: int
    include_security: bool = True
    include_performance: bool = True
    include_advanced: bool = False
    max_test_cases: int | None = None
    ranking: RankingStrategy = RankingStrategy.NUMERIC_PRIORITY
    config: EndpointConfig = Field(repr=False, exclude=True)

    # -- read-only views --

    @property
    def key(self) -> str:
        return f"{self.method} {self.path}"

    @property
    def authenticated(self) -> bool:
        return bool(self.security_schemes)

    @property
    def has_body(self) -> bool:
        return self.body_constraint is not None or any(
            p.location.value in ("body", "formData") for p in self.parameters
        )

    @property
    def recommended_categories(self) -> frozenset[TestCategory]:
        return self.analysis.recommended_categories

    @property
    def estimated_test_count(self) -> int:
        return self.analysis.estimated_test_count

    @property
    def complexity_level(self) -> ComplexityLevel:
        return complexity_level(self.complexity_score)

    @property
    def success_status(self) -> int:
        documented = sorted(code for code in self.responses if code.startswith("2") and code.isdigit())
        if documented:
            return int(documented[0])
        return default_success_status(self.method)

    @property
    def target(self) -> CaseTarget:
        return CaseTarget(
            key=self.key,
            method=self.method,
            path=self.path,
            success_status=self.success_status,
            documented_responses=bool(self.responses),
        )

    def parameter(self, name: str) -> ParameterProfile | None:
        for p in self.parameters:
            if p.name == name:
                return p
        return None

    def active_scenarios(self) -> list[Scenario]:
        """Enabled scenarios in catalog order; each one gets a representative case."""
        return catalog_order(self.enabled_scenarios)

    def strategy_for(self, scenario: Scenario) -> StrategyType:
        strategy = recommended_strategy(scenario)
        return strategy if strategy in self.enabled_strategies else DEFAULT_STRATEGY

    # -- operations --

    def perform_complexity_analysis(self) -> ComplexityAnalysis:
        """Recompute the analysis from this profile's own fields."""
        return perform_complexity_analysis(
            self.method,
            self.parameters,
            self.responses,
            self.security_schemes,
            self.tags,
            self.config.extra_risks,
        )

    def generate_comprehensive_test_suite(
        self,
        context: GenerationContext | None = None,
        cap: int | None = None,
        ranking: RankingStrategy | None = None,
    ) -> TestSuite:
        """One representative case per active scenario, bounded and scored."""
        return comprehensive_suite(self, context or GenerationContext(), cap, ranking)

    def generate_test_cases(
        self,
        context: GenerationContext | None = None,
        cap: int | None = None,
        ranking: RankingStrategy | None = None,
    ) -> list[TestCase]:
        """Every parameter's cases plus the representative scenario cases."""
        return endpoint_test_cases(self, context or GenerationContext(), cap, ranking)

    def recommend_strategy(self, cache: RecommendationCache | None = None) -> StrategyRecommendation:
        if cache is not None:
            return cache.recommend(self)
        return recommend_strategy(self)

    def evolve(self, **changes: Any) -> "EndpointProfile":
        config = self.config.model_copy(deep=True)
        for field, value in changes.items():
            if field not in EndpointConfig.model_fields:
                raise ConfigurationError(f"unknown endpoint field: {field!r}")
            setattr(config, field, value)
        return derive_endpoint(config)


# -- derivation ----------------------------------------------------------------


def _method_defaults(method: str) -> tuple[set[Scenario], set[StrategyType], bool]:
    """Scenarios, mandatory strategies and the validation-rule flag a method implies."""
    if method == "POST":
        return {Scenario.ERROR_HANDLING, Scenario.INPUT_VALIDATION_BASIC}, set(), False
    if method in ("PUT", "PATCH"):
        return {Scenario.INPUT_VALIDATION_BASIC, Scenario.BOUNDARY_VALUES}, set(), True
    if method == "DELETE":
        return set(), {StrategyType.SECURITY_BASIC}, False
    return set(), set(), False


def _derive_criticality(
    config: EndpointConfig,
    method: str,
    parameters: list[ParameterProfile],
    analysis: ComplexityAnalysis,
) -> BusinessCriticality:
    if config.business_criticality is not None:
        criticality = config.business_criticality
    else:
        criticality = BusinessCriticality.LOW if method in READ_ONLY_METHODS else BusinessCriticality.MEDIUM
        if config.security_schemes or analysis.handles_personal_data or any(
            p.is_security_sensitive for p in parameters
        ):
            criticality = max(criticality, BusinessCriticality.HIGH)
        if any(p.flags & {ParameterFlag.FINANCIAL_DATA, ParameterFlag.SYSTEM_CRITICAL} for p in parameters):
            criticality = BusinessCriticality.CRITICAL
    if method == "DELETE":
        criticality = max(criticality, BusinessCriticality.HIGH)
    return criticality


def _derive_performance(config: EndpointConfig, method: str, analysis: ComplexityAnalysis) -> PerformanceProfile:
    if config.performance_profile is not None:
        return config.performance_profile
    if analysis.compute_intensive:
        return PerformanceProfile.CRITICAL
    if analysis.high_traffic:
        return PerformanceProfile.HIGH_THROUGHPUT
    if method in READ_ONLY_METHODS:
        return PerformanceProfile.FAST
    return PerformanceProfile.STANDARD


def _apply_toggles(config: EndpointConfig, scenarios: set[Scenario]) -> set[Scenario]:
    """Drop derived scenarios whose category an include_* toggle switches off."""
    excluded = set()
    if not config.include_security:
        excluded.add(ScenarioCategory.SECURITY)
    if not config.include_performance:
        excluded.add(ScenarioCategory.PERFORMANCE)
    if not config.include_advanced:
        excluded |= {ScenarioCategory.ADVANCED, ScenarioCategory.CONCURRENCY}
    return {
        s for s in scenarios
        if s is Scenario.HAPPY_PATH or scenario_info(s).category not in excluded
    }


def derive_endpoint(config: EndpointConfig) -> EndpointProfile:
    """Validate an endpoint config and derive its frozen profile."""
    method = (config.method or "").strip().upper()
    if not method:
        raise ConfigurationError("endpoint method is required")
    if method not in HTTP_METHODS:
        raise ConfigurationError(f"unsupported HTTP method: {config.method!r}")
    path = (config.path or "").strip()
    if not path:
        raise ConfigurationError("endpoint path is required")
    if config.max_test_cases is not None and config.max_test_cases <= 0:
        raise ConfigurationError("max_test_cases must be positive")

    parameters = [p.build() for p in config.parameters]
    seen = set()
    for p in parameters:
        if p.key in seen:
            raise ConfigurationError(f"duplicate parameter {p.name!r} in {p.location.value}")
        seen.add(p.key)

    body_constraint = None
    if config.request_body is not None and config.request_body.constraint is not None:
        body_constraint = config.request_body.constraint.build()

    scenarios, mandatory, validation_rules = _method_defaults(method)
    scenarios.add(Scenario.HAPPY_PATH)
    for p in parameters:
        scenarios |= p.recommended_scenarios

    analysis = perform_complexity_analysis(
        method, parameters, config.responses, config.security_schemes, config.tags, config.extra_risks,
    )
    criticality = _derive_criticality(config, method, parameters, analysis)
    performance = _derive_performance(config, method, analysis)

    performance_strategy, performance_scenario = PERFORMANCE_TESTING[performance]
    strategies = {CRITICALITY_STRATEGY[criticality], performance_strategy} | mandatory
    scenarios.add(performance_scenario)
    for risk in analysis.security_risks:
        risk_strategy, risk_scenario = RISK_TESTING[risk]
        strategies.add(risk_strategy)
        scenarios.add(risk_scenario)
    if TestCategory.CONCURRENCY in analysis.recommended_categories:
        scenarios.add(Scenario.CONCURRENCY_RACE_CONDITIONS)
    scenarios = _apply_toggles(config, scenarios) | config.extra_scenarios
    strategies |= config.extra_strategies
    strategies |= {recommended_strategy(s) for s in scenarios}

    has_body = config.request_body is not None
    score = endpoint_complexity_score(method, path, len(parameters), has_body, bool(config.security_schemes))

    logger.debug("Derived endpoint %s %s: criticality=%s performance=%s risks=%d estimate=%d",
                 method, path, criticality.name, performance, len(analysis.security_risks),
                 analysis.estimated_test_count)

    return EndpointProfile(
        method=method,
        path=path,
        operation_id=config.operation_id,
        summary=config.summary,
        parameters=tuple(parameters),
        body_constraint=body_constraint,
        body_required=bool(config.request_body and config.request_body.required),
        responses=dict(config.responses),
        security_schemes=tuple(config.security_schemes),
        tags=tuple(config.tags),
        read_only=method in READ_ONLY_METHODS,
        data_modifying=is_data_modifying(method),
        has_validation_rules=validation_rules or analysis.has_validation_rules,
        business_criticality=criticality,
        performance_profile=performance,
        security_risks=analysis.security_risks,
        enabled_strategies=frozenset(strategies),
        enabled_scenarios=frozenset(scenarios),
        analysis=analysis,
        complexity_score=score,
        include_security=config.include_security,
        include_performance=config.include_performance,
        include_advanced=config.include_advanced,
        max_test_cases=config.max_test_cases,
        ranking=config.ranking,
        config=config.model_copy(deep=True),
    )
