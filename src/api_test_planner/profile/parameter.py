"""Parameter profile: one named field of an operation plus its classification.

``ParameterConfig`` is the mutable input. ``derive_parameter`` runs the
classification heuristics in a fixed order (name vocabulary, type, format,
location) and returns a frozen ``ParameterProfile``.
"""

import logging
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from api_test_planner.catalog.scenarios import Scenario, catalog_order, recommended_strategy
from api_test_planner.catalog.strategies import StrategyType
from api_test_planner.errors import ConfigurationError
from api_test_planner.generator.context import GenerationContext
from api_test_planner.generator.prioritizer import limit
from api_test_planner.generator.synthesizer import CaseTarget, synthesize_parameter_cases
from api_test_planner.model.constraint import Constraint, ConstraintBuilder
from api_test_planner.model.payloads import FORMAT_INVALID_EXAMPLES, FORMAT_VALID_EXAMPLES
from api_test_planner.model.testcase import TestCase
from api_test_planner.model.tiers import (
    SecurityLevel,
    SecuritySensitivity,
    TestImportance,
    ValueType,
)
from api_test_planner.profile import vocabulary as vocab

logger = logging.getLogger(__name__)

MAX_COMPLEXITY = 50


class Location(StrEnum):
    QUERY = "query"
    PATH = "path"
    HEADER = "header"
    COOKIE = "cookie"
    FORM_DATA = "formData"
    BODY = "body"


class ParameterFlag(StrEnum):
    PERSONAL_DATA = "personal_data"
    FINANCIAL_DATA = "financial_data"
    SYSTEM_CRITICAL = "system_critical"
    AUTHENTICATION_RELATED = "authentication_related"
    AUTH_CRITICAL = "auth_critical"
    FILE_SYSTEM_ACCESS = "file_system_access"
    DATABASE_QUERY = "database_query"
    IDENTIFIER = "identifier"
    CACHEABLE = "cacheable"
    COMPLEX_STRUCTURE = "complex_structure"


def parse_location(raw: str | Location | None) -> Location:
    if raw is None or not str(raw).strip():
        raise ConfigurationError("parameter location is required")
    wanted = str(raw).strip().lower()
    for location in Location:
        if location.value.lower() == wanted:
            return location
    raise ConfigurationError(f"unknown parameter location: {raw!r}")


class ParameterConfig(BaseModel):
    """Mutable parameter description; ``build()`` derives the profile."""

    model_config = ConfigDict(validate_assignment=True)

    name: str | None = None
    location: str | None = None  # query / path / header / cookie / formData / body
    type: str | None = None
    format: str | None = None
    required: bool = False
    description: str = ""
    constraint: ConstraintBuilder = Field(default_factory=ConstraintBuilder)
    dependent_parameters: list[str] = Field(default_factory=list)
    conflicting_parameters: list[str] = Field(default_factory=list)
    extra_scenarios: set[Scenario] = Field(default_factory=set)
    strategy_overrides: dict[Scenario, StrategyType] = Field(default_factory=dict)
    importance: TestImportance | None = None

    def build(self) -> "ParameterProfile":
        return derive_parameter(self)


class ParameterProfile(BaseModel):
    """Frozen, fully classified parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: Location
    type: ValueType
    format: str | None = None
    required: bool = False
    description: str = ""
    constraint: Constraint
    importance: TestImportance
    sensitivity: SecuritySensitivity
    complexity: int = Field(ge=1, le=MAX_COMPLEXITY)
    priority: int = Field(ge=1, le=5)
    flags: frozenset[ParameterFlag] = frozenset()
    recommended_scenarios: frozenset[Scenario]
    strategy_overrides: dict[Scenario, StrategyType] = Field(default_factory=dict)
    dependent_parameters: tuple[str, ...] = ()
    conflicting_parameters: tuple[str, ...] = ()
    valid_examples: tuple[Any, ...] = ()
    invalid_examples: tuple[Any, ...] = ()
    config: ParameterConfig = Field(repr=False, exclude=True)

    @property
    def key(self) -> tuple[str, Location]:
        return self.name, self.location

    @property
    def is_security_sensitive(self) -> bool:
        return self.sensitivity >= SecuritySensitivity.HIGH

    @property
    def is_complex(self) -> bool:
        return ParameterFlag.COMPLEX_STRUCTURE in self.flags

    @property
    def risk_score(self) -> float:
        """Weighted risk in [0, 1]."""
        score = self.sensitivity.value * 0.2
        if ParameterFlag.PERSONAL_DATA in self.flags:
            score += 0.3
        if ParameterFlag.FINANCIAL_DATA in self.flags:
            score += 0.4
        if ParameterFlag.AUTHENTICATION_RELATED in self.flags:
            score += 0.25
        if ParameterFlag.SYSTEM_CRITICAL in self.flags:
            score += 0.3
        if self.location is Location.HEADER and self.name.lower() == "authorization":
            score += 0.3
        if self.location is Location.PATH:
            score += 0.1
        return max(0.0, min(1.0, score))

    def strategy_for(self, scenario: Scenario) -> StrategyType:
        """Explicit override wins over the scenario's recommended strategy."""
        return self.strategy_overrides.get(scenario, recommended_strategy(scenario))

    def ordered_scenarios(self) -> list[Scenario]:
        return catalog_order(self.recommended_scenarios)

    def evolve(self, **changes: Any) -> "ParameterProfile":
        """Re-derive from a copy of the source config with ``changes`` applied."""
        config = self.config.model_copy(deep=True)
        for field, value in changes.items():
            if field not in ParameterConfig.model_fields:
                raise ConfigurationError(f"unknown parameter field: {field!r}")
            setattr(config, field, value)
        return derive_parameter(config)

    def generate_test_cases(self, endpoint=None, context: GenerationContext | None = None) -> list[TestCase]:
        """Cases for every recommended scenario, most important first.

        ``endpoint`` is the owning EndpointProfile, used for the request
        target and expected success status. A scenario that fails to
        synthesize is logged and skipped.
        """
        context = context or GenerationContext()
        target = endpoint.target if endpoint is not None else CaseTarget()
        cases: list[TestCase] = []
        for scenario in self.ordered_scenarios():
            try:
                cases.extend(synthesize_parameter_cases(
                    self, scenario, self.strategy_for(scenario), target, context))
            except Exception:
                logger.warning("Skipping scenario %s for parameter %s", scenario, self.name, exc_info=True)
        return limit(cases, self.constraint.max_test_variations)


# -- derivation ----------------------------------------------------------------


class _Classification:
    """Accumulator for one derivation pass."""

    def __init__(self, importance: TestImportance):
        self.flags: set[ParameterFlag] = set()
        self.scenarios: set[Scenario] = {Scenario.HAPPY_PATH}
        self.sensitivity = SecuritySensitivity.NONE
        self.importance = importance

    def raise_sensitivity(self, level: SecuritySensitivity) -> None:
        self.sensitivity = max(self.sensitivity, level)

    def raise_importance(self, level: TestImportance) -> None:
        self.importance = max(self.importance, level)


def _classify_name(name: str, c: _Classification) -> None:
    if vocab.matches(name, vocab.CREDENTIAL_TERMS):
        c.flags.add(ParameterFlag.AUTHENTICATION_RELATED)
        c.raise_sensitivity(SecuritySensitivity.HIGH)
        c.raise_importance(TestImportance.HIGH)
        c.scenarios |= {Scenario.SQL_INJECTION_BASIC, Scenario.XSS_REFLECTED, Scenario.AUTH_BYPASS}
        if vocab.matches(name, ("password", "passwd", "secret")):
            c.raise_sensitivity(SecuritySensitivity.CRITICAL)
    if vocab.matches(name, vocab.PERSONAL_TERMS):
        c.flags.add(ParameterFlag.PERSONAL_DATA)
        c.raise_sensitivity(SecuritySensitivity.MEDIUM)
        c.scenarios.add(Scenario.DATA_EXPOSURE_TEST)
    if vocab.matches(name, vocab.FINANCIAL_TERMS):
        c.flags.add(ParameterFlag.FINANCIAL_DATA)
        c.raise_sensitivity(SecuritySensitivity.CRITICAL)
        c.raise_importance(TestImportance.CRITICAL)
        c.scenarios |= {Scenario.INPUT_VALIDATION_BASIC, Scenario.BOUNDARY_VALUES, Scenario.DATA_EXPOSURE_TEST}
    if vocab.matches(name, vocab.SYSTEM_CRITICAL_TERMS):
        c.flags.add(ParameterFlag.SYSTEM_CRITICAL)
        c.raise_sensitivity(SecuritySensitivity.HIGH)
        c.raise_importance(TestImportance.HIGH)
        c.scenarios.add(Scenario.PRIVILEGE_ESCALATION)
    if vocab.matches(name, vocab.FILE_PATH_TERMS):
        c.flags.add(ParameterFlag.FILE_SYSTEM_ACCESS)
        c.raise_sensitivity(SecuritySensitivity.MEDIUM)
        c.scenarios.add(Scenario.PATH_TRAVERSAL)
    if vocab.matches(name, vocab.DATABASE_QUERY_TERMS):
        c.flags.add(ParameterFlag.DATABASE_QUERY)
        c.raise_sensitivity(SecuritySensitivity.MEDIUM)
        c.scenarios.add(Scenario.SQL_INJECTION_BASIC)
    if vocab.normalize(name).endswith(vocab.IDENTIFIER_SUFFIX) or vocab.matches(name, vocab.IDENTIFIER_TERMS):
        c.flags.add(ParameterFlag.IDENTIFIER)


def _classify_type(value_type: ValueType, builder: ConstraintBuilder, c: _Classification) -> None:
    if value_type is ValueType.STRING:
        c.scenarios.add(Scenario.INPUT_VALIDATION_BASIC)
        if builder.min_length is not None or builder.max_length is not None:
            c.scenarios.add(Scenario.BOUNDARY_VALUES)
        if builder.pattern:
            c.scenarios.add(Scenario.REGEX_PATTERN_TESTING)
    elif value_type in (ValueType.INTEGER, ValueType.NUMBER):
        c.scenarios.add(Scenario.BOUNDARY_VALUES)
        if builder.minimum is not None and builder.maximum is not None:
            c.scenarios.add(Scenario.BOUNDARY_VALUE_ANALYSIS)
    elif value_type is ValueType.ARRAY:
        c.flags.add(ParameterFlag.COMPLEX_STRUCTURE)
        c.scenarios.add(Scenario.ARRAY_BOUNDARY_TESTING)
    elif value_type is ValueType.OBJECT:
        c.flags.add(ParameterFlag.COMPLEX_STRUCTURE)
        c.scenarios.add(Scenario.NESTED_OBJECT_TESTING)
    if builder.enum_values:
        c.scenarios.add(Scenario.INPUT_VALIDATION_BASIC)


def _classify_format(fmt: str | None, c: _Classification) -> None:
    if not fmt:
        return
    if fmt == "email":
        c.flags.add(ParameterFlag.PERSONAL_DATA)
        c.raise_sensitivity(SecuritySensitivity.MEDIUM)
        c.scenarios.add(Scenario.REGEX_PATTERN_TESTING)
    elif fmt == "password":
        c.flags.add(ParameterFlag.AUTHENTICATION_RELATED)
        c.raise_sensitivity(SecuritySensitivity.CRITICAL)
        c.scenarios |= {Scenario.SQL_INJECTION_BASIC, Scenario.XSS_REFLECTED}
    elif fmt == "uuid":
        c.flags.add(ParameterFlag.IDENTIFIER)
        c.scenarios.add(Scenario.REGEX_PATTERN_TESTING)
    elif fmt in ("date", "date-time"):
        c.scenarios |= {Scenario.BOUNDARY_VALUES, Scenario.REGEX_PATTERN_TESTING}
    elif fmt in ("ipv4", "ipv6"):
        c.scenarios.add(Scenario.REGEX_PATTERN_TESTING)
    elif fmt in ("uri", "url"):
        c.raise_sensitivity(SecuritySensitivity.LOW)
        c.scenarios.add(Scenario.INPUT_VALIDATION_BASIC)
    elif fmt in ("binary", "byte"):
        c.flags.add(ParameterFlag.FILE_SYSTEM_ACCESS)
        c.raise_sensitivity(SecuritySensitivity.MEDIUM)
        c.scenarios |= {Scenario.FILE_UPLOAD_MALICIOUS, Scenario.BUFFER_OVERFLOW_TEST}
    elif fmt in ("int32", "int64"):
        c.scenarios.add(Scenario.BOUNDARY_VALUES)


def _classify_location(name: str, location: Location, c: _Classification) -> None:
    if location is Location.HEADER and vocab.normalize(name) in vocab.AUTH_HEADERS:
        c.flags |= {ParameterFlag.AUTHENTICATION_RELATED, ParameterFlag.AUTH_CRITICAL}
        c.raise_sensitivity(SecuritySensitivity.CRITICAL)
        c.raise_importance(TestImportance.CRITICAL)
        c.scenarios.add(Scenario.AUTH_BYPASS)
    elif location is Location.PATH:
        c.flags.add(ParameterFlag.IDENTIFIER)
        c.raise_importance(TestImportance.HIGH)
        c.scenarios.add(Scenario.SQL_INJECTION_BASIC)
    elif location is Location.QUERY:
        c.flags.add(ParameterFlag.CACHEABLE)
    elif location is Location.COOKIE:
        c.raise_sensitivity(SecuritySensitivity.HIGH)
        c.scenarios.add(Scenario.CSRF_PROTECTION)


def _is_constrained(builder: ConstraintBuilder) -> bool:
    return any(
        value not in (None, [], {})
        for value in (
            builder.pattern, builder.minimum, builder.maximum, builder.min_length,
            builder.max_length, builder.min_items, builder.max_items, builder.enum_values,
        )
    )


def derive_parameter(config: ParameterConfig) -> ParameterProfile:
    """Run the classification passes over a config and freeze the result."""
    name = (config.name or "").strip()
    if not name:
        raise ConfigurationError("parameter name is required")
    location = parse_location(config.location)
    raw_type = config.type or config.constraint.type
    if not raw_type:
        raise ConfigurationError(f"parameter {name!r} has no type")

    builder = config.constraint.model_copy(deep=True)
    builder.type = raw_type
    if config.format:
        builder.format = config.format
    if config.required:
        builder.allow_null = False
    if not builder.description:
        builder.description = config.description

    try:
        value_type = ValueType(raw_type.strip().lower())
    except ValueError:
        raise ConfigurationError(f"parameter {name!r} has unknown type {raw_type!r}") from None
    fmt = builder.format.strip().lower() if builder.format else None

    if config.required:
        baseline = TestImportance.MEDIUM
    elif _is_constrained(builder):
        baseline = TestImportance.LOW
    else:
        baseline = TestImportance.OPTIONAL
    c = _Classification(max(baseline, config.importance or TestImportance.OPTIONAL))

    _classify_name(name, c)
    _classify_type(value_type, builder, c)
    _classify_format(fmt, c)
    _classify_location(name, location, c)
    if config.required:
        c.scenarios.add(Scenario.ERROR_HANDLING)
    c.scenarios |= config.extra_scenarios
    c.scenarios |= builder.scenarios

    if c.sensitivity >= SecuritySensitivity.HIGH:
        builder.escalate(
            SecurityLevel.CRITICAL if c.sensitivity is SecuritySensitivity.CRITICAL else SecurityLevel.HIGH
        )
    constraint = builder.build()

    complexity = min(
        MAX_COMPLEXITY,
        1
        + len(c.scenarios)
        + len(constraint.applicable_categories())
        + 2 * len(config.dependent_parameters)
        + len(config.conflicting_parameters)
        + len(c.flags)
        + c.importance.value,
    )
    priority = c.importance.value
    if c.sensitivity >= SecuritySensitivity.HIGH:
        priority = max(priority, 4)
    if c.flags & {ParameterFlag.SYSTEM_CRITICAL, ParameterFlag.FINANCIAL_DATA}:
        priority = 5

    logger.debug("Derived parameter %s (%s): sensitivity=%s importance=%s priority=%d",
                 name, location, c.sensitivity.name, c.importance.name, priority)

    return ParameterProfile(
        name=name,
        location=location,
        type=value_type,
        format=fmt,
        required=config.required,
        description=config.description,
        constraint=constraint,
        importance=c.importance,
        sensitivity=c.sensitivity,
        complexity=complexity,
        priority=priority,
        flags=frozenset(c.flags),
        recommended_scenarios=frozenset(c.scenarios),
        strategy_overrides=dict(config.strategy_overrides),
        dependent_parameters=tuple(config.dependent_parameters),
        conflicting_parameters=tuple(config.conflicting_parameters),
        valid_examples=FORMAT_VALID_EXAMPLES.get(fmt or "", ()),
        invalid_examples=FORMAT_INVALID_EXAMPLES.get(fmt or "", ()),
        config=config.model_copy(deep=True),
    )
