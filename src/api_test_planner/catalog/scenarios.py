"""Scenario catalog: concrete test-generation situations.

A scenario always names exactly one recommended strategy. Strategy to
scenario compatibility is kept here as well so both directions of the link
live in one table.
"""

from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from api_test_planner.catalog.strategies import StrategyType


class Scenario(StrEnum):
    HAPPY_PATH = "happy_path"
    ERROR_HANDLING = "error_handling"
    INPUT_VALIDATION_BASIC = "input_validation_basic"
    BOUNDARY_VALUES = "boundary_values"
    BOUNDARY_VALUE_ANALYSIS = "boundary_value_analysis"
    NULL_VALUE_TESTING = "null_value_testing"
    REGEX_PATTERN_TESTING = "regex_pattern_testing"
    NESTED_OBJECT_TESTING = "nested_object_testing"
    ARRAY_BOUNDARY_TESTING = "array_boundary_testing"
    EDGE_CASES = "edge_cases"
    SQL_INJECTION_BASIC = "sql_injection_basic"
    XSS_REFLECTED = "xss_reflected"
    XSS_STORED = "xss_stored"
    XML_EXTERNAL_ENTITY = "xml_external_entity"
    DESERIALIZATION_ATTACK = "deserialization_attack"
    FILE_UPLOAD_MALICIOUS = "file_upload_malicious"
    BUFFER_OVERFLOW_TEST = "buffer_overflow_test"
    DATA_EXPOSURE_TEST = "data_exposure_test"
    PRIVILEGE_ESCALATION = "privilege_escalation"
    CSRF_PROTECTION = "csrf_protection"
    AUTH_BYPASS = "auth_bypass"
    PATH_TRAVERSAL = "path_traversal"
    LOAD_TESTING_LIGHT = "load_testing_light"
    LOAD_TESTING_HEAVY = "load_testing_heavy"
    STRESS_TESTING = "stress_testing"
    CONCURRENCY_RACE_CONDITIONS = "concurrency_race_conditions"
    FUZZING_INPUT = "fuzzing_input"
    MUTATION_TESTING = "mutation_testing"
    AI_DRIVEN_EXPLORATION = "ai_driven_exploration"


class ScenarioCategory(StrEnum):
    FUNCTIONAL = "functional"
    SECURITY = "security"
    PERFORMANCE = "performance"
    CONCURRENCY = "concurrency"
    ADVANCED = "advanced"


class ScenarioInfo(BaseModel):
    """Catalog record for one scenario."""

    model_config = ConfigDict(frozen=True)

    type: Scenario
    description: str
    category: ScenarioCategory
    recommended_strategy: StrategyType
    complexity: int  # 1-4
    duration_seconds: int
    minimum_cases: int


_FN = ScenarioCategory.FUNCTIONAL
_SEC = ScenarioCategory.SECURITY
_PERF = ScenarioCategory.PERFORMANCE
_CONC = ScenarioCategory.CONCURRENCY
_ADV = ScenarioCategory.ADVANCED

_ROWS = [
    # scenario, description, category, recommended strategy, complexity, seconds, min cases
    (Scenario.HAPPY_PATH, "Valid request with expected response", _FN,
     StrategyType.FUNCTIONAL_BASIC, 1, 5, 1),
    (Scenario.ERROR_HANDLING, "Error cases and rejected inputs", _FN,
     StrategyType.FUNCTIONAL_BASIC, 2, 15, 3),
    (Scenario.INPUT_VALIDATION_BASIC, "Basic input validation", _FN,
     StrategyType.FUNCTIONAL_BOUNDARY, 1, 5, 3),
    (Scenario.BOUNDARY_VALUES, "Values at the declared bounds", _FN,
     StrategyType.FUNCTIONAL_BOUNDARY, 2, 15, 5),
    (Scenario.BOUNDARY_VALUE_ANALYSIS, "Values on both sides of each bound", _FN,
     StrategyType.FUNCTIONAL_BOUNDARY, 2, 15, 5),
    (Scenario.NULL_VALUE_TESTING, "Null and missing values", _FN,
     StrategyType.FUNCTIONAL_BOUNDARY, 2, 15, 5),
    (Scenario.REGEX_PATTERN_TESTING, "Inputs against the declared pattern", _FN,
     StrategyType.FUNCTIONAL_BOUNDARY, 2, 15, 5),
    (Scenario.NESTED_OBJECT_TESTING, "Nested object validation", _FN,
     StrategyType.FUNCTIONAL_COMPREHENSIVE, 2, 30, 5),
    (Scenario.ARRAY_BOUNDARY_TESTING, "Array item-count bounds", _FN,
     StrategyType.FUNCTIONAL_BOUNDARY, 2, 30, 5),
    (Scenario.EDGE_CASES, "Pathological but legal inputs", _FN,
     StrategyType.FUNCTIONAL_EDGE_CASE, 3, 30, 5),
    (Scenario.SQL_INJECTION_BASIC, "Basic SQL injection", _SEC,
     StrategyType.SECURITY_INJECTION, 2, 30, 10),
    (Scenario.XSS_REFLECTED, "Reflected cross-site scripting", _SEC,
     StrategyType.SECURITY_XSS, 2, 30, 10),
    (Scenario.XSS_STORED, "Stored cross-site scripting", _SEC,
     StrategyType.SECURITY_XSS, 2, 30, 10),
    (Scenario.XML_EXTERNAL_ENTITY, "XML external entity attacks", _SEC,
     StrategyType.SECURITY_INJECTION, 3, 60, 15),
    (Scenario.DESERIALIZATION_ATTACK, "Unsafe deserialization", _SEC,
     StrategyType.SECURITY_INJECTION, 3, 60, 15),
    (Scenario.FILE_UPLOAD_MALICIOUS, "Malicious file upload", _SEC,
     StrategyType.SECURITY_PENETRATION, 3, 60, 15),
    (Scenario.BUFFER_OVERFLOW_TEST, "Oversized input handling", _SEC,
     StrategyType.SECURITY_PENETRATION, 3, 60, 15),
    (Scenario.DATA_EXPOSURE_TEST, "Sensitive data exposure", _SEC,
     StrategyType.SECURITY_OWASP_TOP10, 3, 60, 15),
    (Scenario.PRIVILEGE_ESCALATION, "Privilege escalation", _SEC,
     StrategyType.SECURITY_AUTHORIZATION, 3, 60, 15),
    (Scenario.CSRF_PROTECTION, "Cross-site request forgery protection", _SEC,
     StrategyType.SECURITY_XSS, 2, 30, 10),
    (Scenario.AUTH_BYPASS, "Authentication bypass", _SEC,
     StrategyType.SECURITY_AUTHENTICATION, 3, 60, 15),
    (Scenario.PATH_TRAVERSAL, "Directory traversal through path-like inputs", _SEC,
     StrategyType.SECURITY_INJECTION, 3, 60, 10),
    (Scenario.LOAD_TESTING_LIGHT, "Light load", _PERF,
     StrategyType.PERFORMANCE_BASIC, 1, 30, 10),
    (Scenario.LOAD_TESTING_HEAVY, "Heavy load", _PERF,
     StrategyType.PERFORMANCE_LOAD, 3, 60, 15),
    (Scenario.STRESS_TESTING, "Load beyond capacity", _PERF,
     StrategyType.PERFORMANCE_STRESS, 3, 120, 25),
    (Scenario.CONCURRENCY_RACE_CONDITIONS, "Concurrent modification and races", _CONC,
     StrategyType.ADVANCED_CONCURRENCY, 3, 120, 50),
    (Scenario.FUZZING_INPUT, "Randomised input fuzzing", _ADV,
     StrategyType.ADVANCED_FUZZING, 4, 30, 5),
    (Scenario.MUTATION_TESTING, "Mutations of valid inputs", _ADV,
     StrategyType.ADVANCED_FUZZING, 4, 30, 5),
    (Scenario.AI_DRIVEN_EXPLORATION, "Broad exploratory generation", _ADV,
     StrategyType.ADVANCED_AI_DRIVEN, 4, 30, 5),
]

SCENARIOS = MappingProxyType({
    row[0]: ScenarioInfo(
        type=row[0],
        description=row[1],
        category=row[2],
        recommended_strategy=row[3],
        complexity=row[4],
        duration_seconds=row[5],
        minimum_cases=row[6],
    )
    for row in _ROWS
})

_COMPATIBLE = MappingProxyType({
    StrategyType.FUNCTIONAL_BASIC: (
        Scenario.HAPPY_PATH, Scenario.ERROR_HANDLING, Scenario.INPUT_VALIDATION_BASIC,
    ),
    StrategyType.FUNCTIONAL_COMPREHENSIVE: (
        Scenario.HAPPY_PATH, Scenario.ERROR_HANDLING, Scenario.BOUNDARY_VALUES,
        Scenario.INPUT_VALIDATION_BASIC, Scenario.NESTED_OBJECT_TESTING,
        Scenario.ARRAY_BOUNDARY_TESTING,
    ),
    StrategyType.FUNCTIONAL_BOUNDARY: (
        Scenario.BOUNDARY_VALUES, Scenario.BOUNDARY_VALUE_ANALYSIS,
        Scenario.NULL_VALUE_TESTING, Scenario.REGEX_PATTERN_TESTING,
        Scenario.NESTED_OBJECT_TESTING, Scenario.ARRAY_BOUNDARY_TESTING,
    ),
    StrategyType.FUNCTIONAL_EDGE_CASE: (
        Scenario.EDGE_CASES, Scenario.NULL_VALUE_TESTING,
    ),
    StrategyType.SECURITY_BASIC: (
        Scenario.SQL_INJECTION_BASIC, Scenario.XSS_REFLECTED, Scenario.INPUT_VALIDATION_BASIC,
    ),
    StrategyType.SECURITY_INJECTION: (
        Scenario.SQL_INJECTION_BASIC, Scenario.XML_EXTERNAL_ENTITY,
        Scenario.DESERIALIZATION_ATTACK, Scenario.PATH_TRAVERSAL,
    ),
    StrategyType.SECURITY_XSS: (
        Scenario.XSS_REFLECTED, Scenario.XSS_STORED, Scenario.CSRF_PROTECTION,
    ),
    StrategyType.SECURITY_OWASP_TOP10: (
        Scenario.SQL_INJECTION_BASIC, Scenario.XSS_REFLECTED, Scenario.XML_EXTERNAL_ENTITY,
        Scenario.DESERIALIZATION_ATTACK, Scenario.AUTH_BYPASS, Scenario.PRIVILEGE_ESCALATION,
        Scenario.CSRF_PROTECTION, Scenario.FILE_UPLOAD_MALICIOUS,
        Scenario.DATA_EXPOSURE_TEST, Scenario.BUFFER_OVERFLOW_TEST,
    ),
    StrategyType.SECURITY_PENETRATION: (
        Scenario.SQL_INJECTION_BASIC, Scenario.XSS_REFLECTED, Scenario.XML_EXTERNAL_ENTITY,
        Scenario.DESERIALIZATION_ATTACK, Scenario.AUTH_BYPASS, Scenario.PRIVILEGE_ESCALATION,
        Scenario.BUFFER_OVERFLOW_TEST, Scenario.DATA_EXPOSURE_TEST,
        Scenario.FILE_UPLOAD_MALICIOUS,
    ),
    StrategyType.SECURITY_AUTHENTICATION: (Scenario.AUTH_BYPASS,),
    StrategyType.SECURITY_AUTHORIZATION: (Scenario.PRIVILEGE_ESCALATION,),
    StrategyType.PERFORMANCE_BASIC: (Scenario.LOAD_TESTING_LIGHT,),
    StrategyType.PERFORMANCE_LOAD: (Scenario.LOAD_TESTING_HEAVY, Scenario.STRESS_TESTING),
    StrategyType.PERFORMANCE_STRESS: (Scenario.LOAD_TESTING_HEAVY, Scenario.STRESS_TESTING),
    StrategyType.ADVANCED_AI_DRIVEN: (
        Scenario.AI_DRIVEN_EXPLORATION, Scenario.HAPPY_PATH, Scenario.BOUNDARY_VALUES,
        Scenario.ERROR_HANDLING, Scenario.SQL_INJECTION_BASIC,
    ),
    StrategyType.ADVANCED_FUZZING: (Scenario.FUZZING_INPUT, Scenario.MUTATION_TESTING),
    StrategyType.ADVANCED_CONCURRENCY: (Scenario.CONCURRENCY_RACE_CONDITIONS,),
})

DEFAULT_SCENARIO = Scenario.HAPPY_PATH


def scenario(type_: Scenario) -> ScenarioInfo:
    """Look up the catalog record for a scenario."""
    return SCENARIOS[Scenario(type_)]


def recommended_strategy(type_: Scenario) -> StrategyType:
    return scenario(type_).recommended_strategy


def scenarios_in(category: ScenarioCategory) -> list[Scenario]:
    return [s for s, info in SCENARIOS.items() if info.category == category]


def compatible_scenarios(type_: StrategyType) -> tuple[Scenario, ...]:
    """Scenarios a strategy knows how to exercise; falls back to the happy path."""
    return _COMPATIBLE.get(StrategyType(type_), (DEFAULT_SCENARIO,))


def catalog_order(scenarios) -> list[Scenario]:
    """Sort scenarios into catalog order, dropping duplicates."""
    order = {s: i for i, s in enumerate(SCENARIOS)}
    return sorted(set(scenarios), key=order.__getitem__)
