"""Endpoint-level classification vocabularies and complexity analysis.

``perform_complexity_analysis`` is pure: it reads parameter profiles and
endpoint metadata and returns a ``ComplexityAnalysis``. Running it twice on
the same inputs yields the same result.
"""

from collections.abc import Iterable, Mapping, Sequence
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from api_test_planner.catalog.scenarios import Scenario
from api_test_planner.catalog.strategies import StrategyType
from api_test_planner.model.constraint import Constraint
from api_test_planner.model.tiers import BusinessCriticality, ValueType
from api_test_planner.profile import vocabulary as vocab
from api_test_planner.profile.parameter import Location, ParameterFlag, ParameterProfile


class PerformanceProfile(StrEnum):
    FAST = "fast"
    STANDARD = "standard"
    HIGH_THROUGHPUT = "high_throughput"
    CRITICAL = "critical"


class SecurityRisk(StrEnum):
    INJECTION = "injection"
    XSS = "xss"
    BROKEN_AUTHENTICATION = "broken_authentication"
    BROKEN_ACCESS_CONTROL = "broken_access_control"
    SENSITIVE_DATA_EXPOSURE = "sensitive_data_exposure"
    CSRF = "csrf"
    INSECURE_FILE_UPLOAD = "insecure_file_upload"
    PATH_TRAVERSAL = "path_traversal"


class TestCategory(StrEnum):
    __test__ = False

    FUNCTIONAL = "functional"
    BOUNDARY = "boundary"
    SECURITY = "security"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    BUSINESS_RULES = "business_rules"
    DATA_PRIVACY = "data_privacy"
    PERFORMANCE = "performance"
    LOAD = "load"
    CONCURRENCY = "concurrency"
    ERROR_HANDLING = "error_handling"


class ComplexityLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


CRITICALITY_STRATEGY = MappingProxyType({
    BusinessCriticality.LOW: StrategyType.FUNCTIONAL_BASIC,
    BusinessCriticality.MEDIUM: StrategyType.FUNCTIONAL_COMPREHENSIVE,
    BusinessCriticality.HIGH: StrategyType.SECURITY_BASIC,
    BusinessCriticality.CRITICAL: StrategyType.SECURITY_OWASP_TOP10,
})

# profile -> (recommended strategy, associated scenario)
PERFORMANCE_TESTING = MappingProxyType({
    PerformanceProfile.FAST: (StrategyType.PERFORMANCE_BASIC, Scenario.LOAD_TESTING_LIGHT),
    PerformanceProfile.STANDARD: (StrategyType.PERFORMANCE_BASIC, Scenario.LOAD_TESTING_LIGHT),
    PerformanceProfile.HIGH_THROUGHPUT: (StrategyType.PERFORMANCE_LOAD, Scenario.LOAD_TESTING_HEAVY),
    PerformanceProfile.CRITICAL: (StrategyType.PERFORMANCE_STRESS, Scenario.STRESS_TESTING),
})

# risk -> (strategy, scenario)
RISK_TESTING = MappingProxyType({
    SecurityRisk.INJECTION: (StrategyType.SECURITY_INJECTION, Scenario.SQL_INJECTION_BASIC),
    SecurityRisk.XSS: (StrategyType.SECURITY_XSS, Scenario.XSS_REFLECTED),
    SecurityRisk.BROKEN_AUTHENTICATION: (StrategyType.SECURITY_AUTHENTICATION, Scenario.AUTH_BYPASS),
    SecurityRisk.BROKEN_ACCESS_CONTROL: (StrategyType.SECURITY_AUTHORIZATION, Scenario.PRIVILEGE_ESCALATION),
    SecurityRisk.SENSITIVE_DATA_EXPOSURE: (StrategyType.SECURITY_OWASP_TOP10, Scenario.DATA_EXPOSURE_TEST),
    SecurityRisk.CSRF: (StrategyType.SECURITY_BASIC, Scenario.CSRF_PROTECTION),
    SecurityRisk.INSECURE_FILE_UPLOAD: (StrategyType.SECURITY_PENETRATION, Scenario.FILE_UPLOAD_MALICIOUS),
    SecurityRisk.PATH_TRAVERSAL: (StrategyType.SECURITY_INJECTION, Scenario.PATH_TRAVERSAL),
})

DATA_MODIFYING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

_METHOD_WEIGHT = {"GET": 1, "POST": 3, "PUT": 3, "DELETE": 2, "PATCH": 4}


class ComplexityAnalysis(BaseModel):
    """Result of the multi-pass complexity analysis."""

    model_config = ConfigDict(frozen=True)

    nesting_depth: int = 0
    complex_parameter_count: int = 0
    required_parameter_count: int = 0
    response_type_count: int = 0
    has_business_rules: bool = False
    has_validation_rules: bool = False
    requires_authorization: bool = False
    handles_personal_data: bool = False
    high_traffic: bool = False
    compute_intensive: bool = False
    security_risks: frozenset[SecurityRisk] = frozenset()
    recommended_categories: frozenset[TestCategory] = frozenset()
    estimated_test_count: int = 10


def nesting_depth(constraint: Constraint | None) -> int:
    """Levels of object/array nesting inside a constraint."""
    if constraint is None or constraint.type not in (ValueType.OBJECT, ValueType.ARRAY):
        return 0
    children = [constraint.item_constraint, *constraint.property_constraints.values()]
    return 1 + max((nesting_depth(child) for child in children), default=0)


def response_type_count(responses: Iterable[str]) -> int:
    """Number of distinct status classes (2xx, 4xx, ...) among the responses."""
    classes = set()
    for code in responses:
        code = str(code)
        classes.add(f"{code[0]}xx" if code[:1].isdigit() else code.lower())
    return len(classes)


def is_data_modifying(method: str) -> bool:
    return method.upper() in DATA_MODIFYING_METHODS


def endpoint_complexity_score(method: str, path: str, parameter_count: int,
                              has_body: bool, authenticated: bool) -> int:
    score = _METHOD_WEIGHT.get(method.upper(), 1)
    score += 2 * path.count("{")
    score += 2 * parameter_count
    if has_body:
        score += 5
    if authenticated:
        score += 4
    return score


def complexity_level(score: int) -> ComplexityLevel:
    if score <= 10:
        return ComplexityLevel.LOW
    if score <= 20:
        return ComplexityLevel.MEDIUM
    if score <= 50:
        return ComplexityLevel.HIGH
    return ComplexityLevel.VERY_HIGH


def _has_validation_rule(constraint: Constraint) -> bool:
    return (
        constraint.pattern is not None
        or constraint.minimum is not None
        or constraint.maximum is not None
    )


def _is_upload(p: ParameterProfile) -> bool:
    return p.format in ("binary", "byte") or (
        p.location is Location.FORM_DATA and ParameterFlag.FILE_SYSTEM_ACCESS in p.flags
    )


def derive_security_risks(
    method: str,
    parameters: Sequence[ParameterProfile],
    authenticated: bool,
    requires_authorization: bool,
) -> set[SecurityRisk]:
    risks: set[SecurityRisk] = set()
    modifying = is_data_modifying(method)
    for p in parameters:
        if Scenario.SQL_INJECTION_BASIC in p.recommended_scenarios or ParameterFlag.DATABASE_QUERY in p.flags:
            risks.add(SecurityRisk.INJECTION)
        if p.recommended_scenarios & {Scenario.XSS_REFLECTED, Scenario.XSS_STORED}:
            risks.add(SecurityRisk.XSS)
        if modifying and p.type is ValueType.STRING and p.location in (Location.BODY, Location.FORM_DATA):
            risks.add(SecurityRisk.XSS)
        if ParameterFlag.AUTHENTICATION_RELATED in p.flags:
            risks.add(SecurityRisk.BROKEN_AUTHENTICATION)
        if p.flags & {ParameterFlag.PERSONAL_DATA, ParameterFlag.FINANCIAL_DATA}:
            risks.add(SecurityRisk.SENSITIVE_DATA_EXPOSURE)
        if p.location is Location.COOKIE and modifying:
            risks.add(SecurityRisk.CSRF)
        if _is_upload(p):
            risks.add(SecurityRisk.INSECURE_FILE_UPLOAD)
        elif Scenario.PATH_TRAVERSAL in p.recommended_scenarios:
            risks.add(SecurityRisk.PATH_TRAVERSAL)
        if authenticated and p.location is Location.PATH and ParameterFlag.IDENTIFIER in p.flags:
            risks.add(SecurityRisk.BROKEN_ACCESS_CONTROL)
    if authenticated:
        risks.add(SecurityRisk.BROKEN_AUTHENTICATION)
    if requires_authorization:
        risks.add(SecurityRisk.BROKEN_ACCESS_CONTROL)
    return risks


def perform_complexity_analysis(
    method: str,
    parameters: Sequence[ParameterProfile],
    responses: Mapping[str, object] | Iterable[str],
    security_schemes: Sequence[str],
    tags: Sequence[str],
    extra_risks: Iterable[SecurityRisk] = (),
) -> ComplexityAnalysis:
    """Structural flags, then security risks, then categories and the estimate."""
    method = method.upper()
    authenticated = bool(security_schemes)
    modifying = is_data_modifying(method)
    normalized_tags = [vocab.normalize(t) for t in tags]

    # pass 1: structure
    depth = max((nesting_depth(p.constraint) for p in parameters), default=0)
    complex_count = sum(1 for p in parameters if p.type in (ValueType.OBJECT, ValueType.ARRAY))
    required_count = sum(1 for p in parameters if p.required)
    response_types = response_type_count(responses)
    business_rules = complex_count > 2 or required_count > 3 or response_types > 2
    validation_rules = any(_has_validation_rule(p.constraint) for p in parameters)
    authorization = len(security_schemes) > 1 or any(t in vocab.ADMIN_TAGS for t in normalized_tags)
    personal = any(vocab.matches(p.name, vocab.PERSONAL_TERMS) for p in parameters)
    high_traffic = any(t in vocab.HIGH_TRAFFIC_TAGS for t in normalized_tags)
    compute_intensive = method == "POST" and any(
        _is_upload(p) or p.type is ValueType.ARRAY or vocab.matches(p.name, vocab.BULK_TERMS)
        for p in parameters
    )

    # pass 2: risks
    risks = derive_security_risks(method, parameters, authenticated, authorization)
    risks.update(extra_risks)

    # pass 3: categories and estimate
    categories = {TestCategory.FUNCTIONAL}
    if parameters or modifying:
        categories.add(TestCategory.ERROR_HANDLING)
    if any(p.constraint.is_numeric or p.constraint.min_length is not None
           or p.constraint.max_length is not None for p in parameters):
        categories.add(TestCategory.BOUNDARY)
    if validation_rules or modifying:
        categories.add(TestCategory.VALIDATION)
    if risks:
        categories.add(TestCategory.SECURITY)
    if authenticated:
        categories.add(TestCategory.AUTHENTICATION)
    if authorization:
        categories.add(TestCategory.AUTHORIZATION)
    if business_rules:
        categories.add(TestCategory.BUSINESS_RULES)
    if personal:
        categories.add(TestCategory.DATA_PRIVACY)
    if high_traffic or compute_intensive:
        categories.add(TestCategory.PERFORMANCE)
    if high_traffic:
        categories.add(TestCategory.LOAD)
    if high_traffic and modifying:
        categories.add(TestCategory.CONCURRENCY)

    response_count = len(list(responses))
    estimate = max(
        10,
        2 * len(parameters)
        + 3 * response_count
        + (5 if authenticated else 0)
        + (8 if modifying else 3)
        + 3 * len(risks)
        + 2 * len(categories),
    )

    return ComplexityAnalysis(
        nesting_depth=depth,
        complex_parameter_count=complex_count,
        required_parameter_count=required_count,
        response_type_count=response_types,
        has_business_rules=business_rules,
        has_validation_rules=validation_rules,
        requires_authorization=authorization,
        handles_personal_data=personal,
        high_traffic=high_traffic,
        compute_intensive=compute_intensive,
        security_risks=frozenset(risks),
        recommended_categories=frozenset(categories),
        estimated_test_count=estimate,
    )
