"""Strategy catalog: the closed taxonomy of testing techniques.

Every strategy is an immutable record in ``STRATEGIES``. Nothing here has
behaviour beyond lookups; scenario links live in ``catalog.scenarios``.
"""

from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict


class StrategyType(StrEnum):
    FUNCTIONAL_BASIC = "functional_basic"
    FUNCTIONAL_COMPREHENSIVE = "functional_comprehensive"
    FUNCTIONAL_BOUNDARY = "functional_boundary"
    FUNCTIONAL_EDGE_CASE = "functional_edge_case"
    SECURITY_BASIC = "security_basic"
    SECURITY_INJECTION = "security_injection"
    SECURITY_XSS = "security_xss"
    SECURITY_OWASP_TOP10 = "security_owasp_top10"
    SECURITY_PENETRATION = "security_penetration"
    SECURITY_AUTHENTICATION = "security_authentication"
    SECURITY_AUTHORIZATION = "security_authorization"
    PERFORMANCE_BASIC = "performance_basic"
    PERFORMANCE_LOAD = "performance_load"
    PERFORMANCE_STRESS = "performance_stress"
    ADVANCED_AI_DRIVEN = "advanced_ai_driven"
    ADVANCED_FUZZING = "advanced_fuzzing"
    ADVANCED_CONCURRENCY = "advanced_concurrency"


class StrategyCategory(StrEnum):
    FUNCTIONAL = "functional"
    SECURITY = "security"
    PERFORMANCE = "performance"
    ADVANCED = "advanced"


class ResourceLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BusinessImpact(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Strategy(BaseModel):
    """A named testing technique with its fixed weights."""

    model_config = ConfigDict(frozen=True)

    type: StrategyType
    display_name: str
    description: str
    category: StrategyCategory
    complexity: int  # 1-5, drives synthesis effort and tie-breaks
    priority: int  # 1 = most urgent
    duration_minutes: int
    recommended_case_count: int
    resource_level: ResourceLevel
    risk_level: int  # 1-5
    business_impact: BusinessImpact


def _entry(
    type_: StrategyType,
    display_name: str,
    description: str,
    category: StrategyCategory,
    complexity: int,
    priority: int,
    duration_minutes: int,
    recommended_case_count: int,
    resource_level: ResourceLevel,
    risk_level: int,
    business_impact: BusinessImpact,
) -> tuple[StrategyType, Strategy]:
    return type_, Strategy(
        type=type_,
        display_name=display_name,
        description=description,
        category=category,
        complexity=complexity,
        priority=priority,
        duration_minutes=duration_minutes,
        recommended_case_count=recommended_case_count,
        resource_level=resource_level,
        risk_level=risk_level,
        business_impact=business_impact,
    )


_F = StrategyCategory.FUNCTIONAL
_S = StrategyCategory.SECURITY
_P = StrategyCategory.PERFORMANCE
_A = StrategyCategory.ADVANCED

STRATEGIES = MappingProxyType(dict([
    _entry(StrategyType.FUNCTIONAL_BASIC, "Basic functional testing",
           "Happy path and basic error scenarios", _F,
           1, 1, 5, 3, ResourceLevel.LOW, 1, BusinessImpact.HIGH),
    _entry(StrategyType.FUNCTIONAL_COMPREHENSIVE, "Comprehensive functional testing",
           "Complete functional coverage of the operation", _F,
           3, 3, 30, 15, ResourceLevel.MEDIUM, 3, BusinessImpact.HIGH),
    _entry(StrategyType.FUNCTIONAL_BOUNDARY, "Boundary value testing",
           "Limits, lengths and counts at and around their bounds", _F,
           2, 3, 15, 8, ResourceLevel.LOW, 2, BusinessImpact.MEDIUM),
    _entry(StrategyType.FUNCTIONAL_EDGE_CASE, "Edge case testing",
           "Pathological but legal inputs", _F,
           3, 3, 15, 8, ResourceLevel.LOW, 2, BusinessImpact.MEDIUM),
    _entry(StrategyType.SECURITY_BASIC, "Basic security testing",
           "Fundamental input hardening and access checks", _S,
           1, 2, 5, 3, ResourceLevel.LOW, 2, BusinessImpact.CRITICAL),
    _entry(StrategyType.SECURITY_INJECTION, "Injection testing",
           "SQL, XML and similar injection attacks", _S,
           2, 2, 15, 12, ResourceLevel.MEDIUM, 3, BusinessImpact.CRITICAL),
    _entry(StrategyType.SECURITY_XSS, "Cross-site scripting testing",
           "Reflected and stored script injection", _S,
           2, 2, 15, 12, ResourceLevel.MEDIUM, 3, BusinessImpact.CRITICAL),
    _entry(StrategyType.SECURITY_OWASP_TOP10, "OWASP Top 10 testing",
           "Coverage of the OWASP Top 10 risk classes", _S,
           3, 2, 30, 25, ResourceLevel.MEDIUM, 4, BusinessImpact.CRITICAL),
    _entry(StrategyType.SECURITY_PENETRATION, "Penetration testing",
           "Attacker-style probing of the operation", _S,
           4, 4, 45, 30, ResourceLevel.HIGH, 5, BusinessImpact.CRITICAL),
    _entry(StrategyType.SECURITY_AUTHENTICATION, "Authentication testing",
           "Credential handling and authentication bypass", _S,
           2, 2, 15, 8, ResourceLevel.MEDIUM, 3, BusinessImpact.CRITICAL),
    _entry(StrategyType.SECURITY_AUTHORIZATION, "Authorization testing",
           "Access control and privilege boundaries", _S,
           2, 2, 15, 8, ResourceLevel.MEDIUM, 3, BusinessImpact.CRITICAL),
    _entry(StrategyType.PERFORMANCE_BASIC, "Basic performance testing",
           "Light response-time validation", _P,
           1, 4, 15, 8, ResourceLevel.MEDIUM, 1, BusinessImpact.MEDIUM),
    _entry(StrategyType.PERFORMANCE_LOAD, "Load testing",
           "Sustained high-volume traffic", _P,
           3, 5, 45, 20, ResourceLevel.HIGH, 4, BusinessImpact.MEDIUM),
    _entry(StrategyType.PERFORMANCE_STRESS, "Stress testing",
           "Traffic beyond expected capacity", _P,
           3, 5, 30, 20, ResourceLevel.HIGH, 4, BusinessImpact.MEDIUM),
    _entry(StrategyType.ADVANCED_AI_DRIVEN, "Exploratory generation",
           "Broad exploration mixing several scenario families", _A,
           4, 5, 60, 50, ResourceLevel.HIGH, 5, BusinessImpact.LOW),
    _entry(StrategyType.ADVANCED_FUZZING, "Fuzzing",
           "Randomised and mutated inputs", _A,
           4, 5, 60, 50, ResourceLevel.HIGH, 5, BusinessImpact.LOW),
    _entry(StrategyType.ADVANCED_CONCURRENCY, "Concurrency testing",
           "Race conditions and parallel modification", _A,
           3, 5, 60, 40, ResourceLevel.HIGH, 5, BusinessImpact.MEDIUM),
]))

# Minimal functional baseline used whenever an enabled set would be empty.
DEFAULT_STRATEGY = StrategyType.FUNCTIONAL_BASIC


def strategy(type_: StrategyType) -> Strategy:
    """Look up the catalog record for a strategy type."""
    return STRATEGIES[StrategyType(type_)]


def strategies_in(category: StrategyCategory) -> list[StrategyType]:
    """All strategy types of one category, in catalog order."""
    return [t for t, s in STRATEGIES.items() if s.category == category]


def alternatives(type_: StrategyType) -> list[StrategyType]:
    """Other strategies of the same category."""
    category = strategy(type_).category
    return [t for t in strategies_in(category) if t != type_]


def catalog_order(types) -> list[StrategyType]:
    """Sort strategy types into catalog order."""
    order = {t: i for i, t in enumerate(STRATEGIES)}
    return sorted(set(types), key=order.__getitem__)
