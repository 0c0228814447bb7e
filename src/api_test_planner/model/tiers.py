"""Ordered tiers and shared vocabularies.

Tiers are ``IntEnum``s so they compare by ordinal (``level >= HIGH``).
"""

from enum import IntEnum, StrEnum

from api_test_planner.catalog.strategies import StrategyType


class SecurityLevel(IntEnum):
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def required_strategy(self) -> StrategyType:
        return _SECURITY_LEVEL_STRATEGY[self]


_SECURITY_LEVEL_STRATEGY = {
    SecurityLevel.LOW: StrategyType.FUNCTIONAL_BASIC,
    SecurityLevel.NORMAL: StrategyType.SECURITY_BASIC,
    SecurityLevel.HIGH: StrategyType.SECURITY_OWASP_TOP10,
    SecurityLevel.CRITICAL: StrategyType.SECURITY_PENETRATION,
}


class TestImportance(IntEnum):
    """How much a parameter matters; the value doubles as its priority (1-5)."""

    __test__ = False

    OPTIONAL = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    CRITICAL = 5


class SecuritySensitivity(IntEnum):
    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class BusinessCriticality(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def urgency(self) -> int:
        """Test-case priority on the 1 (most urgent) .. 4 scale."""
        return 5 - self.value


class ValueType(StrEnum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ValueCategory(StrEnum):
    """Kinds of values a constraint can synthesize."""

    HAPPY_PATH = "happy_path"
    BOUNDARY = "boundary"
    EDGE_CASE = "edge_case"
    ERROR_HANDLING = "error_handling"
    SECURITY = "security"
    SQL_INJECTION = "sql_injection"
    XSS = "xss"
    PATH_TRAVERSAL = "path_traversal"
    INVALID_RANGE = "invalid_range"
    INVALID_LENGTH = "invalid_length"
    INVALID_TYPE = "invalid_type"
    INVALID_PATTERN = "invalid_pattern"
    INVALID_ENUM = "invalid_enum"
    FUZZ = "fuzz"
    LARGE_PAYLOAD = "large_payload"


SECURITY_CATEGORIES = frozenset({
    ValueCategory.SECURITY,
    ValueCategory.SQL_INJECTION,
    ValueCategory.XSS,
    ValueCategory.PATH_TRAVERSAL,
})


def tier_by_name(enum_cls: type[IntEnum], raw):
    """Accept a tier as a member, its ordinal or its case-insensitive name."""
    if raw is None or isinstance(raw, enum_cls):
        return raw
    if isinstance(raw, int) and not isinstance(raw, bool):
        return enum_cls(raw)
    name = str(raw).strip().upper().replace("-", "_")
    if name.isdigit():
        return enum_cls(int(name))
    try:
        return enum_cls[name]
    except KeyError:
        raise ValueError(f"unknown {enum_cls.__name__}: {raw!r}") from None
