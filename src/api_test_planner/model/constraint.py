"""Constraint model: the legal-value contract of a single field.

A ``ConstraintBuilder`` is the mutable description handed in by an ingestion
collaborator. ``derive_constraint`` turns it into a frozen ``Constraint``
that can validate values and synthesize candidates per ``ValueCategory``.
"""

import hashlib
import logging
import math
import random
import re
import string
from fractions import Fraction
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from api_test_planner.catalog.complexity import TestComplexity, tier
from api_test_planner.catalog.scenarios import (
    DEFAULT_SCENARIO,
    Scenario,
    recommended_strategy,
)
from api_test_planner.catalog.strategies import (
    DEFAULT_STRATEGY,
    StrategyType,
    strategy as strategy_info,
)
from api_test_planner.errors import ConfigurationError
from api_test_planner.generator.prioritizer import RankingStrategy, limit
from api_test_planner.model.cache import ValidationCache, canonical_form
from api_test_planner.model.payloads import (
    BLACKLIST_PATTERNS,
    EDGE_STRINGS,
    FORMAT_BOUNDS,
    FORMAT_INVALID_EXAMPLES,
    FORMAT_LENGTHS,
    FORMAT_PATTERNS,
    FORMAT_VALID_EXAMPLES,
    INVALID_ENUM_VALUE,
    INVALID_TYPE_SAMPLES,
    LARGE_ARRAY_LENGTH,
    LARGE_STRING_LENGTH,
    PATH_TRAVERSAL_PAYLOADS,
    SQL_INJECTION_PAYLOADS,
    XSS_PAYLOADS,
)
from api_test_planner.model.tiers import SecurityLevel, ValueCategory, ValueType

logger = logging.getLogger(__name__)

Number = int | float

NUMERIC_TYPES = frozenset({ValueType.INTEGER, ValueType.NUMBER})

_FILLER = string.ascii_lowercase
_FUZZ_CASES = 5
_MULTIPLE_TOLERANCE = Fraction(1, 10**9)


@lru_cache(maxsize=512)
def compiled(pattern: str) -> re.Pattern:
    """Compile a regex once per process; patterns are immutable strings."""
    return re.compile(pattern)


def filler(length: int) -> str:
    """Deterministic lowercase string of exactly ``length`` characters."""
    if length <= 0:
        return ""
    repeats = length // len(_FILLER) + 1
    return (_FILLER * repeats)[:length]


# -- builder -------------------------------------------------------------------


class ConstraintBuilder(BaseModel):
    """Mutable constraint description; call ``build()`` to derive a Constraint."""

    model_config = ConfigDict(validate_assignment=True)

    type: str | None = None  # string / integer / number / boolean / array / object
    format: str | None = None
    pattern: str | None = None
    description: str = ""
    default: Any = None
    example: Any = None
    minimum: Number | None = None
    maximum: Number | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    multiple_of: Number | None = None
    min_length: int | None = None
    max_length: int | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False
    min_properties: int | None = None
    max_properties: int | None = None
    items: "ConstraintBuilder | None" = None
    properties: dict[str, "ConstraintBuilder"] = Field(default_factory=dict)
    required_properties: list[str] = Field(default_factory=list)
    enum_values: list[Any] = Field(default_factory=list)
    allow_null: bool = True
    allow_empty: bool = True
    security_level: SecurityLevel | None = None
    blacklist_patterns: list[str] = Field(default_factory=list)
    test_complexity: TestComplexity = TestComplexity.STANDARD
    strategies: set[StrategyType] = Field(default_factory=set)
    scenarios: set[Scenario] = Field(default_factory=set)
    max_test_variations: int | None = None

    def length(self, min_length: int | None = None, max_length: int | None = None) -> "ConstraintBuilder":
        self.min_length = min_length
        self.max_length = max_length
        return self

    def range(
        self,
        minimum: Number | None = None,
        maximum: Number | None = None,
        *,
        exclusive_minimum: bool = False,
        exclusive_maximum: bool = False,
    ) -> "ConstraintBuilder":
        self.minimum = minimum
        self.maximum = maximum
        self.exclusive_minimum = exclusive_minimum
        self.exclusive_maximum = exclusive_maximum
        return self

    def add_strategy(self, strategy: StrategyType) -> "ConstraintBuilder":
        self.strategies.add(StrategyType(strategy))
        return self

    def add_scenario(self, scenario: Scenario) -> "ConstraintBuilder":
        self.scenarios.add(Scenario(scenario))
        return self

    def escalate(self, level: SecurityLevel) -> "ConstraintBuilder":
        """Raise the security level; never lowers it."""
        current = self.security_level or SecurityLevel.NORMAL
        self.security_level = max(current, SecurityLevel(level))
        return self

    def build(self) -> "Constraint":
        return derive_constraint(self)


# -- constraint ----------------------------------------------------------------


class Constraint(BaseModel):
    """Frozen legal-value contract for one field."""

    model_config = ConfigDict(frozen=True)

    type: ValueType
    format: str | None = None
    pattern: str | None = None
    description: str = ""
    default: Any = None
    example: Any = None
    minimum: Number | None = None
    maximum: Number | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    multiple_of: Number | None = None
    min_length: int | None = None
    max_length: int | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False
    min_properties: int | None = None
    max_properties: int | None = None
    item_constraint: "Constraint | None" = None
    property_constraints: dict[str, "Constraint"] = Field(default_factory=dict)
    required_properties: tuple[str, ...] = ()
    enum_values: tuple[Any, ...] = ()
    allow_null: bool = True
    allow_empty: bool = True
    security_level: SecurityLevel = SecurityLevel.NORMAL
    blacklist_patterns: tuple[str, ...] = ()
    test_complexity: TestComplexity = TestComplexity.STANDARD
    enabled_strategies: frozenset[StrategyType] = frozenset({DEFAULT_STRATEGY})
    enabled_scenarios: frozenset[Scenario] = frozenset({DEFAULT_SCENARIO})
    max_test_variations: int = Field(default=15, gt=0)

    _fingerprint: str = PrivateAttr(default="")

    def model_post_init(self, __context: Any) -> None:
        data = self.model_dump(
            mode="json",
            exclude={"enabled_strategies", "enabled_scenarios", "item_constraint", "property_constraints"},
        )
        data["enabled_strategies"] = sorted(self.enabled_strategies)
        data["enabled_scenarios"] = sorted(self.enabled_scenarios)
        data["item_constraint"] = self.item_constraint.fingerprint if self.item_constraint else None
        data["property_constraints"] = {
            name: c.fingerprint for name, c in sorted(self.property_constraints.items())
        }
        self._fingerprint = hashlib.sha1(canonical_form(data).encode("utf-8")).hexdigest()

    @property
    def fingerprint(self) -> str:
        """Structural identity; equal constraints share a fingerprint."""
        return self._fingerprint

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES

    # -- catalog views --

    def is_strategy_enabled(self, strategy: StrategyType) -> bool:
        return strategy in self.enabled_strategies

    def is_scenario_enabled(self, scenario: Scenario) -> bool:
        return scenario in self.enabled_scenarios

    @property
    def complexity_score(self) -> float:
        """Average catalog complexity of the enabled strategies."""
        weights = [strategy_info(s).complexity for s in self.enabled_strategies]
        return sum(weights) / len(weights) if weights else 1.0

    @property
    def estimated_test_count(self) -> int:
        return min(len(self.enabled_scenarios) * 2, self.max_test_variations)

    # -- validation --

    def validate(self, value: Any, cache: ValidationCache | None = None) -> bool:
        """Check a value against every rule of this constraint.

        ``None`` is accepted exactly when ``allow_null`` is set. When a
        ``ValidationCache`` is given, the result is memoized under this
        constraint's fingerprint.
        """
        if value is None:
            return self.allow_null
        if cache is None:
            return self._check(value)
        return cache.lookup(self.fingerprint, value, lambda: self._check(value))

    def _check(self, value: Any) -> bool:
        if not matches_type(self.type, value):
            return False
        if not self.allow_empty and _is_empty(value):
            return False
        if self.pattern is not None and isinstance(value, str):
            if compiled(self.pattern).fullmatch(value) is None:
                return False
        if not self._within_range(value):
            return False
        if not self._within_size(value):
            return False
        if self.enum_values and not _is_member(value, self.enum_values):
            return False
        if not self._nested_valid(value):
            return False
        return self._passes_blacklist(value)

    def _within_range(self, value: Any) -> bool:
        if not _is_number(value):
            return True
        if self.minimum is not None:
            if value < self.minimum or (self.exclusive_minimum and value == self.minimum):
                return False
        if self.maximum is not None:
            if value > self.maximum or (self.exclusive_maximum and value == self.maximum):
                return False
        if self.multiple_of and not _is_multiple(value, self.multiple_of):
            return False
        return True

    def _size_bounds(self) -> tuple[int | None, int | None]:
        if self.type is ValueType.ARRAY:
            return self.min_items, self.max_items
        if self.type is ValueType.OBJECT:
            return self.min_properties, self.max_properties
        return self.min_length, self.max_length

    def _within_size(self, value: Any) -> bool:
        if not isinstance(value, (str, list, tuple, dict)):
            return True
        lower, upper = self._size_bounds()
        size = len(value)
        if lower is not None and size < lower:
            return False
        if upper is not None and size > upper:
            return False
        if self.unique_items and isinstance(value, (list, tuple)):
            if len({canonical_form(item) for item in value}) != size:
                return False
        return True

    def _nested_valid(self, value: Any) -> bool:
        if isinstance(value, (list, tuple)) and self.item_constraint is not None:
            return all(self.item_constraint.validate(item) for item in value)
        if isinstance(value, dict):
            if any(name not in value for name in self.required_properties):
                return False
            for name, item in value.items():
                nested = self.property_constraints.get(name)
                if nested is not None and not nested.validate(item):
                    return False
        return True

    def _passes_blacklist(self, value: Any) -> bool:
        if self.security_level <= SecurityLevel.LOW or not self.blacklist_patterns:
            return True
        for text in _strings_in(value):
            for pattern in self.blacklist_patterns:
                if compiled(pattern).search(text):
                    return False
        return True

    # -- numeric helpers --

    def numeric_step(self) -> Number:
        """Smallest meaningful move away from a bound."""
        if self.type is ValueType.INTEGER:
            if self.multiple_of and float(self.multiple_of).is_integer():
                return int(self.multiple_of)
            return 1
        if self.multiple_of:
            return self.multiple_of
        if self.minimum is not None and self.maximum is not None:
            span = self.maximum - self.minimum
            if 0 < span <= 2:
                return span / 4
        return 1

    def valid_lower(self) -> Number | None:
        if self.minimum is None:
            return None
        if self.type is ValueType.INTEGER:
            lower = math.ceil(self.minimum)
            if self.exclusive_minimum and lower == self.minimum:
                lower += self.numeric_step()
            return lower
        return self.minimum + self.numeric_step() if self.exclusive_minimum else self.minimum

    def valid_upper(self) -> Number | None:
        if self.maximum is None:
            return None
        if self.type is ValueType.INTEGER:
            upper = math.floor(self.maximum)
            if self.exclusive_maximum and upper == self.maximum:
                upper -= self.numeric_step()
            return upper
        return self.maximum - self.numeric_step() if self.exclusive_maximum else self.maximum

    def _below_minimum(self) -> Number:
        if self.type is ValueType.INTEGER:
            return math.floor(self.minimum) if self.exclusive_minimum else math.ceil(self.minimum) - 1
        return self.minimum if self.exclusive_minimum else self.minimum - self.numeric_step()

    def _above_maximum(self) -> Number:
        if self.type is ValueType.INTEGER:
            return math.ceil(self.maximum) if self.exclusive_maximum else math.floor(self.maximum) + 1
        return self.maximum if self.exclusive_maximum else self.maximum + self.numeric_step()

    # -- generation --

    def generate(self, category: ValueCategory, rng: random.Random | None = None) -> list[Any]:
        """Synthesize candidate values for one category.

        Returns an empty list when the category does not apply to this
        constraint. ``rng`` only feeds ``FUZZ``; without one a fixed seed is
        used so output stays reproducible.
        """
        handler = getattr(self, f"_generate_{ValueCategory(category).value}")
        return handler(rng)

    def applicable_categories(self) -> list[ValueCategory]:
        return [category for category in ValueCategory if self.generate(category)]

    def happy_value(self) -> Any:
        """First typical candidate that validates, or None."""
        for candidate in self._happy_candidates():
            if self._check(candidate):
                return candidate
        return None

    def _happy_candidates(self):
        if self.example is not None:
            yield self.example
        if self.default is not None:
            yield self.default
        yield from self.enum_values
        if self.format:
            yield from FORMAT_VALID_EXAMPLES.get(self.format, ())
        yield self._typical_value()

    def _typical_value(self) -> Any:
        if self.type is ValueType.STRING:
            length = 8
            if self.min_length is not None:
                length = max(length, self.min_length)
            if self.max_length is not None:
                length = min(length, self.max_length)
            return filler(length)
        if self.type is ValueType.BOOLEAN:
            return True
        if self.type is ValueType.ARRAY:
            count = max(self.min_items or 0, 1)
            if self.max_items is not None:
                count = min(count, self.max_items)
            return self._items(count)
        if self.type is ValueType.OBJECT:
            return self._object_of(self.min_properties or 0)
        return self._typical_number()

    def _typical_number(self) -> Number:
        lower, upper = self.valid_lower(), self.valid_upper()
        integer = self.type is ValueType.INTEGER
        if lower is not None and upper is not None:
            value = (lower + upper) // 2 if integer else (lower + upper) / 2
        elif lower is not None:
            value = lower
        elif upper is not None:
            value = upper
        else:
            value = 1 if integer else 1.5
        if self.multiple_of:
            steps = math.ceil(value / self.multiple_of)
            value = steps * self.multiple_of
            if upper is not None and value > upper:
                value -= self.multiple_of
            if integer:
                value = int(value)
        return value

    def _item_value(self, index: int = 0) -> Any:
        if self.item_constraint is not None:
            base = self.item_constraint.happy_value()
            if base is None:
                base = "item"
        else:
            base = "item"
        if not self.unique_items or index == 0:
            return base
        if isinstance(base, bool):
            return index % 2 == 0
        if isinstance(base, (int, float)):
            return base + index
        if isinstance(base, str):
            return f"{base}{index}"
        return {"index": index}

    def _items(self, count: int) -> list[Any]:
        return [self._item_value(i) for i in range(count)]

    def _object_of(self, count: int) -> dict[str, Any]:
        names = list(self.required_properties) or list(self.property_constraints)
        obj: dict[str, Any] = {}
        for name in names:
            nested = self.property_constraints.get(name)
            value = nested.happy_value() if nested is not None else None
            obj[name] = "value" if value is None else value
        index = 0
        while len(obj) < count:
            obj.setdefault(f"field{index}", "value")
            index += 1
        return obj

    def _fit(self, text: str) -> str:
        if self.max_length is not None:
            text = text[: self.max_length]
        if self.min_length is not None and len(text) < self.min_length:
            text += filler(self.min_length - len(text))
        return text

    def _generate_happy_path(self, rng):
        value = self.happy_value()
        return [] if value is None else [value]

    def _generate_boundary(self, rng):
        values: list[Any] = []
        if self.is_numeric:
            for bound in (self.valid_lower(), self.valid_upper()):
                if bound is not None and bound not in values:
                    values.append(bound)
            return values
        lower, upper = self._size_bounds()
        build = {
            ValueType.STRING: filler,
            ValueType.ARRAY: self._items,
            ValueType.OBJECT: self._object_of,
        }.get(self.type)
        if build is None:
            return values
        if lower:
            values.append(build(lower))
        if upper is not None and upper != lower:
            values.append(build(upper))
        return values

    def _generate_edge_case(self, rng):
        if self.type is ValueType.STRING:
            values = []
            for text in EDGE_STRINGS:
                fitted = self._fit(text)
                if fitted not in values:
                    values.append(fitted)
            return values
        if self.type is ValueType.INTEGER:
            return [0, -1]
        if self.type is ValueType.NUMBER:
            return [0.0, 1e-9]
        if self.type is ValueType.ARRAY:
            return [[]]
        if self.type is ValueType.OBJECT:
            return [{}, {"unexpected_field": "value"}]
        return []

    def _generate_error_handling(self, rng):
        values: list[Any] = []
        if not self.allow_null:
            values.append(None)
        if not self.allow_empty:
            empty = _empty_value(self.type)
            if empty is not None:
                values.append(empty)
        return values

    def _generate_security(self, rng):
        return self._generate_sql_injection(rng) + self._generate_xss(rng) + self._generate_path_traversal(rng)

    def _generate_sql_injection(self, rng):
        return list(SQL_INJECTION_PAYLOADS) if self.type is ValueType.STRING else []

    def _generate_xss(self, rng):
        return list(XSS_PAYLOADS) if self.type is ValueType.STRING else []

    def _generate_path_traversal(self, rng):
        return list(PATH_TRAVERSAL_PAYLOADS) if self.type is ValueType.STRING else []

    def _generate_invalid_range(self, rng):
        if not self.is_numeric:
            return []
        values = []
        if self.minimum is not None:
            values.append(self._below_minimum())
        if self.maximum is not None:
            values.append(self._above_maximum())
        return values

    def _generate_invalid_length(self, rng):
        build = {
            ValueType.STRING: filler,
            ValueType.ARRAY: self._items,
            ValueType.OBJECT: self._object_of,
        }.get(self.type)
        if build is None:
            return []
        lower, upper = self._size_bounds()
        values = []
        if lower is not None and lower > 0:
            values.append(build(lower - 1))
        if upper is not None:
            values.append(build(upper + 1))
        return values

    def _generate_invalid_type(self, rng):
        return [INVALID_TYPE_SAMPLES[self.type.value]]

    def _generate_invalid_pattern(self, rng):
        if self.type is not ValueType.STRING or self.pattern is None:
            return []
        candidates = FORMAT_INVALID_EXAMPLES.get(self.format or "", ()) + ("!!invalid!!", "@@@")
        regex = compiled(self.pattern)
        values = []
        for candidate in candidates:
            if regex.fullmatch(candidate) is None and candidate not in values:
                values.append(candidate)
        return values[:3]

    def _generate_invalid_enum(self, rng):
        if not self.enum_values:
            return []
        numbers = [v for v in self.enum_values if _is_number(v)]
        if self.is_numeric and numbers:
            return [max(numbers) + 1]
        return [INVALID_ENUM_VALUE]

    def _generate_fuzz(self, rng):
        rng = rng or random.Random(0)
        return [self._fuzz_one(rng) for _ in range(_FUZZ_CASES)]

    def _fuzz_one(self, rng: random.Random) -> Any:
        if self.type is ValueType.STRING:
            lower = self.min_length or 1
            upper = min(self.max_length if self.max_length is not None else 64, 256)
            length = rng.randint(min(lower, upper), max(lower, upper))
            return "".join(rng.choice(string.printable) for _ in range(length))
        if self.type is ValueType.INTEGER:
            lower = self.valid_lower() if self.minimum is not None else -(10**6)
            upper = self.valid_upper() if self.maximum is not None else 10**6
            return rng.randint(min(lower, upper), max(lower, upper))
        if self.type is ValueType.NUMBER:
            lower = self.minimum if self.minimum is not None else -1e6
            upper = self.maximum if self.maximum is not None else 1e6
            return rng.uniform(lower, upper)
        if self.type is ValueType.BOOLEAN:
            return rng.choice([True, False])
        if self.type is ValueType.ARRAY:
            return [rng.randint(-1000, 1000) for _ in range(rng.randint(0, 5))]
        return {f"key{rng.randint(0, 99)}": rng.randint(-1000, 1000) for _ in range(rng.randint(0, 5))}

    def _generate_large_payload(self, rng):
        if self.type is ValueType.STRING:
            return ["A" * max(LARGE_STRING_LENGTH, (self.max_length or 0) + 1)]
        if self.type is ValueType.ARRAY:
            return [self._items(max(LARGE_ARRAY_LENGTH, (self.max_items or 0) + 1))]
        if self.type is ValueType.OBJECT:
            return [{f"field{i}": i for i in range(max(LARGE_ARRAY_LENGTH, (self.max_properties or 0) + 1))}]
        if self.type is ValueType.INTEGER:
            return [2**64]
        if self.type is ValueType.NUMBER:
            return [1e308]
        return []

    # -- legacy typed case list --

    def legacy_cases(self) -> list["LegacyCase"]:
        """Labelled valid/invalid case list ranked by the category table.

        The list is truncated to ``max_test_variations`` when it is longer.
        """
        cases = [
            LegacyCase(value=v, value_category=ValueCategory.HAPPY_PATH, expected_valid=True,
                       description="Minimal valid value")
            for v in self._minimal_values()
        ]
        labelled = [
            (ValueCategory.BOUNDARY, True, "Boundary value"),
            (ValueCategory.ERROR_HANDLING, False, "Null or empty value not allowed"),
            (ValueCategory.INVALID_RANGE, False, "Outside the numeric range"),
            (ValueCategory.INVALID_LENGTH, False, "Outside the length bounds"),
            (ValueCategory.INVALID_ENUM, False, "Not one of the enumerated values"),
            (ValueCategory.SQL_INJECTION, False, "SQL injection attempt"),
            (ValueCategory.XSS, False, "XSS attack attempt"),
        ]
        for category, expected_valid, description in labelled:
            cases.extend(
                LegacyCase(value=v, value_category=category, expected_valid=expected_valid, description=description)
                for v in self.generate(category)
            )
        if len(cases) > self.max_test_variations:
            cases = limit(cases, self.max_test_variations, RankingStrategy.CATEGORY_TABLE)
        return cases

    def _minimal_values(self) -> list[Any]:
        if self.type is ValueType.STRING:
            return [filler(self.min_length) if self.min_length else "a"]
        if self.type is ValueType.BOOLEAN:
            return [True, False]
        if self.type is ValueType.ARRAY:
            return [self._items(self.min_items or 0)]
        if self.type is ValueType.OBJECT:
            return [self._object_of(0)]
        lower = self.valid_lower()
        if lower is not None:
            return [lower]
        return [0] if self.type is ValueType.INTEGER else [0.0]


class LegacyCase(BaseModel):
    """A labelled value from ``Constraint.legacy_cases``."""

    model_config = ConfigDict(frozen=True)

    value: Any
    value_category: ValueCategory
    expected_valid: bool
    description: str


# -- derivation ----------------------------------------------------------------


def derive_constraint(builder: ConstraintBuilder) -> Constraint:
    """Validate a builder and derive the frozen Constraint it describes."""
    if builder.type is None or not builder.type.strip():
        raise ConfigurationError("constraint type is required")
    try:
        value_type = ValueType(builder.type.strip().lower())
    except ValueError:
        raise ConfigurationError(f"unknown constraint type: {builder.type!r}") from None
    if builder.max_test_variations is not None and builder.max_test_variations <= 0:
        raise ConfigurationError("max_test_variations must be positive")

    fmt = builder.format.strip().lower() if builder.format else None
    pattern = builder.pattern
    min_length, max_length = builder.min_length, builder.max_length
    minimum, maximum = builder.minimum, builder.maximum

    if value_type is ValueType.STRING and fmt:
        if pattern is None:
            pattern = FORMAT_PATTERNS.get(fmt)
        default_min, default_max = FORMAT_LENGTHS.get(fmt, (None, None))
        min_length = default_min if min_length is None else min_length
        max_length = default_max if max_length is None else max_length
    if value_type in NUMERIC_TYPES and fmt in FORMAT_BOUNDS and minimum is None and maximum is None:
        minimum, maximum = FORMAT_BOUNDS[fmt]

    for label, lower, upper in (
        ("length", min_length, max_length),
        ("items", builder.min_items, builder.max_items),
        ("properties", builder.min_properties, builder.max_properties),
    ):
        if (lower is not None and lower < 0) or (upper is not None and upper < 0):
            raise ConfigurationError(f"{label} bounds must not be negative")
        if lower is not None and upper is not None and lower > upper:
            raise ConfigurationError(f"min {label} {lower} exceeds max {label} {upper}")
    if minimum is not None and maximum is not None and minimum > maximum:
        raise ConfigurationError(f"minimum {minimum} exceeds maximum {maximum}")
    if builder.multiple_of is not None and builder.multiple_of <= 0:
        raise ConfigurationError("multiple_of must be positive")

    level = builder.security_level or SecurityLevel.NORMAL
    blacklist = list(builder.blacklist_patterns)
    if level >= SecurityLevel.HIGH:
        blacklist.extend(p for p in BLACKLIST_PATTERNS if p not in blacklist)
    for regex in ([pattern] if pattern else []) + blacklist:
        try:
            compiled(regex)
        except re.error as exc:
            raise ConfigurationError(f"invalid regular expression {regex!r}: {exc}") from exc

    complexity_tier = tier(builder.test_complexity)
    strategies = set(complexity_tier.strategies) | builder.strategies
    strategies |= {recommended_strategy(s) for s in builder.scenarios}
    if builder.security_level is not None:
        strategies.add(builder.security_level.required_strategy)
    scenarios = set(complexity_tier.scenarios) | builder.scenarios
    if not strategies:
        strategies = {DEFAULT_STRATEGY}
    if not scenarios:
        scenarios = {DEFAULT_SCENARIO}

    return Constraint(
        type=value_type,
        format=fmt,
        pattern=pattern,
        description=builder.description,
        default=builder.default,
        example=builder.example,
        minimum=minimum,
        maximum=maximum,
        exclusive_minimum=builder.exclusive_minimum,
        exclusive_maximum=builder.exclusive_maximum,
        multiple_of=builder.multiple_of,
        min_length=min_length,
        max_length=max_length,
        min_items=builder.min_items,
        max_items=builder.max_items,
        unique_items=builder.unique_items,
        min_properties=builder.min_properties,
        max_properties=builder.max_properties,
        item_constraint=builder.items.build() if builder.items is not None else None,
        property_constraints={name: b.build() for name, b in builder.properties.items()},
        required_properties=tuple(builder.required_properties),
        enum_values=tuple(builder.enum_values),
        allow_null=builder.allow_null,
        allow_empty=builder.allow_empty,
        security_level=level,
        blacklist_patterns=tuple(blacklist),
        test_complexity=builder.test_complexity,
        enabled_strategies=frozenset(strategies),
        enabled_scenarios=frozenset(scenarios),
        max_test_variations=builder.max_test_variations or complexity_tier.max_variations,
    )


# -- value helpers -------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_multiple(value: Any, step: Any) -> bool:
    if isinstance(value, int) and isinstance(step, int):
        return value % step == 0
    # exact rational arithmetic, tolerant of float rounding in the step
    quotient = Fraction(value) / Fraction(step)
    return abs(quotient - round(quotient)) <= _MULTIPLE_TOLERANCE * max(abs(quotient), 1)


def matches_type(value_type: ValueType, value: Any) -> bool:
    if value_type is ValueType.STRING:
        return isinstance(value, str)
    if value_type is ValueType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if value_type is ValueType.NUMBER:
        return _is_number(value) and not (isinstance(value, float) and not math.isfinite(value))
    if value_type is ValueType.BOOLEAN:
        return isinstance(value, bool)
    if value_type is ValueType.ARRAY:
        return isinstance(value, (list, tuple))
    return isinstance(value, dict)


def _is_empty(value: Any) -> bool:
    return isinstance(value, (str, list, tuple, dict)) and len(value) == 0


def _empty_value(value_type: ValueType) -> Any:
    if value_type is ValueType.STRING:
        return ""
    if value_type is ValueType.ARRAY:
        return []
    if value_type is ValueType.OBJECT:
        return {}
    return None


def _is_member(value: Any, options: tuple[Any, ...]) -> bool:
    return any(
        option == value and isinstance(option, bool) == isinstance(value, bool)
        for option in options
    )


def _strings_in(value: Any):
    if isinstance(value, str):
        yield value
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _strings_in(item)
    elif isinstance(value, dict):
        for key, item in value.items():
            yield from _strings_in(key)
            yield from _strings_in(item)
