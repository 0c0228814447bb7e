import random

import pytest

from api_test_planner.catalog import Scenario, StrategyType, TestComplexity
from api_test_planner.errors import ConfigurationError
from api_test_planner.model.cache import ValidationCache
from api_test_planner.model.constraint import ConstraintBuilder
from api_test_planner.model.payloads import SQL_INJECTION_PAYLOADS, XSS_PAYLOADS
from api_test_planner.model.tiers import SecurityLevel, ValueCategory, ValueType


def _make_string(**kw) -> ConstraintBuilder:
    return ConstraintBuilder(type="string", **kw)


class TestConstraintBuild:
    def test_missing_type_rejected(self):
        with pytest.raises(ConfigurationError):
            ConstraintBuilder().build()

    def test_unknown_type_rejected(self):
        with pytest.raises(ConfigurationError):
            ConstraintBuilder(type="date").build()

    def test_non_positive_variation_cap_rejected(self):
        with pytest.raises(ConfigurationError):
            _make_string(max_test_variations=0).build()

    def test_inverted_length_rejected(self):
        with pytest.raises(ConfigurationError):
            _make_string().length(10, 3).build()

    def test_inverted_range_rejected(self):
        with pytest.raises(ConfigurationError):
            ConstraintBuilder(type="integer").range(10, 1).build()

    def test_invalid_regex_rejected(self):
        with pytest.raises(ConfigurationError):
            _make_string(pattern="[unclosed").build()

    def test_type_is_normalized(self):
        assert ConstraintBuilder(type=" Integer ").build().type is ValueType.INTEGER

    def test_tier_defaults(self):
        c = _make_string().build()
        assert c.test_complexity is TestComplexity.STANDARD
        assert c.max_test_variations == 15
        assert c.enabled_strategies == {StrategyType.FUNCTIONAL_BASIC, StrategyType.FUNCTIONAL_COMPREHENSIVE}
        assert c.enabled_scenarios == {Scenario.HAPPY_PATH, Scenario.BOUNDARY_VALUES}

    def test_scenario_brings_its_strategy(self):
        c = _make_string().add_scenario(Scenario.SQL_INJECTION_BASIC).build()
        assert c.is_scenario_enabled(Scenario.SQL_INJECTION_BASIC)
        assert c.is_strategy_enabled(StrategyType.SECURITY_INJECTION)

    def test_explicit_security_level_adds_strategy(self):
        c = _make_string(security_level=SecurityLevel.CRITICAL).build()
        assert c.is_strategy_enabled(StrategyType.SECURITY_PENETRATION)

    def test_escalate_never_lowers(self):
        builder = _make_string(security_level=SecurityLevel.CRITICAL)
        builder.escalate(SecurityLevel.HIGH)
        assert builder.security_level is SecurityLevel.CRITICAL

    def test_email_format_installs_pattern(self):
        c = _make_string(format="email").build()
        assert c.pattern is not None
        assert c.max_length == 320
        assert c.validate("user@example.com")
        assert not c.validate("plainaddress")

    def test_int32_installs_bounds_only_when_unset(self):
        assert ConstraintBuilder(type="integer", format="int32").build().maximum == 2**31 - 1
        c = ConstraintBuilder(type="integer", format="int32", maximum=10).build()
        assert c.maximum == 10
        assert c.minimum is None

    def test_builder_is_reusable_and_build_is_pure(self):
        builder = _make_string().length(3, 10)
        first, second = builder.build(), builder.build()
        assert first == second
        assert first.fingerprint == second.fingerprint

    def test_fingerprint_differs_on_rules(self):
        assert _make_string(max_length=5).build().fingerprint != _make_string(max_length=6).build().fingerprint


class TestConstraintValidate:
    def test_null_follows_allow_null(self):
        assert _make_string().build().validate(None)
        assert not _make_string(allow_null=False).build().validate(None)

    def test_type_mismatch(self):
        c = ConstraintBuilder(type="integer").build()
        assert not c.validate("1")
        assert not c.validate(True)
        assert not c.validate(1.5)
        assert c.validate(1)

    def test_number_accepts_int(self):
        assert ConstraintBuilder(type="number").build().validate(3)

    def test_exclusive_bounds(self):
        c = ConstraintBuilder(type="number").range(0, 1, exclusive_minimum=True, exclusive_maximum=True).build()
        assert not c.validate(0)
        assert not c.validate(1)
        assert c.validate(0.5)

    def test_multiple_of(self):
        c = ConstraintBuilder(type="integer", multiple_of=5).build()
        assert c.validate(10)
        assert not c.validate(7)

    def test_fractional_multiple_of(self):
        c = ConstraintBuilder(type="number", multiple_of=0.1).build()
        assert c.validate(0.3)
        assert c.validate(0.1 * 3)
        assert not c.validate(0.35)

    def test_huge_integers_are_checked_exactly(self):
        assert ConstraintBuilder(type="number").build().validate(10**400)
        assert ConstraintBuilder(type="integer").build().validate(-(10**400))
        thirds = ConstraintBuilder(type="integer", multiple_of=3).build()
        assert thirds.validate(3 * 10**400)
        assert not thirds.validate(10**400)
        halves = ConstraintBuilder(type="number", multiple_of=0.5).build()
        assert halves.validate(10**400)
        bounded = ConstraintBuilder(type="integer").range(0, 100).build()
        assert not bounded.validate(10**400)

    def test_non_finite_numbers_rejected(self):
        c = ConstraintBuilder(type="number").build()
        assert not c.validate(float("inf"))
        assert not c.validate(float("nan"))

    def test_length_bounds(self):
        c = _make_string().length(3, 10).build()
        assert c.validate("abc")
        assert not c.validate("ab")
        assert not c.validate("a" * 11)

    def test_pattern_is_full_match(self):
        c = _make_string(pattern=r"[a-z]+").build()
        assert c.validate("abc")
        assert not c.validate("abc1")

    def test_enum_membership_is_type_aware(self):
        c = ConstraintBuilder(type="integer", enum_values=[1, 2]).build()
        assert c.validate(1)
        assert not c.validate(3)

    def test_allow_empty(self):
        assert not _make_string(allow_empty=False).build().validate("")

    def test_unique_items(self):
        c = ConstraintBuilder(type="array", unique_items=True).build()
        assert c.validate([1, 2])
        assert not c.validate([1, 1])

    def test_nested_items_and_properties(self):
        item = ConstraintBuilder(type="integer", minimum=0)
        arr = ConstraintBuilder(type="array", items=item).build()
        assert arr.validate([0, 1])
        assert not arr.validate([-1])

        obj = ConstraintBuilder(
            type="object",
            properties={"name": _make_string(min_length=1)},
            required_properties=["name"],
        ).build()
        assert obj.validate({"name": "rex"})
        assert not obj.validate({})
        assert not obj.validate({"name": ""})

    def test_blacklist_rejects_sql_at_high_level(self):
        c = _make_string(security_level=SecurityLevel.HIGH).build()
        assert not c.validate("'; DROP TABLE users; --")
        assert c.validate("plain words")

    def test_no_blacklist_at_normal_level(self):
        assert _make_string().build().validate("'; DROP TABLE users; --")

    def test_cache_memoizes_by_fingerprint(self):
        c = _make_string(max_length=3).build()
        cache = ValidationCache()
        assert c.validate("abc", cache)
        assert c.validate("abc", cache)
        assert cache.hits == 1
        assert cache.misses == 1

    def test_cache_keys_distinguish_value_types(self):
        c = ConstraintBuilder(type="integer").build()
        cache = ValidationCache()
        assert c.validate(1, cache)
        assert not c.validate("1", cache)
        assert not c.validate(True, cache)
        assert cache.misses == 3


class TestConstraintGenerate:
    def test_boundary_string_lengths(self):
        c = _make_string().length(3, 10).build()
        assert sorted(len(v) for v in c.generate(ValueCategory.BOUNDARY)) == [3, 10]

    def test_invalid_length_string_lengths(self):
        c = _make_string().length(3, 10).build()
        assert sorted(len(v) for v in c.generate(ValueCategory.INVALID_LENGTH)) == [2, 11]

    def test_boundary_values_validate(self):
        c = ConstraintBuilder(type="integer").range(1, 100).build()
        values = c.generate(ValueCategory.BOUNDARY)
        assert values == [1, 100]
        assert all(c.validate(v) for v in values)

    def test_invalid_range_values_fail(self):
        c = ConstraintBuilder(type="integer").range(1, 100).build()
        values = c.generate(ValueCategory.INVALID_RANGE)
        assert values == [0, 101]
        assert not any(c.validate(v) for v in values)

    def test_exclusive_integer_bounds(self):
        c = ConstraintBuilder(type="integer").range(0, 10, exclusive_minimum=True, exclusive_maximum=True).build()
        assert c.generate(ValueCategory.BOUNDARY) == [1, 9]
        assert c.generate(ValueCategory.INVALID_RANGE) == [0, 10]

    def test_happy_path_prefers_example(self):
        c = _make_string(example="rex").build()
        assert c.generate(ValueCategory.HAPPY_PATH) == ["rex"]

    def test_happy_path_uses_format_example(self):
        assert _make_string(format="uuid").build().happy_value() == "123e4567-e89b-12d3-a456-426614174000"

    def test_happy_value_validates(self):
        c = ConstraintBuilder(type="integer", minimum=10, maximum=20, multiple_of=3).build()
        assert c.validate(c.happy_value())

    def test_security_payloads_only_for_strings(self):
        assert _make_string().build().generate(ValueCategory.SQL_INJECTION) == list(SQL_INJECTION_PAYLOADS)
        assert ConstraintBuilder(type="integer").build().generate(ValueCategory.SQL_INJECTION) == []

    def test_xss_payloads(self):
        assert _make_string().build().generate(ValueCategory.XSS) == list(XSS_PAYLOADS)

    def test_error_handling_when_required(self):
        c = _make_string(allow_null=False, allow_empty=False).build()
        assert c.generate(ValueCategory.ERROR_HANDLING) == [None, ""]

    def test_error_handling_empty_when_nothing_forbidden(self):
        assert _make_string().build().generate(ValueCategory.ERROR_HANDLING) == []

    def test_invalid_type_fails_validation(self):
        c = ConstraintBuilder(type="integer").build()
        assert not any(c.validate(v) for v in c.generate(ValueCategory.INVALID_TYPE))

    def test_invalid_pattern_values_do_not_match(self):
        c = _make_string(format="email").build()
        values = c.generate(ValueCategory.INVALID_PATTERN)
        assert values
        assert not any(c.validate(v) for v in values)

    def test_invalid_enum(self):
        c = _make_string(enum_values=["dog", "cat"]).build()
        assert c.generate(ValueCategory.INVALID_ENUM) == ["INVALID_ENUM_VALUE"]
        numeric = ConstraintBuilder(type="integer", enum_values=[1, 5]).build()
        assert numeric.generate(ValueCategory.INVALID_ENUM) == [6]

    def test_fuzz_is_seedable(self):
        c = _make_string(max_length=20).build()
        first = c.generate(ValueCategory.FUZZ, random.Random(7))
        second = c.generate(ValueCategory.FUZZ, random.Random(7))
        assert first == second
        assert len(first) == 5

    def test_large_payload_exceeds_max_length(self):
        c = _make_string(max_length=50).build()
        (value,) = c.generate(ValueCategory.LARGE_PAYLOAD)
        assert len(value) > 50

    def test_not_applicable_category_is_empty(self):
        c = ConstraintBuilder(type="boolean").build()
        assert c.generate(ValueCategory.INVALID_RANGE) == []
        assert ValueCategory.INVALID_RANGE not in c.applicable_categories()


class TestLegacyCases:
    def test_ranked_and_capped(self):
        c = _make_string(max_test_variations=5).length(3, 10).build()
        cases = c.legacy_cases()
        assert len(cases) == 5
        assert cases[0].value_category is ValueCategory.SQL_INJECTION

    def test_labels(self):
        c = _make_string(max_test_variations=50).length(3, 10).build()
        by_category = {case.value_category: case.expected_valid for case in c.legacy_cases()}
        assert by_category[ValueCategory.HAPPY_PATH] is True
        assert by_category[ValueCategory.INVALID_LENGTH] is False