from unittest.mock import patch

import pytest

from api_test_planner.catalog import Scenario, StrategyType
from api_test_planner.errors import ConfigurationError
from api_test_planner.generator.context import GenerationContext
from api_test_planner.generator.synthesizer import synthesize_parameter_cases
from api_test_planner.model.constraint import ConstraintBuilder
from api_test_planner.model.testcase import Outcome
from api_test_planner.model.tiers import SecurityLevel, SecuritySensitivity, TestImportance, ValueCategory
from api_test_planner.profile.parameter import Location, ParameterConfig, ParameterFlag


def _make_param(name: str = "q", location: str = "query", type: str = "string", **kw) -> ParameterConfig:
    return ParameterConfig(name=name, location=location, type=type, **kw)


class TestParameterBuild:
    def test_missing_name_rejected(self):
        with pytest.raises(ConfigurationError):
            ParameterConfig(location="query", type="string").build()

    def test_missing_location_rejected(self):
        with pytest.raises(ConfigurationError):
            ParameterConfig(name="q", type="string").build()

    def test_unknown_location_rejected(self):
        with pytest.raises(ConfigurationError):
            _make_param(location="fragment").build()

    def test_missing_type_rejected(self):
        with pytest.raises(ConfigurationError):
            ParameterConfig(name="q", location="query").build()

    def test_type_taken_from_constraint(self):
        p = ParameterConfig(name="n", location="query", constraint=ConstraintBuilder(type="integer")).build()
        assert p.constraint.is_numeric

    def test_location_is_case_insensitive(self):
        assert _make_param(location="FormData").build().location is Location.FORM_DATA

    def test_plain_optional_parameter(self):
        p = _make_param(name="note").build()
        assert p.importance is TestImportance.OPTIONAL
        assert p.sensitivity is SecuritySensitivity.NONE
        assert Scenario.HAPPY_PATH in p.recommended_scenarios
        assert p.priority == 1

    def test_required_parameter(self):
        p = _make_param(name="note", required=True).build()
        assert p.importance is TestImportance.MEDIUM
        assert Scenario.ERROR_HANDLING in p.recommended_scenarios
        assert not p.constraint.allow_null

    def test_constrained_optional_parameter_is_low(self):
        p = _make_param(name="note", constraint=ConstraintBuilder(max_length=5)).build()
        assert p.importance is TestImportance.LOW

    def test_credit_card_number(self):
        p = _make_param(name="creditCardNumber", location="body", required=True).build()
        assert ParameterFlag.FINANCIAL_DATA in p.flags
        assert p.sensitivity is SecuritySensitivity.CRITICAL
        assert p.importance is TestImportance.CRITICAL
        assert p.priority == 5
        assert p.risk_score == 1.0

    @pytest.mark.parametrize("name", ["password", "client_secret", "accessToken", "apiKey", "authCode", "credential"])
    def test_credential_names_escalate(self, name):
        p = _make_param(name=name).build()
        assert p.sensitivity >= SecuritySensitivity.HIGH
        assert Scenario.SQL_INJECTION_BASIC in p.recommended_scenarios
        assert Scenario.XSS_REFLECTED in p.recommended_scenarios
        assert p.is_security_sensitive
        assert p.priority >= 4

    def test_sensitive_parameter_gets_blacklist(self):
        p = _make_param(name="password").build()
        assert p.constraint.security_level >= SecurityLevel.HIGH
        assert not p.constraint.validate("' OR '1'='1")
        assert p.constraint.is_strategy_enabled(StrategyType.SECURITY_PENETRATION)

    def test_path_parameter(self):
        p = _make_param(name="petId", location="path", required=True).build()
        assert ParameterFlag.IDENTIFIER in p.flags
        assert p.importance is TestImportance.HIGH
        assert Scenario.SQL_INJECTION_BASIC in p.recommended_scenarios

    @pytest.mark.parametrize("name", ["owner_uuid", "petSlug", "user-id"])
    def test_identifier_names(self, name):
        assert ParameterFlag.IDENTIFIER in _make_param(name=name).build().flags

    def test_non_identifier_name(self):
        assert ParameterFlag.IDENTIFIER not in _make_param(name="colour").build().flags

    def test_authorization_header(self):
        p = _make_param(name="Authorization", location="header").build()
        assert {ParameterFlag.AUTH_CRITICAL, ParameterFlag.AUTHENTICATION_RELATED} <= p.flags
        assert p.sensitivity is SecuritySensitivity.CRITICAL
        assert Scenario.AUTH_BYPASS in p.recommended_scenarios

    def test_cookie_parameter_adds_csrf(self):
        p = _make_param(name="prefs", location="cookie").build()
        assert Scenario.CSRF_PROTECTION in p.recommended_scenarios

    def test_array_is_complex(self):
        p = _make_param(name="ids", type="array").build()
        assert p.is_complex
        assert Scenario.ARRAY_BOUNDARY_TESTING in p.recommended_scenarios

    def test_numeric_range_adds_boundary_analysis(self):
        p = _make_param(name="limit", type="integer", constraint=ConstraintBuilder(minimum=1, maximum=100)).build()
        assert {Scenario.BOUNDARY_VALUES, Scenario.BOUNDARY_VALUE_ANALYSIS} <= p.recommended_scenarios

    def test_email_format(self):
        p = _make_param(name="contact", format="email").build()
        assert ParameterFlag.PERSONAL_DATA in p.flags
        assert p.valid_examples
        assert p.invalid_examples

    def test_file_path_name_adds_traversal(self):
        p = _make_param(name="filename").build()
        assert ParameterFlag.FILE_SYSTEM_ACCESS in p.flags
        assert Scenario.PATH_TRAVERSAL in p.recommended_scenarios

    def test_complexity_is_capped(self):
        p = _make_param(
            name="admin_password_file_query",
            location="cookie",
            required=True,
            dependent_parameters=[f"d{i}" for i in range(20)],
        ).build()
        assert p.complexity == 50

    def test_classification_is_deterministic(self):
        config = _make_param(name="userEmail", required=True)
        first, second = config.build(), config.build()
        assert first.recommended_scenarios == second.recommended_scenarios
        assert first.constraint.enabled_strategies == second.constraint.enabled_strategies
        assert (first.complexity, first.priority) == (second.complexity, second.priority)

    def test_strategy_override(self):
        p = _make_param(
            name="q",
            extra_scenarios={Scenario.FUZZING_INPUT},
            strategy_overrides={Scenario.FUZZING_INPUT: StrategyType.ADVANCED_AI_DRIVEN},
        ).build()
        assert p.strategy_for(Scenario.FUZZING_INPUT) is StrategyType.ADVANCED_AI_DRIVEN
        assert p.strategy_for(Scenario.HAPPY_PATH) is StrategyType.FUNCTIONAL_BASIC


class TestParameterEvolve:
    def test_evolve_rederives(self):
        p = _make_param(name="note").build()
        required = p.evolve(required=True)
        assert required.required
        assert Scenario.ERROR_HANDLING in required.recommended_scenarios
        assert not p.required

    def test_evolve_rejects_unknown_field(self):
        with pytest.raises(ConfigurationError):
            _make_param(name="note").build().evolve(sensitivity=3)


class TestParameterGeneration:
    def test_cases_are_bounded_and_labelled(self):
        p = _make_param(name="password", required=True, constraint=ConstraintBuilder(min_length=8, max_length=64)).build()
        cases = p.generate_test_cases(context=GenerationContext(seed=1))
        assert 0 < len(cases) <= p.constraint.max_test_variations
        assert all(case.parameter == "password" for case in cases)

    def test_security_payloads_expect_rejection(self):
        p = _make_param(name="token", constraint=ConstraintBuilder(max_test_variations=50)).build()
        cases = p.generate_test_cases(context=GenerationContext(seed=1))
        sql = [c for c in cases if c.value_category is ValueCategory.SQL_INJECTION]
        assert sql
        assert all(c.expected_outcome is Outcome.FAILURE for c in sql)
        assert all(c.is_security for c in sql)

    def test_happy_path_expects_success(self):
        p = _make_param(name="note", constraint=ConstraintBuilder(max_test_variations=50)).build()
        happy = [c for c in p.generate_test_cases(context=GenerationContext(seed=1))
                 if c.value_category is ValueCategory.HAPPY_PATH]
        assert happy
        assert all(c.expected_outcome is Outcome.SUCCESS for c in happy)

    def test_same_seed_same_cases(self):
        p = _make_param(name="q", type="integer", constraint=ConstraintBuilder(minimum=0, maximum=9)).build()
        first = p.generate_test_cases(context=GenerationContext(seed=42))
        second = p.generate_test_cases(context=GenerationContext(seed=42))
        assert [c.model_dump() for c in first] == [c.model_dump() for c in second]

    def test_failing_scenario_is_skipped(self):
        p = _make_param(name="token", constraint=ConstraintBuilder(max_test_variations=50)).build()

        def flaky(parameter, scenario, *args):
            if scenario is Scenario.SQL_INJECTION_BASIC:
                raise RuntimeError("boom")
            return synthesize_parameter_cases(parameter, scenario, *args)

        with patch("api_test_planner.profile.parameter.synthesize_parameter_cases", side_effect=flaky):
            cases = p.generate_test_cases(context=GenerationContext(seed=1))

        assert cases
        assert not any(c.scenario is Scenario.SQL_INJECTION_BASIC for c in cases)
        assert any(c.scenario is Scenario.XSS_REFLECTED for c in cases)
