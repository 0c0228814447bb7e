import logging

import pytest

from api_test_planner.catalog import TestComplexity
from api_test_planner.errors import ConfigurationError
from api_test_planner.generator.prioritizer import RankingStrategy
from api_test_planner.model.constraint import ConstraintBuilder
from api_test_planner.model.tiers import SecurityLevel
from api_test_planner.profile.endpoint import EndpointConfig
from api_test_planner.profile.parameter import ParameterConfig
from api_test_planner.settings import PlannerSettings, load_settings


def _write(tmp_path, text: str):
    path = tmp_path / "planner.yaml"
    path.write_text(text)
    return path


class TestLoadSettings:
    def test_defaults_without_file(self):
        settings = load_settings(None)
        assert settings.max_test_cases is None
        assert settings.include_security
        assert not settings.include_advanced
        assert settings.ranking is RankingStrategy.NUMERIC_PRIORITY

    def test_reads_yaml(self, tmp_path):
        path = _write(tmp_path, (
            "max_test_cases: 12\n"
            "include_performance: false\n"
            "security_level: high\n"
            "test_complexity: comprehensive\n"
            "ranking: category_table\n"
            "seed: 7\n"
        ))
        settings = load_settings(path)
        assert settings.max_test_cases == 12
        assert not settings.include_performance
        assert settings.security_level is SecurityLevel.HIGH
        assert settings.test_complexity is TestComplexity.COMPREHENSIVE
        assert settings.ranking is RankingStrategy.CATEGORY_TABLE
        assert settings.seed == 7

    def test_empty_file_gives_defaults(self, tmp_path):
        assert load_settings(_write(tmp_path, "")) == PlannerSettings()

    def test_unknown_key_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(_write(tmp_path, "max_cases: 3\n"))

    def test_non_mapping_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(_write(tmp_path, "- 1\n- 2\n"))

    def test_unknown_security_level_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(_write(tmp_path, "security_level: paranoid\n"))


class TestHealing:
    def test_non_positive_cap_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING, logger="api_test_planner.settings"):
            settings = PlannerSettings(max_test_cases=0)
        assert settings.max_test_cases is None
        assert "max_test_cases" in caplog.text

    def test_negative_seed_dropped(self):
        assert PlannerSettings(seed=-1).seed is None

    def test_cache_size_restored(self):
        assert PlannerSettings(recommendation_cache_size=0).recommendation_cache_size == 256

    def test_assignment_heals_too(self):
        settings = PlannerSettings()
        settings.max_variations_per_parameter = -4
        assert settings.max_variations_per_parameter is None


class TestApply:
    def _config(self):
        return EndpointConfig(
            method="GET",
            path="/pets",
            parameters=[
                ParameterConfig(name="q", location="query", type="string"),
                ParameterConfig(name="limit", location="query", type="integer",
                                constraint=ConstraintBuilder(max_test_variations=3)),
            ],
        )

    def test_pushes_toggles_and_cap(self):
        config = PlannerSettings(max_test_cases=4, include_security=False,
                                 ranking=RankingStrategy.CATEGORY_TABLE).apply(self._config())
        profile = config.build()
        assert profile.max_test_cases == 4
        assert not profile.include_security
        assert profile.ranking is RankingStrategy.CATEGORY_TABLE

    def test_pushes_constraint_knobs(self):
        config = PlannerSettings(security_level="critical", test_complexity="minimal",
                                 max_variations_per_parameter=7).apply(self._config())
        q, limit = config.build().parameters
        assert q.constraint.security_level is SecurityLevel.CRITICAL
        assert q.constraint.test_complexity is TestComplexity.MINIMAL
        assert q.constraint.max_test_variations == 7
        assert limit.constraint.max_test_variations == 3

    def test_unset_cap_leaves_config_alone(self):
        config = self._config()
        config.max_test_cases = 9
        PlannerSettings().apply(config)
        assert config.max_test_cases == 9
