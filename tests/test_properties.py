"""Property-based checks for constraint generation, ranking and suite bounds."""

from hypothesis import HealthCheck, given, settings, strategies as st

from api_test_planner.catalog import Scenario
from api_test_planner.generator.context import GenerationContext
from api_test_planner.generator.prioritizer import RankingStrategy, limit
from api_test_planner.model.constraint import ConstraintBuilder
from api_test_planner.model.tiers import ValueCategory
from api_test_planner.profile.endpoint import EndpointConfig
from api_test_planner.profile.parameter import ParameterConfig

bounds = st.integers(min_value=-1000, max_value=1000)


@st.composite
def int_ranges(draw):
    lower = draw(bounds)
    upper = draw(st.integers(min_value=lower, max_value=lower + 500))
    return lower, upper


@st.composite
def length_ranges(draw):
    lower = draw(st.integers(min_value=0, max_value=40))
    upper = draw(st.integers(min_value=lower, max_value=80))
    return lower, upper


class TestConstraintProperties:
    @given(int_ranges())
    def test_boundaries_validate_and_outside_fails(self, rng):
        c = ConstraintBuilder(type="integer").range(*rng).build()
        assert all(c.validate(v) for v in c.generate(ValueCategory.BOUNDARY))
        assert not any(c.validate(v) for v in c.generate(ValueCategory.INVALID_RANGE))

    @given(int_ranges())
    def test_happy_value_validates(self, rng):
        c = ConstraintBuilder(type="integer").range(*rng).build()
        value = c.happy_value()
        assert value is not None
        assert c.validate(value)

    @given(length_ranges())
    def test_string_lengths(self, rng):
        c = ConstraintBuilder(type="string").length(*rng).build()
        assert all(c.validate(v) for v in c.generate(ValueCategory.BOUNDARY))
        assert not any(c.validate(v) for v in c.generate(ValueCategory.INVALID_LENGTH))

    @given(length_ranges(), st.integers(min_value=1, max_value=30))
    def test_legacy_cases_bounded(self, rng, cap):
        c = ConstraintBuilder(type="string", max_test_variations=cap).length(*rng).build()
        assert len(c.legacy_cases()) <= cap


class TestRankingProperties:
    @given(
        st.lists(st.tuples(st.integers(1, 5), st.integers(1, 5)), max_size=40),
        st.integers(min_value=-2, max_value=50),
    )
    def test_limit_is_ranked_prefix(self, raw, cap):
        keyed = [_Ranked(priority, complexity) for priority, complexity in raw]
        kept = limit(keyed, cap, RankingStrategy.NUMERIC_PRIORITY)
        expected = len(keyed) if cap <= 0 else min(cap, len(keyed))
        assert len(kept) == expected
        keys = [(k.priority, -k.complexity) for k in kept]
        assert keys == sorted(keys)


class _Ranked:
    def __init__(self, priority: int, complexity: int):
        self.priority = priority
        self.complexity = complexity


methods = st.sampled_from(["GET", "POST", "PUT", "PATCH", "DELETE"])
param_names = st.sampled_from(["q", "limit", "password", "email", "file", "userId", "token", "page"])


class TestSuiteProperties:
    @settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    @given(methods, st.lists(param_names, unique=True, max_size=4), st.booleans(), st.integers(0, 2**32))
    def test_suite_bounded_and_reproducible(self, method, names, secured, seed):
        config = EndpointConfig(
            method=method,
            path="/items/{id}",
            security_schemes=["key"] if secured else [],
            parameters=[ParameterConfig(name=n, location="query", type="string") for n in names],
        )
        endpoint = config.build()
        first = endpoint.generate_comprehensive_test_suite(GenerationContext(seed=seed))
        second = endpoint.generate_comprehensive_test_suite(GenerationContext(seed=seed))
        assert first == second
        assert len(first) <= endpoint.estimated_test_count
        assert first.cases_for(Scenario.HAPPY_PATH)
        assert 0.0 <= first.quality_score <= 1.0
