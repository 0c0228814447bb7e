from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from api_test_planner.catalog import Scenario, StrategyType
from api_test_planner.model.testcase import (
    ExecutionStatus,
    QualityMetrics,
    TestCase,
    TestSuite,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _make_case(**kw) -> TestCase:
    fields = dict(id="tc-1", name="happy", scenario=Scenario.HAPPY_PATH,
                  strategy=StrategyType.FUNCTIONAL_BASIC, created_at=NOW)
    fields.update(kw)
    return TestCase(**fields)


def _make_suite(cases, **kw) -> TestSuite:
    fields = dict(execution_id="run-1", generated_at=NOW, test_cases=tuple(cases),
                  quality_score=0.7, metrics=QualityMetrics(total_cases=len(cases)))
    fields.update(kw)
    return TestSuite(**fields)


class TestTestCase:
    def test_defaults(self):
        case = _make_case()
        assert case.priority == 3
        assert case.expected_status == 200
        assert case.execution.status is ExecutionStatus.PENDING
        assert not case.is_security

    def test_frozen(self):
        with pytest.raises(ValidationError):
            _make_case().name = "changed"

    def test_priority_range(self):
        with pytest.raises(ValidationError):
            _make_case(priority=0)
        with pytest.raises(ValidationError):
            _make_case(priority=6)

    def test_record_execution(self):
        case = _make_case()
        case.record_execution(ExecutionStatus.FAILED, 1.5, ["expected 201, got 500"])
        assert case.execution.status is ExecutionStatus.FAILED
        assert case.execution.duration_seconds == 1.5
        assert case.execution.failure_messages == ["expected 201, got 500"]

    def test_record_skip(self):
        case = _make_case()
        case.record_execution("skipped", skip_reason="no credentials")
        assert case.execution.status is ExecutionStatus.SKIPPED
        assert case.execution.skip_reason == "no credentials"

    def test_serialization_roundtrip(self):
        case = _make_case(tags=("functional", "happy_path"), input_value={"name": "rex"})
        again = TestCase(**case.model_dump())
        assert again == case


class TestTestSuite:
    def test_quality_score_range(self):
        with pytest.raises(ValidationError):
            _make_suite([], quality_score=1.5)

    def test_coverage_range(self):
        with pytest.raises(ValidationError):
            QualityMetrics(total_cases=0, coverage_score=-0.1)

    def test_len_and_filter(self):
        suite = _make_suite([_make_case(), _make_case(id="tc-2", scenario=Scenario.ERROR_HANDLING)])
        assert len(suite) == 2
        assert [c.id for c in suite.cases_for(Scenario.ERROR_HANDLING)] == ["tc-2"]

    def test_execution_summary_empty(self):
        summary = _make_suite([]).execution_summary()
        assert summary.pending == 0
        assert summary.success_rate == 0.0

    def test_execution_summary_ignores_skips(self):
        cases = [_make_case(id=f"tc-{i}") for i in range(4)]
        cases[0].record_execution(ExecutionStatus.PASSED)
        cases[1].record_execution(ExecutionStatus.PASSED)
        cases[2].record_execution(ExecutionStatus.SKIPPED)
        summary = _make_suite(cases).execution_summary()
        assert (summary.passed, summary.skipped, summary.pending) == (2, 1, 1)
        assert summary.success_rate == 1.0
