"""Generated test cases and suites.

Both are produced only by generation. A ``TestCase`` is frozen apart from
its ``execution`` record, which an executor writes back through
``record_execution``.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api_test_planner.catalog.scenarios import Scenario
from api_test_planner.catalog.strategies import StrategyType
from api_test_planner.model.tiers import ValueCategory


class Outcome(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"


class StepKind(StrEnum):
    SETUP = "setup"
    EXECUTE = "execute"
    VERIFY = "verify"


class AssertionKind(StrEnum):
    STATUS_CODE = "status_code"
    RESPONSE_SCHEMA = "response_schema"
    SECURITY = "security"
    RESPONSE_TIME = "response_time"


class ExecutionStatus(StrEnum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class TestStep(BaseModel):
    __test__ = False
    model_config = ConfigDict(frozen=True)

    kind: StepKind
    description: str


class TestAssertion(BaseModel):
    __test__ = False
    model_config = ConfigDict(frozen=True)

    kind: AssertionKind
    expected: Any = None
    description: str = ""


class ExecutionRecord(BaseModel):
    """Mutable execution result written by an external executor."""

    status: ExecutionStatus = ExecutionStatus.PENDING
    duration_seconds: float | None = None
    failure_messages: list[str] = Field(default_factory=list)
    skip_reason: str | None = None


class TestCase(BaseModel):
    """One concrete, generated test case."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    endpoint_key: str = ""
    scenario: Scenario
    strategy: StrategyType
    parameter: str | None = None
    value_category: ValueCategory | None = None
    input_value: Any = None
    expected_outcome: Outcome = Outcome.SUCCESS
    expected_status: int = 200
    steps: tuple[TestStep, ...] = ()
    assertions: tuple[TestAssertion, ...] = ()
    priority: int = Field(default=3, ge=1, le=5)  # 1 = most urgent
    complexity: int = Field(default=1, ge=1)
    tags: tuple[str, ...] = ()
    estimated_duration_seconds: int = 0
    created_at: datetime
    execution: ExecutionRecord = Field(default_factory=ExecutionRecord)

    @property
    def is_security(self) -> bool:
        return "security" in self.tags

    def record_execution(
        self,
        status: ExecutionStatus,
        duration_seconds: float | None = None,
        failure_messages: list[str] | None = None,
        skip_reason: str | None = None,
    ) -> None:
        self.execution.status = ExecutionStatus(status)
        self.execution.duration_seconds = duration_seconds
        self.execution.failure_messages = list(failure_messages or [])
        self.execution.skip_reason = skip_reason


class ExecutionSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    pending: int = 0
    success_rate: float = 0.0


class QualityMetrics(BaseModel):
    """Aggregate counts describing a generated suite."""

    model_config = ConfigDict(frozen=True)

    total_cases: int
    by_strategy_category: dict[str, int] = Field(default_factory=dict)
    by_scenario_category: dict[str, int] = Field(default_factory=dict)
    security_cases: int = 0
    average_complexity: float = 0.0
    coverage_score: float = 0.0
    grade: str = "F"

    @field_validator("coverage_score")
    @classmethod
    def _unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"coverage_score must be within [0, 1], got {v}")
        return v


class TestSuite(BaseModel):
    """Ordered, size-bounded result of one generation call."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    execution_id: str
    endpoint_key: str = ""
    generated_at: datetime
    test_cases: tuple[TestCase, ...]
    quality_score: float
    cap: int = 0
    ranking: str = "numeric_priority"
    metrics: QualityMetrics

    @field_validator("quality_score")
    @classmethod
    def _unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"quality_score must be within [0, 1], got {v}")
        return v

    def __len__(self) -> int:
        return len(self.test_cases)

    def cases_for(self, scenario: Scenario) -> list[TestCase]:
        return [case for case in self.test_cases if case.scenario == scenario]

    def execution_summary(self) -> ExecutionSummary:
        """Tally the execution records written back so far."""
        counts = {status: 0 for status in ExecutionStatus}
        for case in self.test_cases:
            counts[case.execution.status] += 1
        finished = counts[ExecutionStatus.PASSED] + counts[ExecutionStatus.FAILED]
        return ExecutionSummary(
            passed=counts[ExecutionStatus.PASSED],
            failed=counts[ExecutionStatus.FAILED],
            skipped=counts[ExecutionStatus.SKIPPED],
            pending=counts[ExecutionStatus.PENDING],
            success_rate=counts[ExecutionStatus.PASSED] / finished if finished else 0.0,
        )
