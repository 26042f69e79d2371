"""Turn Trace - Typed Record of One Orchestration Turn's Steps.

Each step of a turn (classify, dispatch, assemble, route, execute, account)
ends as exactly one of three outcomes:

    StepSuccess  the step ran; ``detail`` summarizes what it produced
    StepFailed   the step ran and failed; error kind + message recorded
    StepSkipped  the step was not needed (e.g. no tools selected)

The union is discriminated on ``status``. TurnTrace accumulates outcomes
immutably and exports them as Logfire span attributes, so the flow of every
turn is visible in the trace without reading logs.

Example:
    >>> trace = TurnTrace()
    >>> trace = trace.append(StepSkipped(step=TurnStep.DISPATCH, reason="no tools selected"))
    >>> trace.step_flow
    ('dispatch',)
"""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel, computed_field

from .domain_type import ErrorKind, StepStatus, TurnStep


class ErrorMessage(RootModel[str]):
    """Non-empty failure description; every failure must explain itself."""

    root: str = Field(min_length=1, max_length=1000)
    model_config = ConfigDict(frozen=True)


class ErrorSummary(RootModel[dict[ErrorKind, int]]):
    """Failed-step counts by ErrorKind, for grouping and alerting."""

    root: dict[ErrorKind, int] = Field(default_factory=dict)
    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def total_errors(self) -> int:
        return sum(self.root.values())

    @computed_field
    @property
    def most_common(self) -> ErrorKind | None:
        if not self.root:
            return None
        return max(self.root.items(), key=lambda x: x[1])[0]


class LogfireAttributes(RootModel[dict[str, Any]]):
    """Turn state shaped as Logfire span attributes.

    Keys:
        turn.total_steps, turn.succeeded, turn.failed, turn.total_duration_ms,
        turn.step_flow, turn.error_summary
    """

    root: dict[str, Any]
    model_config = ConfigDict(frozen=True)


class StepSuccess(BaseModel):
    status: Literal[StepStatus.SUCCESS] = StepStatus.SUCCESS
    step: TurnStep
    detail: str | None = None
    start_time: datetime
    end_time: datetime

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time).total_seconds() * 1000


class StepFailed(BaseModel):
    """A step that ran and failed.

    Failed steps do not necessarily end the turn: a provider failure on the
    execute step is still followed by accounting and a diagnostic response.
    """

    status: Literal[StepStatus.FAILED] = StepStatus.FAILED
    step: TurnStep
    error_kind: ErrorKind
    error: ErrorMessage
    start_time: datetime
    end_time: datetime

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time).total_seconds() * 1000


class StepSkipped(BaseModel):
    status: Literal[StepStatus.SKIPPED] = StepStatus.SKIPPED
    step: TurnStep
    reason: str = Field(min_length=1, max_length=500)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(frozen=True)


StepOutcome = StepSuccess | StepFailed | StepSkipped


class TurnTrace(BaseModel):
    """Immutable Sequence of Step Outcomes for One Turn.

    Computed Properties:
        succeeded: At least one step and no failures
        failed: Any step failed
        error_summary: ErrorKind distribution of failed steps
        step_flow: Step names in execution order
        total_duration_ms: Time spent in executed (non-skipped) steps
    """

    steps: tuple[StepOutcome, ...] = ()

    model_config = ConfigDict(frozen=True)

    def append(self, outcome: StepOutcome) -> TurnTrace:
        return self.model_copy(update={"steps": (*self.steps, outcome)})

    def success(self, step: TurnStep, started: datetime, detail: str | None = None) -> TurnTrace:
        """Append a StepSuccess ending now."""
        return self.append(StepSuccess(step=step, detail=detail, start_time=started, end_time=datetime.now(UTC)))

    def failure(self, step: TurnStep, started: datetime, kind: ErrorKind, error: str) -> TurnTrace:
        """Append a StepFailed ending now."""
        return self.append(
            StepFailed(
                step=step,
                error_kind=kind,
                error=ErrorMessage(error[:1000] or kind.value),
                start_time=started,
                end_time=datetime.now(UTC),
            )
        )

    def skipped(self, step: TurnStep, reason: str) -> TurnTrace:
        return self.append(StepSkipped(step=step, reason=reason))

    @computed_field
    @property
    def succeeded(self) -> bool:
        if not self.steps:
            return False
        return not any(isinstance(s, StepFailed) for s in self.steps)

    @computed_field
    @property
    def failed(self) -> bool:
        return any(isinstance(s, StepFailed) for s in self.steps)

    @computed_field
    @property
    def error_summary(self) -> ErrorSummary:
        kinds = [s.error_kind for s in self.steps if isinstance(s, StepFailed)]
        return ErrorSummary(dict(Counter(kinds)))

    @computed_field
    @property
    def step_flow(self) -> tuple[TurnStep, ...]:
        return tuple(s.step for s in self.steps)

    @computed_field
    @property
    def total_duration_ms(self) -> float:
        return sum(s.duration_ms for s in self.steps if isinstance(s, (StepSuccess, StepFailed)))

    @property
    def latest(self) -> StepOutcome | None:
        return self.steps[-1] if self.steps else None

    def to_logfire_attributes(self) -> LogfireAttributes:
        """Export for ``logfire.span(..., **attrs.root)`` or ``span.set_attributes``."""
        return LogfireAttributes(
            {
                "turn.total_steps": len(self.steps),
                "turn.succeeded": self.succeeded,
                "turn.failed": self.failed,
                "turn.total_duration_ms": self.total_duration_ms,
                "turn.step_flow": [str(step) for step in self.step_flow],
                "turn.error_summary": {str(k): v for k, v in self.error_summary.root.items()},
            }
        )


__all__ = [
    "ErrorMessage",
    "ErrorSummary",
    "LogfireAttributes",
    "StepFailed",
    "StepOutcome",
    "StepSkipped",
    "StepSuccess",
    "TurnTrace",
]
