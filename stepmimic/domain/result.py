# domain/result.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from stepmimic.domain.exceptions import StepError, StepErrorKind
from stepmimic.domain.response import ResponseSummary


class StepOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class StepResult:
    step_name: str
    outcome: StepOutcome
    elapsed_ms: int
    response: Optional[ResponseSummary] = None
    error: Optional[StepError] = None
    next_step: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is StepOutcome.SUCCEEDED

    @property
    def error_kind(self) -> Optional[StepErrorKind]:
        return self.error.kind if self.error is not None else None

    @property
    def status(self) -> Optional[int]:
        return self.response.status if self.response is not None else None
