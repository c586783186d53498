# domain/exceptions.py
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, Optional

if TYPE_CHECKING:
    from stepmimic.domain.response import ResponseSummary


class StepmimicError(Exception):
    pass


class InvalidRequestError(StepmimicError):
    pass


class UnknownStepError(StepmimicError):
    def __init__(self, step_name: str):
        super().__init__(f"Step not found: {step_name}")
        self.step_name = step_name


class DuplicateStepNameError(StepmimicError):
    def __init__(self, step_name: str):
        super().__init__(f"Step already registered: {step_name}")
        self.step_name = step_name


class InvalidStepError(StepmimicError):
    pass


class NoResponseError(StepmimicError):
    def __init__(self, message: str = "No body has been set from the request."):
        super().__init__(message)


class ContextStateError(StepmimicError):
    pass


class StepErrorKind(str, Enum):
    NETWORK = "network"
    UNACCEPTABLE_STATUS = "unacceptable_status"


class StepError(StepmimicError):
    """
    Failure handed to ``Step.on_error``.

    ``kind`` tells the two failure classes apart:
      - NETWORK: no status line was received (DNS, reset, TLS, body read)
      - UNACCEPTABLE_STATUS: a response arrived but its code was not accepted;
        ``status_code``, ``expected_codes`` and ``response`` are set
    """

    def __init__(
        self,
        kind: StepErrorKind,
        message: str,
        *,
        status_code: Optional[int] = None,
        expected_codes: FrozenSet[int] = frozenset(),
        response: Optional["ResponseSummary"] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.expected_codes = expected_codes
        self.response = response

    @classmethod
    def network(cls, message: str) -> "StepError":
        return cls(StepErrorKind.NETWORK, message)

    @classmethod
    def unacceptable_status(
        cls,
        status_code: int,
        expected_codes: FrozenSet[int],
        response: Optional["ResponseSummary"] = None,
    ) -> "StepError":
        expected = sorted(expected_codes) if expected_codes else "any 2xx"
        return cls(
            StepErrorKind.UNACCEPTABLE_STATUS,
            f"Unexpected status code {status_code}. Expected one of: {expected}",
            status_code=status_code,
            expected_codes=expected_codes,
            response=response,
        )

    @property
    def is_network(self) -> bool:
        return self.kind is StepErrorKind.NETWORK

    def __repr__(self) -> str:
        return f"StepError(kind={self.kind.value!r}, status_code={self.status_code!r}, message={self.message!r})"
