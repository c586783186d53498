from stepmimic.application.executor.driver import ChainReport, run_chain
from stepmimic.application.executor.worker import Worker
from stepmimic.application.ports.http_transport import HttpTransportPort, TransportError, TransportTimeoutError
from stepmimic.application.registry.step_registry import StepRegistry
from stepmimic.application.services.client_settings import ClientSettings
from stepmimic.domain.context import SessionContext
from stepmimic.domain.exceptions import (
    ContextStateError,
    DuplicateStepNameError,
    InvalidRequestError,
    InvalidStepError,
    NoResponseError,
    StepError,
    StepErrorKind,
    StepmimicError,
    UnknownStepError,
)
from stepmimic.domain.headers import parse_headers
from stepmimic.domain.request import DEFAULT_TIMEOUT_SEC, HttpMethod, MultipartForm, RequestDescriptor
from stepmimic.domain.response import RedirectHop, ResponseSummary
from stepmimic.domain.result import StepOutcome, StepResult
from stepmimic.domain.steps import FunctionStep, Step, chain_to

__all__ = [
    "ChainReport",
    "run_chain",
    "Worker",
    "HttpTransportPort",
    "TransportError",
    "TransportTimeoutError",
    "StepRegistry",
    "ClientSettings",
    "SessionContext",
    "ContextStateError",
    "DuplicateStepNameError",
    "InvalidRequestError",
    "InvalidStepError",
    "NoResponseError",
    "StepError",
    "StepErrorKind",
    "StepmimicError",
    "UnknownStepError",
    "parse_headers",
    "DEFAULT_TIMEOUT_SEC",
    "HttpMethod",
    "MultipartForm",
    "RequestDescriptor",
    "RedirectHop",
    "ResponseSummary",
    "StepOutcome",
    "StepResult",
    "FunctionStep",
    "Step",
    "chain_to",
]
