from stepmimic.domain.steps.base import (
    Step,
    FunctionStep,
    RequestFactory,
    Reaction,
    ErrorReaction,
    chain_to,
)

__all__ = [
    "Step",
    "FunctionStep",
    "RequestFactory",
    "Reaction",
    "ErrorReaction",
    "chain_to",
]
