# domain/steps/base.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, runtime_checkable

from stepmimic.domain.context import SessionContext
from stepmimic.domain.exceptions import StepError
from stepmimic.domain.request import RequestDescriptor


@runtime_checkable
class Step(Protocol):
    """
    Capability contract for one named step.

    Any object with these members can be registered; no base class is needed.
    All four operations are called by the worker, never by the step itself.

    - ``on_request`` builds a fresh descriptor. It gets no context because the
      context fields for this step are not known yet.
    - ``on_success`` runs when the status is in the accepted set.
    - ``on_error`` runs for unacceptable status codes and network failures.
    - ``on_timeout`` runs when no response arrived in time.

    Leaving the next step unset in a reaction ends the chain.
    Reactions are synchronous; further I/O belongs in the next step.
    """

    name: str

    def on_request(self) -> RequestDescriptor:
        ...

    def on_success(self, ctx: SessionContext) -> None:
        ...

    def on_error(self, ctx: SessionContext, err: StepError) -> None:
        ...

    def on_timeout(self, ctx: SessionContext) -> None:
        ...


RequestFactory = Callable[[], RequestDescriptor]
Reaction = Callable[[SessionContext], None]
ErrorReaction = Callable[[SessionContext, StepError], None]


@dataclass(frozen=True)
class FunctionStep:
    name: str
    request: RequestFactory
    success: Optional[Reaction] = None
    error: Optional[ErrorReaction] = None
    timeout: Optional[Reaction] = None

    def on_request(self) -> RequestDescriptor:
        return self.request()

    def on_success(self, ctx: SessionContext) -> None:
        if self.success is not None:
            self.success(ctx)

    def on_error(self, ctx: SessionContext, err: StepError) -> None:
        if self.error is not None:
            self.error(ctx, err)

    def on_timeout(self, ctx: SessionContext) -> None:
        if self.timeout is not None:
            self.timeout(ctx)


def chain_to(next_step: str) -> Reaction:
    """Reaction that sets ``next_step`` unconditionally."""

    def _react(ctx: SessionContext) -> None:
        ctx.set_next_step(next_step)

    return _react
