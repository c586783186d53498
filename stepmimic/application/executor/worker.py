# application/executor/worker.py
from __future__ import annotations

import asyncio
import time
import uuid
from typing import Iterable, Optional

from stepmimic.application.ports.http_transport import HttpTransportPort, TransportError, TransportTimeoutError
from stepmimic.application.ports.logger import LoggerPort, NullLogger
from stepmimic.application.registry.step_registry import StepRegistry
from stepmimic.application.services.cookie_diff import diff_cookies
from stepmimic.application.services.redactor import mask_pairs, mask_url
from stepmimic.domain.context import SessionContext
from stepmimic.domain.exceptions import InvalidRequestError, StepError
from stepmimic.domain.request import RequestDescriptor
from stepmimic.domain.response import ResponseSummary
from stepmimic.domain.result import StepOutcome, StepResult
from stepmimic.domain.steps.base import Step


class Worker:
    """
    Runs one named step end to end against a single session.

    build request -> dispatch (raced against the descriptor timeout)
    -> classify -> call exactly one reaction -> snapshot the result.

    The worker does not decide whether another step runs; callers read
    ``StepResult.next_step`` (see ``run_chain``). Exceptions raised inside a
    reaction are not caught here and end the run.
    """

    def __init__(
        self,
        transport: HttpTransportPort,
        registry: Optional[StepRegistry] = None,
        logger: Optional[LoggerPort] = None,
        ctx: Optional[SessionContext] = None,
    ):
        self._transport = transport
        self._registry = registry if registry is not None else StepRegistry()
        self._ctx = ctx if ctx is not None else SessionContext()

        if not self._ctx.run_id:
            self._ctx.run_id = uuid.uuid4().hex
        if self._ctx.cookie_source is None:
            self._ctx.cookie_source = transport

        self._logger = (logger or NullLogger()).bind(run_id=self._ctx.run_id)

    @property
    def registry(self) -> StepRegistry:
        return self._registry

    @property
    def context(self) -> SessionContext:
        return self._ctx

    @property
    def transport(self) -> HttpTransportPort:
        return self._transport

    def add_step(self, step: Step) -> None:
        self._registry.insert(step)

    def add_steps(self, steps: Iterable[Step]) -> None:
        self._registry.insert_many(steps)

    async def close(self) -> None:
        await self._transport.close()

    async def execute(self, name: str) -> StepResult:
        # Idle -> Building
        step = self._registry.lookup(name)
        ctx = self._ctx
        ctx.begin_step(name)

        request = step.on_request()
        if not isinstance(request, RequestDescriptor):
            raise InvalidRequestError(
                f"on_request of step {name!r} returned {type(request).__name__}, expected RequestDescriptor"
            )

        self._logger.info(
            "step.start",
            step_name=name,
            method=request.method.value,
            url=mask_url(request.url),
            timeout_sec=request.timeout_sec,
        )
        self._logger.debug(
            "http.request",
            step_name=name,
            headers=mask_pairs(request.headers),
            body_len=len(request.body) if request.body is not None else 0,
            form=mask_pairs(request.form or ()),
            status_codes=sorted(request.status_codes),
        )

        # Building -> Dispatching
        cookies_before = self._transport.snapshot_cookies()
        ctx.mark_dispatch_started()
        t0 = time.perf_counter()

        try:
            response = await asyncio.wait_for(self._transport.send(request), timeout=request.timeout_sec)
        except (asyncio.TimeoutError, TransportTimeoutError):
            ctx.record_elapsed(_elapsed_ms(t0))
            return self._timed_out(step, request)
        except TransportError as exc:
            ctx.record_elapsed(_elapsed_ms(t0))
            return self._network_failure(step, request, exc)

        ctx.record_elapsed(_elapsed_ms(t0))
        ctx.record_response(response)
        self._log_response(name, response, cookies_before)

        if request.accepts(response.status):
            with ctx.reaction_scope():
                step.on_success(ctx)
            return self._finish(name, StepOutcome.SUCCEEDED, response=response)

        err = StepError.unacceptable_status(response.status, request.status_codes, response)
        self._logger.warning(
            "step.unacceptable_status",
            step_name=name,
            status=response.status,
            expected=sorted(request.status_codes),
        )
        with ctx.reaction_scope():
            step.on_error(ctx, err)
        return self._finish(name, StepOutcome.FAILED, response=response, error=err)

    def _timed_out(self, step: Step, request: RequestDescriptor) -> StepResult:
        ctx = self._ctx
        self._logger.warning(
            "step.timeout",
            step_name=step.name,
            url=mask_url(request.url),
            timeout_sec=request.timeout_sec,
            elapsed_ms=ctx.elapsed_ms,
        )
        with ctx.reaction_scope():
            step.on_timeout(ctx)
        return self._finish(step.name, StepOutcome.TIMED_OUT)

    def _network_failure(self, step: Step, request: RequestDescriptor, exc: TransportError) -> StepResult:
        ctx = self._ctx
        err = StepError.network(str(exc) or type(exc).__name__)
        self._logger.error(
            "step.network_error",
            step_name=step.name,
            url=mask_url(request.url),
            error=err.message,
            elapsed_ms=ctx.elapsed_ms,
        )
        with ctx.reaction_scope():
            step.on_error(ctx, err)
        return self._finish(step.name, StepOutcome.FAILED, error=err)

    def _log_response(self, name: str, response: ResponseSummary, cookies_before) -> None:
        self._logger.info(
            "http.response",
            step_name=name,
            status=response.status,
            final_url=mask_url(response.url),
            content_type=response.content_type,
            body_len=len(response.body),
            redirects=len(response.history),
            elapsed_ms=self._ctx.elapsed_ms,
        )

        diff = diff_cookies(cookies_before, self._transport.snapshot_cookies())
        if not diff.empty:
            self._logger.info(
                "http.cookie_diff",
                step_name=name,
                added=diff.added,
                removed=diff.removed,
                changed=diff.changed,
            )

    def _finish(
        self,
        name: str,
        outcome: StepOutcome,
        response: Optional[ResponseSummary] = None,
        error: Optional[StepError] = None,
    ) -> StepResult:
        result = StepResult(
            step_name=name,
            outcome=outcome,
            elapsed_ms=self._ctx.elapsed_ms,
            response=response,
            error=error,
            next_step=self._ctx.next_step,
        )
        self._logger.info(
            "step.end",
            step_name=name,
            outcome=outcome.value,
            elapsed_ms=result.elapsed_ms,
            next_step=result.next_step,
        )
        return result


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)
