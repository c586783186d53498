# tests/application/executor/test_driver.py
import pytest

from mock_http_transport import MockHttpTransport
from stepmimic.application.executor.driver import run_chain
from stepmimic.application.executor.worker import Worker
from stepmimic.application.ports.http_transport import TransportError
from stepmimic.domain.exceptions import UnknownStepError
from stepmimic.domain.request import RequestDescriptor
from stepmimic.domain.result import StepOutcome
from stepmimic.domain.steps.base import FunctionStep, chain_to


def _get(url):
    return lambda: RequestDescriptor.new("GET", url)


def _worker(transport, *steps):
    worker = Worker(transport)
    worker.add_steps(steps)
    return worker


class TestRunChain:
    @pytest.mark.asyncio
    async def test_follows_next_step_until_unset(self):
        transport = MockHttpTransport().add("http://mock.local/a", status=200).add("http://mock.local/b", status=200)
        worker = _worker(
            transport,
            FunctionStep("a", _get("http://mock.local/a"), success=chain_to("b")),
            FunctionStep("b", _get("http://mock.local/b")),
        )

        report = await run_chain(worker, "a")

        assert report.step_names == ["a", "b"]
        assert report.completed
        assert not report.truncated
        assert report.last.outcome is StepOutcome.SUCCEEDED
        assert [r.url for r in transport.sent] == ["http://mock.local/a", "http://mock.local/b"]

    @pytest.mark.asyncio
    async def test_failed_step_can_still_chain(self):
        transport = MockHttpTransport().add("http://mock.local/b", status=200)
        worker = _worker(
            transport,
            FunctionStep("a", _get("http://mock.local/missing"), error=lambda ctx, err: ctx.set_next_step("b")),
            FunctionStep("b", _get("http://mock.local/b")),
        )

        report = await run_chain(worker, "a")

        assert [r.outcome for r in report.results] == [StepOutcome.FAILED, StepOutcome.SUCCEEDED]

    @pytest.mark.asyncio
    async def test_failure_without_next_step_ends_chain(self):
        transport = MockHttpTransport().add("http://mock.local/a", raises=TransportError("refused"))
        worker = _worker(transport, FunctionStep("a", _get("http://mock.local/a")))

        report = await run_chain(worker, "a")

        assert report.step_names == ["a"]
        assert report.completed
        assert not report.last.ok

    @pytest.mark.asyncio
    async def test_max_steps_truncates_loops(self):
        transport = MockHttpTransport().add("http://mock.local/loop", status=200)
        worker = _worker(transport, FunctionStep("loop", _get("http://mock.local/loop"), success=chain_to("loop")))

        report = await run_chain(worker, "loop", max_steps=3)

        assert len(report.results) == 3
        assert report.truncated
        assert not report.completed

    @pytest.mark.asyncio
    async def test_unknown_next_step_propagates(self):
        transport = MockHttpTransport().add("http://mock.local/a", status=200)
        worker = _worker(transport, FunctionStep("a", _get("http://mock.local/a"), success=chain_to("ghost")))

        with pytest.raises(UnknownStepError, match="ghost"):
            await run_chain(worker, "a")

    @pytest.mark.asyncio
    async def test_rejects_non_positive_max_steps(self):
        worker = _worker(MockHttpTransport())
        with pytest.raises(ValueError):
            await run_chain(worker, "a", max_steps=0)

    @pytest.mark.asyncio
    async def test_report_results_are_immutable(self):
        transport = MockHttpTransport().add("http://mock.local/a", status=200)
        worker = _worker(transport, FunctionStep("a", _get("http://mock.local/a")))

        report = await run_chain(worker, "a")

        assert isinstance(report.results, tuple)
        with pytest.raises(AttributeError):
            report.results.append(report.last)
