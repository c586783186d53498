# tests/domain/test_steps_base.py
import pytest

from stepmimic.domain.context import SessionContext
from stepmimic.domain.exceptions import ContextStateError, StepError
from stepmimic.domain.request import RequestDescriptor
from stepmimic.domain.steps import FunctionStep, Step, chain_to


def _request():
    return RequestDescriptor.new("GET", "https://example.com")


class TestFunctionStep:
    def test_is_a_step(self):
        assert isinstance(FunctionStep("s", _request), Step)

    def test_on_request_builds_fresh_descriptor(self):
        counter = {"n": 0}

        def build():
            counter["n"] += 1
            return _request().with_headers([("X-Seq", str(counter["n"]))])

        step = FunctionStep("s", build)
        assert step.on_request().headers == (("X-Seq", "1"),)
        assert step.on_request().headers == (("X-Seq", "2"),)

    def test_missing_reactions_are_noops(self):
        step = FunctionStep("s", _request)
        ctx = SessionContext()
        with ctx.reaction_scope():
            step.on_success(ctx)
            step.on_error(ctx, StepError.network("x"))
            step.on_timeout(ctx)
        assert ctx.next_step is None

    def test_reactions_are_called(self):
        seen = []
        step = FunctionStep(
            "s",
            _request,
            success=lambda ctx: seen.append("success"),
            error=lambda ctx, err: seen.append(err.kind.value),
            timeout=lambda ctx: seen.append("timeout"),
        )
        ctx = SessionContext()
        with ctx.reaction_scope():
            step.on_success(ctx)
            step.on_error(ctx, StepError.network("x"))
            step.on_timeout(ctx)
        assert seen == ["success", "network", "timeout"]


class TestChainTo:
    def test_sets_next_step(self):
        ctx = SessionContext()
        with ctx.reaction_scope():
            chain_to("next")(ctx)
        assert ctx.next_step == "next"

    def test_outside_reaction_fails(self):
        with pytest.raises(ContextStateError):
            chain_to("next")(SessionContext())


class TestStructuralStep:
    def test_object_missing_reactions_is_not_a_step(self):
        class OnlyRequest:
            name = "x"

            def on_request(self):
                return _request()

        assert not isinstance(OnlyRequest(), Step)
