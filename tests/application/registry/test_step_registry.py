# tests/application/registry/test_step_registry.py
import pytest

from stepmimic.application.registry.step_registry import StepRegistry
from stepmimic.domain.exceptions import DuplicateStepNameError, InvalidStepError, UnknownStepError
from stepmimic.domain.request import RequestDescriptor
from stepmimic.domain.steps.base import FunctionStep


def _step(name):
    return FunctionStep(name, lambda: RequestDescriptor.new("GET", "https://example.com"))


class PlainStep:
    """A step that does not inherit from anything"""

    name = "plain"

    def on_request(self):
        return RequestDescriptor.new("GET", "https://example.com")

    def on_success(self, ctx):
        pass

    def on_error(self, ctx, err):
        pass

    def on_timeout(self, ctx):
        pass


class TestStepRegistry:
    def test_insert_and_lookup(self):
        registry = StepRegistry()
        step = _step("login")
        registry.insert(step)
        assert registry.lookup("login") is step
        assert "login" in registry
        assert len(registry) == 1

    def test_accepts_structural_steps(self):
        registry = StepRegistry([PlainStep()])
        assert registry.names() == ["plain"]

    def test_lookup_unknown(self):
        with pytest.raises(UnknownStepError, match="Step not found: missing"):
            StepRegistry().lookup("missing")

    def test_duplicate_name_keeps_first(self):
        first = _step("a")
        registry = StepRegistry([first])
        with pytest.raises(DuplicateStepNameError) as exc_info:
            registry.insert(_step("a"))
        assert exc_info.value.step_name == "a"
        assert registry.lookup("a") is first

    def test_insert_many_stops_at_duplicate(self):
        registry = StepRegistry()
        with pytest.raises(DuplicateStepNameError):
            registry.insert_many([_step("a"), _step("b"), _step("a"), _step("c")])
        assert registry.names() == ["a", "b"]

    def test_rejects_empty_name(self):
        with pytest.raises(InvalidStepError):
            StepRegistry().insert(_step(""))

    def test_rejects_non_step(self):
        with pytest.raises(TypeError):
            StepRegistry().insert(object())

    def test_iteration_order(self):
        registry = StepRegistry([_step("x"), _step("y")])
        assert [s.name for s in registry] == ["x", "y"]
