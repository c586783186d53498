# application/registry/step_registry.py
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List

from stepmimic.domain.exceptions import DuplicateStepNameError, InvalidStepError, UnknownStepError
from stepmimic.domain.steps.base import Step


class StepRegistry:
    def __init__(self, steps: Iterable[Step] = ()):
        self._steps: Dict[str, Step] = {}
        self.insert_many(steps)

    def insert(self, step: Step) -> None:
        if not isinstance(step, Step):
            raise TypeError(f"Not a step: {type(step).__name__} (needs name, on_request, on_success, on_error, on_timeout)")

        name = step.name
        if not isinstance(name, str) or not name:
            raise InvalidStepError(f"Step name must be a non-empty string: {type(step).__name__}")

        if name in self._steps:
            raise DuplicateStepNameError(name)
        self._steps[name] = step

    def insert_many(self, steps: Iterable[Step]) -> None:
        # 途中で重複があればそこで止める（それまでの登録は残す）
        for step in steps:
            self.insert(step)

    def lookup(self, name: str) -> Step:
        try:
            return self._steps[name]
        except KeyError:
            raise UnknownStepError(name) from None

    def names(self) -> List[str]:
        return list(self._steps)

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps.values())
