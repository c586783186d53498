# application/executor/driver.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from stepmimic.application.executor.worker import Worker
from stepmimic.domain.result import StepResult


@dataclass(frozen=True)
class ChainReport:
    results: Tuple[StepResult, ...] = ()
    truncated: bool = False

    @property
    def last(self) -> Optional[StepResult]:
        return self.results[-1] if self.results else None

    @property
    def completed(self) -> bool:
        """True when the chain ended because no next step was set."""
        return not self.truncated

    @property
    def step_names(self) -> List[str]:
        return [r.step_name for r in self.results]


async def run_chain(worker: Worker, initial_step: str, max_steps: Optional[int] = None) -> ChainReport:
    """
    next_step が設定されている限りステップを実行し続ける。

    Failed / TimedOut でも止めない（続けるかどうかはリアクション側が next_step で決める）。
    UnknownStepError はそのまま呼び元へ。
    """
    if max_steps is not None and max_steps < 1:
        raise ValueError("max_steps must be >= 1")

    results: List[StepResult] = []
    name: Optional[str] = initial_step

    while name is not None:
        if max_steps is not None and len(results) >= max_steps:
            return ChainReport(results=tuple(results), truncated=True)

        result = await worker.execute(name)
        results.append(result)
        name = result.next_step

    return ChainReport(results=tuple(results))
