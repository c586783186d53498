# infrastructure/logging/console_logger.py
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, TextIO

from stepmimic.application.ports.logger import LoggerPort

LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


@dataclass(frozen=True)
class ConsoleLogger(LoggerPort):
    """
    1 イベント 1 行で `event {json}` を出す（jq などで拾いやすい形）。
    min_level 未満のイベントは捨てる。stream 未指定なら出力時点の sys.stdout。
    """

    bound: Dict[str, Any] = field(default_factory=dict)
    min_level: str = "debug"
    stream: Optional[TextIO] = None

    def __post_init__(self) -> None:
        if self.min_level.lower() not in LEVELS:
            raise ValueError(f"Unknown log level: {self.min_level!r}")

    def bind(self, **fields: Any) -> "ConsoleLogger":
        merged = dict(self.bound)
        merged.update(fields)
        return replace(self, bound=merged)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def _emit(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        if LEVELS[level] < LEVELS[self.min_level.lower()]:
            return
        payload = dict(self.bound)
        payload.update(fields)
        payload.setdefault("type", event)
        payload.setdefault("level", level)
        line = f"{event} {json.dumps(payload, ensure_ascii=False, default=str)}"
        print(line, file=self.stream or sys.stdout, flush=True)
