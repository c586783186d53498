# infrastructure/logging/loguru_logger.py
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from loguru import logger as _loguru

from stepmimic.application.ports.logger import LoggerPort


class LoguruLogger(LoggerPort):
    """
    LoggerPort -> loguru。イベント名をメッセージにし、フィールドは extra に bind する。
    メッセージ末尾にも JSON で付けるので、デフォルトの sink でも内容が見える。
    """

    def __init__(self, bound: Optional[Dict[str, Any]] = None, sink_logger=None):
        self._bound: Dict[str, Any] = dict(bound or {})
        self._logger = sink_logger if sink_logger is not None else _loguru

    @property
    def bound(self) -> Dict[str, Any]:
        return dict(self._bound)

    def bind(self, **fields: Any) -> "LoguruLogger":
        merged = dict(self._bound)
        merged.update(fields)
        return LoguruLogger(bound=merged, sink_logger=self._logger)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("DEBUG", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("INFO", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("WARNING", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("ERROR", event, fields)

    def _emit(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        payload = dict(self._bound)
        payload.update(fields)
        payload.setdefault("type", event)
        text = json.dumps(payload, ensure_ascii=False, default=str)
        # JSON の {} を format させないよう本文は引数で渡す
        self._logger.bind(**payload).log(level, "{} {}", event, text)
