# domain/context.py
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Protocol

from stepmimic.domain.exceptions import ContextStateError, NoResponseError
from stepmimic.domain.response import ResponseSummary


class CookieSource(Protocol):
    def snapshot_cookies(self) -> List[Dict[str, Any]]:
        ...


@dataclass
class SessionContext:
    """
    1 セッション（ステップの連鎖）全体で共有される状態。

    Worker が排他的に所有し、リアクション（on_success / on_error / on_timeout）の間だけ
    ステップに渡される。next_step はリアクションの中からしか設定できない。
    cookie はトランスポートの cookie store が持ち、ここからは参照のみ。
    """

    run_id: str = ""
    vars: Dict[str, Any] = field(default_factory=dict)
    cookie_source: Optional[CookieSource] = field(default=None, repr=False)

    _current_step: Optional[str] = field(default=None, init=False)
    _next_step: Optional[str] = field(default=None, init=False)
    _started_at: Optional[datetime] = field(default=None, init=False)
    _elapsed_ms: int = field(default=0, init=False)
    _last_response: Optional[ResponseSummary] = field(default=None, init=False)
    _in_reaction: bool = field(default=False, init=False, repr=False)

    # -------------------------
    # accessors
    # -------------------------

    @property
    def current_step(self) -> Optional[str]:
        return self._current_step

    @property
    def next_step(self) -> Optional[str]:
        return self._next_step

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    @property
    def elapsed_ms(self) -> int:
        return self._elapsed_ms

    def elapsed_as_string(self) -> str:
        return f"{self._elapsed_ms} ms"

    @property
    def last_response(self) -> Optional[ResponseSummary]:
        return self._last_response

    @property
    def cookies(self) -> List[Dict[str, Any]]:
        if self.cookie_source is None:
            return []
        return self.cookie_source.snapshot_cookies()

    def cookie_value(self, name: str) -> Optional[str]:
        for c in self.cookies:
            if c.get("name") == name:
                return c.get("value")
        return None

    # -------------------------
    # reaction-side mutators
    # -------------------------

    def set_next_step(self, name: str) -> None:
        if not self._in_reaction:
            raise ContextStateError("next step can only be set from a step reaction")
        if not name:
            raise ContextStateError("next step name must not be empty")
        self._next_step = name

    def clear_next_step(self) -> None:
        if not self._in_reaction:
            raise ContextStateError("next step can only be cleared from a step reaction")
        self._next_step = None

    # -------------------------
    # body helpers
    # -------------------------

    def body_bytes(self) -> bytes:
        return self._require_response().body

    def body_text(self) -> str:
        return self._require_response().text()

    def body_json(self) -> Any:
        return self._require_response().json()

    def _require_response(self) -> ResponseSummary:
        if self._last_response is None:
            raise NoResponseError()
        return self._last_response

    # -------------------------
    # worker-side mutators
    # -------------------------

    def begin_step(self, name: str) -> None:
        self._current_step = name
        self._next_step = None
        self._last_response = None
        self._elapsed_ms = 0
        self._started_at = None

    def mark_dispatch_started(self) -> None:
        self._started_at = datetime.now(timezone.utc)

    def record_elapsed(self, elapsed_ms: int) -> None:
        self._elapsed_ms = elapsed_ms

    def record_response(self, response: ResponseSummary) -> None:
        self._last_response = response

    @contextmanager
    def reaction_scope(self) -> Iterator["SessionContext"]:
        if self._in_reaction:
            raise ContextStateError("a reaction is already running on this context")
        self._in_reaction = True
        try:
            yield self
        finally:
            self._in_reaction = False
