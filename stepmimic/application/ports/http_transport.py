# application/ports/http_transport.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from stepmimic.domain.request import RequestDescriptor
from stepmimic.domain.response import ResponseSummary


class TransportError(Exception):
    """Connection-level failure: no status line was received."""


class TransportTimeoutError(TransportError):
    """The transport gave up waiting on its own socket timeout."""


class HttpTransportPort(ABC):
    """
    One instance == one browser-like session.

    The cookie store lives inside the transport: cookies set by a response are
    attached to every later request without the caller touching them.
    """

    @abstractmethod
    async def send(self, request: RequestDescriptor) -> ResponseSummary:
        ...

    @abstractmethod
    def snapshot_cookies(self) -> List[Dict[str, Any]]:
        ...

    async def close(self) -> None:
        return None
