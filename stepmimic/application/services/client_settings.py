# application/services/client_settings.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_USER_AGENT = "stepmimic/0.1"


@dataclass(frozen=True)
class ClientSettings:
    """Session-wide transport settings. Per-request proxy / user_agent override these."""

    proxy: Optional[str] = None
    user_agent: Optional[str] = DEFAULT_USER_AGENT
    gzip: bool = True
    verify_ssl: bool = True

    def with_proxy(self, proxy: Optional[str]) -> "ClientSettings":
        return replace(self, proxy=proxy)

    def with_user_agent(self, user_agent: Optional[str]) -> "ClientSettings":
        return replace(self, user_agent=user_agent)

    def enable_compression(self) -> "ClientSettings":
        return replace(self, gzip=True)

    def disable_compression(self) -> "ClientSettings":
        return replace(self, gzip=False)
