# infrastructure/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

from stepmimic.application.services.client_settings import DEFAULT_USER_AGENT, ClientSettings
from stepmimic.domain.exceptions import StepmimicError

ENV_PREFIX = "STEPMIMIC_"
TRANSPORTS = ("aiohttp", "requests")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigError(StepmimicError):
    pass


@dataclass(frozen=True)
class EngineSettings:
    proxy: Optional[str] = None
    user_agent: Optional[str] = DEFAULT_USER_AGENT
    gzip: bool = True
    verify_ssl: bool = True
    transport: str = "aiohttp"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.transport not in TRANSPORTS:
            raise ConfigError(f"Unknown transport: {self.transport!r} (expected one of {TRANSPORTS})")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level!r} (expected one of {LOG_LEVELS})")

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "EngineSettings":
        """
        .env と環境変数から設定を読む（環境変数が優先）。

        STEPMIMIC_PROXY / STEPMIMIC_USER_AGENT / STEPMIMIC_GZIP / STEPMIMIC_VERIFY_SSL /
        STEPMIMIC_TRANSPORT / STEPMIMIC_LOG_LEVEL
        """
        values = {}
        path = env_file if env_file is not None else Path.cwd() / ".env"
        if path.exists():
            values.update({k: v for k, v in dotenv_values(path).items() if v is not None})
        values.update(environ if environ is not None else os.environ)

        def get(name: str) -> Optional[str]:
            raw = values.get(ENV_PREFIX + name)
            if raw is None or not raw.strip():
                return None
            return raw.strip()

        return cls(
            proxy=get("PROXY"),
            user_agent=get("USER_AGENT") or DEFAULT_USER_AGENT,
            gzip=_parse_bool("GZIP", get("GZIP"), True),
            verify_ssl=_parse_bool("VERIFY_SSL", get("VERIFY_SSL"), True),
            transport=(get("TRANSPORT") or "aiohttp").lower(),
            log_level=(get("LOG_LEVEL") or "INFO").upper(),
        )

    def client_settings(self) -> ClientSettings:
        return ClientSettings(
            proxy=self.proxy,
            user_agent=self.user_agent,
            gzip=self.gzip,
            verify_ssl=self.verify_ssl,
        )


def _parse_bool(name: str, raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    value = raw.lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")
