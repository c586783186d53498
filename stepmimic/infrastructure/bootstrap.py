# infrastructure/bootstrap.py
from __future__ import annotations

from typing import Iterable, Optional

from stepmimic.application.executor.worker import Worker
from stepmimic.application.ports.http_transport import HttpTransportPort
from stepmimic.application.ports.logger import LoggerPort
from stepmimic.application.registry.step_registry import StepRegistry
from stepmimic.domain.steps.base import Step
from stepmimic.infrastructure.config.settings import EngineSettings
from stepmimic.infrastructure.http.aiohttp_transport import AiohttpSessionTransport
from stepmimic.infrastructure.http.requests_transport import RequestsSessionTransport
from stepmimic.infrastructure.logging.loguru_logger import LoguruLogger


def build_transport(settings: EngineSettings) -> HttpTransportPort:
    client = settings.client_settings()
    if settings.transport == "requests":
        return RequestsSessionTransport(client)
    return AiohttpSessionTransport(client)


def build_worker(
    settings: Optional[EngineSettings] = None,
    steps: Iterable[Step] = (),
    logger: Optional[LoggerPort] = None,
) -> Worker:
    """1 セッション分の Worker / Context / cookie store を組み立てる"""
    settings = settings or EngineSettings.from_env()
    return Worker(
        transport=build_transport(settings),
        registry=StepRegistry(steps),
        logger=logger or LoguruLogger(),
    )
