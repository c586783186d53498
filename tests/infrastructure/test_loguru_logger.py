from __future__ import annotations

import json

import pytest
from loguru import logger

from stepmimic.infrastructure.logging.loguru_logger import LoguruLogger


@pytest.fixture
def records():
    captured = []
    handler_id = logger.add(lambda msg: captured.append(msg.record), level="DEBUG")
    try:
        yield captured
    finally:
        logger.remove(handler_id)


def test_loguru_logger_binds_fields(records) -> None:
    LoguruLogger().bind(run_id="r1").info("step.start", step_name="login", url="http://x/{id}")

    record = records[-1]
    assert record["level"].name == "INFO"
    assert record["extra"]["run_id"] == "r1"
    assert record["extra"]["step_name"] == "login"
    assert record["message"].startswith("step.start ")
    payload = json.loads(record["message"].split(" ", 1)[1])
    assert payload["type"] == "step.start"
    assert payload["url"] == "http://x/{id}"


def test_loguru_logger_levels(records) -> None:
    log = LoguruLogger()
    log.debug("a")
    log.warning("b")
    log.error("c")

    assert [r["level"].name for r in records[-3:]] == ["DEBUG", "WARNING", "ERROR"]


def test_bind_does_not_mutate_parent() -> None:
    parent = LoguruLogger(bound={"run_id": "r1"})
    child = parent.bind(step_name="a")
    assert parent.bound == {"run_id": "r1"}
    assert child.bound == {"run_id": "r1", "step_name": "a"}
