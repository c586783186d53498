# infrastructure/logging/log_setup.py
import sys

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <7}</level> | {extra[run_id]} | {message}"


def setup_console_logging(level: str = "INFO", sink=None) -> None:
    """loguru を 1 sink 構成にする。run_id を bind していないログは "-" で出す"""
    logger.remove()
    logger.configure(extra={"run_id": "-"})
    logger.add(sink if sink is not None else sys.stderr, level=level.upper(), format=CONSOLE_FORMAT)
