#!/usr/bin/env python3
"""
Step chain demo runner

Usage:
  python scripts/run_chain.py --base-url <url> [--username <u> --password <p>] [--protected-path <path>]
                              [--max-steps N] [--log-format text|json]

Examples:
  python scripts/run_chain.py --base-url http://127.0.0.1:8080
  python scripts/run_chain.py --base-url https://target.example --username alice --password s3cret \
      --login-path /login --protected-path /account

Chain:
  robots_txt -> landing_page -> (login -> protected_page)
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from stepmimic.application.executor.driver import run_chain
from stepmimic.application.services.html_scraper import hidden_inputs, page_title
from stepmimic.domain.context import SessionContext
from stepmimic.domain.exceptions import StepError, StepmimicError
from stepmimic.domain.headers import parse_headers
from stepmimic.domain.request import RequestDescriptor
from stepmimic.infrastructure.bootstrap import build_worker
from stepmimic.infrastructure.config.settings import EngineSettings
from stepmimic.infrastructure.logging.console_logger import ConsoleLogger
from stepmimic.infrastructure.logging.log_setup import setup_console_logging

BROWSER_HEADERS = """
Accept: text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8
Accept-Language: en-US,en;q=0.5
Upgrade-Insecure-Requests: 1
"""


@dataclass
class DemoTarget:
    base_url: str
    login_path: str = "/login"
    protected_path: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    shared: Dict[str, Any] = field(default_factory=dict)

    def url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    @property
    def can_login(self) -> bool:
        return bool(self.username and self.password)


class RobotsTxt:
    name = "robots_txt"

    def __init__(self, target: DemoTarget):
        self._target = target

    def on_request(self) -> RequestDescriptor:
        return RequestDescriptor(
            method="GET",
            url=self._target.url("/robots.txt"),
            headers=parse_headers("Accept: */*"),
            timeout_sec=10,
            status_codes={200, 404},
        )

    def on_success(self, ctx: SessionContext) -> None:
        disallowed = [
            line.split(":", 1)[1].strip()
            for line in ctx.body_text().splitlines()
            if line.lower().startswith("disallow:")
        ]
        ctx.vars["robots_disallow"] = disallowed
        ctx.set_next_step("landing_page")

    def on_error(self, ctx: SessionContext, err: StepError) -> None:
        # robots.txt が取れなくてもトップページには進む
        ctx.set_next_step("landing_page")

    def on_timeout(self, ctx: SessionContext) -> None:
        ctx.set_next_step("landing_page")


class LandingPage:
    name = "landing_page"

    def __init__(self, target: DemoTarget):
        self._target = target

    def on_request(self) -> RequestDescriptor:
        return RequestDescriptor.new("GET", self._target.url("/")).with_headers(BROWSER_HEADERS)

    def on_success(self, ctx: SessionContext) -> None:
        html = ctx.body_text()
        ctx.vars["title"] = page_title(html)
        if self._target.can_login:
            ctx.set_next_step("login_form")

    def on_error(self, ctx: SessionContext, err: StepError) -> None:
        pass

    def on_timeout(self, ctx: SessionContext) -> None:
        pass


class LoginForm:
    name = "login_form"

    def __init__(self, target: DemoTarget):
        self._target = target

    def on_request(self) -> RequestDescriptor:
        return RequestDescriptor.new("GET", self._target.url(self._target.login_path)).with_headers(BROWSER_HEADERS)

    def on_success(self, ctx: SessionContext) -> None:
        self._target.shared["hidden"] = hidden_inputs(ctx.body_text())
        ctx.set_next_step("login_submit")

    def on_error(self, ctx: SessionContext, err: StepError) -> None:
        pass

    def on_timeout(self, ctx: SessionContext) -> None:
        pass


class LoginSubmit:
    name = "login_submit"

    def __init__(self, target: DemoTarget):
        self._target = target

    def on_request(self) -> RequestDescriptor:
        # hidden inputs は 1 回の送信で使い切る
        form = list(self._target.shared.pop("hidden", {}).items())
        form += [("username", self._target.username or ""), ("password", self._target.password or "")]
        return (
            RequestDescriptor.new("POST", self._target.url(self._target.login_path))
            .with_headers(BROWSER_HEADERS)
            .with_form(form)
            .with_status_codes({200, 302, 303})
        )

    def on_success(self, ctx: SessionContext) -> None:
        if self._target.protected_path:
            ctx.set_next_step("protected_page")

    def on_error(self, ctx: SessionContext, err: StepError) -> None:
        pass

    def on_timeout(self, ctx: SessionContext) -> None:
        pass


class ProtectedPage:
    name = "protected_page"

    def __init__(self, target: DemoTarget):
        self._target = target

    def on_request(self) -> RequestDescriptor:
        return (
            RequestDescriptor.new("GET", self._target.url(self._target.protected_path or "/"))
            .with_headers(BROWSER_HEADERS)
            .with_status_codes({200})
        )

    def on_success(self, ctx: SessionContext) -> None:
        ctx.vars["protected_title"] = page_title(ctx.body_text())

    def on_error(self, ctx: SessionContext, err: StepError) -> None:
        pass

    def on_timeout(self, ctx: SessionContext) -> None:
        pass


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a demo step chain against a target")
    parser.add_argument("--base-url", type=str, required=True)
    parser.add_argument("--login-path", type=str, default="/login")
    parser.add_argument("--protected-path", type=str)
    parser.add_argument("--username", type=str)
    parser.add_argument("--password", type=str)
    parser.add_argument("--max-steps", type=int, default=20)
    parser.add_argument("--log-format", choices=("text", "json"), default="text")
    return parser


async def _run(args: argparse.Namespace, settings: EngineSettings) -> int:
    target = DemoTarget(
        base_url=args.base_url,
        login_path=args.login_path,
        protected_path=args.protected_path,
        username=args.username,
        password=args.password,
    )
    # json: 1 行 1 イベントを stderr へ（stdout は結果表示用）
    logger = ConsoleLogger(min_level=settings.log_level, stream=sys.stderr) if args.log_format == "json" else None
    worker = build_worker(
        settings,
        steps=[RobotsTxt(target), LandingPage(target), LoginForm(target), LoginSubmit(target), ProtectedPage(target)],
        logger=logger,
    )
    try:
        report = await run_chain(worker, "robots_txt", max_steps=args.max_steps)
    finally:
        await worker.close()

    for r in report.results:
        print(f"{r.step_name:<16} {r.outcome.value:<10} status={r.status} {r.elapsed_ms} ms")
    print(f"vars: {worker.context.vars}")
    return 0 if report.last is not None and report.last.ok else 1


def main(argv: Optional[list] = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(argv)

    try:
        settings = EngineSettings.from_env()
    except StepmimicError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 2

    if args.log_format == "text":
        setup_console_logging(level=settings.log_level)

    try:
        return asyncio.run(_run(args, settings))
    except StepmimicError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
