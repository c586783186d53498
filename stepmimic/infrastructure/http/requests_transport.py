# infrastructure/http/requests_transport.py
from __future__ import annotations

import asyncio
import threading
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import requests
from requests.cookies import RequestsCookieJar, extract_cookies_to_jar
from urllib3.exceptions import ReadTimeoutError

from stepmimic.application.ports.http_transport import HttpTransportPort, TransportError, TransportTimeoutError
from stepmimic.application.services.client_settings import ClientSettings
from stepmimic.domain.headers import has_header
from stepmimic.domain.request import RequestDescriptor
from stepmimic.domain.response import RedirectHop, ResponseSummary

CHUNK_SIZE = 8192

_BODY_HEADERS = {"content-type", "content-length", "transfer-encoding"}


class RequestsSessionTransport(HttpTransportPort):
    """
    requests.Session を 1 セッションとして使うトランスポート。

    呼び出しはスレッドに逃がす（asyncio.to_thread）。スレッドは外から止められないので、
    1 回の send 全体（リダイレクトの各ホップと本文の読み込み）に締め切りを持たせる。

    - リダイレクトは自前で追い、ホップごとに締め切りを確認する
    - 本文は stream で読み、チャンクごとに締め切りを確認する
    - cookie は作業用の jar に溜め、締め切り内に完了したときだけ session へ反映する
    - session はロックで守る。打ち切られた呼び出しが残っていれば、次の send はその終了を待つ

    Content-Length 付きの本文は 1 チャンク (CHUNK_SIZE) を読み終えるまで確認できない。
    """

    def __init__(self, settings: Optional[ClientSettings] = None):
        self._settings = settings or ClientSettings()
        self._lock = threading.Lock()
        self._session = requests.Session()
        self._session.verify = self._settings.verify_ssl
        if self._settings.user_agent:
            self._session.headers["User-Agent"] = self._settings.user_agent
        if not self._settings.gzip:
            self._session.headers["Accept-Encoding"] = "identity"
        if self._settings.proxy:
            self._session.proxies.update({"http": self._settings.proxy, "https": self._settings.proxy})

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def send(self, request: RequestDescriptor) -> ResponseSummary:
        deadline = time.monotonic() + request.timeout_sec
        return await asyncio.to_thread(self._send_sync, request, deadline)

    def _send_sync(self, request: RequestDescriptor, deadline: float) -> ResponseSummary:
        with self._lock:
            try:
                return self._exchange(request, deadline)
            except requests.Timeout as exc:
                raise TransportTimeoutError(f"timed out: {request.method.value} {request.url}") from exc
            except requests.RequestException as exc:
                raise TransportError(f"{type(exc).__name__}: {exc}") from exc

    def _exchange(self, request: RequestDescriptor, deadline: float) -> ResponseSummary:
        headers = list(request.headers)
        if request.user_agent and not has_header(headers, "User-Agent"):
            headers.append(("User-Agent", request.user_agent))
        proxies = {"http": request.proxy, "https": request.proxy} if request.proxy else {}

        jar = self._session.cookies.copy()
        method = request.method.value
        url = request.url
        payload = _payload(request)
        history: List[RedirectHop] = []

        for _ in range(self._session.max_redirects + 1):
            resp = self._dispatch(request, method, url, headers, payload, jar, proxies, deadline)
            try:
                extract_cookies_to_jar(jar, resp.request, resp.raw)
                location = self._session.get_redirect_target(resp)
                if location is None:
                    summary = ResponseSummary(
                        status=resp.status_code,
                        url=str(resp.url),
                        headers=tuple(_raw_header_pairs(resp)),
                        body=_read_body(resp, request, deadline),
                        history=tuple(history),
                    )
                    break
                history.append(RedirectHop(status=resp.status_code, url=str(resp.url), location=location))
            finally:
                resp.close()

            next_url = urljoin(str(resp.url), location)
            method = _redirect_method(method, resp.status_code)
            if resp.status_code not in (307, 308):
                payload = {}
                headers = [(k, v) for k, v in headers if k.lower() not in _BODY_HEADERS]
            if self._session.should_strip_auth(url, next_url):
                headers = [(k, v) for k, v in headers if k.lower() != "authorization"]
            url = next_url
        else:
            raise TransportError(f"TooManyRedirects: exceeded {self._session.max_redirects} redirects: {request.url}")

        self._session.cookies = jar
        return summary

    def _dispatch(
        self,
        request: RequestDescriptor,
        method: str,
        url: str,
        headers: List[Tuple[str, str]],
        payload: Dict[str, Any],
        jar: RequestsCookieJar,
        proxies: Dict[str, str],
        deadline: float,
    ) -> requests.Response:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TransportTimeoutError(f"timed out: {request.method.value} {request.url}")

        prepared = self._session.prepare_request(
            requests.Request(method=method, url=url, headers=_merge_headers(headers), **payload)
        )
        # session の cookie ではなく、このリクエスト用の jar から Cookie を組み直す
        if not has_header(headers, "Cookie"):
            prepared.headers.pop("Cookie", None)
            prepared.prepare_cookies(jar)

        env = self._session.merge_environment_settings(prepared.url, proxies, True, None, None)
        adapter = self._session.get_adapter(prepared.url)
        return adapter.send(
            prepared,
            stream=True,
            timeout=remaining,
            verify=env["verify"],
            cert=env["cert"],
            proxies=env["proxies"],
        )

    def snapshot_cookies(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for c in self._session.cookies:
            out.append(
                {
                    "name": c.name,
                    "value": c.value,
                    "domain": c.domain,
                    "path": c.path,
                    "secure": bool(getattr(c, "secure", False)),
                    "expires": getattr(c, "expires", None),
                }
            )
        return out

    async def close(self) -> None:
        await asyncio.to_thread(self._close_sync)

    def _close_sync(self) -> None:
        with self._lock:
            self._session.close()


def _payload(request: RequestDescriptor) -> Dict[str, Any]:
    if request.body is not None:
        return {"data": request.body}
    if request.form is not None:
        return {"data": list(request.form)}  # list[tuple] OK、同名キー複数OK
    if request.multipart is not None:
        return {
            "data": list(request.multipart.texts),
            "files": [(name, (name, data)) for name, data in request.multipart.files],
        }
    return {}


def _merge_headers(headers: List[Tuple[str, str]]) -> Dict[str, str]:
    # requests は同名ヘッダを送れないので、重複はカンマ連結する
    merged: Dict[str, str] = {}
    for name, value in headers:
        key = next((k for k in merged if k.lower() == name.lower()), name)
        merged[key] = f"{merged[key]}, {value}" if key in merged else value
    return merged


def _redirect_method(method: str, status: int) -> str:
    # requests.Session.rebuild_method と同じ書き換え
    if status in (302, 303) and method != "HEAD":
        return "GET"
    if status == 301 and method == "POST":
        return "GET"
    return method


def _read_body(resp: requests.Response, request: RequestDescriptor, deadline: float) -> bytes:
    chunks: List[bytes] = []
    try:
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise TransportTimeoutError(f"timed out reading body: {request.method.value} {request.url}")
            chunks.append(chunk)
    except requests.ConnectionError as exc:
        # 本文読み込み中のソケットタイムアウトは requests では ConnectionError になる
        if exc.args and isinstance(exc.args[0], ReadTimeoutError):
            raise TransportTimeoutError(f"timed out reading body: {request.method.value} {request.url}") from exc
        raise
    body = b"".join(chunks)

    # urllib3 1.x は Content-Length 不足を黙って通すので自前で確認する
    expected = resp.headers.get("Content-Length", "")
    if (
        expected.isdigit()
        and not resp.headers.get("Content-Encoding")
        and resp.request.method != "HEAD"
        and resp.status_code not in (204, 304)
        and len(body) < int(expected)
    ):
        raise TransportError(f"IncompleteRead: got {len(body)} of {expected} bytes from {resp.url}")
    return body


def _raw_header_pairs(resp: requests.Response) -> List[tuple]:
    # urllib3 の生ヘッダなら Set-Cookie の重複も保たれる
    raw = getattr(resp, "raw", None)
    raw_headers = getattr(raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "items"):
        return [(str(k), str(v)) for k, v in raw_headers.items()]
    return [(str(k), str(v)) for k, v in resp.headers.items()]
