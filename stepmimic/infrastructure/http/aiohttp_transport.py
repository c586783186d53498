# infrastructure/http/aiohttp_transport.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from stepmimic.application.ports.http_transport import HttpTransportPort, TransportError, TransportTimeoutError
from stepmimic.application.services.client_settings import ClientSettings
from stepmimic.domain.headers import has_header
from stepmimic.domain.request import RequestDescriptor
from stepmimic.domain.response import RedirectHop, ResponseSummary


class AiohttpSessionTransport(HttpTransportPort):
    """
    aiohttp.ClientSession 1 つ = 1 セッション。

    - CookieJar(unsafe=True): IP アドレス宛てでも cookie を保持する
    - CookieJar / ClientSession はイベントループ上で遅延生成する
    - close() しても CookieJar は残るので、再接続後もセッションは続く
    - タイムアウトで外側から cancel されると接続は解放される
    """

    def __init__(self, settings: Optional[ClientSettings] = None):
        self._settings = settings or ClientSettings()
        self._cookie_jar: Optional[aiohttp.CookieJar] = None
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            if self._cookie_jar is None:
                self._cookie_jar = aiohttp.CookieJar(unsafe=True)
            headers = {}
            if self._settings.user_agent:
                headers["User-Agent"] = self._settings.user_agent
            self._session = aiohttp.ClientSession(
                cookie_jar=self._cookie_jar,
                headers=headers,
                auto_decompress=self._settings.gzip,
                connector=aiohttp.TCPConnector(ssl=self._settings.verify_ssl),
                timeout=aiohttp.ClientTimeout(total=None),
            )
        return self._session

    async def send(self, request: RequestDescriptor) -> ResponseSummary:
        session = self._get_session()

        headers = list(request.headers)
        if request.user_agent and not has_header(headers, "User-Agent"):
            headers.append(("User-Agent", request.user_agent))

        kwargs: Dict[str, Any] = {
            "headers": headers,
            "proxy": request.proxy or self._settings.proxy,
            "timeout": aiohttp.ClientTimeout(total=request.timeout_sec),
        }
        if request.body is not None:
            kwargs["data"] = request.body
        elif request.form is not None:
            kwargs["data"] = list(request.form)
        elif request.multipart is not None:
            kwargs["data"] = _multipart(request)

        try:
            async with session.request(request.method.value, request.url, **kwargs) as resp:
                body = await resp.read()
                return ResponseSummary(
                    status=resp.status,
                    url=str(resp.url),
                    headers=tuple((str(k), str(v)) for k, v in resp.headers.items()),
                    body=body,
                    history=tuple(
                        RedirectHop(status=h.status, url=str(h.url), location=h.headers.get("Location"))
                        for h in resp.history
                    ),
                )
        except asyncio.TimeoutError as exc:
            raise TransportTimeoutError(f"timed out: {request.method.value} {request.url}") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

    def snapshot_cookies(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        if self._cookie_jar is None:
            return out
        for c in self._cookie_jar:
            out.append(
                {
                    "name": c.key,
                    "value": c.value,
                    "domain": c["domain"],
                    "path": c["path"],
                    "secure": bool(c["secure"]),
                    "expires": c["expires"] or None,
                }
            )
        return out

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def _multipart(request: RequestDescriptor) -> aiohttp.FormData:
    form = aiohttp.FormData()
    for name, value in request.multipart.texts:
        form.add_field(name, value)
    for name, data in request.multipart.files:
        form.add_field(name, data, filename=name, content_type="application/octet-stream")
    return form
