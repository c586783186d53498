# domain/request.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Tuple, Union
from urllib.parse import urlparse

from stepmimic.domain.exceptions import InvalidRequestError
from stepmimic.domain.headers import HeaderPairs, HeadersLike, normalize_headers

DEFAULT_TIMEOUT_SEC = 30.0

PairList = Tuple[Tuple[str, str], ...]


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    CONNECT = "CONNECT"

    @classmethod
    def parse(cls, value: Union[str, "HttpMethod"]) -> "HttpMethod":
        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise InvalidRequestError(f"Unrecognized HTTP method: {value!r}") from None


@dataclass(frozen=True)
class MultipartForm:
    texts: PairList = ()
    files: Tuple[Tuple[str, bytes], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "texts", tuple((str(k), str(v)) for k, v in self.texts))
        object.__setattr__(self, "files", tuple((str(k), bytes(v)) for k, v in self.files))

    def is_empty(self) -> bool:
        return not self.texts and not self.files


@dataclass(frozen=True)
class RequestDescriptor:
    """
    1 ステップ分の HTTP 呼び出しを表す不変の値。

    on_request() のたびに新しく作ること（セッショントークン等でヘッダ/ボディが変わるため）。
    status_codes が空なら 2xx をすべて許容する。
    """

    method: HttpMethod
    url: str
    headers: HeaderPairs = ()
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    body: Optional[bytes] = None
    form: Optional[PairList] = None
    multipart: Optional[MultipartForm] = None
    status_codes: FrozenSet[int] = field(default_factory=frozenset)
    proxy: Optional[str] = None
    user_agent: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", HttpMethod.parse(self.method))
        object.__setattr__(self, "url", _validate_url(self.url))
        object.__setattr__(self, "headers", normalize_headers(self.headers))
        object.__setattr__(self, "timeout_sec", _validate_timeout(self.timeout_sec))
        object.__setattr__(self, "status_codes", _validate_status_codes(self.status_codes))

        if isinstance(self.body, str):
            object.__setattr__(self, "body", self.body.encode("utf-8"))
        elif self.body is not None:
            object.__setattr__(self, "body", bytes(self.body))

        if self.form is not None:
            object.__setattr__(self, "form", tuple((str(k), str(v)) for k, v in self.form))

        payloads = [p for p in (self.body, self.form, self.multipart) if p is not None]
        if len(payloads) > 1:
            raise InvalidRequestError("Only one of body, form or multipart may be set")

        if self.proxy is not None and not urlparse(self.proxy).scheme:
            raise InvalidRequestError(f"Invalid proxy URL: {self.proxy!r}")

    @classmethod
    def new(cls, method: Union[str, HttpMethod], url: str) -> "RequestDescriptor":
        return cls(method=method, url=url)

    def accepts(self, status: int) -> bool:
        if not self.status_codes:
            return 200 <= status < 300
        return status in self.status_codes

    def with_headers(self, headers: HeadersLike) -> "RequestDescriptor":
        return replace(self, headers=normalize_headers(headers))

    def with_timeout(self, timeout_sec: Union[float, timedelta]) -> "RequestDescriptor":
        return replace(self, timeout_sec=timeout_sec)

    def with_body(self, body: Union[bytes, str]) -> "RequestDescriptor":
        return replace(self, body=body)

    def with_form(self, form: Iterable[Tuple[str, str]]) -> "RequestDescriptor":
        return replace(self, form=tuple(form))

    def with_multipart(self, multipart: MultipartForm) -> "RequestDescriptor":
        return replace(self, multipart=multipart)

    def with_status_codes(self, status_codes: Iterable[int]) -> "RequestDescriptor":
        return replace(self, status_codes=frozenset(status_codes))

    def with_proxy(self, proxy: Optional[str]) -> "RequestDescriptor":
        return replace(self, proxy=proxy)

    def with_user_agent(self, user_agent: Optional[str]) -> "RequestDescriptor":
        return replace(self, user_agent=user_agent)


def _validate_url(url: str) -> str:
    if not isinstance(url, str) or not url.strip():
        raise InvalidRequestError("URL must not be empty")
    url = url.strip()
    try:
        parsed = urlparse(url)
        parsed.port  # ポート番号の不正もここで検出
    except ValueError as exc:
        raise InvalidRequestError(f"Unparseable URL: {url!r}") from exc
    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
        raise InvalidRequestError(f"URL must be absolute http(s): {url!r}")
    return url


def _validate_timeout(timeout_sec: Union[float, timedelta]) -> float:
    if isinstance(timeout_sec, timedelta):
        timeout_sec = timeout_sec.total_seconds()
    try:
        value = float(timeout_sec)
    except (TypeError, ValueError):
        raise InvalidRequestError(f"Invalid timeout: {timeout_sec!r}") from None
    if not value > 0:
        raise InvalidRequestError(f"Timeout must be > 0, got {timeout_sec!r}")
    return value


def _validate_status_codes(codes: Iterable[int]) -> FrozenSet[int]:
    out = set()
    for code in codes or ():
        if isinstance(code, bool) or not isinstance(code, int) or not 100 <= code <= 599:
            raise InvalidRequestError(f"Invalid status code: {code!r}")
        out.add(code)
    return frozenset(out)
