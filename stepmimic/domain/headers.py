# domain/headers.py
from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Tuple, Union

HeaderPairs = Tuple[Tuple[str, str], ...]
HeadersLike = Union[Mapping[str, str], Iterable[Tuple[str, str]], str, None]


def parse_headers(text: str) -> List[Tuple[str, str]]:
    """
    "Name: Value" の複数行テキストからヘッダのペアを作る。

    - 最初の ":" で分割する（Referer:https://... のような値も壊さない）
    - 前後の空白は除去
    - 空行・":" を含まない行は無視
    """
    pairs: List[Tuple[str, str]] = []
    for line in (text or "").splitlines():
        if not line.strip() or ":" not in line:
            continue
        name, value = line.split(":", 1)
        name = name.strip()
        if not name:
            continue
        pairs.append((name, value.strip()))
    return pairs


def normalize_headers(headers: HeadersLike) -> HeaderPairs:
    if headers is None:
        return ()
    if isinstance(headers, str):
        return tuple(parse_headers(headers))
    if isinstance(headers, Mapping):
        return tuple((str(k), str(v)) for k, v in headers.items())
    out: List[Tuple[str, str]] = []
    for item in headers:
        name, value = item
        out.append((str(name), str(value)))
    return tuple(out)


def header_values(headers: Iterable[Tuple[str, str]], name: str) -> List[str]:
    key = name.lower()
    return [v for k, v in headers if k.lower() == key]


def get_header(headers: Iterable[Tuple[str, str]], name: str) -> Optional[str]:
    values = header_values(headers, name)
    return values[0] if values else None


def has_header(headers: Iterable[Tuple[str, str]], name: str) -> bool:
    return get_header(headers, name) is not None
