# application/services/redactor.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

SENSITIVE_KEYS = {"password", "passwd", "pass", "authorization", "proxy-authorization", "cookie", "set-cookie"}

# URL のクエリに載りがちなもの
SENSITIVE_QUERY_KEYS = SENSITIVE_KEYS | {"token", "access_token", "api_key", "apikey"}

MASK = "********"


def mask_value(key: str, value: Any) -> Any:
    if key.lower() in SENSITIVE_KEYS and value is not None:
        return MASK
    return value


def mask_pairs(pairs: Iterable[Tuple[str, Any]]) -> List[Tuple[str, Any]]:
    return [(k, mask_value(k, v)) for k, v in (pairs or [])]


def mask_dict(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: mask_value(k, v) for k, v in d.items()}


def mask_url(url: str) -> str:
    """
    ログ用に URL の秘密を伏せる。

    - userinfo のパスワード
    - SENSITIVE_QUERY_KEYS に当たるクエリ値

    伏せるものが無ければ元の文字列をそのまま返す。
    """
    parts = urlsplit(url)
    netloc = parts.netloc
    changed = False

    if parts.password is not None:
        userinfo, host = netloc.rsplit("@", 1)
        netloc = f"{userinfo.split(':', 1)[0]}:{MASK}@{host}"
        changed = True

    query = parts.query
    if query:
        pairs = parse_qsl(query, keep_blank_values=True)
        if any(k.lower() in SENSITIVE_QUERY_KEYS for k, _ in pairs):
            query = urlencode(
                [(k, MASK if k.lower() in SENSITIVE_QUERY_KEYS else v) for k, v in pairs],
                safe="*",
            )
            changed = True

    if not changed:
        return url
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))
