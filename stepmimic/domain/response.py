# domain/response.py
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from stepmimic.domain.headers import HeaderPairs, get_header, header_values

_CHARSET_RE = re.compile(r"charset\s*=\s*([^\s;]+)", re.I)


@dataclass(frozen=True)
class RedirectHop:
    status: int
    url: str
    location: Optional[str] = None


@dataclass(frozen=True)
class ResponseSummary:
    status: int
    url: str
    headers: HeaderPairs = ()
    body: bytes = b""
    history: Tuple[RedirectHop, ...] = ()

    def header(self, name: str) -> Optional[str]:
        return get_header(self.headers, name)

    def header_list(self, name: str) -> List[str]:
        return header_values(self.headers, name)

    @property
    def content_type(self) -> Optional[str]:
        return self.header("Content-Type")

    @property
    def encoding(self) -> Optional[str]:
        m = _CHARSET_RE.search(self.content_type or "")
        if not m:
            return None
        return m.group(1).strip().strip('"').strip("'")

    def text(self) -> str:
        """Content-Type の charset を優先し、読めなければ utf-8 (replace) で復元する"""
        enc = self.encoding
        if enc:
            try:
                return self.body.decode(enc, errors="replace")
            except LookupError:
                pass
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text())

    @property
    def is_redirected(self) -> bool:
        return bool(self.history)
