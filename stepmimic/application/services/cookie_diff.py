# application/services/cookie_diff.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


def _cookie_index(items: List[Dict[str, object]]) -> Dict[Tuple[str, str, str], Dict[str, object]]:
    """
    Key by (name, domain, path). Value is full cookie dict (value included).
    """
    idx: Dict[Tuple[str, str, str], Dict[str, object]] = {}
    for c in items or []:
        name = str(c.get("name", ""))
        domain = str(c.get("domain", ""))
        path = str(c.get("path", ""))
        idx[(name, domain, path)] = c
    return idx


@dataclass(frozen=True)
class CookieDiff:
    added: List[str]
    removed: List[str]
    changed: List[str]

    @property
    def empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


def diff_cookies(before: List[Dict[str, object]], after: List[Dict[str, object]]) -> CookieDiff:
    b = _cookie_index(before)
    a = _cookie_index(after)

    added = {k[0] for k in a.keys() - b.keys()}
    removed = {k[0] for k in b.keys() - a.keys()}

    # names only; values never leave this function
    changed = {k[0] for k in a.keys() & b.keys() if a[k].get("value") != b[k].get("value")}

    return CookieDiff(added=sorted(added), removed=sorted(removed), changed=sorted(changed))
