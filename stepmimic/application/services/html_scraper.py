# application/services/html_scraper.py
from __future__ import annotations

from typing import Dict, List, Optional

from bs4 import BeautifulSoup


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def page_title(html: str) -> Optional[str]:
    soup = _soup(html)
    return soup.title.get_text(strip=True) if soup.title else None


def hidden_inputs(html: str, form_selector: Optional[str] = None) -> Dict[str, str]:
    """
    <input type="hidden" name="..."> を dict にする（CSRF トークン等）。
    form_selector があればそのフォーム内だけを対象にする。
    """
    soup = _soup(html)
    root = soup.select_one(form_selector) if form_selector else soup
    if root is None:
        return {}

    hidden: Dict[str, str] = {}
    for inp in root.select("input[type=hidden][name]"):
        name = inp.get("name")
        if not name:
            continue
        val = inp.get("value", "")
        hidden[name] = val if val is not None else ""
    return hidden


def select_text(html: str, selector: str, attr: Optional[str] = None) -> List[str]:
    def extract(node) -> str:
        if attr:
            v = node.get(attr)
            return "" if v is None else str(v)
        return node.get_text(strip=True)

    return [extract(n) for n in _soup(html).select(selector)]


def form_action(html: str, form_selector: str = "form") -> Optional[str]:
    form = _soup(html).select_one(form_selector)
    if form is None:
        return None
    return form.get("action")
