# tests/domain/test_response.py
import pytest

from stepmimic.domain.response import RedirectHop, ResponseSummary


def test_text_uses_charset_from_content_type():
    body = "こんにちは".encode("shift_jis")
    resp = ResponseSummary(status=200, url="https://example.com", headers=(("Content-Type", "text/html; charset=Shift_JIS"),), body=body)
    assert resp.encoding == "Shift_JIS"
    assert resp.text() == "こんにちは"


def test_text_falls_back_to_utf8():
    resp = ResponseSummary(status=200, url="https://example.com", body="héllo".encode("utf-8"))
    assert resp.encoding is None
    assert resp.text() == "héllo"


def test_unknown_charset_falls_back_to_utf8():
    resp = ResponseSummary(status=200, url="https://example.com", headers=(("Content-Type", "text/plain; charset=nope"),), body=b"ok")
    assert resp.text() == "ok"


def test_json():
    resp = ResponseSummary(status=200, url="https://example.com", body=b'{"name": "test"}')
    assert resp.json()["name"] == "test"


def test_invalid_json_raises():
    resp = ResponseSummary(status=200, url="https://example.com", body=b'{"name": "test"')
    with pytest.raises(ValueError):
        resp.json()


def test_header_lookup_is_case_insensitive_and_keeps_duplicates():
    resp = ResponseSummary(
        status=200,
        url="https://example.com",
        headers=(("Set-Cookie", "a=1"), ("set-cookie", "b=2"), ("Content-Type", "text/html")),
    )
    assert resp.header("SET-COOKIE") == "a=1"
    assert resp.header_list("Set-Cookie") == ["a=1", "b=2"]
    assert resp.content_type == "text/html"


def test_redirect_history():
    resp = ResponseSummary(
        status=200,
        url="https://example.com/home",
        history=(RedirectHop(status=302, url="https://example.com/login", location="/home"),),
    )
    assert resp.is_redirected
    assert resp.history[0].location == "/home"
