# tests/conftest.py
import asyncio
import socket

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

LOGIN_PAGE = """
<html><head><title>Login</title></head>
<body>
  <form action="/login" method="post">
    <input type="hidden" name="csrf" value="tok-1">
    <input type="text" name="username">
    <input type="password" name="password">
  </form>
</body></html>
"""


def make_app() -> web.Application:
    """Small target site: cookies, redirects, a slow page and a login flow."""

    async def set_cookie(request):
        resp = web.Response(text="cookie set")
        resp.set_cookie("sid", "abc")
        return resp

    async def check_cookie(request):
        return web.Response(text=request.cookies.get("sid", ""))

    async def slow(request):
        await asyncio.sleep(0.5)
        return web.Response(text="late")

    async def redirect(request):
        return web.Response(status=302, headers={"Location": "/final"})

    async def final(request):
        return web.Response(text="final")

    async def echo_headers(request):
        return web.json_response({k: v for k, v in request.headers.items()})

    async def echo_form(request):
        data = await request.post()
        return web.json_response({k: data.getall(k) for k in data.keys()})

    async def status(request):
        return web.Response(status=int(request.match_info["code"]), text="status")

    async def robots(request):
        return web.Response(text="User-agent: *\nDisallow: /admin\n")

    async def index(request):
        return web.Response(text="<html><head><title>Home</title></head></html>", content_type="text/html")

    async def login_form(request):
        return web.Response(text=LOGIN_PAGE, content_type="text/html")

    async def login_submit(request):
        data = await request.post()
        if data.get("csrf") != "tok-1" or data.get("password") != "pw":
            return web.Response(status=403, text="forbidden")
        resp = web.Response(status=302, headers={"Location": "/account"})
        resp.set_cookie("session", "logged-in")
        return resp

    async def account(request):
        if request.cookies.get("session") != "logged-in":
            return web.Response(status=401, text="unauthorized")
        return web.Response(text="<html><head><title>Account</title></head></html>", content_type="text/html")

    async def hop1(request):
        await asyncio.sleep(0.07)
        return web.Response(status=302, headers={"Location": "/hop2"})

    async def hop2(request):
        await asyncio.sleep(0.07)
        resp = web.Response(text="late")
        resp.set_cookie("late", "x")
        return resp

    async def drip(request):
        resp = web.StreamResponse()
        await resp.prepare(request)
        for _ in range(10):
            await resp.write(b"x" * 10)
            await asyncio.sleep(0.05)
        await resp.write_eof()
        return resp

    app = web.Application()
    app.router.add_get("/set", set_cookie)
    app.router.add_get("/check", check_cookie)
    app.router.add_get("/slow", slow)
    app.router.add_get("/redirect", redirect)
    app.router.add_get("/final", final)
    app.router.add_get("/headers", echo_headers)
    app.router.add_post("/form", echo_form)
    app.router.add_get("/status/{code}", status)
    app.router.add_get("/robots.txt", robots)
    app.router.add_get("/", index)
    app.router.add_get("/login", login_form)
    app.router.add_post("/login", login_submit)
    app.router.add_get("/account", account)
    app.router.add_get("/hop1", hop1)
    app.router.add_get("/hop2", hop2)
    app.router.add_get("/drip", drip)
    return app


@pytest_asyncio.fixture
async def http_server():
    server = TestServer(make_app(), host="127.0.0.1")
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


@pytest.fixture
def closed_port_url() -> str:
    """URL on a local port with nothing listening."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/"


@pytest_asyncio.fixture
async def truncated_body_url():
    """Server that announces a 100 byte body and hangs up after 5 bytes."""

    async def handle(reader, writer):
        await reader.readuntil(b"\r\n\r\n")
        writer.write(b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\nContent-Length: 100\r\n\r\nhello")
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}/"
    finally:
        server.close()
        await server.wait_closed()
