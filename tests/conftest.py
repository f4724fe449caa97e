import asyncio
import socket
from collections import Counter
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer


class Site:
    """Local HTTP site serving canned responses."""

    def __init__(self):
        self.routes = {}
        self.hits = Counter()
        self.server = None
        self.in_flight = 0
        self.peak_in_flight = 0

    def add(self, path, body=b"", status=200, content_type="text/html", delay=0.0, redirect_to=None, headers=None):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[path] = {
            "body": body,
            "status": status,
            "content_type": content_type,
            "delay": delay,
            "redirect_to": redirect_to,
            "headers": headers,
        }

    def url(self, path):
        return str(self.server.make_url(path))

    @property
    def host(self):
        return f"{self.server.host}:{self.server.port}"

    async def _handle(self, request):
        self.hits[request.path] += 1
        route = self.routes.get(request.path)
        if route is None:
            return web.Response(status=404, text="Not Found")
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if route["delay"]:
                await asyncio.sleep(route["delay"])
        finally:
            self.in_flight -= 1
        if route["redirect_to"]:
            raise web.HTTPFound(route["redirect_to"])
        if route["headers"]:
            return web.Response(status=route["status"], body=route["body"], headers=route["headers"])
        return web.Response(
            status=route["status"],
            body=route["body"],
            content_type=route["content_type"],
        )

    @asynccontextmanager
    async def serve(self):
        app = web.Application()
        app.router.add_route("GET", "/{tail:.*}", self._handle)
        self.server = TestServer(app)
        await self.server.start_server()
        try:
            yield self
        finally:
            await self.server.close()


@pytest.fixture
def site():
    return Site()


@pytest.fixture
def free_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
