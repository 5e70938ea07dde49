from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

Responder = Callable[[web.Request], Awaitable[web.StreamResponse]]


@dataclass
class Upstream:
    """In-process stand-in for a provider API that records every request."""

    server: TestServer
    requests: List[Dict[str, Any]] = field(default_factory=list)
    responder: Optional[Responder] = None

    @property
    def base_url(self) -> str:
        return f"http://{self.server.host}:{self.server.port}"

    def reply(
        self,
        status: int = 200,
        payload: Any = None,
        text: Optional[str] = None,
        body: Optional[bytes] = None,
    ) -> None:
        async def respond(request: web.Request) -> web.StreamResponse:
            if body is not None:
                return web.Response(status=status, body=body, content_type="application/json")
            if text is not None:
                return web.Response(status=status, text=text, content_type="text/html")
            return web.json_response(payload if payload is not None else {}, status=status)

        self.responder = respond


@pytest_asyncio.fixture
async def upstream():
    async def handler(request: web.Request) -> web.StreamResponse:
        fake.requests.append(
            {
                "path": request.path,
                "query": dict(request.query),
                "headers": dict(request.headers),
                "json": await request.json(),
            }
        )
        if fake.responder is None:
            return web.json_response({})
        return await fake.responder(request)

    app = web.Application()
    app.router.add_route("POST", "/{tail:.*}", handler)
    server = TestServer(app)
    await server.start_server()
    fake = Upstream(server=server)
    yield fake
    await server.close()
