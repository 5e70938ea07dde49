"""aiohttp application exposing the compare endpoint."""
from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from aiohttp import web

from .compare import ProviderOverride, ValidationError, compare, serialize, validate_prompt
from .config import MAX_BODY_BYTES, AppConfig
from .providers import ProviderRegistry, build_registry

logger = logging.getLogger("tri-provider")

CONFIG_KEY = web.AppKey("config", AppConfig)
REGISTRY_KEY = web.AppKey("registry", ProviderRegistry)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


async def read_body(request: web.Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


def overrides_from_body(body: Mapping[str, Any], registry: ProviderRegistry) -> Dict[str, ProviderOverride]:
    """Map flat ``<provider>Key`` / ``<provider>Model`` fields to per-provider overrides."""
    return {
        name: ProviderOverride(api_key=body.get(f"{name}Key"), model=body.get(f"{name}Model"))
        for name in registry.names()
    }


async def handle_compare(request: web.Request) -> web.Response:
    body = await read_body(request)
    try:
        prompt = validate_prompt(body.get("prompt"))
    except ValidationError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    registry = request.app[REGISTRY_KEY]
    config = request.app[CONFIG_KEY]
    outcomes = await compare(
        prompt,
        overrides_from_body(body, registry),
        registry=registry,
        timeout_ms=config.timeout_ms,
    )
    return web.json_response(serialize(outcomes))


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({"ok": True})


async def handle_index(request: web.Request) -> web.FileResponse:
    index = request.app[CONFIG_KEY].static_dir / "index.html"
    if not index.is_file():
        raise web.HTTPNotFound()
    return web.FileResponse(index)


def create_app(
    config: Optional[AppConfig] = None,
    registry: Optional[ProviderRegistry] = None,
) -> web.Application:
    config = config or AppConfig()
    app = web.Application(middlewares=[cors_middleware], client_max_size=MAX_BODY_BYTES)
    app[CONFIG_KEY] = config
    app[REGISTRY_KEY] = registry if registry is not None else build_registry(config.provider_specs())
    app.router.add_post("/api/compare", handle_compare)
    app.router.add_get("/health", handle_health)
    if config.static_dir.is_dir():
        app.router.add_get("/", handle_index)
        app.router.add_static("/static/", config.static_dir)
    else:
        logger.info("Static directory %s not found; serving API only", config.static_dir)
    return app
