from __future__ import annotations

from pathlib import Path

import pytest
from aiohttp.test_utils import TestClient, TestServer

from fakes import fake_registry, three_fakes
from tri_provider_playground.app import create_app
from tri_provider_playground.config import AppConfig
from tri_provider_playground.providers import ProtocolKind, ProviderSpec, build_registry


def make_client(tmp_path: Path, registry, timeout_ms: int = 60_000) -> TestClient:
    config = AppConfig(static_dir=tmp_path / "public", timeout_ms=timeout_ms)
    return TestClient(TestServer(create_app(config, registry)))


@pytest.mark.asyncio
async def test_health(tmp_path) -> None:
    async with make_client(tmp_path, fake_registry(**three_fakes())) as client:
        response = await client.get("/health")
        assert response.status == 200
        assert await response.json() == {"ok": True}
        assert response.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_compare_maps_flat_body_to_overrides(tmp_path) -> None:
    fakes = three_fakes()
    body = {
        "prompt": "hi",
        "openaiKey": "sk-o",
        "openaiModel": "gpt-4o",
        "deepseekKey": "sk-d",
        "geminiKey": "g-key",
        "geminiModel": "gemini-1.5-pro",
    }
    async with make_client(tmp_path, fake_registry(**fakes)) as client:
        response = await client.post("/api/compare", json=body)
        assert response.status == 200
        payload = await response.json()

    assert list(payload) == ["openai", "deepseek", "gemini"]
    for outcome in payload.values():
        assert outcome["ok"] is True
        assert outcome["text"] == "hello"
        assert outcome["usage"] == {"totalTokenCount": 5}
        assert outcome["elapsedMs"] >= 0
        assert "error" not in outcome
    assert fakes["openai"].calls[0].model == "gpt-4o"
    assert fakes["deepseek"].calls[0].api_key == "sk-d"
    assert fakes["deepseek"].calls[0].model is None
    assert fakes["gemini"].calls[0].model == "gemini-1.5-pro"


@pytest.mark.asyncio
async def test_compare_reports_timeout_in_band(tmp_path) -> None:
    fakes = three_fakes(openai={"delay": 1.0})
    async with make_client(tmp_path, fake_registry(**fakes), timeout_ms=20) as client:
        response = await client.post("/api/compare", json={"prompt": "hi"})
        payload = await response.json()

    assert response.status == 200
    assert payload["openai"] == {"ok": False, "error": "OpenAI timed out after 20 ms", "elapsedMs": payload["openai"]["elapsedMs"]}
    assert payload["deepseek"]["ok"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"prompt": ""}, {"prompt": "   "}, {}, {"prompt": 7}, ["hi"]])
async def test_missing_prompt_is_400_and_nothing_dispatched(tmp_path, body) -> None:
    fakes = three_fakes()
    async with make_client(tmp_path, fake_registry(**fakes)) as client:
        response = await client.post("/api/compare", json=body)
        assert response.status == 400
        assert await response.json() == {"error": "Missing prompt"}

    assert all(fake.calls == [] for fake in fakes.values())


@pytest.mark.asyncio
async def test_malformed_json_is_400(tmp_path) -> None:
    async with make_client(tmp_path, fake_registry(**three_fakes())) as client:
        response = await client.post(
            "/api/compare", data="{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status == 400


@pytest.mark.asyncio
async def test_blank_keys_against_real_adapters_make_no_calls(tmp_path, upstream) -> None:
    registry = build_registry(
        [
            ProviderSpec("openai", "OpenAI", ProtocolKind.OPENAI_COMPATIBLE, upstream.base_url, "gpt-4o-mini"),
            ProviderSpec("deepseek", "DeepSeek", ProtocolKind.OPENAI_COMPATIBLE, upstream.base_url, "deepseek-chat"),
            ProviderSpec("gemini", "Gemini", ProtocolKind.GEMINI, upstream.base_url, "gemini-1.5-flash"),
        ]
    )
    upstream.reply(payload={"choices": [{"message": {"content": "from deepseek"}}]})
    async with make_client(tmp_path, registry) as client:
        response = await client.post(
            "/api/compare", json={"prompt": "hi", "openaiKey": "  ", "deepseekKey": "sk-d"}
        )
        payload = await response.json()

    assert payload["openai"]["error"] == "Missing API key"
    assert payload["gemini"]["error"] == "Missing API key"
    assert payload["deepseek"]["ok"] is True
    assert payload["deepseek"]["text"] == "from deepseek"
    assert len(upstream.requests) == 1
    assert upstream.requests[0]["json"]["model"] == "deepseek-chat"


@pytest.mark.asyncio
async def test_preflight_answered_by_cors(tmp_path) -> None:
    async with make_client(tmp_path, fake_registry(**three_fakes())) as client:
        response = await client.options("/api/compare")
        assert response.status == 204
        assert response.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_index_served_when_static_dir_exists(tmp_path) -> None:
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>playground</h1>", encoding="utf-8")
    async with make_client(tmp_path, fake_registry(**three_fakes())) as client:
        response = await client.get("/")
        assert response.status == 200
        assert "playground" in await response.text()


@pytest.mark.asyncio
async def test_no_index_route_without_static_dir(tmp_path) -> None:
    async with make_client(tmp_path, fake_registry(**three_fakes())) as client:
        response = await client.get("/")
        assert response.status == 404
