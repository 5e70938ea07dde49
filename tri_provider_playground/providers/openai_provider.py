"""OpenAI-compatible chat completion provider (OpenAI, DeepSeek)."""
from __future__ import annotations

from .base import PromptRequest, Provider, ProviderResponse, first, usage_or_none


class OpenAICompatibleProvider(Provider):
    async def complete(self, request: PromptRequest) -> ProviderResponse:
        api_key = self.require_api_key(request)
        url = f"{self.base_url}/v1/chat/completions"
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.resolve_model(request),
            "messages": [{"role": "user", "content": request.prompt}],
            "temperature": request.temperature,
            "stream": False,
        }
        data = await self.post_json(url, payload, headers=headers)
        message = first(data.get("choices")).get("message")
        text = message.get("content") if isinstance(message, dict) else None
        return ProviderResponse(text=text if isinstance(text, str) else "", usage=usage_or_none(data.get("usage")))
