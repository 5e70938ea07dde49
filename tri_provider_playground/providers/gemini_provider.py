"""Google Gemini provider."""
from __future__ import annotations

from urllib.parse import quote

from .base import PromptRequest, Provider, ProviderResponse, first, usage_or_none


class GeminiProvider(Provider):
    async def complete(self, request: PromptRequest) -> ProviderResponse:
        # Gemini authenticates with a query parameter, not a header.
        api_key = self.require_api_key(request)
        model = quote(self.resolve_model(request), safe="")
        url = f"{self.base_url}/v1beta/models/{model}:generateContent"
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": request.prompt},
                    ],
                }
            ],
            "generationConfig": {
                "temperature": request.temperature,
            },
        }
        data = await self.post_json(url, payload, params={"key": api_key})
        content = first(data.get("candidates")).get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        text = "".join(
            part["text"]
            for part in (parts if isinstance(parts, list) else [])
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
        return ProviderResponse(text=text, usage=usage_or_none(data.get("usageMetadata")))
