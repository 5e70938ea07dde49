"""Provider abstraction for the tri-provider playground."""
from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import aiohttp

DEFAULT_TEMPERATURE = 0.7

# Longer than the default deadline; also bounds calls the deadline abandons.
SESSION_TIMEOUT = aiohttp.ClientTimeout(total=90)


class ProtocolKind(enum.Enum):
    OPENAI_COMPATIBLE = "openai-compatible"
    GEMINI = "gemini"


@dataclass(frozen=True)
class ProviderSpec:
    """Static description of one configured provider."""

    provider_id: str
    label: str
    protocol: ProtocolKind
    base_url: str
    default_model: str
    requires_key: bool = True


@dataclass(frozen=True)
class PromptRequest:
    prompt: str
    api_key: Any = None
    model: Any = None
    temperature: float = DEFAULT_TEMPERATURE


@dataclass
class ProviderResponse:
    text: str
    usage: Optional[Dict[str, Any]]


class ProviderError(RuntimeError):
    """Raised when a provider request fails."""


class MissingCredentialError(ProviderError):
    """Raised before any network call when the API key is absent or blank."""


class HTTPStatusError(ProviderError):
    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status


class UnparsableResponseError(ProviderError):
    """Raised when the provider body is not valid JSON."""


class NetworkError(ProviderError):
    """Raised on transport-level failures (DNS, refused connections, resets)."""


def has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class Provider:
    name: str

    def __init__(self, spec: ProviderSpec) -> None:
        self.spec = spec
        self.name = spec.provider_id
        self.label = spec.label
        self.base_url = spec.base_url.rstrip("/")

    def resolve_model(self, request: PromptRequest) -> str:
        return request.model if has_text(request.model) else self.spec.default_model

    def require_api_key(self, request: PromptRequest) -> str:
        if self.spec.requires_key and not has_text(request.api_key):
            raise MissingCredentialError("Missing API key")
        return request.api_key or ""

    async def complete(self, request: PromptRequest) -> ProviderResponse:  # pragma: no cover - interface
        raise NotImplementedError

    async def post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST ``payload`` and return the decoded JSON object.

        Non-2xx responses raise :class:`HTTPStatusError` using the provider's
        ``error.message`` when the body carries one. A body that is JSON but not
        an object decodes to an empty dict.
        """
        try:
            async with aiohttp.ClientSession(timeout=SESSION_TIMEOUT) as session:
                async with session.post(url, headers=headers, params=params, json=payload) as response:
                    status, body = response.status, await response.read()
        except aiohttp.ClientError as exc:
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc
        data = parse_body(body, status)
        if status >= 400:
            raise HTTPStatusError(error_message(data) or f"HTTP {status}", status)
        return data


def parse_body(body: bytes, status: int) -> Dict[str, Any]:
    try:
        data = json.loads(body)
    # Covers UnicodeDecodeError too.
    except ValueError as exc:
        raise UnparsableResponseError(f"Non-JSON response ({status})") from exc
    return data if isinstance(data, dict) else {}


def error_message(data: Dict[str, Any]) -> Optional[str]:
    error = data.get("error")
    message = error.get("message") if isinstance(error, dict) else None
    if isinstance(message, str):
        return message if message.strip() else None
    return str(message) if message else None


def first(items: Any) -> Dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def usage_or_none(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None
