"""Provider registry for the tri-provider playground."""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional, Tuple, Type

from .base import (
    HTTPStatusError,
    MissingCredentialError,
    NetworkError,
    PromptRequest,
    ProtocolKind,
    Provider,
    ProviderError,
    ProviderResponse,
    ProviderSpec,
    UnparsableResponseError,
    has_text,
)
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAICompatibleProvider

DEFAULT_PROVIDER_SPECS: Tuple[ProviderSpec, ...] = (
    ProviderSpec(
        provider_id="openai",
        label="OpenAI",
        protocol=ProtocolKind.OPENAI_COMPATIBLE,
        base_url="https://api.openai.com",
        default_model="gpt-4o-mini",
    ),
    ProviderSpec(
        provider_id="deepseek",
        label="DeepSeek",
        protocol=ProtocolKind.OPENAI_COMPATIBLE,
        base_url="https://api.deepseek.com",
        default_model="deepseek-chat",
    ),
    ProviderSpec(
        provider_id="gemini",
        label="Gemini",
        protocol=ProtocolKind.GEMINI,
        base_url="https://generativelanguage.googleapis.com",
        default_model="gemini-1.5-flash",
    ),
)

PROTOCOL_ADAPTERS: Dict[ProtocolKind, Type[Provider]] = {
    ProtocolKind.OPENAI_COMPATIBLE: OpenAICompatibleProvider,
    ProtocolKind.GEMINI: GeminiProvider,
}


class ProviderRegistry:
    """Ordered mapping of provider id to adapter; iteration follows registration."""

    def __init__(self) -> None:
        self._providers: Dict[str, Provider] = {}

    def register(self, provider: Provider) -> None:
        key = provider.name.lower()
        self._providers[key] = provider

    def get(self, name: str) -> Optional[Provider]:
        return self._providers.get(name.lower())

    def names(self) -> Iterable[str]:
        return self._providers.keys()

    def items(self) -> Iterator[Tuple[str, Provider]]:
        return iter(self._providers.items())

    def __contains__(self, item: str) -> bool:
        return item.lower() in self._providers

    def __len__(self) -> int:
        return len(self._providers)


def build_adapter(spec: ProviderSpec) -> Provider:
    return PROTOCOL_ADAPTERS[spec.protocol](spec)


def build_registry(specs: Iterable[ProviderSpec] = DEFAULT_PROVIDER_SPECS) -> ProviderRegistry:
    registry = ProviderRegistry()
    for spec in specs:
        registry.register(build_adapter(spec))
    return registry


__all__ = [
    "DEFAULT_PROVIDER_SPECS",
    "PROTOCOL_ADAPTERS",
    "HTTPStatusError",
    "MissingCredentialError",
    "NetworkError",
    "PromptRequest",
    "ProtocolKind",
    "Provider",
    "ProviderError",
    "ProviderRegistry",
    "ProviderResponse",
    "ProviderSpec",
    "UnparsableResponseError",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "build_adapter",
    "build_registry",
    "has_text",
]
