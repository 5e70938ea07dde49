"""Fan-out of one prompt to every configured provider, with settled aggregation."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from .deadline import DEFAULT_TIMEOUT_MS, with_deadline
from .providers import (
    DEFAULT_PROVIDER_SPECS,
    PromptRequest,
    Provider,
    ProviderError,
    ProviderRegistry,
    build_registry,
    has_text,
)

logger = logging.getLogger("tri-provider")

_default_registry: Optional[ProviderRegistry] = None


class ValidationError(ValueError):
    """Raised when the top-level request is rejected before dispatch."""


@dataclass(frozen=True)
class ProviderOverride:
    api_key: Any = None
    model: Any = None


@dataclass(frozen=True)
class Outcome:
    ok: bool
    elapsed_ms: int
    text: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, text: str, usage: Optional[Dict[str, Any]], elapsed_ms: int) -> "Outcome":
        return cls(ok=True, text=text, usage=usage, elapsed_ms=elapsed_ms)

    @classmethod
    def failure(cls, error: str, elapsed_ms: int) -> "Outcome":
        return cls(ok=False, error=error, elapsed_ms=elapsed_ms)

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, "text": self.text, "usage": self.usage, "elapsedMs": self.elapsed_ms}
        return {"ok": False, "error": self.error, "elapsedMs": self.elapsed_ms}


def validate_prompt(prompt: Any) -> str:
    if not has_text(prompt):
        raise ValidationError("Missing prompt")
    return prompt


def default_registry() -> ProviderRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = build_registry(DEFAULT_PROVIDER_SPECS)
    return _default_registry


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.monotonic() - started) * 1000))


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


async def _settle(
    provider: Provider,
    request: PromptRequest,
    started: float,
    timeout_ms: float,
) -> Outcome:
    try:
        response = await with_deadline(provider.complete(request), timeout_ms, provider.label)
    except (ProviderError, TimeoutError) as exc:
        outcome = Outcome.failure(_error_message(exc), _elapsed_ms(started))
        logger.warning("%s failed after %d ms: %s", provider.label, outcome.elapsed_ms, outcome.error)
        return outcome
    except Exception as exc:
        outcome = Outcome.failure(_error_message(exc), _elapsed_ms(started))
        logger.exception("Unexpected failure from %s", provider.label)
        return outcome
    outcome = Outcome.success(response.text, response.usage, _elapsed_ms(started))
    logger.info("%s answered in %d ms", provider.label, outcome.elapsed_ms)
    return outcome


def aggregate(provider_ids: Iterable[str], outcomes: Iterable[Outcome]) -> Dict[str, Outcome]:
    return {provider_id: outcome for provider_id, outcome in zip(provider_ids, outcomes)}


def serialize(aggregated: Mapping[str, Outcome]) -> Dict[str, Dict[str, Any]]:
    return {provider_id: outcome.to_dict() for provider_id, outcome in aggregated.items()}


async def compare(
    prompt: Any,
    overrides: Optional[Mapping[str, ProviderOverride]] = None,
    *,
    registry: Optional[ProviderRegistry] = None,
    timeout_ms: float = DEFAULT_TIMEOUT_MS,
) -> Dict[str, Outcome]:
    """Send ``prompt`` to every registered provider and collect one outcome each.

    Only prompt validation can fail the call as a whole. Every provider error,
    including a missed deadline, is captured in that provider's outcome.
    """
    prompt = validate_prompt(prompt)
    registry = registry if registry is not None else default_registry()
    overrides = overrides or {}
    started = time.monotonic()
    branches = []
    for provider_id, provider in registry.items():
        override = overrides.get(provider_id) or ProviderOverride()
        request = PromptRequest(prompt=prompt, api_key=override.api_key, model=override.model)
        branches.append(_settle(provider, request, started, timeout_ms))
    outcomes = await asyncio.gather(*branches)
    return aggregate(registry.names(), outcomes)
