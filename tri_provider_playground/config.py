"""Process configuration read from the environment."""
from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from .deadline import DEFAULT_TIMEOUT_MS
from .providers import DEFAULT_PROVIDER_SPECS, ProviderSpec

DEFAULT_PORT = 8787
MAX_BODY_BYTES = 1024 * 1024


def load_env(key: str, *, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key, default)
    return value if value else default


def load_int(key: str, default: int) -> int:
    raw = load_env(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {key} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class AppConfig:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    static_dir: Path = Path("public")
    openai_base_url: Optional[str] = None
    deepseek_base_url: Optional[str] = None
    gemini_base_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AppConfig":
        load_dotenv()
        timeout_ms = load_int("PROVIDER_TIMEOUT_MS", DEFAULT_TIMEOUT_MS)
        if timeout_ms < 0:
            raise RuntimeError("PROVIDER_TIMEOUT_MS must be non-negative")
        return cls(
            host=load_env("HOST", default="0.0.0.0") or "0.0.0.0",
            port=load_int("PORT", DEFAULT_PORT),
            log_level=(load_env("LOG_LEVEL", default="INFO") or "INFO").upper(),
            timeout_ms=timeout_ms,
            static_dir=Path(load_env("STATIC_DIR", default="public") or "public"),
            openai_base_url=load_env("OPENAI_BASE_URL"),
            deepseek_base_url=load_env("DEEPSEEK_BASE_URL"),
            gemini_base_url=load_env("GEMINI_BASE_URL"),
        )

    def provider_specs(self) -> Tuple[ProviderSpec, ...]:
        overrides = {
            "openai": self.openai_base_url,
            "deepseek": self.deepseek_base_url,
            "gemini": self.gemini_base_url,
        }
        return tuple(
            dataclasses.replace(spec, base_url=overrides[spec.provider_id])
            if overrides.get(spec.provider_id)
            else spec
            for spec in DEFAULT_PROVIDER_SPECS
        )
