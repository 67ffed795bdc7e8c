"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_MERCHANT_ADDRESSES = (
    "0x3f1c8a9e2b7d4c6f5a0e1b2c3d4e5f6a7b8c9d0e",
    "0x7a2b9c4d1e8f3a6b5c0d2e4f6a8b1c3d5e7f9a0b",
    "0xc4e6a8b0d2f4a6c8e0b2d4f6a8c0e2b4d6f8a0c2",
)


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def _split_addresses(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_MERCHANT_ADDRESSES
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True, slots=True)
class Settings:
    """Centralised project settings based on OS environment variables."""

    environment: str = "dev"
    log_level: str = "INFO"

    gemini_api_key: str = ""
    gemini_image_model: str = "gemini-2.5-flash-image"
    image_provider: str = "gemini"

    aitunnel_api_key: str = ""
    aitunnel_base_url: str = "https://api.aitunnel.ru/v1"
    aitunnel_image_model: str = "gemini-2.5-flash-image"

    henry_api_key: str = ""
    catalog_base_url: str = "https://api.sandbox.henrylabs.ai/v0"

    anthropic_api_key: str = ""
    locus_api_key: str = ""
    locus_mcp_url: str = "https://mcp.paywithlocus.com/mcp"
    payment_tool_namespace: str = "locus"
    merchant_addresses: tuple[str, ...] = DEFAULT_MERCHANT_ADDRESSES

    request_timeout: float = 60.0
    max_portrait_bytes: int = 5 * 1024 * 1024


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        gemini_image_model=os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image"),
        image_provider=os.getenv("IMAGE_PROVIDER", "gemini").lower(),
        aitunnel_api_key=os.getenv("AITUNNEL_API_KEY", ""),
        aitunnel_base_url=os.getenv("AITUNNEL_BASE_URL", "https://api.aitunnel.ru/v1"),
        aitunnel_image_model=os.getenv("AITUNNEL_IMAGE_MODEL", "gemini-2.5-flash-image"),
        henry_api_key=os.getenv("HENRY_API_KEY", ""),
        catalog_base_url=os.getenv("CATALOG_BASE_URL", "https://api.sandbox.henrylabs.ai/v0"),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        locus_api_key=os.getenv("LOCUS_API_KEY", ""),
        locus_mcp_url=os.getenv("LOCUS_MCP_URL", "https://mcp.paywithlocus.com/mcp"),
        payment_tool_namespace=os.getenv("PAYMENT_TOOL_NAMESPACE", "locus"),
        merchant_addresses=_split_addresses(os.getenv("MERCHANT_ADDRESSES")),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "60")),
        max_portrait_bytes=int(os.getenv("MAX_PORTRAIT_BYTES", str(5 * 1024 * 1024))),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
