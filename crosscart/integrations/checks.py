"""Connectivity checks for external AI and catalog providers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from crosscart.catalog.client import CatalogClient
from crosscart.config.settings import get_settings
from crosscart.imggen.generator_client import build_image_client


@dataclass(slots=True)
class IntegrationCheckResult:
    """Structured result describing the integration check outcome."""

    name: str
    success: bool
    message: str


async def _run_check(
    name: str,
    factory: Callable[[], Awaitable[bool]],
    success_message: str,
) -> IntegrationCheckResult:
    try:
        result = await factory()
    except Exception as exc:  # pragma: no cover - reported, not raised
        return IntegrationCheckResult(name=name, success=False, message=str(exc))

    if result:
        return IntegrationCheckResult(name=name, success=True, message=success_message)
    return IntegrationCheckResult(
        name=name,
        success=False,
        message="Service responded with non-success status.",
    )


async def check_image_model() -> IntegrationCheckResult:
    """Ping the configured image-generation provider."""

    settings = get_settings()

    async def _ping() -> bool:
        client = build_image_client(settings)
        try:
            return await client.ping()
        finally:
            await client.close()

    return await _run_check(
        name=f"Image model ({settings.image_provider})",
        factory=_ping,
        success_message="Image model is reachable.",
    )


async def check_catalog() -> IntegrationCheckResult:
    """Run a one-item catalog search."""

    async def _ping() -> bool:
        client = CatalogClient(get_settings())
        try:
            return await client.ping()
        finally:
            await client.close()

    return await _run_check(
        name="Catalog",
        factory=_ping,
        success_message="Catalog API is reachable.",
    )


async def run_all_checks() -> list[IntegrationCheckResult]:
    """Execute all integration checks concurrently."""

    return list(await asyncio.gather(check_image_model(), check_catalog()))
