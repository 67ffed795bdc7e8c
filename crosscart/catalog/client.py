"""Async client for the product catalog search API."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from crosscart.catalog.models import ProductSummary
from crosscart.config.settings import Settings
from crosscart.errors import ConfigurationMissing, ExternalCallFailure, ValidationFailure

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 4
MAX_LIMIT = 15


def clamp_limit(limit: Any) -> int:
    """Coerce a requested result count into ``[1, MAX_LIMIT]``."""

    if isinstance(limit, bool) or not isinstance(limit, (int, float)):
        return DEFAULT_LIMIT
    if limit != limit or limit in (float("inf"), float("-inf")):
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, int(limit)))


class CatalogClient:
    """Searches the product catalog; each call is a fresh top-N search."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        if not settings.henry_api_key:
            raise ConfigurationMissing("HENRY_API_KEY must be configured to search products.")

        self._client = httpx.AsyncClient(
            base_url=settings.catalog_base_url.rstrip("/"),
            timeout=settings.request_timeout,
            headers={"x-api-key": settings.henry_api_key},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""

        await self._client.aclose()

    async def _request_json(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, endpoint, json=json_body, params=params)
            response.raise_for_status()
            if not response.content:
                return {}
            return response.json()
        except httpx.TimeoutException as exc:  # pragma: no cover - network safeguard
            raise ExternalCallFailure("Catalog request timed out.") from exc
        except httpx.HTTPStatusError as exc:
            raise ExternalCallFailure(
                f"Catalog returned {exc.response.status_code}: {exc.response.text}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalCallFailure(f"Catalog request failed: {exc}") from exc

    async def search(self, query: str, limit: Any = DEFAULT_LIMIT) -> list[ProductSummary]:
        """Return up to ``limit`` products matching a natural-language query."""

        cleaned = (query or "").strip()
        if not cleaned:
            raise ValidationFailure(
                'Provide a natural language description (e.g., "retro surfboard" or '
                '"red rash guard") to search.',
            )
        payload = await self._request_json(
            "POST",
            "/products/search",
            json_body={"query": cleaned, "limit": clamp_limit(limit)},
        )
        products: list[ProductSummary] = []
        for raw in payload.get("data") or []:
            try:
                products.append(ProductSummary.model_validate(raw))
            except ValidationError:
                logger.warning("Skipping malformed catalog entry: %s", raw)
        return products

    async def product_details(self, product_id: str) -> dict[str, Any]:
        """Return the raw detail record for a single product."""

        payload = await self._request_json("GET", "/products/details", params={"productId": product_id})
        data = payload.get("data") or {}
        return data.get("productResults") or data

    async def ping(self) -> bool:
        """Return ``True`` when the catalog answers a minimal search."""

        await self.search("t-shirt", limit=1)
        return True
