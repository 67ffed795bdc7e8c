"""FastAPI entrypoint and HTTP routes."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, File, Request, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from crosscart.catalog.client import CatalogClient
from crosscart.catalog.models import ProductSummary, SlotId
from crosscart.config.settings import Settings, get_settings
from crosscart.errors import (
    AgentRunIncomplete,
    ConfigurationMissing,
    ExternalCallFailure,
    RenderIncomplete,
    ValidationFailure,
)
from crosscart.imggen.compositor import ImageFetcher, LayerCompositor, PortraitImage, WardrobeSlotImage
from crosscart.imggen.data_url import decode_data_url
from crosscart.imggen.generator_client import build_image_client
from crosscart.imggen.portrait import PortraitPreparer, validate_portrait_upload
from crosscart.monitoring.logging import configure_logging
from crosscart.purchase.agent_runtime import ClaudeAgentRuntime
from crosscart.purchase.orchestrator import AgentOrchestrator
from crosscart.purchase.order_builder import PurchaseOrderBuilder, PurchaseOrderItem
from crosscart.services.checkout import CheckoutService
from crosscart.services.wardrobe import WardrobeSession

logger = logging.getLogger(__name__)


class SearchRequest(BaseModel):
    query: Any = ""
    limit: Any = None


class SlotImagePayload(BaseModel):
    image_url: str | None = Field(default=None, alias="imageUrl")
    data_url: str | None = Field(default=None, alias="dataUrl")

    def to_slot_image(self) -> WardrobeSlotImage | None:
        if self.data_url:
            image = decode_data_url(self.data_url)
            return WardrobeSlotImage(data=image.data, mime_type=image.mime_type)
        if self.image_url:
            return WardrobeSlotImage(image_url=self.image_url)
        return None


class RenderRequest(BaseModel):
    portrait: str | None = None
    slots: dict[SlotId, SlotImagePayload | None] = Field(default_factory=dict)
    seed: int | None = None


class PurchaseLine(BaseModel):
    slot_id: SlotId = Field(alias="slotId")
    product: ProductSummary


class PurchaseRequest(BaseModel):
    items: list[PurchaseLine] = Field(default_factory=list)

    def to_session(self) -> WardrobeSession:
        """Equip every line; a slot holds one product, so repeats are rejected."""

        session = WardrobeSession()
        for line in self.items:
            if line.slot_id in session.equipped:
                raise ValidationFailure(
                    f"Only one item can be purchased per slot; {line.slot_id.value} is listed more than once.",
                )
            session.equip(line.slot_id, line.product)
        return session


def order_item_payload(item: PurchaseOrderItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "slotId": item.slot_id.value,
        "name": item.name,
        "price": item.price,
        "currency": item.currency,
        "source": item.source,
        "recipientAddress": item.recipient_address,
        "sendAmount": item.send_amount,
    }


async def get_catalog_client() -> AsyncIterator[CatalogClient]:
    client = CatalogClient(get_settings())
    try:
        yield client
    finally:
        await client.close()


async def get_portrait_preparer() -> AsyncIterator[PortraitPreparer]:
    image_client = build_image_client(get_settings())
    try:
        yield PortraitPreparer(image_client)
    finally:
        await image_client.close()


async def get_render_service() -> AsyncIterator[CheckoutService]:
    settings = get_settings()
    image_client = build_image_client(settings)
    compositor = LayerCompositor(image_client, fetcher=ImageFetcher(timeout=settings.request_timeout))
    try:
        yield CheckoutService(compositor=compositor)
    finally:
        await image_client.close()


def get_purchase_service() -> CheckoutService:
    settings = get_settings()
    orchestrator = AgentOrchestrator.from_settings(settings, ClaudeAgentRuntime(settings))
    return CheckoutService(
        order_builder=PurchaseOrderBuilder(settings.merchant_addresses),
        orchestrator=orchestrator,
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Initialise the FastAPI application."""

    settings = settings or get_settings()
    configure_logging()
    app = FastAPI(
        title="CrossCart API",
        version="0.1.0",
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
    )

    @app.exception_handler(ValidationFailure)
    async def handle_validation(_: Request, exc: ValidationFailure) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(ConfigurationMissing)
    async def handle_configuration(_: Request, exc: ConfigurationMissing) -> JSONResponse:
        logger.error("Configuration missing: %s", exc)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc)

    @app.exception_handler(ExternalCallFailure)
    @app.exception_handler(RenderIncomplete)
    @app.exception_handler(AgentRunIncomplete)
    async def handle_upstream(_: Request, exc: Exception) -> JSONResponse:
        logger.error("Upstream failure: %s", exc)
        return _error(status.HTTP_502_BAD_GATEWAY, exc)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness probes."""

        return {"status": "ok"}

    @app.post("/api/products/search", tags=["catalog"])
    async def search_products(
        payload: SearchRequest,
        catalog: CatalogClient = Depends(get_catalog_client),
    ) -> dict[str, Any]:
        query = payload.query if isinstance(payload.query, str) else ""
        products = await catalog.search(query, payload.limit)
        return {"products": [product.model_dump(by_alias=True) for product in products]}

    @app.post("/api/virtual-try-on/portrait", tags=["render"])
    async def process_portrait(
        portrait: UploadFile | None = File(default=None),
        preparer: PortraitPreparer = Depends(get_portrait_preparer),
    ) -> dict[str, str]:
        if portrait is None:
            raise ValidationFailure("Portrait file is required.")
        data = await portrait.read(settings.max_portrait_bytes + 1)
        upload = validate_portrait_upload(data, portrait.content_type, settings.max_portrait_bytes)
        prepared = await preparer.prepare(upload)
        return {"image": prepared.to_data_url()}

    @app.post("/api/outfits/render", tags=["render"])
    async def render_outfit(
        payload: RenderRequest,
        service: CheckoutService = Depends(get_render_service),
    ) -> dict[str, Any]:
        slots = {
            slot: image.to_slot_image() if image else None for slot, image in payload.slots.items()
        }
        portrait = PortraitImage(data_url=payload.portrait) if payload.portrait else None
        rendered = await service.render(portrait, slots, seed=payload.seed)
        return {"image": rendered.data_url, "passes": rendered.pass_count}

    @app.post("/api/purchases", tags=["purchase"])
    async def purchase(
        payload: PurchaseRequest,
        service: CheckoutService = Depends(get_purchase_service),
    ) -> dict[str, Any]:
        outcome = await service.purchase(payload.to_session())
        return {
            "message": outcome.message,
            "summary": outcome.summary,
            "order": [order_item_payload(item) for item in outcome.order],
        }

    return app


app = create_app()
