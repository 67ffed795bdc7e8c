"""Wires the wardrobe session to rendering and purchasing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from crosscart.catalog.models import SlotId
from crosscart.errors import AgentRunIncomplete, EmptyPurchaseOrder, MissingPortrait, NoRenderableAssets
from crosscart.imggen.compositor import LayerCompositor, PortraitImage, RenderedPortrait, WardrobeSlotImage
from crosscart.purchase.orchestrator import AgentOrchestrator
from crosscart.purchase.order_builder import PurchaseOrderBuilder, PurchaseOrderItem
from crosscart.services.wardrobe import WardrobeSession

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PurchaseOutcome:
    """Agent summary together with the order it settled."""

    order: list[PurchaseOrderItem]
    summary: str

    @property
    def message(self) -> str:
        count = len(self.order)
        return f"Purchasing {count} item{'' if count == 1 else 's'}."


class CheckoutService:
    """Facade over the compositor, the order builder and the agent orchestrator."""

    def __init__(
        self,
        *,
        compositor: LayerCompositor | None = None,
        order_builder: PurchaseOrderBuilder | None = None,
        orchestrator: AgentOrchestrator | None = None,
    ) -> None:
        self._compositor = compositor
        self._order_builder = order_builder
        self._orchestrator = orchestrator

    async def generate_outfit(
        self,
        session: WardrobeSession,
        portrait: PortraitImage | None,
        *,
        seed: int | None = None,
    ) -> RenderedPortrait:
        """Render the session's equipped slots onto ``portrait``."""

        return await self.render(portrait, session.render_slots(), seed=seed)

    async def render(
        self,
        portrait: PortraitImage | None,
        slots: Mapping[SlotId, WardrobeSlotImage | None],
        *,
        seed: int | None = None,
    ) -> RenderedPortrait:
        if self._compositor is None:
            raise RuntimeError("CheckoutService was created without a compositor.")
        if portrait is None:
            raise MissingPortrait("Upload a portrait before generating an outfit.")
        if not slots:
            raise NoRenderableAssets("Equip at least one slot using your saved finds first.")
        return await self._compositor.render(portrait, slots, seed=seed)

    def plan_purchase(self, session: WardrobeSession) -> list[PurchaseOrderItem]:
        if self._order_builder is None:
            raise RuntimeError("CheckoutService was created without an order builder.")
        items = session.selected_items()
        if not items:
            raise EmptyPurchaseOrder("Equip at least one slot before purchasing.")
        return self._order_builder.build(items)

    async def purchase(self, session: WardrobeSession) -> PurchaseOutcome:
        """Build the order from a fresh snapshot of the session and execute it."""

        if self._orchestrator is None:
            raise RuntimeError("CheckoutService was created without an orchestrator.")
        order = self.plan_purchase(session)
        summary = await self._orchestrator.execute(order)
        if summary is None:
            raise AgentRunIncomplete(
                "The payment agent finished without confirming the purchase; check the payment history before retrying.",
            )
        logger.info("Purchase run completed for %s items", len(order))
        return PurchaseOutcome(order=order, summary=summary)
