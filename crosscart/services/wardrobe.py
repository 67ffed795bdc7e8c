"""Caller-owned wardrobe state: saved finds, the search deck and equipped slots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from crosscart.catalog.models import ALL_SLOTS, ProductSummary, SlotId
from crosscart.catalog.slot_matcher import build_slot_index, search_text
from crosscart.catalog.taxonomy import SLOT_LABELS, parse_slot_id
from crosscart.errors import InvalidPrice, ValidationFailure
from crosscart.imggen.compositor import WardrobeSlotImage
from crosscart.purchase.order_builder import SelectedWardrobeItem, is_valid_price


@dataclass(slots=True)
class WardrobeSession:
    """
    Mutable state for one shopper session.

    The session is the only owner of the equipped slots; the matching, render
    and purchase components read snapshots from it and never mutate it.
    """

    deck: list[ProductSummary] = field(default_factory=list)
    saved: list[ProductSummary] = field(default_factory=list)
    equipped: dict[SlotId, ProductSummary] = field(default_factory=dict)

    def load_deck(self, products: Iterable[ProductSummary]) -> None:
        """Replace the deck with fresh search results, hiding already saved items."""

        saved_ids = {product.id for product in self.saved}
        self.deck = [product for product in products if product.id not in saved_ids]

    def save(self, product: ProductSummary) -> bool:
        """Move a product from the deck into the saved list; ``False`` if already saved."""

        self.deck = [item for item in self.deck if item.id != product.id]
        if any(item.id == product.id for item in self.saved):
            return False
        self.saved.append(product)
        return True

    def swipe(self, product: ProductSummary, keep: bool) -> None:
        self.deck = [item for item in self.deck if item.id != product.id]
        if keep:
            self.save(product)

    def slot_index(self) -> dict[SlotId, list[ProductSummary]]:
        """Saved products grouped by the slots they can be equipped into."""

        return build_slot_index(self.saved)

    def equip(self, slot: SlotId, product: ProductSummary) -> None:
        if not is_valid_price(product.price):
            raise InvalidPrice(product.id, product.price)
        self.save(product)
        self.equipped[slot] = product

    def clear(self, slot: SlotId) -> None:
        self.equipped.pop(slot, None)

    def reset(self) -> None:
        self.deck.clear()
        self.saved.clear()
        self.equipped.clear()

    def find_product(self, *, product_id: str | None = None, query: str | None = None) -> ProductSummary | None:
        normalized = (query or "").strip().lower()
        pools = [*self.saved, *self.deck, *self.equipped.values()]
        for product in pools:
            if product_id and product.id == product_id:
                return product
            if normalized and normalized in search_text(product):
                return product
        return None

    def equip_by_name(
        self,
        slot_name: str,
        *,
        product_id: str | None = None,
        product_name: str | None = None,
    ) -> str:
        """Equip a product named in free text and return a confirmation."""

        slot = parse_slot_id(slot_name)
        if not product_id and not (product_name or "").strip():
            raise ValidationFailure("Tell me which product to equip by name or product ID.")
        product = self.find_product(product_id=product_id, query=product_name)
        if product is None:
            raise ValidationFailure("I could not find that product in the saved wardrobe yet.")
        self.equip(slot, product)
        return f"Equipped {product.name} to the {SLOT_LABELS[slot]}."

    @property
    def has_any_equipped(self) -> bool:
        return bool(self.equipped)

    def selected_items(self) -> list[SelectedWardrobeItem]:
        """Equipped products in canonical slot order."""

        return [
            SelectedWardrobeItem(slot_id=slot, product=self.equipped[slot])
            for slot in ALL_SLOTS
            if slot in self.equipped
        ]

    def render_slots(self) -> dict[SlotId, WardrobeSlotImage | None]:
        slots: dict[SlotId, WardrobeSlotImage | None] = {}
        for slot in ALL_SLOTS:
            product = self.equipped.get(slot)
            if product is None:
                continue
            slots[slot] = WardrobeSlotImage(image_url=product.image_url) if product.image_url else None
        return slots
