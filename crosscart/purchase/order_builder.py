"""Derives a deterministic settlement plan from equipped wardrobe slots."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from crosscart.catalog.models import ProductSummary, SlotId
from crosscart.errors import ConfigurationMissing, InvalidPrice

DISCOUNT_DIVISOR = 1000
_CENTS = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class SelectedWardrobeItem:
    """A product together with the slot it is equipped in."""

    slot_id: SlotId
    product: ProductSummary


@dataclass(frozen=True, slots=True)
class PurchaseOrderItem:
    """Read-only settlement line for one equipped product."""

    id: str
    slot_id: SlotId
    name: str
    price: float
    currency: str
    source: str
    recipient_address: str
    send_amount: float


def send_amount_for(price: float, divisor: int = DISCOUNT_DIVISOR) -> float:
    """``round(price / divisor, 2)`` with half-up rounding."""

    amount = (Decimal(str(price)) / Decimal(divisor)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return float(amount)


def is_valid_price(price: object) -> bool:
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        return False
    return math.isfinite(price) and price > 0


class PurchaseOrderBuilder:
    """
    Builds purchase orders from equipped items.

    Recipient addresses are assigned round-robin by the item's position in the
    order, not by merchant, so the same list in the same order always yields
    the same plan.
    """

    def __init__(self, merchant_addresses: Sequence[str], *, discount_divisor: int = DISCOUNT_DIVISOR) -> None:
        addresses = tuple(address for address in merchant_addresses if address)
        if not addresses:
            raise ConfigurationMissing("At least one merchant address must be configured.")
        self._addresses = addresses
        self._divisor = discount_divisor

    @property
    def addresses(self) -> tuple[str, ...]:
        return self._addresses

    def validate(self, items: Sequence[SelectedWardrobeItem]) -> None:
        """Raise ``InvalidPrice`` for the first item that cannot be settled."""

        for item in items:
            price = item.product.price
            if not is_valid_price(price) or send_amount_for(price, self._divisor) <= 0:
                raise InvalidPrice(item.product.id, price)

    def build(self, items: Sequence[SelectedWardrobeItem]) -> list[PurchaseOrderItem]:
        self.validate(items)
        order: list[PurchaseOrderItem] = []
        for index, item in enumerate(items):
            product = item.product
            order.append(
                PurchaseOrderItem(
                    id=product.id,
                    slot_id=item.slot_id,
                    name=product.name,
                    price=product.price,
                    currency=product.currency,
                    source=product.source,
                    recipient_address=self._addresses[index % len(self._addresses)],
                    send_amount=send_amount_for(product.price, self._divisor),
                ),
            )
        return order
