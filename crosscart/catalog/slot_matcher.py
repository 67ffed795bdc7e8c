"""Keyword classifier that maps products onto wardrobe slots."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from crosscart.catalog.models import ALL_SLOTS, ProductSummary, SlotId
from crosscart.catalog.taxonomy import FALLBACK_PRIORITY, SLOT_KEYWORDS


def search_text(product: ProductSummary) -> str:
    """Lowercase haystack made of the product name and description."""

    return f"{product.name} {product.description or ''}".lower()


def classify(
    product: ProductSummary,
    taxonomy: Mapping[SlotId, Sequence[str]] = SLOT_KEYWORDS,
) -> frozenset[SlotId]:
    """
    Return every slot whose keyword list has a literal substring hit.

    Matching is case-insensitive with no tokenisation, so ``"jeans jacket"``
    lands in both ``legs`` and ``chest``.
    """

    haystack = search_text(product)
    return frozenset(
        slot
        for slot, keywords in taxonomy.items()
        if any(keyword.lower() in haystack for keyword in keywords)
    )


def fallback_slot(
    available: Iterable[SlotId],
    priority: Sequence[SlotId] = FALLBACK_PRIORITY,
) -> SlotId | None:
    """First slot of ``priority`` that exists in ``available``."""

    present = set(available)
    for slot in priority:
        if slot in present:
            return slot
    return None


def assign(
    product: ProductSummary,
    taxonomy: Mapping[SlotId, Sequence[str]] = SLOT_KEYWORDS,
    slots: Iterable[SlotId] | None = None,
) -> frozenset[SlotId]:
    """Slots a product should be offered in, falling back when nothing matches."""

    target = tuple(slots) if slots is not None else ALL_SLOTS
    matched = classify(product, taxonomy) & set(target)
    if matched:
        return matched
    fallback = fallback_slot(target)
    return frozenset({fallback}) if fallback else frozenset()


def build_slot_index(
    products: Iterable[ProductSummary],
    taxonomy: Mapping[SlotId, Sequence[str]] = SLOT_KEYWORDS,
    slots: Iterable[SlotId] | None = None,
) -> dict[SlotId, list[ProductSummary]]:
    """Group products by the slots they can be equipped into."""

    target = tuple(slots) if slots is not None else ALL_SLOTS
    index: dict[SlotId, list[ProductSummary]] = {slot: [] for slot in target}
    for product in products:
        assigned = assign(product, taxonomy, target)
        for slot in target:
            if slot in assigned:
                index[slot].append(product)
    return index
