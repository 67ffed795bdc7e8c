"""Static wardrobe taxonomy: slot keywords, labels and ordering."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from crosscart.catalog.models import ALL_SLOTS, SlotId
from crosscart.errors import UnknownSlot

SLOT_KEYWORDS: Mapping[SlotId, tuple[str, ...]] = MappingProxyType(
    {
        SlotId.HEAD: (
            "hat",
            "helmet",
            "cap",
            "beanie",
            "visor",
            "headband",
            "bucket hat",
            "sun hat",
        ),
        SlotId.CHEST: (
            "shirt",
            "tee",
            "t-shirt",
            "rash guard",
            "rashguard",
            "hoodie",
            "jacket",
            "top",
            "vest",
            "long sleeve",
            "pullover",
            "sweater",
            "crew",
            "tank",
            "jersey",
            "fleece",
        ),
        SlotId.WAIST: ("belt", "waist", "fanny", "hip pack", "utility belt", "sash", "wrap"),
        SlotId.LEGS: (
            "short",
            "shorts",
            "pant",
            "pants",
            "trouser",
            "trousers",
            "legging",
            "leggings",
            "tight",
            "tights",
            "boardshort",
            "boardshorts",
            "baggies",
            "jean",
            "jeans",
            "bottom",
            "skirt",
        ),
        SlotId.FEET: (
            "shoe",
            "shoes",
            "boot",
            "boots",
            "sandal",
            "sandals",
            "flip-flop",
            "flip flop",
            "flop",
            "sneaker",
            "sneakers",
            "sock",
            "socks",
            "slide",
            "slides",
        ),
        SlotId.EARS: ("earring", "ear ring", "ear cuff", "ear stud", "ear hoop"),
        SlotId.NECK: ("necklace", "scarf", "chain", "neck gaiter", "bandana", "choker"),
        SlotId.BAG: (
            "bag",
            "backpack",
            "back pack",
            "tote",
            "duffle",
            "duffel",
            "dry bag",
            "sling",
            "satchel",
            "pouch",
        ),
        SlotId.HAND: (
            "glove",
            "gloves",
            "mitten",
            "mittens",
            "surfboard",
            "longboard",
            "shortboard",
            "paddle",
            "wax",
            "leash",
            "fin",
        ),
        SlotId.RING: ("ring", "band", "signet"),
    },
)

FALLBACK_PRIORITY: tuple[SlotId, ...] = (SlotId.CHEST, SlotId.LEGS, SlotId.HAND, SlotId.BAG)

# Bottoms and footwear first, then outerwear and headwear, accessories last.
LAYERING_ORDER: tuple[SlotId, ...] = (
    SlotId.LEGS,
    SlotId.FEET,
    SlotId.CHEST,
    SlotId.HEAD,
    SlotId.BAG,
    SlotId.HAND,
    SlotId.NECK,
    SlotId.EARS,
    SlotId.RING,
    SlotId.WAIST,
)

SLOT_LABELS: Mapping[SlotId, str] = MappingProxyType(
    {slot: slot.value.capitalize() for slot in ALL_SLOTS},
)

SLOT_DISPLAY_LABELS: Mapping[SlotId, str] = MappingProxyType(
    {
        SlotId.HEAD: "Headwear",
        SlotId.CHEST: "Top",
        SlotId.WAIST: "Waist",
        SlotId.LEGS: "Bottom",
        SlotId.FEET: "Footwear",
        SlotId.EARS: "Accessory",
        SlotId.NECK: "Accessory",
        SlotId.BAG: "Accessory",
        SlotId.HAND: "Accessory",
        SlotId.RING: "Accessory",
    },
)


def parse_slot_id(value: str) -> SlotId:
    """Return the slot named by ``value`` regardless of case or padding."""

    normalized = (value or "").strip().lower()
    try:
        return SlotId(normalized)
    except ValueError as exc:
        valid = ", ".join(slot.value for slot in ALL_SLOTS)
        raise UnknownSlot(f"Choose a valid wardrobe slot ({valid}).") from exc
