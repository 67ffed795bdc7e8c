"""Catalog data shapes shared across the wardrobe flows."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SlotId(str, Enum):
    """Fixed wardrobe body regions a product can occupy."""

    HEAD = "head"
    CHEST = "chest"
    WAIST = "waist"
    LEGS = "legs"
    FEET = "feet"
    EARS = "ears"
    NECK = "neck"
    BAG = "bag"
    HAND = "hand"
    RING = "ring"


ALL_SLOTS: tuple[SlotId, ...] = tuple(SlotId)


class ProductSummary(BaseModel):
    """Product record returned by the catalog search collaborator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str
    description: str | None = None
    price: float
    currency: str = "USD"
    source: str = ""
    image_url: str | None = Field(default=None, alias="imageUrl")
