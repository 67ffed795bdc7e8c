"""Multi-pass garment compositing on top of an uploaded portrait."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Mapping, Sequence

import httpx
from PIL import Image, UnidentifiedImageError

from crosscart.catalog.models import SlotId
from crosscart.catalog.taxonomy import LAYERING_ORDER
from crosscart.errors import ExternalCallFailure, MissingPortrait, NoRenderableAssets, RenderPassFailed
from crosscart.imggen.data_url import InlineImage, decode_data_url
from crosscart.imggen.generator_client import ImageGenerationClient, first_image
from crosscart.imggen.prompt_builder import PromptBuilder
from crosscart.metrics.prometheus_exporter import outfit_render_pass_total, outfit_render_total

logger = logging.getLogger(__name__)

MAX_GARMENTS_PER_PASS = 2
DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True, slots=True)
class WardrobeSlotImage:
    """Image reference for an equipped slot: raw bytes or a remote URL."""

    data: bytes | None = None
    mime_type: str | None = None
    image_url: str | None = None

    @property
    def is_resolvable(self) -> bool:
        return bool(self.data) or bool(self.image_url)


@dataclass(frozen=True, slots=True)
class PortraitImage:
    """Base portrait supplied either as bytes or as a data URL."""

    data: bytes | None = None
    mime_type: str | None = None
    data_url: str | None = None

    def resolve(self) -> InlineImage:
        if self.data:
            return InlineImage(data=self.data, mime_type=self.mime_type or DEFAULT_MIME_TYPE)
        if self.data_url:
            parsed = decode_data_url(self.data_url)
            if parsed.data:
                return InlineImage(data=parsed.data, mime_type=parsed.mime_type or DEFAULT_MIME_TYPE)
        raise MissingPortrait("A processed portrait is required before generating.")


@dataclass(frozen=True, slots=True)
class SlotAsset:
    """Resolved garment image for a slot."""

    slot: SlotId
    image: InlineImage


@dataclass(frozen=True, slots=True)
class RenderedPortrait:
    """Final composited portrait."""

    image: InlineImage
    pass_count: int

    @property
    def data_url(self) -> str:
        return self.image.to_data_url()


class ImageFetcher:
    """Downloads garment images referenced by URL."""

    def __init__(self, timeout: float = 60.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, url: str, label: str) -> InlineImage:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.get(url, follow_redirects=True)
            except httpx.HTTPError as exc:
                raise ExternalCallFailure(f"Failed to load {label} from {url}") from exc
        if not response.is_success:
            raise ExternalCallFailure(
                f"Failed to load {label} from {url}",
                status_code=response.status_code,
            )
        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if content_type.startswith("image/"):
            return InlineImage(data=response.content, mime_type=content_type)
        return InlineImage(data=response.content, mime_type=self._sniff_mime_type(response.content, label))

    @staticmethod
    def _sniff_mime_type(data: bytes, label: str) -> str:
        """Identify untyped downloads; non-images are rejected."""

        try:
            with Image.open(BytesIO(data)) as img:
                image_format = img.format
        except UnidentifiedImageError as exc:
            raise ExternalCallFailure(f"Downloaded {label} is not a supported image.") from exc
        return Image.MIME.get(image_format or "", DEFAULT_MIME_TYPE)


def plan_passes(
    assets: Sequence[SlotAsset],
    max_per_pass: int = MAX_GARMENTS_PER_PASS,
) -> list[tuple[SlotAsset, ...]]:
    """Order assets by the layering order and split them into passes."""

    if max_per_pass < 1:
        raise ValueError("max_per_pass must be at least 1")
    rank = {slot: index for index, slot in enumerate(LAYERING_ORDER)}
    ordered = sorted(assets, key=lambda asset: rank.get(asset.slot, len(rank)))
    return [tuple(ordered[i : i + max_per_pass]) for i in range(0, len(ordered), max_per_pass)]


class LayerCompositor:
    """
    Applies equipped garments to a portrait through sequential image-model passes.

    Each pass carries at most ``max_garments_per_pass`` garments and receives the
    previous pass's output as its base portrait, so the model only reconciles a
    couple of new garments against one already composited image at a time.
    """

    def __init__(
        self,
        image_client: ImageGenerationClient,
        *,
        prompt_builder: PromptBuilder | None = None,
        fetcher: ImageFetcher | None = None,
        max_garments_per_pass: int = MAX_GARMENTS_PER_PASS,
    ) -> None:
        self._image_client = image_client
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._fetcher = fetcher or ImageFetcher()
        self._max_per_pass = max_garments_per_pass

    async def collect_assets(self, slots: Mapping[SlotId, WardrobeSlotImage | None]) -> list[SlotAsset]:
        """Resolve slot images in layering order, skipping empty slots."""

        assets: list[SlotAsset] = []
        for slot in LAYERING_ORDER:
            reference = slots.get(slot)
            if reference is None or not reference.is_resolvable:
                continue
            if reference.data:
                image = InlineImage(data=reference.data, mime_type=reference.mime_type or DEFAULT_MIME_TYPE)
            else:
                image = await self._fetcher.fetch(reference.image_url or "", f"slot {slot.value}")
                if reference.mime_type:
                    image = InlineImage(data=image.data, mime_type=reference.mime_type)
            assets.append(SlotAsset(slot=slot, image=image))
        return assets

    async def render(
        self,
        portrait: PortraitImage,
        slots: Mapping[SlotId, WardrobeSlotImage | None],
        *,
        seed: int | None = None,
    ) -> RenderedPortrait:
        """Composite every resolvable slot image onto ``portrait``."""

        if not any(reference is not None and reference.is_resolvable for reference in slots.values()):
            raise NoRenderableAssets("At least one slot needs an image to render an outfit.")
        base = portrait.resolve()
        assets = await self.collect_assets(slots)
        if not assets:
            raise NoRenderableAssets("At least one slot needs an image to render an outfit.")

        outfit_render_total.inc()
        passes = plan_passes(assets, self._max_per_pass)
        working = base.data
        for pass_index, batch in enumerate(passes, start=1):
            batch_slots = [asset.slot for asset in batch]
            prompt = self._prompt_builder.build_pass_prompt(batch_slots)
            images = [InlineImage(data=working, mime_type=base.mime_type)]
            images.extend(asset.image for asset in batch)

            logger.info(
                "Render pass %s/%s applying %s",
                pass_index,
                len(passes),
                ", ".join(slot.value for slot in batch_slots),
            )
            outfit_render_pass_total.inc()
            result, chunk_count = await first_image(
                self._image_client.stream_images(prompt, images, seed=seed),
            )
            if result is None:
                logger.error("Render pass %s returned no image after %s chunks", pass_index, chunk_count)
                raise RenderPassFailed(pass_index, chunk_count)
            working = result.data

        return RenderedPortrait(
            image=InlineImage(data=working, mime_type=base.mime_type),
            pass_count=len(passes),
        )
