"""Portrait upload validation and subject isolation."""

from __future__ import annotations

import logging

from crosscart.errors import InvalidPortraitUpload, RenderIncomplete
from crosscart.imggen.data_url import InlineImage
from crosscart.imggen.generator_client import ImageGenerationClient, first_image
from crosscart.imggen.prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)

ACCEPTED_PORTRAIT_TYPES = frozenset(
    {"image/png", "image/jpeg", "image/webp", "image/heic", "image/heif"},
)
MAX_PORTRAIT_BYTES = 5 * 1024 * 1024


def validate_portrait_upload(
    data: bytes,
    mime_type: str | None,
    max_bytes: int = MAX_PORTRAIT_BYTES,
) -> InlineImage:
    """Reject empty, oversized or unsupported portrait uploads."""

    if not data:
        raise InvalidPortraitUpload("Portrait file is required.")
    if len(data) > max_bytes:
        raise InvalidPortraitUpload(
            f"Portrait is {len(data)} bytes; the limit is {max_bytes} bytes.",
        )
    normalized = (mime_type or "").split(";")[0].strip().lower()
    if normalized == "image/jpg":
        normalized = "image/jpeg"
    if normalized not in ACCEPTED_PORTRAIT_TYPES:
        accepted = ", ".join(sorted(ACCEPTED_PORTRAIT_TYPES))
        raise InvalidPortraitUpload(f"Unsupported portrait type {mime_type!r}; use one of {accepted}.")
    return InlineImage(data=data, mime_type=normalized)


class PortraitPreparer:
    """Turns an uploaded photo into a white-background full-body portrait."""

    def __init__(self, image_client: ImageGenerationClient, prompt_builder: PromptBuilder | None = None) -> None:
        self._image_client = image_client
        self._prompt_builder = prompt_builder or PromptBuilder()

    async def prepare(self, portrait: InlineImage) -> InlineImage:
        prompt = self._prompt_builder.build_portrait_prompt()
        result, chunk_count = await first_image(self._image_client.stream_images(prompt, [portrait]))
        if result is None:
            raise RenderIncomplete(
                f"No image data found in the image model response after processing {chunk_count} chunks.",
            )
        logger.info("Portrait prepared after %s chunks", chunk_count)
        return result
