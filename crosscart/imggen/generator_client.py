"""Async clients for the image-generation capability.

Every client exposes the same streaming contract: ``stream_images`` yields
``ImageChunk`` values in arrival order and the first image part across the
stream is authoritative.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Mapping, Protocol, Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from crosscart.config.settings import Settings
from crosscart.errors import ConfigurationMissing, ExternalCallFailure, InvalidDataUrl
from crosscart.imggen.data_url import InlineImage, decode_data_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImageChunk:
    """One streamed response chunk and the image parts it carried."""

    images: tuple[InlineImage, ...] = field(default_factory=tuple)


class ImageGenerationClient(Protocol):
    """Streaming image-generation capability."""

    def stream_images(
        self,
        instruction: str,
        images: Sequence[InlineImage],
        *,
        seed: int | None = None,
    ) -> AsyncIterator[ImageChunk]:
        ...


async def first_image(chunks: AsyncIterator[ImageChunk]) -> tuple[InlineImage | None, int]:
    """Return the first image part across ``chunks`` and how many chunks were read."""

    count = 0
    try:
        async for chunk in chunks:
            count += 1
            if chunk.images:
                return chunk.images[0], count
    finally:
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()
    return None, count


class GeminiImageClient:
    """
    Streams image edits from Gemini through the ``google-genai`` SDK.

    Requests allow both image and text parts at temperature 0; only image parts
    are surfaced. No ``image_config`` is sent: ``gemini-2.5-flash-image`` only
    renders at its native 1K size, so an explicit size adds nothing.
    """

    RESPONSE_MODALITIES = ("IMAGE", "TEXT")

    def __init__(self, settings: Settings, *, client: genai.Client | None = None) -> None:
        if client is None and not settings.gemini_api_key:
            raise ConfigurationMissing("GEMINI_API_KEY must be configured to use this feature.")

        self._client = client or genai.Client(api_key=settings.gemini_api_key)
        self._model = settings.gemini_image_model

    async def stream_images(
        self,
        instruction: str,
        images: Sequence[InlineImage],
        *,
        seed: int | None = None,
    ) -> AsyncIterator[ImageChunk]:
        parts = [types.Part.from_text(text=instruction)]
        parts.extend(types.Part.from_bytes(data=image.data, mime_type=image.mime_type) for image in images)
        config = types.GenerateContentConfig(
            temperature=0,
            response_modalities=list(self.RESPONSE_MODALITIES),
            seed=seed,
        )
        try:
            stream = await self._client.aio.models.generate_content_stream(
                model=self._model,
                contents=[types.Content(role="user", parts=parts)],
                config=config,
            )
            async for response in stream:
                yield self._to_chunk(response)
        except genai_errors.APIError as exc:
            raise ExternalCallFailure(
                f"Gemini returned an error: {exc.message or exc}",
                status_code=exc.code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalCallFailure("Gemini could not be reached.") from exc

    @staticmethod
    def _to_chunk(response: Any) -> ImageChunk:
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return ImageChunk()
        content = getattr(candidates[0], "content", None)
        found: list[InlineImage] = []
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                found.append(InlineImage(data=inline.data, mime_type=inline.mime_type or "image/png"))
        return ImageChunk(images=tuple(found))

    async def ping(self) -> bool:
        """Return ``True`` when the configured model can be described."""

        model = await self._client.aio.models.get(model=self._model)
        return model is not None

    async def close(self) -> None:
        """Nothing to release; the SDK manages its own sessions."""


class AITunnelImageClient:
    """Image edits through the OpenAI-compatible AITunnel proxy."""

    def __init__(self, settings: Settings, *, client: AsyncOpenAI | None = None) -> None:
        if client is None and not settings.aitunnel_api_key:
            raise ConfigurationMissing("AITUNNEL_API_KEY must be configured to use this feature.")

        self._model = settings.aitunnel_image_model
        self._openai = client or AsyncOpenAI(
            api_key=settings.aitunnel_api_key,
            base_url=settings.aitunnel_base_url.rstrip("/"),
            timeout=settings.request_timeout,
        )

    async def stream_images(
        self,
        instruction: str,
        images: Sequence[InlineImage],
        *,
        seed: int | None = None,
    ) -> AsyncIterator[ImageChunk]:
        content: list[dict[str, Any]] = [{"type": "text", "text": instruction}]
        content.extend(
            {"type": "image_url", "image_url": {"url": image.to_data_url()}} for image in images
        )
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": content}],
            "temperature": 0,
            "extra_body": {"modalities": ["image", "text"]},
        }
        if seed is not None:
            kwargs["seed"] = seed
        try:
            response = await self._openai.chat.completions.create(**kwargs)
        except APIStatusError as exc:
            raise ExternalCallFailure(
                f"AITunnel returned {exc.status_code}: {exc.message}",
                status_code=exc.status_code,
            ) from exc
        except APIConnectionError as exc:
            raise ExternalCallFailure("AITunnel could not be reached.") from exc

        payload = response.model_dump() if hasattr(response, "model_dump") else response
        image = self.image_from_payload(payload)
        yield ImageChunk(images=(image,) if image else ())

    @staticmethod
    def image_from_payload(payload: Mapping[str, Any]) -> InlineImage | None:
        """Extract the first data-URL image from a chat completions response."""

        choices = payload.get("choices") or []
        if not choices:
            logger.warning("AITunnel image response has no choices.")
            return None
        message = choices[0].get("message") or {}
        image_url = None

        images = message.get("images") or []
        if images and isinstance(images[0], Mapping):
            image_info = images[0].get("image_url") or {}
            if isinstance(image_info, Mapping):
                image_url = image_info.get("url")

        content = message.get("content")
        if image_url is None and isinstance(content, str) and content.startswith("data:"):
            image_url = content
        elif image_url is None and isinstance(content, list):
            for part in content:
                if (
                    isinstance(part, Mapping)
                    and part.get("type") == "image_url"
                    and isinstance(part.get("image_url"), Mapping)
                ):
                    image_url = part["image_url"].get("url")
                    if image_url:
                        break

        if not image_url or not image_url.startswith("data:"):
            logger.warning("AITunnel image response contains no inline image.")
            return None
        try:
            return decode_data_url(image_url)
        except InvalidDataUrl:
            logger.warning("AITunnel returned a malformed image data URL.")
            return None

    async def ping(self) -> bool:
        """Return ``True`` when the service responds to a model listing call."""

        models = await self._openai.models.list()
        return bool(models.data)

    async def close(self) -> None:
        """Close the underlying HTTP session."""

        await self._openai.close()


def build_image_client(settings: Settings) -> GeminiImageClient | AITunnelImageClient:
    """Instantiate the image client selected by ``IMAGE_PROVIDER``."""

    if settings.image_provider == "aitunnel":
        return AITunnelImageClient(settings)
    if settings.image_provider != "gemini":
        raise ConfigurationMissing(f"Unknown IMAGE_PROVIDER: {settings.image_provider!r}")
    return GeminiImageClient(settings)
