"""Portrait compositing and image generation utilities."""

from .compositor import LayerCompositor, PortraitImage, RenderedPortrait, WardrobeSlotImage
from .data_url import InlineImage, decode_data_url, encode_data_url
from .prompt_builder import PromptBuilder

__all__ = [
    "InlineImage",
    "LayerCompositor",
    "PortraitImage",
    "PromptBuilder",
    "RenderedPortrait",
    "WardrobeSlotImage",
    "decode_data_url",
    "encode_data_url",
]
