"""Prompt construction helpers for the image generation step."""

from __future__ import annotations

from typing import Mapping, Sequence

from crosscart.catalog.models import SlotId
from crosscart.catalog.taxonomy import SLOT_DISPLAY_LABELS


class PromptBuilder:
    """Builds the natural-language instructions sent with each image call."""

    def __init__(self, labels: Mapping[SlotId, str] = SLOT_DISPLAY_LABELS) -> None:
        self._labels = labels

    def garment_summary(self, slots: Sequence[SlotId]) -> str:
        lines = []
        for index, slot in enumerate(slots, start=1):
            label = self._labels.get(slot, slot.value)
            lines.append(f"{index}. {label} overlay (slot: {slot.value})")
        return "\n".join(lines)

    def build_pass_prompt(self, slots: Sequence[SlotId]) -> str:
        """Return the instruction for one compositing pass over ``slots``."""

        summary = self.garment_summary(slots)
        parts = [
            "You are a virtual wardrobe stylist for apparel ecommerce.",
            "Keep the base portrait exactly the same person, including face, body, pose, "
            "lighting, framing, and background. Do not regenerate or replace the subject.",
            "Maintain the full-body framing from head through feet so footwear remains visible; "
            "stay inside the original 2:3 portrait bounds with approximately five percent "
            "headroom and footroom.",
            "Apply all garments in this pass simultaneously without changing the person."
            if len(slots) > 1
            else "Apply the garment listed below without changing the person.",
            "Blend the garments naturally on top of the existing portrait and maintain "
            "realistic proportions.",
            "Return only the updated portrait image (no standalone garment cutouts).",
            f"Garments to apply:\n{summary}" if summary else None,
        ]
        return "\n\n".join(part for part in parts if part)

    def build_portrait_prompt(self) -> str:
        """Return the instruction that isolates the subject on a white full-body frame."""

        return " ".join(
            [
                "Isolate the individual from the supplied portrait without altering their "
                "identity, pose, or lighting.",
                "Extend the composition so the subject appears as a full-body portrait inside "
                "a 2:3 frame with roughly five percent headroom and footroom, keeping "
                "proportions natural.",
                "Scale and center the subject consistently, ensuring the head nears the top "
                "margin without clipping and feet stay inside the frame.",
                "Ensure both hands are clearly visible and unobstructed (not hidden in pockets, "
                "behind the body, or outside the frame).",
                "Render the background as pure white (#FFFFFF) with no gradients, shadows, "
                "or objects.",
            ],
        )
