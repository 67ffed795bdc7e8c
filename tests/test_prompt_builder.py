"""Tests for the image prompt builder."""

from __future__ import annotations

from crosscart.catalog.models import SlotId
from crosscart.imggen.prompt_builder import PromptBuilder


def test_single_garment_prompt() -> None:
    prompt = PromptBuilder().build_pass_prompt([SlotId.HEAD])

    assert "Apply the garment listed below without changing the person." in prompt
    assert "Return only the updated portrait image (no standalone garment cutouts)." in prompt
    assert prompt.endswith("Garments to apply:\n1. Headwear overlay (slot: head)")


def test_multi_garment_prompt_lists_slots_in_order() -> None:
    prompt = PromptBuilder().build_pass_prompt([SlotId.FEET, SlotId.RING])

    assert "Apply all garments in this pass simultaneously without changing the person." in prompt
    assert "1. Footwear overlay (slot: feet)\n2. Accessory overlay (slot: ring)" in prompt


def test_custom_labels_are_used() -> None:
    builder = PromptBuilder(labels={SlotId.CHEST: "Wetsuit top"})

    assert builder.garment_summary([SlotId.CHEST, SlotId.WAIST]) == (
        "1. Wetsuit top overlay (slot: chest)\n2. waist overlay (slot: waist)"
    )


def test_portrait_prompt_requests_white_full_body_frame() -> None:
    prompt = PromptBuilder().build_portrait_prompt()

    assert "full-body portrait" in prompt
    assert "pure white (#FFFFFF)" in prompt
