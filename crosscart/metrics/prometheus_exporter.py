"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter


outfit_render_total = Counter(
    "outfit_render_total",
    "Total number of outfit render requests.",
)

outfit_render_pass_total = Counter(
    "outfit_render_pass_total",
    "Total number of image-model passes issued while rendering outfits.",
)

purchase_run_total = Counter(
    "purchase_run_total",
    "Agent purchase runs by outcome.",
    ["outcome"],
)

agent_tool_denied_total = Counter(
    "agent_tool_denied_total",
    "Tool invocations refused by the capability gate.",
)
