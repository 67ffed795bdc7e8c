"""Executes purchase orders through a tool-scoped payment agent."""

from __future__ import annotations

import logging
from typing import Sequence

from crosscart.catalog.taxonomy import SLOT_LABELS
from crosscart.config.settings import Settings
from crosscart.errors import ConfigurationMissing, EmptyPurchaseOrder
from crosscart.metrics.prometheus_exporter import purchase_run_total
from crosscart.purchase.agent_runtime import AgentInit, AgentResult, AgentRuntime, AgentSessionConfig
from crosscart.purchase.capability import CapabilityGate
from crosscart.purchase.order_builder import PurchaseOrderItem

logger = logging.getLogger(__name__)

REMEDIATION_HINTS = (
    "Your .env file contains valid credentials",
    "Your network connection is active",
    "Your Locus and Anthropic API keys are correct",
)


def render_instruction(order: Sequence[PurchaseOrderItem], namespace: str) -> str:
    """Describe every settlement line for the agent, in order."""

    lines = [
        f"You are completing a wardrobe checkout using only the {namespace} payment tools.",
        "Send exactly one payment per item below, in the listed order.",
        "The recipient addresses are pre-approved. Use each address exactly as written; "
        "do not look up, substitute, or modify any address.",
        "Send exactly the listed send amount for each item; it already reflects the demo discount.",
        "",
        "Items:",
    ]
    for index, item in enumerate(order, start=1):
        label = SLOT_LABELS.get(item.slot_id, item.slot_id.value)
        lines.extend(
            [
                f"{index}. {label}: {item.name}",
                f"   product id: {item.id}",
                f"   merchant: {item.source or 'unknown'}",
                f"   recipient address: {item.recipient_address}",
                f"   listed price: {item.price:.2f} {item.currency}",
                f"   send amount: {item.send_amount:.2f}",
            ],
        )
    lines.extend(["", "When every payment is done, summarise the outcome of each one."])
    return "\n".join(lines)


class AgentOrchestrator:
    """Runs one purchase order through the agent runtime and returns its result."""

    def __init__(self, runtime: AgentRuntime, config: AgentSessionConfig) -> None:
        self._runtime = runtime
        self._config = config

    @classmethod
    def from_settings(cls, settings: Settings, runtime: AgentRuntime) -> "AgentOrchestrator":
        if not settings.locus_api_key:
            raise ConfigurationMissing("LOCUS_API_KEY must be configured to run purchases.")
        config = AgentSessionConfig(
            namespace=settings.payment_tool_namespace,
            server_url=settings.locus_mcp_url,
            server_headers={"Authorization": f"Bearer {settings.locus_api_key}"},
        )
        return cls(runtime, config)

    @property
    def config(self) -> AgentSessionConfig:
        return self._config

    async def execute(self, order: Sequence[PurchaseOrderItem]) -> str | None:
        """
        Run the agent over ``order`` and return the last success payload.

        ``None`` means the stream ended without a success message; callers must
        treat that as an incomplete run, not a confirmed purchase.
        """

        if not order:
            raise EmptyPurchaseOrder("Equip at least one slot before purchasing.")

        namespace = self._config.namespace
        instruction = render_instruction(order, namespace)
        gate = CapabilityGate([namespace])
        final_result: str | None = None

        logger.info("Starting purchase run for %s items via %s", len(order), namespace)
        try:
            async for message in self._runtime.run(instruction, self._config, gate):
                if isinstance(message, AgentInit):
                    status = message.status_of(namespace)
                    if status == "connected":
                        logger.info("Connected to %s MCP server", namespace)
                    else:
                        logger.warning("MCP connection issue: %s reported status %r", namespace, status)
                elif isinstance(message, AgentResult) and message.is_success:
                    final_result = message.result
        except Exception:
            purchase_run_total.labels(outcome="error").inc()
            logger.exception("Purchase run failed. Please check: %s", "; ".join(REMEDIATION_HINTS))
            raise

        if gate.denied:
            logger.info("Agent attempted %s out-of-scope tool calls", len(gate.denied))
        outcome = "success" if final_result is not None else "incomplete"
        purchase_run_total.labels(outcome=outcome).inc()
        return final_result
