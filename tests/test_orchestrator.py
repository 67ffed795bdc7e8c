"""Tests for the purchase orchestrator."""

from __future__ import annotations

import logging

import pytest

from crosscart.catalog.models import SlotId
from crosscart.config.settings import Settings
from crosscart.errors import ConfigurationMissing, EmptyPurchaseOrder, ExternalCallFailure
from crosscart.purchase.agent_runtime import AgentInit, AgentNotice, AgentResult, AgentSessionConfig, McpServerStatus
from crosscart.purchase.orchestrator import AgentOrchestrator, render_instruction
from crosscart.purchase.order_builder import PurchaseOrderBuilder, PurchaseOrderItem, SelectedWardrobeItem
from tests.helpers import FakeAgentRuntime, make_product

CONFIG = AgentSessionConfig(namespace="locus", server_url="https://mcp.example.com/mcp")


@pytest.fixture
def order() -> list[PurchaseOrderItem]:
    builder = PurchaseOrderBuilder(["0xAAA", "0xBBB"])
    return builder.build(
        [
            SelectedWardrobeItem(SlotId.CHEST, make_product("a", "Rash guard", price=999)),
            SelectedWardrobeItem(SlotId.LEGS, make_product("b", "Boardshorts", price=150)),
        ],
    )


def test_render_instruction_lists_every_line_in_order(order: list[PurchaseOrderItem]) -> None:
    instruction = render_instruction(order, "locus")

    assert "only the locus payment tools" in instruction
    assert "do not look up, substitute, or modify any address" in instruction
    assert instruction.index("Rash guard") < instruction.index("Boardshorts")
    assert "recipient address: 0xAAA" in instruction
    assert "recipient address: 0xBBB" in instruction
    assert "listed price: 999.00 USD" in instruction
    assert "send amount: 0.15" in instruction


@pytest.mark.asyncio
async def test_execute_returns_the_last_success_result(order: list[PurchaseOrderItem]) -> None:
    runtime = FakeAgentRuntime(
        [
            AgentInit(mcp_servers=(McpServerStatus("locus", "connected"),)),
            AgentResult("success", "first"),
            AgentNotice("AssistantMessage"),
            AgentResult("error_during_execution", "boom", is_error=True),
            AgentResult("success", "final"),
        ],
    )

    result = await AgentOrchestrator(runtime, CONFIG).execute(order)

    assert result == "final"
    assert runtime.configs == [CONFIG]
    assert "0xAAA" in runtime.instructions[0]


@pytest.mark.asyncio
async def test_execute_returns_none_without_success(order: list[PurchaseOrderItem]) -> None:
    runtime = FakeAgentRuntime([AgentResult("error_max_turns", None, is_error=True)])

    assert await AgentOrchestrator(runtime, CONFIG).execute(order) is None


@pytest.mark.asyncio
async def test_execute_rejects_empty_orders_before_running() -> None:
    runtime = FakeAgentRuntime()

    with pytest.raises(EmptyPurchaseOrder):
        await AgentOrchestrator(runtime, CONFIG).execute([])

    assert runtime.instructions == []


@pytest.mark.asyncio
async def test_execute_routes_tool_calls_through_the_gate(order: list[PurchaseOrderItem]) -> None:
    payment = {"address": "0xAAA", "amount": 1.0}
    runtime = FakeAgentRuntime(
        [AgentResult("success", "paid")],
        tool_calls=[("mcp__other__delete", {"id": "1"}), ("mcp__locus__send_to_address", payment)],
    )

    await AgentOrchestrator(runtime, CONFIG).execute(order)

    assert runtime.executed == [("mcp__locus__send_to_address", payment)]
    assert runtime.refusals == ["Only locus tools are allowed"]


@pytest.mark.asyncio
async def test_disconnected_server_is_logged_and_run_continues(
    order: list[PurchaseOrderItem],
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="crosscart.purchase.orchestrator")
    runtime = FakeAgentRuntime(
        [AgentInit(mcp_servers=(McpServerStatus("locus", "failed"),)), AgentResult("success", "paid")],
    )

    result = await AgentOrchestrator(runtime, CONFIG).execute(order)

    assert result == "paid"
    assert any(
        record.levelno == logging.WARNING and "MCP connection issue" in record.getMessage()
        for record in caplog.records
    )


@pytest.mark.asyncio
async def test_runtime_errors_are_logged_and_reraised(
    order: list[PurchaseOrderItem],
    caplog: pytest.LogCaptureFixture,
) -> None:
    runtime = FakeAgentRuntime(error=ExternalCallFailure("stream broke"))

    with pytest.raises(ExternalCallFailure):
        await AgentOrchestrator(runtime, CONFIG).execute(order)

    assert any("valid credentials" in record.getMessage() for record in caplog.records)


def test_from_settings_uses_bearer_auth() -> None:
    settings = Settings(locus_api_key="locus-key", locus_mcp_url="https://mcp.example.com/mcp")

    orchestrator = AgentOrchestrator.from_settings(settings, FakeAgentRuntime())

    assert orchestrator.config.namespace == "locus"
    assert orchestrator.config.server_headers == {"Authorization": "Bearer locus-key"}


def test_from_settings_requires_locus_key() -> None:
    with pytest.raises(ConfigurationMissing):
        AgentOrchestrator.from_settings(Settings(locus_api_key=""), FakeAgentRuntime())
