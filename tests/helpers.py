"""Fakes shared across the test suite."""

from __future__ import annotations

from typing import Any, AsyncIterator, Iterable, Mapping, Sequence

from crosscart.catalog.models import ProductSummary
from crosscart.imggen.data_url import InlineImage
from crosscart.imggen.generator_client import ImageChunk
from crosscart.purchase.agent_runtime import AgentMessage, AgentSessionConfig
from crosscart.purchase.capability import CapabilityGate, ToolAllowed


def make_product(
    product_id: str,
    name: str = "Product",
    *,
    price: float = 100.0,
    description: str | None = None,
    image_url: str | None = None,
    source: str = "surf-shop",
) -> ProductSummary:
    return ProductSummary(
        id=product_id,
        name=name,
        description=description,
        price=price,
        currency="USD",
        source=source,
        image_url=image_url,
    )


class FakeImageClient:
    """Returns one queued image per call; ``None`` queues an image-less stream."""

    def __init__(self, outputs: Iterable[bytes | None], *, leading_empty_chunks: int = 1) -> None:
        self._outputs = list(outputs)
        self._leading_empty_chunks = leading_empty_chunks
        self.calls: list[dict[str, Any]] = []

    async def stream_images(
        self,
        instruction: str,
        images: Sequence[InlineImage],
        *,
        seed: int | None = None,
    ) -> AsyncIterator[ImageChunk]:
        self.calls.append({"instruction": instruction, "images": list(images), "seed": seed})
        output = self._outputs.pop(0)
        for _ in range(self._leading_empty_chunks):
            yield ImageChunk()
        if output is not None:
            yield ImageChunk(images=(InlineImage(data=output, mime_type="image/png"),))
            yield ImageChunk(images=(InlineImage(data=b"ignored", mime_type="image/png"),))

    async def close(self) -> None:
        return None


class FakeAgentRuntime:
    """Replays messages and routes scripted tool calls through the gate."""

    def __init__(
        self,
        messages: Sequence[AgentMessage] = (),
        *,
        tool_calls: Sequence[tuple[str, Mapping[str, Any]]] = (),
        error: Exception | None = None,
    ) -> None:
        self._messages = list(messages)
        self._tool_calls = list(tool_calls)
        self._error = error
        self.instructions: list[str] = []
        self.configs: list[AgentSessionConfig] = []
        self.executed: list[tuple[str, Mapping[str, Any]]] = []
        self.refusals: list[str] = []

    async def run(
        self,
        instruction: str,
        config: AgentSessionConfig,
        gate: CapabilityGate,
    ) -> AsyncIterator[AgentMessage]:
        self.instructions.append(instruction)
        self.configs.append(config)
        for tool_name, tool_input in self._tool_calls:
            decision = gate.authorize(tool_name, tool_input)
            if isinstance(decision, ToolAllowed):
                self.executed.append((tool_name, decision.updated_input))
            else:
                self.refusals.append(decision.message)
        for message in self._messages:
            yield message
        if self._error is not None:
            raise self._error
