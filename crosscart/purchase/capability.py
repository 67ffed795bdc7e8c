"""Per-call authorization of agent tool invocations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

from crosscart.metrics.prometheus_exporter import agent_tool_denied_total

logger = logging.getLogger(__name__)

MCP_PREFIX = "mcp"
SEPARATOR = "__"


@dataclass(frozen=True, slots=True)
class McpTool:
    """Tool exposed by a named MCP server: ``mcp__<server>__<action>``."""

    server: str
    action: str


@dataclass(frozen=True, slots=True)
class BuiltinTool:
    """Any tool name that does not belong to an MCP server namespace."""

    name: str


ToolCapability = Union[McpTool, BuiltinTool]


@dataclass(frozen=True, slots=True)
class ToolAllowed:
    """The call may proceed with ``updated_input`` forwarded unchanged."""

    updated_input: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class ToolDenied:
    """The call is refused; ``message`` goes back to the agent as the tool result."""

    tool_name: str
    message: str


ToolDecision = Union[ToolAllowed, ToolDenied]


def parse_tool_name(tool_name: str) -> ToolCapability:
    """Split a tool name into its namespace and action."""

    parts = tool_name.split(SEPARATOR, 2)
    if len(parts) == 3 and parts[0] == MCP_PREFIX and parts[1] and parts[2]:
        return McpTool(server=parts[1], action=parts[2])
    return BuiltinTool(name=tool_name)


class CapabilityGate:
    """Allows only tools that belong to an approved MCP namespace."""

    def __init__(self, namespaces: Iterable[str]) -> None:
        approved = tuple(dict.fromkeys(name for name in namespaces if name))
        if not approved:
            raise ValueError("CapabilityGate needs at least one approved namespace")
        self._namespaces = frozenset(approved)
        self._denial_message = f"Only {', '.join(approved)} tools are allowed"
        self.denied: list[ToolDenied] = []

    @property
    def namespaces(self) -> frozenset[str]:
        return self._namespaces

    def allowed_tool_patterns(self) -> list[str]:
        return [f"{MCP_PREFIX}{SEPARATOR}{name}{SEPARATOR}*" for name in sorted(self._namespaces)]

    def is_allowed(self, capability: ToolCapability) -> bool:
        return isinstance(capability, McpTool) and capability.server in self._namespaces

    def authorize(self, tool_name: str, tool_input: Mapping[str, Any]) -> ToolDecision:
        """Decide a single tool call; denials are returned, never raised."""

        if self.is_allowed(parse_tool_name(tool_name)):
            return ToolAllowed(updated_input=tool_input)

        decision = ToolDenied(tool_name=tool_name, message=self._denial_message)
        self.denied.append(decision)
        agent_tool_denied_total.inc()
        logger.warning("Denied agent tool call %s", tool_name)
        return decision
