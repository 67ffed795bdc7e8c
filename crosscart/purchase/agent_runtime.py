"""Agent runtime boundary and the Claude Agent SDK adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Mapping, Protocol, Union

from claude_agent_sdk import (
    ClaudeAgentOptions,
    ClaudeSDKClient,
    HookMatcher,
    PermissionResultAllow,
    PermissionResultDeny,
    ResultMessage,
    SystemMessage,
)

from crosscart.config.settings import Settings
from crosscart.errors import ConfigurationMissing
from crosscart.purchase.capability import CapabilityGate, ToolAllowed

logger = logging.getLogger(__name__)

RESOURCE_PRIMITIVES = ("mcp__read_resource", "mcp__list_resources")


@dataclass(frozen=True, slots=True)
class McpServerStatus:
    name: str
    status: str


@dataclass(frozen=True, slots=True)
class AgentInit:
    """Session initialisation report."""

    mcp_servers: tuple[McpServerStatus, ...] = ()

    def status_of(self, name: str) -> str | None:
        for server in self.mcp_servers:
            if server.name == name:
                return server.status
        return None


@dataclass(frozen=True, slots=True)
class AgentResult:
    """Terminal result message."""

    subtype: str
    result: str | None = None
    is_error: bool = False

    @property
    def is_success(self) -> bool:
        return self.subtype == "success" and not self.is_error


@dataclass(frozen=True, slots=True)
class AgentNotice:
    """Any other streamed message (assistant turns, tool results, ...)."""

    kind: str


AgentMessage = Union[AgentInit, AgentResult, AgentNotice]


@dataclass(frozen=True, slots=True)
class AgentSessionConfig:
    """One remote tool namespace plus the read-only resource primitives."""

    namespace: str
    server_url: str
    server_headers: Mapping[str, str] = field(default_factory=dict)
    allowed_tools: tuple[str, ...] = RESOURCE_PRIMITIVES

    def mcp_servers(self) -> dict[str, dict[str, Any]]:
        return {
            self.namespace: {
                "type": "http",
                "url": self.server_url,
                "headers": dict(self.server_headers),
            },
        }


class AgentRuntime(Protocol):
    """Runs an instruction and streams normalised messages in arrival order."""

    def run(
        self,
        instruction: str,
        config: AgentSessionConfig,
        gate: CapabilityGate,
    ) -> AsyncIterator[AgentMessage]:
        ...


PermissionCallback = Callable[[str, dict[str, Any], Any], Awaitable[Union[PermissionResultAllow, PermissionResultDeny]]]
HookCallback = Callable[[dict[str, Any], Union[str, None], Any], Awaitable[dict[str, Any]]]


def permission_callback(gate: CapabilityGate) -> PermissionCallback:
    """Wrap ``gate`` as the SDK's per-call ``can_use_tool`` hook."""

    async def can_use_tool(
        tool_name: str,
        tool_input: dict[str, Any],
        context: Any,
    ) -> PermissionResultAllow | PermissionResultDeny:
        decision = gate.authorize(tool_name, tool_input)
        if isinstance(decision, ToolAllowed):
            return PermissionResultAllow(updated_input=dict(decision.updated_input))
        return PermissionResultDeny(message=decision.message)

    return can_use_tool


def pre_tool_use_hook(gate: CapabilityGate, preapproved: Iterable[str] = RESOURCE_PRIMITIVES) -> HookCallback:
    """
    Wrap ``gate`` as a ``PreToolUse`` hook.

    The hook fires for every tool call, including ones the permission mode
    approves without consulting ``can_use_tool``. Only the session's
    pre-approved tools skip the gate.
    """

    exempt = frozenset(preapproved)

    async def check_tool_use(input_data: dict[str, Any], tool_use_id: str | None, context: Any) -> dict[str, Any]:
        tool_name = str(input_data.get("tool_name", ""))
        if tool_name in exempt:
            return {}
        decision = gate.authorize(tool_name, input_data.get("tool_input") or {})
        if isinstance(decision, ToolAllowed):
            return {}
        return {
            "hookSpecificOutput": {
                "hookEventName": "PreToolUse",
                "permissionDecision": "deny",
                "permissionDecisionReason": decision.message,
            },
        }

    return check_tool_use


def to_agent_message(message: Any) -> AgentMessage:
    """Normalise an SDK message."""

    if isinstance(message, SystemMessage) and message.subtype == "init":
        servers = tuple(
            McpServerStatus(name=str(entry.get("name", "")), status=str(entry.get("status", "")))
            for entry in (message.data or {}).get("mcp_servers") or []
            if isinstance(entry, Mapping)
        )
        return AgentInit(mcp_servers=servers)
    if isinstance(message, ResultMessage):
        return AgentResult(subtype=message.subtype, result=message.result, is_error=message.is_error)
    return AgentNotice(kind=type(message).__name__)


class ClaudeAgentRuntime:
    """Drives a Claude agent session with MCP servers and a capability gate."""

    def __init__(self, settings: Settings, *, model: str | None = None) -> None:
        if not settings.anthropic_api_key:
            raise ConfigurationMissing("ANTHROPIC_API_KEY must be configured to run purchases.")
        self._api_key = settings.anthropic_api_key
        self._model = model

    def build_options(self, config: AgentSessionConfig, gate: CapabilityGate) -> ClaudeAgentOptions:
        return ClaudeAgentOptions(
            mcp_servers=config.mcp_servers(),
            allowed_tools=list(config.allowed_tools),
            can_use_tool=permission_callback(gate),
            hooks={"PreToolUse": [HookMatcher(matcher=None, hooks=[pre_tool_use_hook(gate, config.allowed_tools)])]},
            env={"ANTHROPIC_API_KEY": self._api_key},
            model=self._model,
        )

    async def run(
        self,
        instruction: str,
        config: AgentSessionConfig,
        gate: CapabilityGate,
    ) -> AsyncIterator[AgentMessage]:
        options = self.build_options(config, gate)
        async with ClaudeSDKClient(options=options) as client:
            await client.query(instruction)
            async for message in client.receive_response():
                yield to_agent_message(message)
