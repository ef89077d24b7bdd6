"""Execution engine for the GUI agent.

This package contains the tool-calling loop and the parser that reads
tool calls out of model output.
"""

from agents.execution.agent_loop import (
    AgentCancelledError,
    AgentError,
    AgentTimeoutError,
    EmptyMessageError,
    GUIAgent,
    MAX_ITERATIONS_MESSAGE,
    informational_tools_predicate,
)
from agents.execution.tool_call_parser import ToolCall, parse_tool_call

__all__ = [
    "GUIAgent",
    "AgentError",
    "AgentTimeoutError",
    "AgentCancelledError",
    "EmptyMessageError",
    "MAX_ITERATIONS_MESSAGE",
    "informational_tools_predicate",
    "ToolCall",
    "parse_tool_call",
]
