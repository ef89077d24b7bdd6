"""
Extracts a tool call from raw model output.

The protocol is a single JSON object, {"tool": "<name>", "tool_input": {...}}.
Anything that is not exactly that (after stripping one optional Markdown
code fence) is treated as the model's final answer.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n(.*?)\n?```$", re.DOTALL)


@dataclass(frozen=True)
class ToolCall:
    tool: str
    tool_input: Dict[str, Any] = field(default_factory=dict)


def _strip_fence(text: str) -> str:
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_tool_call(text: Optional[str]) -> Optional[ToolCall]:
    """Return the ToolCall encoded in `text`, or None if it is not one."""
    if not isinstance(text, str):
        return None

    candidate = _strip_fence(text.strip())
    if not candidate.startswith("{"):
        return None

    try:
        payload = json.loads(candidate)
    except ValueError:
        return None

    if not isinstance(payload, dict):
        return None

    tool = payload.get("tool")
    if not isinstance(tool, str) or not tool.strip():
        return None

    tool_input = payload.get("tool_input", {})
    if tool_input is None:
        tool_input = {}
    if not isinstance(tool_input, dict):
        return None

    return ToolCall(tool=tool.strip(), tool_input=tool_input)
