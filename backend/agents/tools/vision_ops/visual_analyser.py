# status: complete

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from agents.models.gui_actions import Screenshot, ScreenshotResult
from agents.tools.gui_ops.action_executor import ActionExecutor
from agents.tools.tool_registry import ToolExecutionContext, ToolRegistry, ToolResult, ToolSpec
from utils.logger import get_logger

_logger = get_logger(__name__)

VISUAL_ANALYSIS = "Visual Analysis"


class VisualAnalyserError(RuntimeError):
    """The analyser service was unreachable or reported a failure."""


class VisualAnalyserClient:
    """
    Thin HTTP client for the external screen analyser service.

    The service receives a base64 screenshot plus an action
    (find_element, find_coordinates, detect_text, describe_screen) and
    answers with elements and/or a free-text description.
    """

    def __init__(self, base_url: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def analyze(self, action: str, screenshot: str, query: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"action": action, "screenshot": screenshot}
        if query:
            payload["query"] = query

        _logger.info(f"[VISION-REQUEST] {action} (query={query!r}, image={len(screenshot)} chars)")
        try:
            response = self._session.post(f"{self.base_url}/analyze", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise VisualAnalyserError(f"failed to send request: {e}") from e

        try:
            result = response.json()
        except ValueError as e:
            raise VisualAnalyserError(
                f"failed to parse response (HTTP {response.status_code})"
            ) from e

        if not isinstance(result, dict):
            raise VisualAnalyserError("failed to parse response: expected a JSON object")

        if result.get("success") is False or response.status_code >= 400:
            error = result.get("error") or f"HTTP {response.status_code}"
            raise VisualAnalyserError(f"visual analyser error: {error}")

        return result


def format_analysis(action: str, response: Dict[str, Any]) -> str:
    """Render an analyser response as text for the model."""
    if action in ("find_element", "find_coordinates"):
        elements = response.get("elements")
        if not isinstance(elements, list):
            return "No elements found"
        if not elements:
            return "No elements found matching the query"

        lines: List[str] = [f"Found {len(elements)} element(s):"]
        for index, element in enumerate(elements, start=1):
            if not isinstance(element, dict):
                continue
            coordinates = element.get("coordinates")
            if not isinstance(coordinates, dict):
                continue
            lines.append("")
            lines.append(f"{index}. {element.get('name', 'element')}")
            lines.append(f"   Coordinates: ({coordinates.get('x')}, {coordinates.get('y')})")
            confidence = element.get("confidence")
            if isinstance(confidence, (int, float)):
                lines.append(f"   Confidence: {confidence:.2f}")
            description = element.get("description")
            if description:
                lines.append(f"   Description: {description}")
        return "\n".join(lines)

    if action == "detect_text":
        description = response.get("description")
        return description if isinstance(description, str) else "Text detection completed"

    if action == "describe_screen":
        description = response.get("description")
        return description if isinstance(description, str) else "Screen description completed"

    return f"Analysis action '{action}' completed"


def _capture(executor: ActionExecutor, ctx: ToolExecutionContext) -> str:
    result = executor.execute(Screenshot(), ctx.cancellation)
    if not isinstance(result, ScreenshotResult) or not result.image:
        raise VisualAnalyserError("failed to extract screenshot image")
    return result.image


def _analysis_fn(client: VisualAnalyserClient, executor: ActionExecutor, action: str, needs_query: bool):
    def _tool_analyse(params: Dict[str, Any], ctx: ToolExecutionContext) -> ToolResult:
        query = params.get("query")
        if needs_query and (not isinstance(query, str) or not query.strip()):
            raise ValueError("query field is required")

        screenshot = _capture(executor, ctx)
        if ctx.cancellation is not None:
            ctx.cancellation.check()
        response = client.analyze(action, screenshot, query.strip() if needs_query else None)
        return ToolResult(
            output=format_analysis(action, response),
            metadata={"action": action, "elements": response.get("elements") or []},
        )

    _tool_analyse.__name__ = f"_tool_{action}"
    return _tool_analyse


_QUERY_SCHEMA = {
    "type": "object",
    "properties": {
        "query": {
            "type": "string",
            "description": "Description of the element, e.g. \"submit button\"",
        },
    },
    "required": ["query"],
}

_NO_INPUT_SCHEMA = {"type": "object", "properties": {}}

# (tool name, description, needs query)
_VISION_TOOLS = [
    (
        "find_element",
        "Find a UI element on the screen by description. Returns its coordinates for clicking.",
        True,
    ),
    (
        "find_coordinates",
        "Get click coordinates for the element matching a description.",
        True,
    ),
    (
        "detect_text",
        "Extract all visible text from the current screen. No input required.",
        False,
    ),
    (
        "describe_screen",
        "Describe what is on the screen: application, layout, available actions and element positions. No input required.",
        False,
    ),
]


def register_vision_tools(registry: ToolRegistry, client: VisualAnalyserClient, executor: ActionExecutor) -> None:
    for name, description, needs_query in _VISION_TOOLS:
        registry.register(ToolSpec(
            name=name,
            description=description,
            fn=_analysis_fn(client, executor, name, needs_query),
            in_schema=_QUERY_SCHEMA if needs_query else _NO_INPUT_SCHEMA,
            category=VISUAL_ANALYSIS,
            informational=True,
        ))
    _logger.info(f"[TOOLS-REGISTER] Registered {len(_VISION_TOOLS)} visual analysis tools ({client.base_url})")
