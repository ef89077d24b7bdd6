from __future__ import annotations

from typing import Any, Dict, List, Sequence

from agents.tools.tool_registry import ToolRegistry

gui_agent_system_prompt = """You are a GUI automation specialist AI assistant. Your job is to control the computer's graphical user interface using available tools.

## AVAILABLE TOOLS:
{available_tools}

## RESPONSE FORMAT:
When you need a tool, respond with ONLY a JSON object in this EXACT format:
{{
  "tool": "tool_name",
  "tool_input": {{
    "param1": "value1"
  }}
}}

## GUIDELINES:
{guidelines}
- Always respond with valid JSON when using a tool
- Only use one tool at a time
- After a tool executes, you will see its result and can decide what to do next
- Once the task is done or you have the information, respond with plain text (not JSON); that text is your final answer

## WHEN TO STOP:
- If the user asked you to DO something (click, type, open...), run the action tools and then confirm in plain text
- If the user asked for INFORMATION, gather it and return the result in plain text
- Do not use tools unnecessarily
{examples}"""


# (tools that must all be registered, guideline line)
_GUIDELINES = [
    (("find_element", "click_mouse"),
     "- For clicking UI elements: first use find_element to locate it, then use click_mouse with those coordinates"),
    (("find_coordinates", "click_mouse"),
     "- find_coordinates returns the click point for an element description"),
    (("type_text",), "- For typing: use type_text with the text you want to type"),
    (("paste_text",), "- For long text prefer paste_text over type_text"),
    (("type_keys",), "- For shortcuts: use type_keys, e.g. [\"ctrl\", \"c\"]"),
    (("take_screenshot",), "- For screenshots: use take_screenshot to capture the screen"),
    (("launch_application", "wait"),
     "- After launch_application, use wait to give the window time to appear"),
    (("describe_screen", "detect_text"), "- For questions about the screen: use describe_screen or detect_text and return the result"),
]

_EXAMPLES = [
    (("find_element", "click_mouse"), """
Example user request: "Click the submit button"
Your response:
{
  "tool": "find_element",
  "tool_input": {"query": "submit button"}
}
Then after getting coordinates:
{
  "tool": "click_mouse",
  "tool_input": {"x": 500, "y": 300}
}"""),
    (("type_text",), """
Example user request: "Type hello"
Your response:
{
  "tool": "type_text",
  "tool_input": {"text": "hello"}
}
Then after the tool returns, answer in plain text:
I typed "hello"."""),
    (("describe_screen",), """
Example user request: "What's on the screen?"
Your response:
{
  "tool": "describe_screen",
  "tool_input": {}
}
Then after getting the description, respond with plain text:
The screen shows [description from tool result]"""),
]


def format_parameter(name: str, spec: Dict[str, Any], required: bool) -> str:
    """
    Format a single parameter with type, default, description, and enum values.

    Examples:
    - text (string, required): Text to type
    - button (string, enum: left|right|middle, default: "left"): Mouse button
    """
    param_type = spec.get("type")
    if isinstance(param_type, list):
        param_type = "|".join(str(t) for t in param_type)
    elif not param_type:
        param_type = "any"

    type_str = str(param_type)
    if required:
        type_str = f"{type_str}, required"

    enum_values = spec.get("enum")
    if enum_values:
        type_str = f"{type_str}, enum: {'|'.join(str(v) for v in enum_values)}"

    default = spec.get("default")
    if default is not None:
        default_str = f'"{default}"' if isinstance(default, str) else str(default)
        type_str = f"{type_str}, default: {default_str}"
    elif not required:
        type_str = f"{type_str}, optional"

    line = f"{name} ({type_str})"
    description = spec.get("description", "")
    if description:
        line = f"{line}: {description}"
    return line


def format_tool_catalog(registry: ToolRegistry) -> str:
    """Every registered tool with its description and parameters."""
    if len(registry) == 0:
        return "No tools available."

    lines: List[str] = []
    for spec in registry.get_all_tools():
        lines.append(f"\n{spec.name}:")
        lines.append(f"  Description: {spec.description}")

        properties = (spec.in_schema or {}).get("properties") or {}
        if not properties:
            lines.append("  Parameters: None")
            continue

        required = spec.in_schema.get("required", [])
        required_props = [(k, v) for k, v in properties.items() if k in required]
        optional_props = [(k, v) for k, v in properties.items() if k not in required]
        if required_props:
            lines.append("  Required Parameters:")
            for name, param_spec in required_props:
                lines.append(f"    {format_parameter(name, param_spec, required=True)}")
        if optional_props:
            lines.append("  Optional Parameters:")
            for name, param_spec in optional_props:
                lines.append(f"    {format_parameter(name, param_spec, required=False)}")

    return "\n".join(lines).lstrip("\n")


def _available(registry: ToolRegistry, tools: Sequence[str]) -> bool:
    return all(name in registry for name in tools)


def build_system_prompt(registry: ToolRegistry) -> str:
    """System prompt naming only tools that exist in `registry`."""
    guidelines = [line for tools, line in _GUIDELINES if _available(registry, tools)]
    examples = [text for tools, text in _EXAMPLES if _available(registry, tools)]

    return gui_agent_system_prompt.format(
        available_tools=format_tool_catalog(registry),
        guidelines="\n".join(guidelines),
        examples=("\n## EXAMPLES:" + "\n".join(examples)) if examples else "",
    )
