"""Unit tests for tool-call parsing."""

import json
import sys
import unittest
from pathlib import Path

backend_dir = Path(__file__).resolve().parents[2]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from agents.execution.tool_call_parser import ToolCall, parse_tool_call


class TestParseToolCall(unittest.TestCase):
    """JSON tool calls versus final answers."""

    def test_parses_tool_call(self):
        call = parse_tool_call('{"tool": "type_text", "tool_input": {"text": "hi"}}')
        self.assertEqual(call, ToolCall(tool="type_text", tool_input={"text": "hi"}))

    def test_missing_tool_input_defaults_to_empty(self):
        self.assertEqual(parse_tool_call('{"tool": "take_screenshot"}').tool_input, {})

    def test_surrounding_whitespace_allowed(self):
        self.assertIsNotNone(parse_tool_call('\n  {"tool": "wait", "tool_input": {"duration": 10}}  \n'))

    def test_plain_text_is_not_a_call(self):
        for text in ("Done! I typed hello.", "", "   ", "[1, 2]", "null", "42"):
            with self.subTest(text=text):
                self.assertIsNone(parse_tool_call(text))

    def test_invalid_json_is_not_a_call(self):
        self.assertIsNone(parse_tool_call('{"tool": "click_mouse", "tool_input": {'))

    def test_prose_around_json_is_not_a_call(self):
        self.assertIsNone(parse_tool_call('Sure! {"tool": "click_mouse", "tool_input": {}}'))

    def test_missing_or_empty_tool_is_not_a_call(self):
        for text in ('{"tool_input": {}}', '{"tool": "", "tool_input": {}}', '{"tool": 3}'):
            with self.subTest(text=text):
                self.assertIsNone(parse_tool_call(text))

    def test_non_object_tool_input_is_not_a_call(self):
        self.assertIsNone(parse_tool_call('{"tool": "type_text", "tool_input": "hello"}'))

    def test_unknown_tool_names_are_not_validated(self):
        self.assertEqual(parse_tool_call('{"tool": "teleport", "tool_input": {}}').tool, "teleport")

    def test_markdown_fence_is_stripped(self):
        text = '```json\n{"tool": "click_mouse", "tool_input": {"x": 1, "y": 2}}\n```'
        self.assertEqual(parse_tool_call(text), ToolCall("click_mouse", {"x": 1, "y": 2}))

    def test_bare_fence_is_stripped(self):
        self.assertIsNotNone(parse_tool_call('```\n{"tool": "wait", "tool_input": {}}\n```'))

    def test_idempotent(self):
        text = '{"tool": "scroll", "tool_input": {"direction": "down"}}'
        first = parse_tool_call(text)
        again = parse_tool_call(json.dumps({"tool": first.tool, "tool_input": first.tool_input}))
        self.assertEqual(first, again)
        self.assertEqual(first, parse_tool_call(text))


if __name__ == '__main__':
    unittest.main()
