"""Unit tests for the visual analysis tools."""

import sys
import threading
import unittest
from pathlib import Path
from unittest.mock import Mock

import requests

backend_dir = Path(__file__).resolve().parents[2]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from agents.tools.gui_ops.action_executor import ActionExecutor
from agents.tools.gui_ops.gui_tools import build_gui_registry
from agents.tools.tool_registry import ToolExecutionContext
from agents.tools.vision_ops.visual_analyser import (
    VisualAnalyserClient,
    VisualAnalyserError,
    format_analysis,
)
from desktop_fakes import RecordingDesktop


def make_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestFormatAnalysis(unittest.TestCase):
    """Analyser responses rendered as text."""

    def test_elements(self):
        text = format_analysis("find_element", {"elements": [
            {"name": "Submit", "coordinates": {"x": 500, "y": 300}, "confidence": 0.953, "description": "blue button"},
            {"name": "Cancel", "coordinates": {"x": 400, "y": 300}, "confidence": 0.5},
        ]})
        self.assertTrue(text.startswith("Found 2 element(s):"))
        self.assertIn("1. Submit\n   Coordinates: (500, 300)\n   Confidence: 0.95\n   Description: blue button", text)
        self.assertIn("2. Cancel\n   Coordinates: (400, 300)\n   Confidence: 0.50", text)

    def test_no_elements(self):
        self.assertEqual(format_analysis("find_coordinates", {"elements": []}), "No elements found matching the query")
        self.assertEqual(format_analysis("find_element", {}), "No elements found")

    def test_descriptions(self):
        self.assertEqual(format_analysis("describe_screen", {"description": "A browser"}), "A browser")
        self.assertEqual(format_analysis("detect_text", {}), "Text detection completed")


class TestVisualAnalyserClient(unittest.TestCase):
    """HTTP behaviour of the analyser client."""

    def setUp(self):
        self.session = Mock()
        self.client = VisualAnalyserClient("http://analyser:8081/", timeout=5, session=self.session)

    def test_posts_screenshot_and_query(self):
        self.session.post.return_value = make_response({"success": True, "elements": []})
        self.client.analyze("find_element", "aW1n", query="submit button")

        self.session.post.assert_called_once_with(
            "http://analyser:8081/analyze",
            json={"action": "find_element", "screenshot": "aW1n", "query": "submit button"},
            timeout=5,
        )

    def test_failure_response_raises(self):
        self.session.post.return_value = make_response({"success": False, "error": "model offline"})
        with self.assertRaisesRegex(VisualAnalyserError, "model offline"):
            self.client.analyze("describe_screen", "aW1n")

    def test_connection_error_raises(self):
        self.session.post.side_effect = requests.ConnectionError("refused")
        with self.assertRaisesRegex(VisualAnalyserError, "failed to send request"):
            self.client.analyze("detect_text", "aW1n")

    def test_invalid_json_raises(self):
        response = make_response(None, status_code=502)
        response.json.side_effect = ValueError("not json")
        self.session.post.return_value = response
        with self.assertRaisesRegex(VisualAnalyserError, "failed to parse response"):
            self.client.analyze("detect_text", "aW1n")


class TestVisionTools(unittest.TestCase):
    """Vision tools capture the screen, then ask the analyser."""

    def setUp(self):
        self.desktop = RecordingDesktop()
        self.session = Mock()
        client = VisualAnalyserClient("http://analyser:8081", session=self.session)
        executor = ActionExecutor(self.desktop, platform_name="Linux", device_lock=threading.Lock())
        self.registry = build_gui_registry(executor, client)

    def test_registered_as_informational(self):
        for name in ("find_element", "find_coordinates", "detect_text", "describe_screen"):
            with self.subTest(name=name):
                spec = self.registry.lookup(name)
                self.assertTrue(spec.informational)
                self.assertEqual(spec.category, "Visual Analysis")
        self.assertFalse(self.registry.lookup("click_mouse").informational)

    def test_find_element_takes_screenshot_first(self):
        self.session.post.return_value = make_response({"elements": [
            {"name": "Login", "coordinates": {"x": 1, "y": 2}, "confidence": 1},
        ]})
        result = self.registry.lookup("find_element").fn({"query": "login"}, ToolExecutionContext())

        self.assertEqual(self.desktop.calls, [("capture_png",)])
        sent = self.session.post.call_args.kwargs["json"]
        self.assertEqual(sent["action"], "find_element")
        self.assertEqual(sent["query"], "login")
        self.assertTrue(sent["screenshot"])
        self.assertIn("1. Login", result.output)

    def test_find_element_requires_query(self):
        with self.assertRaisesRegex(ValueError, "query"):
            self.registry.lookup("find_element").fn({}, ToolExecutionContext())
        self.assertEqual(self.desktop.calls, [])
        self.session.post.assert_not_called()

    def test_describe_screen_ignores_query(self):
        self.session.post.return_value = make_response({"description": "Desktop with two windows"})
        result = self.registry.lookup("describe_screen").fn({"query": "ignored"}, ToolExecutionContext())
        self.assertEqual(result.output, "Desktop with two windows")
        self.assertNotIn("query", self.session.post.call_args.kwargs["json"])


if __name__ == '__main__':
    unittest.main()
