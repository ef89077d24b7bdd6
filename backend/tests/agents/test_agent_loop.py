"""Unit tests for the GUI agent loop."""

import json
import sys
import threading
import unittest
from pathlib import Path
from unittest.mock import Mock

backend_dir = Path(__file__).resolve().parents[2]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from agents.execution.agent_loop import (
    AgentCancelledError,
    AgentTimeoutError,
    EmptyMessageError,
    GUIAgent,
    MAX_ITERATIONS_MESSAGE,
    informational_tools_predicate,
)
from agents.tools.gui_ops.action_executor import ActionExecutor
from agents.tools.gui_ops.gui_tools import build_gui_registry
from agents.tools.tool_registry import ToolRegistry, ToolResult, ToolSpec
from desktop_fakes import RecordingDesktop, ScriptedModel
from utils.cancellation_manager import RequestCancellation
from utils.provider_errors import ModelBackendError


def call(tool, **tool_input):
    return json.dumps({"tool": tool, "tool_input": tool_input})


def make_registry(*specs):
    registry = ToolRegistry()
    for spec in specs:
        registry.register(spec)
    return registry


def echo_spec(name="echo", informational=False):
    return ToolSpec(
        name=name,
        description="Echo the input",
        fn=lambda params, ctx: ToolResult(output=f"echo {params.get('text', '')}"),
        informational=informational,
    )


class TestAgentLoopTermination(unittest.TestCase):
    """How the loop ends."""

    def test_plain_text_is_returned_directly(self):
        model = ScriptedModel(["All done."])
        agent = GUIAgent(model, make_registry(echo_spec()))
        self.assertEqual(agent.process_message("hello"), "All done.")
        self.assertEqual(len(model.calls), 1)

    def test_seed_conversation(self):
        model = ScriptedModel(["ok"])
        agent = GUIAgent(model, make_registry(echo_spec()))
        agent.process_message("open the browser")
        system_prompt, messages = model.calls[0]
        self.assertIn("echo", system_prompt)
        self.assertEqual(messages, [{"role": "human", "content": "open the browser"}])

    def test_empty_message_rejected_before_model_call(self):
        model = ScriptedModel([])
        agent = GUIAgent(model, make_registry(echo_spec()))
        for message in ("", "   ", None):
            with self.subTest(message=message):
                with self.assertRaises(EmptyMessageError):
                    agent.process_message(message)
        self.assertEqual(model.calls, [])

    def test_ten_iteration_budget(self):
        model = ScriptedModel([call("echo", text="again")], repeat_last=True)
        agent = GUIAgent(model, make_registry(echo_spec()))
        self.assertEqual(agent.process_message("loop forever"), MAX_ITERATIONS_MESSAGE)
        self.assertEqual(len(model.calls), 10)

    def test_unknown_tool_repeated_stops_after_ten_iterations(self):
        model = ScriptedModel([call("teleport")], repeat_last=True)
        agent = GUIAgent(model, make_registry(echo_spec()))
        self.assertEqual(agent.process_message("go"), MAX_ITERATIONS_MESSAGE)
        self.assertEqual(len(model.calls), 10)
        _, messages = model.calls[-1]
        self.assertEqual(messages[-1]["content"], "Tool teleport does not exist. Available tools: echo")

    def test_custom_budget(self):
        model = ScriptedModel([call("echo")], repeat_last=True)
        agent = GUIAgent(model, make_registry(echo_spec()), max_iterations=3)
        self.assertEqual(agent.process_message("x"), MAX_ITERATIONS_MESSAGE)
        self.assertEqual(len(model.calls), 3)

    def test_invalid_budget_rejected(self):
        with self.assertRaises(ValueError):
            GUIAgent(ScriptedModel([]), make_registry(), max_iterations=0)


class TestAgentLoopFeedback(unittest.TestCase):
    """Messages fed back to the model."""

    def test_tool_result_fed_back(self):
        model = ScriptedModel([call("echo", text="hi"), "finished"])
        agent = GUIAgent(model, make_registry(echo_spec()))
        self.assertEqual(agent.process_message("say hi"), "finished")
        _, messages = model.calls[1]
        self.assertEqual(messages[-2], {"role": "assistant", "content": call("echo", text="hi")})
        self.assertEqual(messages[-1], {"role": "human", "content": "Tool 'echo' returned: echo hi"})

    def test_unknown_tool_lists_all_tools(self):
        model = ScriptedModel([call("teleport"), "giving up"])
        agent = GUIAgent(model, make_registry(echo_spec("echo"), echo_spec("alpha"), echo_spec("zulu")))
        self.assertEqual(agent.process_message("go"), "giving up")
        feedback = model.calls[1][1][-1]["content"]
        self.assertTrue(feedback.startswith("Tool 'teleport' does not exist. Available tools:"))
        for name in ("alpha", "echo", "zulu"):
            self.assertIn(name, feedback)

    def test_tool_failure_fed_back(self):
        failing = ToolSpec(name="broken", description="Always fails",
                           fn=Mock(side_effect=RuntimeError("device busy")))
        model = ScriptedModel([call("broken"), "sorry"])
        agent = GUIAgent(model, make_registry(failing))
        self.assertEqual(agent.process_message("do it"), "sorry")
        feedback = model.calls[1][1][-1]["content"]
        self.assertEqual(feedback, "Tool execution failed: device busy. Please try again.")

    def test_decode_error_fed_back(self):
        desktop = RecordingDesktop()
        registry = build_gui_registry(ActionExecutor(desktop, platform_name="Linux", device_lock=threading.Lock()))
        model = ScriptedModel([call("move_mouse"), "could not move"])
        agent = GUIAgent(model, registry)
        self.assertEqual(agent.process_message("move"), "could not move")
        feedback = model.calls[1][1][-1]["content"]
        self.assertTrue(feedback.startswith("Tool execution failed: ActionDecodeError:"))
        self.assertIn("coordinates", feedback)
        self.assertEqual(desktop.calls, [])


class TestAgentLoopEndToEnd(unittest.TestCase):
    """Real GUI tools against a recording desktop."""

    def test_type_text_end_to_end(self):
        desktop = RecordingDesktop()
        registry = build_gui_registry(ActionExecutor(desktop, platform_name="Linux", device_lock=threading.Lock()))
        model = ScriptedModel([call("type_text", text="hello"), "Typed hello."])
        agent = GUIAgent(model, registry)

        self.assertEqual(agent.process_message("type hello"), "Typed hello.")
        self.assertEqual(desktop.calls, [("type_text", "hello", 0.0)])
        feedback = model.calls[1][1][-1]["content"]
        self.assertEqual(feedback, "Tool 'type_text' returned: Action 'type_text' executed successfully")

    def test_screenshot_result_text(self):
        desktop = RecordingDesktop(png=b"12345")
        registry = build_gui_registry(ActionExecutor(desktop, platform_name="Linux", device_lock=threading.Lock()))
        model = ScriptedModel([call("take_screenshot"), "done"])
        GUIAgent(model, registry).process_message("screenshot please")
        feedback = model.calls[1][1][-1]["content"]
        self.assertEqual(feedback, "Tool 'take_screenshot' returned: Screenshot captured successfully (base64 length: 8)")


class TestAgentLoopFinalAnswerPredicate(unittest.TestCase):
    """Short-circuiting on tool results."""

    def test_default_never_short_circuits(self):
        model = ScriptedModel([call("lookup"), "answer"])
        agent = GUIAgent(model, make_registry(echo_spec("lookup", informational=True)))
        self.assertEqual(agent.process_message("what?"), "answer")

    def test_informational_predicate_returns_tool_result(self):
        registry = make_registry(echo_spec("lookup", informational=True), echo_spec("act"))
        model = ScriptedModel([call("act", text="1"), call("lookup", text="screen"), "unused"])
        agent = GUIAgent(model, registry, final_answer_predicate=informational_tools_predicate(registry))
        self.assertEqual(agent.process_message("describe"), "echo screen")
        self.assertEqual(len(model.calls), 2)


class TestAgentLoopErrors(unittest.TestCase):
    """Fatal errors and aborts."""

    def test_model_error_is_fatal(self):
        model = Mock()
        model.complete.side_effect = ModelBackendError("connection refused", provider="ollama")
        agent = GUIAgent(model, make_registry(echo_spec()))
        with self.assertRaises(ModelBackendError):
            agent.process_message("hi")
        self.assertEqual(model.complete.call_count, 1)

    def test_unexpected_model_exception_wrapped(self):
        model = Mock()
        model.complete.side_effect = ConnectionError("reset")
        agent = GUIAgent(model, make_registry(echo_spec()))
        with self.assertRaisesRegex(ModelBackendError, "reset"):
            agent.process_message("hi")

    def test_empty_completion_is_fatal(self):
        agent = GUIAgent(ScriptedModel(["   "]), make_registry(echo_spec()))
        with self.assertRaisesRegex(ModelBackendError, "no response from LLM"):
            agent.process_message("hi")

    def test_timeout_before_model_call_carries_partial_response(self):
        now = [0.0]
        token = RequestCancellation(timeout=1.0, clock=lambda: now[0])

        def slow_echo(params, ctx):
            now[0] = 10.0
            return ToolResult(output="ok")

        model = ScriptedModel([call("slow"), "never reached"])
        agent = GUIAgent(model, make_registry(ToolSpec(name="slow", description="", fn=slow_echo)))
        with self.assertRaises(AgentTimeoutError) as ctx:
            agent.process_message("go", cancellation=token)
        self.assertEqual(ctx.exception.partial_response, call("slow"))
        self.assertEqual(len(model.calls), 1)
        self.assertEqual(ctx.exception.transcript[-1], {"role": "human", "content": "Tool 'slow' returned: ok"})

    def test_cancellation_inside_tool_is_not_relayed(self):
        token = RequestCancellation()

        class CancellingDesktop(RecordingDesktop):
            def click(self, button):
                super().click(button)
                token.cancel()

        desktop = CancellingDesktop()
        registry = build_gui_registry(ActionExecutor(desktop, platform_name="Linux", device_lock=threading.Lock()))
        reply = call("click_mouse", clickCount=2)
        model = ScriptedModel([reply], repeat_last=True)
        with self.assertRaises(AgentCancelledError) as ctx:
            GUIAgent(model, registry).process_message("double click", cancellation=token)

        self.assertEqual(len(model.calls), 1)
        self.assertEqual(desktop.names().count("click"), 1)
        self.assertEqual(ctx.exception.partial_response, reply)
        self.assertFalse(any(
            message["content"].startswith("Tool execution failed") for message in ctx.exception.transcript
        ))


class TestAgentIntrospection(unittest.TestCase):
    """Tool listing for the HTTP layer."""

    def test_available_tools_and_capabilities(self):
        registry = build_gui_registry(ActionExecutor(RecordingDesktop(), platform_name="Linux"))
        agent = GUIAgent(ScriptedModel([]), registry)
        tools = agent.get_available_tools()
        self.assertEqual(tools, sorted(tools))
        for name in ("gui_control", "move_mouse", "click_mouse", "type_text", "take_screenshot"):
            self.assertIn(name, tools)
        capabilities = agent.get_capabilities()
        self.assertIn("click_mouse", capabilities["Mouse Control"])
        self.assertIn("type_text", capabilities["Keyboard Control"])


if __name__ == '__main__':
    unittest.main()
