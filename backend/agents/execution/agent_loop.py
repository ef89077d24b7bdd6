# status: complete

"""
Bounded tool-calling conversation loop for the GUI agent.

One process_message() call owns its conversation: it seeds it with the
system prompt and the user's message, then alternates model completions
and tool executions until the model answers in plain text, the iteration
budget runs out, or the request is cancelled or times out.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, List, Optional, Protocol

from agents.execution.tool_call_parser import parse_tool_call
from agents.prompts.gui_agent_prompt import build_system_prompt
from agents.tools.tool_registry import ToolExecutionContext, ToolRegistry, ToolResult
from utils.cancellation_manager import (
    RequestAbortedError,
    RequestCancellation,
    RequestTimeoutError,
)
from utils.error_formatter import ErrorFormatter
from utils.logger import get_logger
from utils.provider_errors import ModelBackendError

logger = get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 10
MAX_ITERATIONS_MESSAGE = "Unable to complete the request after maximum iterations"

ROLE_SYSTEM = "system"
ROLE_HUMAN = "human"
ROLE_ASSISTANT = "assistant"

Message = Dict[str, str]
FinalAnswerPredicate = Callable[[str, str], bool]


class ChatModel(Protocol):
    def complete(self, system_prompt: str, messages: List[Message]) -> str: ...


class AgentError(Exception):
    pass


class EmptyMessageError(AgentError):
    def __init__(self):
        super().__init__("message is required")


class AgentAbortedError(AgentError):
    """Request stopped early; carries what the model had said so far."""

    def __init__(self, message: str, partial_response: str = "", transcript: Optional[List[Message]] = None):
        super().__init__(message)
        self.partial_response = partial_response
        self.transcript = list(transcript or [])


class AgentTimeoutError(AgentAbortedError):
    pass


class AgentCancelledError(AgentAbortedError):
    pass


def never_final(tool_name: str, result: str) -> bool:
    return False


def informational_tools_predicate(registry: ToolRegistry) -> FinalAnswerPredicate:
    """Treat results of tools flagged informational as the final answer."""

    def _is_final(tool_name: str, result: str) -> bool:
        spec = registry.lookup(tool_name)
        return spec is not None and spec.informational

    return _is_final


class GUIAgent:
    def __init__(
        self,
        model: ChatModel,
        registry: ToolRegistry,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        final_answer_predicate: Optional[FinalAnswerPredicate] = None,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self.model = model
        self.registry = registry.freeze()
        self.max_iterations = max_iterations
        self.final_answer_predicate = final_answer_predicate or never_final
        self.system_prompt = build_system_prompt(self.registry)

    def get_available_tools(self) -> List[str]:
        return self.registry.list()

    def get_capabilities(self) -> Dict[str, List[str]]:
        return self.registry.categories()

    def process_message(self, message: str, cancellation: Optional[RequestCancellation] = None) -> str:
        if not isinstance(message, str) or not message.strip():
            raise EmptyMessageError()

        request_id = cancellation.request_id if cancellation is not None else None
        conversation: List[Message] = [
            {"role": ROLE_SYSTEM, "content": self.system_prompt},
            {"role": ROLE_HUMAN, "content": message},
        ]
        last_assistant = ""
        started = time.monotonic()
        logger.info(f"[LOOP-START] request={request_id} max_iterations={self.max_iterations}")

        for iteration in range(1, self.max_iterations + 1):
            self._check(cancellation, last_assistant, conversation)

            text = self._complete(conversation)
            conversation.append({"role": ROLE_ASSISTANT, "content": text})
            last_assistant = text

            call = parse_tool_call(text)
            if call is None:
                logger.info(
                    f"[LOOP-DONE] request={request_id} final answer after {iteration} iteration(s) "
                    f"({time.monotonic() - started:.2f}s)"
                )
                return text

            spec = self.registry.lookup(call.tool)
            if spec is None:
                logger.warning(f"[LOOP-TOOL] Unknown tool '{call.tool}' requested (iteration {iteration})")
                conversation.append({
                    "role": ROLE_HUMAN,
                    "content": f"Tool '{call.tool}' does not exist. Available tools: {', '.join(self.registry.list())}",
                })
                continue

            logger.info(f"[LOOP-TOOL] Iteration {iteration}: {call.tool} {call.tool_input}")
            try:
                result = spec.fn(call.tool_input, ToolExecutionContext(request_id=request_id, cancellation=cancellation))
            except RequestAbortedError as e:
                raise self._aborted(e, last_assistant, conversation) from e
            except Exception as e:
                logger.warning(f"[LOOP-TOOL] {call.tool} failed: {ErrorFormatter.describe_error(e)}")
                conversation.append({
                    "role": ROLE_HUMAN,
                    "content": f"Tool execution failed: {ErrorFormatter.describe_error(e)}. Please try again.",
                })
                continue

            output = result.output if isinstance(result, ToolResult) else result
            output = output if isinstance(output, str) else str(output)

            if self.final_answer_predicate(call.tool, output):
                logger.info(f"[LOOP-DONE] request={request_id} returning {call.tool} result as final answer")
                return output

            conversation.append({"role": ROLE_HUMAN, "content": f"Tool '{call.tool}' returned: {output}"})

        logger.warning(f"[LOOP-BUDGET] request={request_id} exhausted {self.max_iterations} iterations")
        return MAX_ITERATIONS_MESSAGE

    def _complete(self, conversation: List[Message]) -> str:
        try:
            text = self.model.complete(self.system_prompt, conversation[1:])
        except ModelBackendError:
            raise
        except Exception as e:
            raise ModelBackendError(ErrorFormatter.format_error_message(e, "Model completion")) from e

        if not isinstance(text, str) or not text.strip():
            raise ModelBackendError("no response from LLM")
        return text

    def _check(self, cancellation: Optional[RequestCancellation], last_assistant: str, conversation: List[Message]):
        if cancellation is None:
            return
        try:
            cancellation.check()
        except RequestAbortedError as e:
            raise self._aborted(e, last_assistant, conversation) from e

    @staticmethod
    def _aborted(error: RequestAbortedError, last_assistant: str, conversation: List[Message]) -> AgentAbortedError:
        error_cls = AgentTimeoutError if isinstance(error, RequestTimeoutError) else AgentCancelledError
        logger.warning(f"[LOOP-ABORT] {error}")
        return error_cls(str(error), partial_response=last_assistant, transcript=conversation)
