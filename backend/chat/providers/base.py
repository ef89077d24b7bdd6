# status: complete

from typing import Dict, List

# Conversation roles used by the agent loop, mapped to chat-API roles
ROLE_MAP = {
    "system": "system",
    "human": "user",
    "assistant": "assistant",
}


class ChatProvider:
    """Base class for model backends used by the agent loop"""

    name = "base"

    def __init__(self, model: str, timeout: float):
        self.model = model
        self.timeout = timeout

    def format_messages(self, system_prompt: str, messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
        formatted = [{"role": "system", "content": system_prompt}]
        for message in messages:
            role = ROLE_MAP.get(message.get("role"), "user")
            formatted.append({"role": role, "content": message.get("content", "")})
        return formatted

    def complete(self, system_prompt: str, messages: List[Dict[str, str]]) -> str:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}(model={self.model!r})"
