# status: complete

from typing import Dict, List, Optional

import requests

from chat.providers.base import ChatProvider
from utils.logger import get_logger
from utils.provider_errors import ModelBackendError

logger = get_logger(__name__)


class Ollama(ChatProvider):
    """
    Local Ollama server (POST /api/chat, non-streaming)
    """

    name = "ollama"

    def __init__(self, host: str, model: str, timeout: float = 180.0, session: Optional[requests.Session] = None):
        super().__init__(model, timeout)
        self.host = host.rstrip("/")
        self._session = session or requests.Session()
        logger.info(f"Ollama provider configured ({self.host}, model={self.model})")

    def complete(self, system_prompt: str, messages: List[Dict[str, str]]) -> str:
        data = {
            "model": self.model,
            "messages": self.format_messages(system_prompt, messages),
            "stream": False,
        }

        try:
            response = self._session.post(f"{self.host}/api/chat", json=data, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except requests.RequestException as e:
            logger.error(f"[OLLAMA-ERROR] Request failed: {e}")
            raise ModelBackendError(f"Ollama request failed: {e}", provider=self.name) from e
        except ValueError as e:
            raise ModelBackendError(f"Ollama returned invalid JSON: {e}", provider=self.name) from e

        if isinstance(result, dict) and result.get("error"):
            raise ModelBackendError(f"Ollama error: {result['error']}", provider=self.name)

        message = result.get("message") if isinstance(result, dict) else None
        content = message.get("content", "") if isinstance(message, dict) else ""
        if not content or not content.strip():
            raise ModelBackendError("no response from LLM", provider=self.name)

        logger.debug(f"[OLLAMA-DONE] {len(content)} chars (eval_count={result.get('eval_count')})")
        return content
