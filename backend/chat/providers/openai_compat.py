# status: complete

from typing import Dict, List, Optional

import requests

from chat.providers.base import ChatProvider
from utils.logger import get_logger
from utils.provider_errors import ModelBackendError

logger = get_logger(__name__)


class OpenAICompatible(ChatProvider):
    """
    Any endpoint speaking the OpenAI chat-completions API
    """

    name = "openai"

    def __init__(self, base_url: str, model: str, api_key: Optional[str] = None, timeout: float = 180.0,
                 session: Optional[requests.Session] = None):
        super().__init__(model, timeout)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._session = session or requests.Session()
        if not api_key:
            logger.warning("OpenAI-compatible provider has no API key; requests are sent unauthenticated")

    def complete(self, system_prompt: str, messages: List[Dict[str, str]]) -> str:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        data = {
            "model": self.model,
            "messages": self.format_messages(system_prompt, messages),
        }

        try:
            response = self._session.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=data,
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except requests.RequestException as e:
            logger.error(f"[OPENAI-ERROR] Request failed: {e}")
            raise ModelBackendError(f"Chat completion request failed: {e}", provider=self.name) from e
        except ValueError as e:
            raise ModelBackendError(f"Chat completion returned invalid JSON: {e}", provider=self.name) from e

        choices = result.get("choices") if isinstance(result, dict) else None
        if not choices:
            raise ModelBackendError("no response from LLM", provider=self.name)

        content = (choices[0].get("message") or {}).get("content") or ""
        if not content.strip():
            raise ModelBackendError("no response from LLM", provider=self.name)

        usage = result.get("usage") or {}
        logger.debug(f"[OPENAI-DONE] {len(content)} chars (total_tokens={usage.get('total_tokens')})")
        return content
