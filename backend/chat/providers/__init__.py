# status: complete

from utils.config import Config

from .base import ChatProvider
from .ollama import Ollama
from .openai_compat import OpenAICompatible


def create_provider(provider: str = None) -> ChatProvider:
    """Build the configured model backend"""
    provider = provider or Config.get_provider()
    timeout = Config.get_model_timeout()
    if provider == "openai":
        return OpenAICompatible(
            base_url=Config.get_openai_base_url(),
            model=Config.get_openai_model(),
            api_key=Config.get_openai_api_key(),
            timeout=timeout,
        )
    if provider == "ollama":
        return Ollama(host=Config.get_ollama_host(), model=Config.get_ollama_model(), timeout=timeout)
    raise ValueError(f"Unknown provider: {provider}")


__all__ = ['ChatProvider', 'Ollama', 'OpenAICompatible', 'create_provider']
