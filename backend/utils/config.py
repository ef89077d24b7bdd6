# status: complete

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from utils.logger import get_logger

load_dotenv()

logger = get_logger(__name__)


class Config:
    """Configuration class for GUI agent settings.

    Class attributes hold the defaults; every getter consults the
    environment first so a restarted process picks up new values.
    """

    DEFAULT_PROVIDER = "ollama"
    AVAILABLE_PROVIDERS = ["ollama", "openai"]

    DEFAULT_OLLAMA_HOST = "http://127.0.0.1:11434"
    DEFAULT_OLLAMA_MODEL = "llama3.2"

    DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

    DEFAULT_MODEL_TIMEOUT = 180.0

    DEFAULT_MAX_ITERATIONS = 10

    # Unbounded: GUI tasks can legitimately run for a long time
    DEFAULT_REQUEST_TIMEOUT: Optional[float] = None

    DEFAULT_VISUAL_ANALYSER_URL = "http://127.0.0.1:8081"
    DEFAULT_VISUAL_ANALYSER_TIMEOUT = 30.0

    DEFAULT_RETURN_INFORMATIONAL_RESULTS = False

    DEFAULT_PORT = 8080
    DEFAULT_CORS_ORIGINS = "*"

    @classmethod
    def _get_float(cls, env_key: str, default: Optional[float]) -> Optional[float]:
        raw = os.getenv(env_key)
        if raw is None or raw.strip() == "":
            return default
        try:
            return float(raw)
        except ValueError:
            logger.warning("Ignoring non-numeric value for %s: %r", env_key, raw)
            return default

    @classmethod
    def _get_int(cls, env_key: str, default: int) -> int:
        raw = os.getenv(env_key)
        if raw is None or raw.strip() == "":
            return default
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring non-integer value for %s: %r", env_key, raw)
            return default

    @classmethod
    def _get_bool(cls, env_key: str, default: bool) -> bool:
        raw = os.getenv(env_key)
        if raw is None or raw.strip() == "":
            return default
        return raw.strip().lower() in ("1", "true", "yes", "on")

    @classmethod
    def get_provider(cls) -> str:
        """Get the model provider name, validated against available providers."""
        provider = os.getenv("GUI_AGENT_PROVIDER", cls.DEFAULT_PROVIDER).strip().lower()
        if provider in cls.AVAILABLE_PROVIDERS:
            return provider
        logger.warning("Unknown provider %r, falling back to %s", provider, cls.DEFAULT_PROVIDER)
        return cls.DEFAULT_PROVIDER

    @classmethod
    def get_ollama_host(cls) -> str:
        return os.getenv("OLLAMA_HOST") or cls.DEFAULT_OLLAMA_HOST

    @classmethod
    def get_ollama_model(cls) -> str:
        return os.getenv("OLLAMA_MODEL") or cls.DEFAULT_OLLAMA_MODEL

    @classmethod
    def get_openai_api_key(cls) -> Optional[str]:
        return os.getenv("OPENAI_API_KEY")

    @classmethod
    def get_openai_base_url(cls) -> str:
        return os.getenv("OPENAI_BASE_URL") or cls.DEFAULT_OPENAI_BASE_URL

    @classmethod
    def get_openai_model(cls) -> str:
        return os.getenv("OPENAI_MODEL") or cls.DEFAULT_OPENAI_MODEL

    @classmethod
    def get_model_timeout(cls) -> float:
        """HTTP timeout (seconds) for one model completion."""
        return cls._get_float("GUI_AGENT_MODEL_TIMEOUT", cls.DEFAULT_MODEL_TIMEOUT)

    @classmethod
    def get_max_iterations(cls) -> int:
        value = cls._get_int("GUI_AGENT_MAX_ITERATIONS", cls.DEFAULT_MAX_ITERATIONS)
        if value < 1:
            logger.warning("GUI_AGENT_MAX_ITERATIONS must be >= 1, using %d", cls.DEFAULT_MAX_ITERATIONS)
            return cls.DEFAULT_MAX_ITERATIONS
        return value

    @classmethod
    def get_request_timeout(cls) -> Optional[float]:
        """Per-request deadline in seconds; None means unbounded."""
        value = cls._get_float("GUI_AGENT_REQUEST_TIMEOUT", cls.DEFAULT_REQUEST_TIMEOUT)
        if value is None or value <= 0:
            return None
        return value

    @classmethod
    def get_file_sandbox_root(cls) -> Path:
        """Directory that relative read_file/write_file paths resolve against."""
        configured = os.getenv("GUI_AGENT_FILE_SANDBOX")
        if configured:
            return Path(configured).expanduser()
        return Path.home() / "Desktop"

    @classmethod
    def get_visual_analyser_url(cls) -> Optional[str]:
        """Visual analyser base URL; an empty value disables the vision tools."""
        raw = os.getenv("VISUAL_ANALYSER_URL")
        if raw is None:
            return cls.DEFAULT_VISUAL_ANALYSER_URL
        raw = raw.strip()
        return raw.rstrip("/") if raw else None

    @classmethod
    def get_visual_analyser_timeout(cls) -> float:
        return cls._get_float("VISUAL_ANALYSER_TIMEOUT", cls.DEFAULT_VISUAL_ANALYSER_TIMEOUT)

    @classmethod
    def get_return_informational_results(cls) -> bool:
        """Whether informational tool results end the loop immediately."""
        return cls._get_bool("GUI_AGENT_RETURN_INFORMATIONAL_RESULTS", cls.DEFAULT_RETURN_INFORMATIONAL_RESULTS)

    @classmethod
    def get_port(cls) -> int:
        return cls._get_int("PORT", cls.DEFAULT_PORT)

    @classmethod
    def get_cors_origins(cls) -> List[str]:
        raw = os.getenv("CORS_ORIGINS", cls.DEFAULT_CORS_ORIGINS)
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    @classmethod
    def get_defaults(cls) -> Dict[str, Any]:
        """Get every effective setting as a dictionary."""
        return {
            "provider": cls.get_provider(),
            "ollama_host": cls.get_ollama_host(),
            "ollama_model": cls.get_ollama_model(),
            "openai_base_url": cls.get_openai_base_url(),
            "openai_model": cls.get_openai_model(),
            "model_timeout": cls.get_model_timeout(),
            "max_iterations": cls.get_max_iterations(),
            "request_timeout": cls.get_request_timeout(),
            "file_sandbox_root": str(cls.get_file_sandbox_root()),
            "visual_analyser_url": cls.get_visual_analyser_url(),
            "return_informational_results": cls.get_return_informational_results(),
            "port": cls.get_port(),
            "cors_origins": cls.get_cors_origins(),
        }
