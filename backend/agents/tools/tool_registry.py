from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from utils.cancellation_manager import RequestCancellation
from utils.logger import get_logger


@dataclass
class ToolExecutionContext:
    """Execution context passed to tools."""

    request_id: Optional[str] = None
    cancellation: Optional[RequestCancellation] = None


@dataclass
class ToolResult:
    """Standardised return type for tools. `output` is the text fed back to the model."""

    output: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolSpec:
    """Specification and callable for a tool."""

    name: str
    description: str
    fn: Callable[[Dict[str, Any], ToolExecutionContext], ToolResult]
    in_schema: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    category: str = "General"
    # Tools whose result answers a question rather than changing the screen
    informational: bool = False


class RegistryFrozenError(RuntimeError):
    pass


class ToolRegistry:
    """Registry of the tools one agent may call. Frozen before the loop runs."""

    def __init__(self):
        self._tools: Dict[str, ToolSpec] = {}
        self._frozen = False
        self._logger = get_logger(__name__)

    def register(self, spec: ToolSpec) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {spec.name}: registry is frozen")
        if spec.name in self._tools:
            self._logger.warning("Tool %s already registered, overwriting", spec.name)
        self._tools[spec.name] = spec
        self._logger.debug("Registered tool %s (%s)", spec.name, spec.category)

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def list(self) -> List[str]:
        return sorted(self._tools.keys())

    def get_all_tools(self) -> List[ToolSpec]:
        return [self._tools[name] for name in self.list()]

    def categories(self) -> Dict[str, List[str]]:
        """Tool names grouped by category, both levels sorted."""
        grouped: Dict[str, List[str]] = {}
        for spec in self.get_all_tools():
            grouped.setdefault(spec.category, []).append(spec.name)
        return {category: grouped[category] for category in sorted(grouped)}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
