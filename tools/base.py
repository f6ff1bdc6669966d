"""Base tool interface for enrichment operations."""

from abc import ABC, abstractmethod
from typing import Any

from schemas.progress import ToolCall


class BaseTool(ABC):
    """Abstract base class for all tools.

    Tools are the external operations the enrichment step invokes. Each call
    is surfaced to the client as a tool-call event, built from the tool's
    name and description.
    """

    name: str = "base_tool"
    description: str = "Base tool interface"

    @abstractmethod
    async def execute(self, **kwargs: Any) -> Any:
        """Execute the tool operation.

        Args:
            **kwargs: Tool-specific parameters

        Returns:
            Tool-specific output

        Raises:
            WorkflowError: On invalid input or upstream failure
        """
        ...

    def tool_call(self, description: str | None = None) -> ToolCall:
        """Describe one invocation for the progress stream."""
        return ToolCall(name=self.name, description=description or self.description)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
