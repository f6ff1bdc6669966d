"""Abstract base class for LLM backends."""

from abc import ABC, abstractmethod


class LLMBackend(ABC):
    """A hosted chat model.

    Profile extraction is the only consumer: it sends a system and a user
    message and expects the reply text, optionally constrained to a single
    JSON object. Parsing and validation of that object stay with the caller.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for logs."""
        ...

    @abstractmethod
    def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        json_mode: bool = False,
    ) -> str:
        """Return the model's reply to a conversation.

        Args:
            messages: Dicts with "role" ("system", "user", "assistant") and "content"
            model: Model override for this call
            json_mode: Ask the provider for a JSON object reply

        Raises:
            ConnectionError: The provider could not be reached
            TimeoutError: The request timed out
            RuntimeError: The provider rejected the request or replied with nothing
        """
        ...
