"""LLM backends for profile extraction.

Only consulted when MOCK_LLM is off; the mock extractor never needs one.
"""

import logging

from .base import LLMBackend

logger = logging.getLogger(__name__)

BACKENDS = ("openai",)

__all__ = [
    "BACKENDS",
    "LLMBackend",
    "get_backend",
]


def get_backend(kind: str = "auto", **kwargs) -> LLMBackend:
    """Build the backend named in the [llm] config section.

    Args:
        kind: "auto" or one of BACKENDS
        **kwargs: Passed to the backend (model, timeout, temperature, ...)

    Raises:
        ValueError: Unknown kind, or the backend is missing its credentials
    """
    if kind == "auto":
        kind = BACKENDS[0]
        logger.debug("LLM backend auto-selected: %s", kind)

    if kind == "openai":
        from .openai_backend import OpenAIBackend

        return OpenAIBackend(**kwargs)

    raise ValueError(f"Unknown LLM backend {kind!r}; expected auto or one of {', '.join(BACKENDS)}")
