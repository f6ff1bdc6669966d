"""OpenAI chat completions backend."""

import logging
import os

from openai import APIConnectionError, APIError, APITimeoutError, OpenAI

from .base import LLMBackend

logger = logging.getLogger(__name__)


class OpenAIBackend(LLMBackend):
    """Chat completions through the official client.

    Environment:
        OPENAI_API_KEY: required unless api_key is passed
        OPENAI_BASE_URL: optional, for Azure or compatible gateways
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 120,
        temperature: float = 0.0,
    ) -> None:
        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY is not set; cannot use the openai backend with MOCK_LLM=false")

        self.model = model
        self.temperature = temperature
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url or os.environ.get("OPENAI_BASE_URL") or None,
            timeout=timeout,
            max_retries=0,
        )

    @property
    def name(self) -> str:
        return "openai"

    def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        json_mode: bool = False,
    ) -> str:
        options = {"response_format": {"type": "json_object"}} if json_mode else {}
        try:
            completion = self._client.chat.completions.create(
                model=model or self.model,
                messages=messages,
                temperature=self.temperature,
                **options,
            )
        except APITimeoutError as e:
            raise TimeoutError(f"OpenAI request timed out: {e}") from e
        except APIConnectionError as e:
            raise ConnectionError(f"Could not reach OpenAI: {e}") from e
        except APIError as e:
            raise RuntimeError(f"OpenAI rejected the request: {e}") from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise RuntimeError("OpenAI returned an empty reply")
        if completion.usage is not None:
            logger.debug("OpenAI usage: %d prompt / %d completion tokens",
                         completion.usage.prompt_tokens, completion.usage.completion_tokens)
        return content
