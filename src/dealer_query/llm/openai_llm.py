"""
OpenAI LLM
==========

Chat-completions provider for production use.
"""

import openai
from openai import OpenAI

from dealer_query.exceptions import GenerationError
from dealer_query.llm.base import LLMInterface
from dealer_query.models import LLMResponse


class OpenAILLM(LLMInterface):
    """Generation service backed by the OpenAI chat completions API."""

    def __init__(
        self,
        model: str = "gpt-3.5-turbo",
        api_key: str | None = None,
        timeout: float = 30.0,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        # No retries: a failed call falls back at the stage boundary
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        try:
            completion = self.client.chat.completions.create(
                model=self.model, messages=messages, **kwargs
            )
        except openai.APITimeoutError as e:
            raise GenerationError(f"Generation timed out: {e}") from e
        except openai.OpenAIError as e:
            raise GenerationError(f"Generation failed: {e}") from e

        content = completion.choices[0].message.content or ""
        tokens = completion.usage.total_tokens if completion.usage else 0
        return LLMResponse(content=content.strip(), model=completion.model, tokens_used=tokens)
