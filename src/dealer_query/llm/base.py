"""
Base LLM Interface
==================

Abstract interface for the generation service shared by every stage.
"""

import json
import re
from abc import ABC, abstractmethod

from dealer_query.exceptions import MalformedOutputError
from dealer_query.models import LLMResponse


class LLMInterface(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            prompt: The user prompt carrying the request's data
            system_prompt: Optional fixed instruction header for the stage
            temperature: Optional sampling temperature override
            max_tokens: Optional response length cap

        Returns:
            LLMResponse with generated content

        Raises:
            GenerationError: If the provider call fails or times out
        """
        pass


_FENCE_PATTERN = re.compile(r"```[a-zA-Z]*\s*\n?|```")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around model output."""
    return _FENCE_PATTERN.sub("", text).strip()


def parse_json_object(text: str | None) -> dict:
    """
    Parse the JSON object a stage asked the model for.

    Tolerates code fences and prose around the object.

    Raises:
        MalformedOutputError: If the text is empty, truncated or not an object
    """
    if not text or not text.strip():
        raise MalformedOutputError("Empty response from generation service")

    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise MalformedOutputError(f"Response is not JSON: {cleaned[:80]!r}")
        try:
            data = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            raise MalformedOutputError(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedOutputError(f"Expected a JSON object, got {type(data).__name__}")
    return data
