"""
Mock LLM
========

Mock LLM implementation for testing and offline demonstration.
"""

from dealer_query.llm.base import LLMInterface
from dealer_query.models import LLMResponse


class MockLLM(LLMInterface):
    """
    Mock LLM returning canned responses.

    In production, replace with OpenAILLM or another provider.
    """

    def __init__(
        self,
        responses: dict[str, list[str]] | None = None,
        failures: dict[str, BaseException] | None = None,
        default: str = "",
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Dict mapping prompt substrings to a list of responses.
                       Each response is returned in sequence, the last one
                       repeating once the list is exhausted.
            failures: Dict mapping prompt substrings to an exception to raise,
                      used to simulate timeouts and provider outages.
            default: Content returned when nothing matches.
        """
        self.responses = responses or {}
        self.failures = failures or {}
        self.default = default
        self.call_counts: dict[str, int] = {}
        self.prompts: list[str] = []

    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Generate a mock response.

        Failures are checked before responses so a single mock can break one
        stage while serving the others.
        """
        self.prompts.append(prompt)
        lowered = prompt.lower()

        for key, error in self.failures.items():
            if key.lower() in lowered:
                raise error

        for key, attempts in self.responses.items():
            if key.lower() in lowered:
                count = self.call_counts.get(key, 0)
                self.call_counts[key] = count + 1
                attempt_idx = min(count, len(attempts) - 1)
                return LLMResponse(content=attempts[attempt_idx], model="mock-llm-v1")

        return LLMResponse(content=self.default, model="mock-llm-v1")

    def reset(self) -> None:
        """Reset call counts and recorded prompts for fresh test runs."""
        self.call_counts = {}
        self.prompts = []
