"""
LLM Module
==========

Pluggable generation services used by the pipeline stages.
"""

from dealer_query.llm.base import LLMInterface, parse_json_object, strip_code_fences
from dealer_query.llm.mock import MockLLM
from dealer_query.llm.openai_llm import OpenAILLM

__all__ = [
    "LLMInterface",
    "MockLLM",
    "OpenAILLM",
    "parse_json_object",
    "strip_code_fences",
]
