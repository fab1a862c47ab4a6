"""LLM provider clients for the AI fallback chain"""
from typing import Optional

import httpx

from .base import PROVIDER_COSTS, BaseLLMClient, LLMCompletion, calculate_cost
from .cohere_client import CohereClient
from .gemini_client import GeminiClient
from .openai_compatible import CHAT_PROVIDERS, OpenAICompatibleClient

# Default fallback order when a user has no provider settings
PROVIDER_ORDER = (
    "groq",
    "deepseek",
    "together",
    "mistral",
    "perplexity",
    "gemini",
    "cohere",
    "openai",
)


def build_client(
    provider: str,
    api_key: str,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BaseLLMClient:
    if provider == "gemini":
        return GeminiClient(api_key, timeout=timeout, transport=transport)
    if provider == "cohere":
        return CohereClient(api_key, timeout=timeout, transport=transport)
    return OpenAICompatibleClient(provider, api_key, timeout=timeout, transport=transport)


__all__ = [
    "BaseLLMClient",
    "CHAT_PROVIDERS",
    "CohereClient",
    "GeminiClient",
    "LLMCompletion",
    "OpenAICompatibleClient",
    "PROVIDER_COSTS",
    "PROVIDER_ORDER",
    "build_client",
    "calculate_cost",
]
