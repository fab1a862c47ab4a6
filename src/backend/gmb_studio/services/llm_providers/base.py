"""Base LLM Client Interface"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from gmb_studio.core.errors import LLMProviderError

# USD per 1K tokens (input, output)
PROVIDER_COSTS: dict[str, tuple[float, float]] = {
    "groq": (0.0, 0.0),
    "deepseek": (0.00014, 0.00028),
    "together": (0.0006, 0.0006),
    "gemini": (0.00025, 0.0005),
    "cohere": (0.0015, 0.0015),
    "mistral": (0.0002, 0.0006),
    "perplexity": (0.0001, 0.0001),
    "openai": (0.00015, 0.0006),
}


def calculate_cost(provider: str, prompt_tokens: int, completion_tokens: int) -> float:
    input_price, output_price = PROVIDER_COSTS.get(provider, (0.0, 0.0))
    return (prompt_tokens / 1000) * input_price + (completion_tokens / 1000) * output_price


@dataclass
class LLMCompletion:
    """Unified result structure for all LLM providers"""

    content: str
    provider: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0
    latency_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "provider": self.provider,
            "model": self.model,
            "tokensUsed": {
                "prompt": self.prompt_tokens,
                "completion": self.completion_tokens,
                "total": self.total_tokens,
            },
            "cost": self.cost,
            "latency": self.latency_ms,
        }


class BaseLLMClient(ABC):
    """Abstract base class for LLM providers"""

    provider_name: str = "base"
    default_model: str = ""
    default_endpoint: str = ""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize LLM client

        Args:
            api_key: API key for the provider
            model: Model name to use, provider default when omitted
            endpoint: Optional custom endpoint URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.api_key = api_key
        self.model = model or self.default_model
        self.endpoint = endpoint or self.default_endpoint
        self.timeout = timeout
        self._transport = transport

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMCompletion:
        """
        Run one completion

        Returns:
            LLMCompletion with content, token usage and cost
        """

    async def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(url, json=payload, headers={"Content-Type": "application/json", **headers})
        if not response.is_success:
            raise LLMProviderError(self.provider_name, response.text, status_code=response.status_code)
        return response.json()

    def _build_completion(
        self,
        content: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int,
    ) -> LLMCompletion:
        prompt_tokens = int(prompt_tokens or 0)
        completion_tokens = int(completion_tokens or 0)
        return LLMCompletion(
            content=(content or "").strip(),
            provider=self.provider_name,
            model=self.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
            cost=calculate_cost(self.provider_name, prompt_tokens, completion_tokens),
            latency_ms=latency_ms,
        )

    def _track_execution(self):
        """Context manager to track execution time"""
        class ExecutionTracker:
            def __init__(self):
                self.start_time = 0.0
                self.execution_ms = 0

            def __enter__(self):
                self.start_time = time.perf_counter()
                return self

            def elapsed_ms(self) -> int:
                return int((time.perf_counter() - self.start_time) * 1000)

            def __exit__(self, exc_type, exc_val, exc_tb):
                self.execution_ms = self.elapsed_ms()

        return ExecutionTracker()
