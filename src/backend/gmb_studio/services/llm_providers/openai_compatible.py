"""Chat-completions client shared by every OpenAI-compatible provider"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from .base import BaseLLMClient, LLMCompletion

# provider -> (endpoint, default model)
CHAT_PROVIDERS: dict[str, tuple[str, str]] = {
    "groq": ("https://api.groq.com/openai/v1/chat/completions", "llama-3.1-70b-versatile"),
    "deepseek": ("https://api.deepseek.com/chat/completions", "deepseek-chat"),
    "together": ("https://api.together.xyz/v1/chat/completions", "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo"),
    "mistral": ("https://api.mistral.ai/v1/chat/completions", "mistral-large-latest"),
    "perplexity": ("https://api.perplexity.ai/chat/completions", "sonar"),
    "openai": ("https://api.openai.com/v1/chat/completions", "gpt-4o-mini"),
}


class OpenAICompatibleClient(BaseLLMClient):
    def __init__(
        self,
        provider: str,
        api_key: str,
        model: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if provider not in CHAT_PROVIDERS:
            raise ValueError(f"Unknown chat provider: {provider}")
        self.provider_name = provider
        self.default_endpoint, self.default_model = CHAT_PROVIDERS[provider]
        super().__init__(api_key, model, endpoint, timeout, transport)

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMCompletion:
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload: dict[str, Any] = {"model": self.model, "messages": messages, "temperature": temperature}
        if max_tokens:
            payload["max_tokens"] = max_tokens

        with self._track_execution() as tracker:
            data = await self._post(self.endpoint, payload, {"Authorization": f"Bearer {self.api_key}"})

        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        usage = data.get("usage") or {}
        return self._build_completion(
            content,
            usage.get("prompt_tokens", 0),
            usage.get("completion_tokens", 0),
            tracker.execution_ms,
        )
