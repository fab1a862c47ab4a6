"""Cohere legacy generate endpoint client"""
from __future__ import annotations

from typing import Optional

from .base import BaseLLMClient, LLMCompletion

DEFAULT_MAX_TOKENS = 1000


class CohereClient(BaseLLMClient):
    provider_name = "cohere"
    default_model = "command"
    default_endpoint = "https://api.cohere.ai/v1/generate"

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMCompletion:
        text = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        payload = {
            "model": self.model,
            "prompt": text,
            "temperature": temperature,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
        }

        with self._track_execution() as tracker:
            data = await self._post(self.endpoint, payload, {"Authorization": f"Bearer {self.api_key}"})

        generations = data.get("generations") or [{}]
        billed = (data.get("meta") or {}).get("billed_units") or {}
        return self._build_completion(
            generations[0].get("text") or "",
            billed.get("input_tokens", 0),
            billed.get("output_tokens", 0),
            tracker.execution_ms,
        )
