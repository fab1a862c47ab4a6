"""Google Gemini LLM Client"""
from __future__ import annotations

from typing import Any, Optional

from .base import BaseLLMClient, LLMCompletion


class GeminiClient(BaseLLMClient):
    provider_name = "gemini"
    default_model = "gemini-1.5-flash"
    default_endpoint = "https://generativelanguage.googleapis.com/v1beta/models"

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMCompletion:
        # Gemini has no separate system role on this endpoint
        text = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        generation_config: dict[str, Any] = {"temperature": temperature}
        if max_tokens:
            generation_config["maxOutputTokens"] = max_tokens

        url = f"{self.endpoint}/{self.model}:generateContent?key={self.api_key}"
        payload = {
            "contents": [{"role": "user", "parts": [{"text": text}]}],
            "generationConfig": generation_config,
        }

        with self._track_execution() as tracker:
            data = await self._post(url, payload, {})

        candidates = data.get("candidates") or [{}]
        parts = (candidates[0].get("content") or {}).get("parts") or [{}]
        usage = data.get("usageMetadata") or {}
        return self._build_completion(
            parts[0].get("text") or "",
            usage.get("promptTokenCount", 0),
            usage.get("candidatesTokenCount", 0),
            tracker.execution_ms,
        )
