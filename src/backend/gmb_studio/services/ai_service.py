"""AI Service for multi-provider text generation

Walks the user's provider chain in priority order and returns the first
non-empty completion. Every attempt is written to ``ai_requests`` so the
usage endpoint can report tokens and cost per provider.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.core.config import Settings, get_settings
from gmb_studio.core.errors import LLMProviderError
from gmb_studio.models import AIRequestLog, AISetting
from gmb_studio.services import ai_prompts
from gmb_studio.services.llm_providers import PROVIDER_ORDER, LLMCompletion, build_client

logger = logging.getLogger(__name__)

POST_TEMPERATURE = 0.7
REPLY_TEMPERATURE = 0.5
POST_MAX_TOKENS = 512
REPLY_MAX_TOKENS = 384


@dataclass
class CompletionRequest:
    prompt: str
    feature: str = "content_analysis"
    system_prompt: Optional[str] = None
    temperature: float = 0.7
    max_tokens: Optional[int] = None


class AIService:
    def __init__(
        self,
        session: Session,
        user_id: Optional[str],
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.session = session
        self.user_id = user_id
        self.settings = settings or get_settings()
        self.transport = transport

    def provider_chain(self) -> list[tuple[str, str]]:
        """(provider, api_key) pairs in the order they should be tried."""
        if self.user_id:
            rows = self.session.execute(
                select(AISetting)
                .where(AISetting.user_id == self.user_id, AISetting.is_active.is_(True))
                .order_by(AISetting.priority, AISetting.provider)
            ).scalars()
            configured = [(row.provider, row.api_key) for row in rows if row.api_key and row.provider in PROVIDER_ORDER]
            if configured:
                return configured

        chain = []
        for provider in PROVIDER_ORDER:
            key = self.settings.provider_api_key(provider)
            if key:
                chain.append((provider, key))
        return chain

    def _log_attempt(
        self,
        provider: str,
        model: str,
        feature: str,
        completion: Optional[LLMCompletion],
        success: bool,
        error: Optional[str] = None,
    ) -> None:
        entry = AIRequestLog(
            user_id=self.user_id,
            provider=provider,
            model=completion.model if completion else model,
            feature=feature,
            prompt_tokens=completion.prompt_tokens if completion else 0,
            completion_tokens=completion.completion_tokens if completion else 0,
            total_tokens=completion.total_tokens if completion else 0,
            cost_usd=completion.cost if completion else 0.0,
            latency_ms=completion.latency_ms if completion else 0,
            success=success,
            error_message=error,
        )
        self.session.add(entry)

    async def complete(self, request: CompletionRequest) -> Optional[LLMCompletion]:
        result: Optional[LLMCompletion] = None
        for provider, api_key in self.provider_chain():
            client = build_client(
                provider,
                api_key,
                timeout=self.settings.llm_timeout_seconds,
                transport=self.transport,
            )
            try:
                completion = await client.complete(
                    request.prompt,
                    system_prompt=request.system_prompt,
                    temperature=request.temperature,
                    max_tokens=request.max_tokens,
                )
            except (LLMProviderError, httpx.HTTPError, ValueError) as exc:
                logger.warning("%s failed for %s: %s", provider, request.feature, exc)
                self._log_attempt(provider, client.model, request.feature, None, False, str(exc)[:2000])
                continue

            if not completion.content:
                logger.warning("%s returned empty content for %s", provider, request.feature)
                self._log_attempt(provider, client.model, request.feature, completion, False, "Empty response")
                continue

            self._log_attempt(provider, client.model, request.feature, completion, True)
            result = completion
            break

        self.session.commit()
        if result is None:
            logger.info("No AI provider produced content for %s", request.feature)
        return result

    async def generate_post(self, topic: Optional[str], tone: str, language: str) -> dict[str, Any]:
        topic = (topic or "").strip() or ai_prompts.DEFAULT_TOPIC
        system, user = ai_prompts.post_prompts(topic, tone, language)
        completion = await self.complete(
            CompletionRequest(
                prompt=user,
                system_prompt=system,
                feature="post_generation",
                temperature=POST_TEMPERATURE,
                max_tokens=POST_MAX_TOKENS,
            )
        )
        if completion is None:
            return {"captions": ai_prompts.fallback_captions(topic, language), "provider": None}
        return {"captions": ai_prompts.split_suggestions(completion.content), "provider": completion.provider}

    async def suggest_reply(
        self,
        review: Optional[str],
        tone: str,
        language: str,
        customer_name: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> dict[str, Any]:
        name = (customer_name or "").strip()
        system, user = ai_prompts.reply_prompts((review or "").strip(), tone, language, name, rating)
        completion = await self.complete(
            CompletionRequest(
                prompt=user,
                system_prompt=system,
                feature="review_reply",
                temperature=REPLY_TEMPERATURE,
                max_tokens=REPLY_MAX_TOKENS,
            )
        )
        if completion is None:
            return {"suggestions": ai_prompts.fallback_suggestions(name, rating, language), "provider": None}
        return {"suggestions": ai_prompts.split_suggestions(completion.content), "provider": completion.provider}

    async def hashtags(self, caption: str, max_hashtags: int = 10) -> Optional[dict[str, Any]]:
        completion = await self.complete(
            CompletionRequest(
                prompt=ai_prompts.hashtag_prompt(caption, max_hashtags),
                feature="hashtag_generator",
                temperature=0.6,
                max_tokens=200,
            )
        )
        if completion is None:
            return None
        return {
            "hashtags": ai_prompts.parse_hashtags(completion.content, max_hashtags),
            "provider": completion.provider,
        }

    async def content_ideas(self, business_type: str, month: str) -> Optional[dict[str, Any]]:
        completion = await self.complete(
            CompletionRequest(
                prompt=ai_prompts.content_ideas_prompt(business_type, month),
                feature="content_ideas",
                temperature=0.8,
                max_tokens=400,
            )
        )
        if completion is None:
            return None
        return {"ideas": ai_prompts.parse_numbered_list(completion.content), "provider": completion.provider}
