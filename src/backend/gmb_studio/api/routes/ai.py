from __future__ import annotations

import datetime as dt
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from gmb_studio.api import deps
from gmb_studio.core.auth import AuthUser
from gmb_studio.core.logging import mask_secret
from gmb_studio.models import AIRequestLog, AISetting
from gmb_studio.schemas.ai import (
    AISettingRead,
    AISettingUpdate,
    ContentIdeasRequest,
    ContentIdeasResponse,
    GeneratePostRequest,
    GeneratePostResponse,
    GenerateRequest,
    GenerateResponse,
    HashtagRequest,
    HashtagResponse,
    Provider,
    ProviderUsage,
    SuggestReplyRequest,
    SuggestReplyResponse,
    UsageResponse,
)
from gmb_studio.services.ai_service import AIService, CompletionRequest

router = APIRouter(prefix="/ai", tags=["ai"])

ALL_PROVIDERS_FAILED = "All AI providers failed"


def get_ai_service(
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(deps.get_llm_transport),
) -> AIService:
    return AIService(db, user.subject, transport=transport)


def _unavailable() -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=ALL_PROVIDERS_FAILED)


@router.post("/generate-post", response_model=GeneratePostResponse)
async def generate_post(
    payload: GeneratePostRequest,
    service: AIService = Depends(get_ai_service),
) -> GeneratePostResponse:
    result = await service.generate_post(payload.topic, payload.tone, payload.language)
    return GeneratePostResponse(**result)


@router.post("/suggest-reply", response_model=SuggestReplyResponse)
async def suggest_reply(
    payload: SuggestReplyRequest,
    service: AIService = Depends(get_ai_service),
) -> SuggestReplyResponse:
    result = await service.suggest_reply(
        payload.prompt,
        payload.tone,
        payload.language,
        customer_name=payload.customerName,
        rating=payload.rating,
    )
    return SuggestReplyResponse(**result)


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    payload: GenerateRequest,
    service: AIService = Depends(get_ai_service),
) -> GenerateResponse:
    completion = await service.complete(
        CompletionRequest(
            prompt=payload.prompt,
            feature=payload.feature,
            system_prompt=payload.systemPrompt,
            temperature=payload.temperature,
            max_tokens=payload.maxTokens,
        )
    )
    if completion is None:
        raise _unavailable()
    return GenerateResponse(**completion.to_dict())


@router.post("/hashtags", response_model=HashtagResponse)
async def generate_hashtags(
    payload: HashtagRequest,
    service: AIService = Depends(get_ai_service),
) -> HashtagResponse:
    result = await service.hashtags(payload.caption, payload.maxHashtags)
    if result is None:
        raise _unavailable()
    return HashtagResponse(**result)


@router.post("/content-ideas", response_model=ContentIdeasResponse)
async def generate_content_ideas(
    payload: ContentIdeasRequest,
    service: AIService = Depends(get_ai_service),
) -> ContentIdeasResponse:
    result = await service.content_ideas(payload.businessType, payload.month)
    if result is None:
        raise _unavailable()
    return ContentIdeasResponse(**result)


def _read_setting(setting: AISetting) -> AISettingRead:
    return AISettingRead(
        provider=setting.provider,
        api_key=mask_secret(setting.api_key) if setting.api_key else None,
        is_active=setting.is_active,
        priority=setting.priority,
    )


@router.get("/settings", response_model=list[AISettingRead])
def list_settings(
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> list[AISettingRead]:
    rows = db.execute(
        select(AISetting).where(AISetting.user_id == user.subject).order_by(AISetting.priority, AISetting.provider)
    ).scalars()
    return [_read_setting(row) for row in rows]


@router.put("/settings/{provider}", response_model=AISettingRead)
def upsert_setting(
    provider: Provider,
    payload: AISettingUpdate,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> AISettingRead:
    setting = db.execute(
        select(AISetting).where(AISetting.user_id == user.subject, AISetting.provider == provider)
    ).scalar_one_or_none()
    if setting is None:
        setting = AISetting(user_id=user.subject, provider=provider)
        db.add(setting)

    if payload.apiKey is not None:
        setting.api_key = payload.apiKey.strip() or None
    if payload.isActive is not None:
        setting.is_active = payload.isActive
    if payload.priority is not None:
        setting.priority = payload.priority
    db.commit()
    return _read_setting(setting)


@router.get("/usage", response_model=UsageResponse)
def usage(
    days: int = Query(default=30, ge=1, le=365),
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> UsageResponse:
    since = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=days)
    rows = db.execute(
        select(
            AIRequestLog.provider,
            func.count(AIRequestLog.id),
            func.sum(case((AIRequestLog.success.is_(True), 1), else_=0)),
            func.coalesce(func.sum(AIRequestLog.total_tokens), 0),
            func.coalesce(func.sum(AIRequestLog.cost_usd), 0.0),
            func.coalesce(func.avg(AIRequestLog.latency_ms), 0.0),
        )
        .where(AIRequestLog.user_id == user.subject, AIRequestLog.created_at >= since)
        .group_by(AIRequestLog.provider)
        .order_by(AIRequestLog.provider)
    ).all()

    providers = [
        ProviderUsage(
            provider=provider,
            requests=requests,
            successes=int(successes or 0),
            totalTokens=int(tokens),
            costUsd=float(cost),
            avgLatencyMs=round(float(latency), 1),
        )
        for provider, requests, successes, tokens, cost, latency in rows
    ]
    return UsageResponse(
        days=days,
        providers=providers,
        totalRequests=sum(item.requests for item in providers),
        totalCostUsd=sum(item.costUsd for item in providers),
    )
