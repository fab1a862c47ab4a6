from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

Tone = Literal["friendly", "professional", "short"]
Language = Literal["English", "Arabic"]
Feature = Literal[
    "review_reply",
    "post_generation",
    "caption_writer",
    "hashtag_generator",
    "content_ideas",
    "image_generation",
    "voice_tts",
    "voice_stt",
    "content_analysis",
    "translation",
]
Provider = Literal["groq", "deepseek", "together", "mistral", "perplexity", "gemini", "cohere", "openai"]


class GeneratePostRequest(BaseModel):
    topic: Optional[str] = None
    tone: Tone = "friendly"
    language: Language = "English"


class GeneratePostResponse(BaseModel):
    captions: list[str]
    provider: Optional[str] = None


class SuggestReplyRequest(BaseModel):
    prompt: Optional[str] = None
    tone: Tone = "friendly"
    language: Language = "English"
    customerName: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class SuggestReplyResponse(BaseModel):
    suggestions: list[str]
    provider: Optional[str] = None


class GenerateRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    feature: Feature = "content_analysis"
    systemPrompt: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0, le=2)
    maxTokens: Optional[int] = Field(default=None, ge=1, le=8192)


class TokenUsage(BaseModel):
    prompt: int
    completion: int
    total: int


class GenerateResponse(BaseModel):
    content: str
    provider: str
    model: str
    tokensUsed: TokenUsage
    cost: float
    latency: int


class HashtagRequest(BaseModel):
    caption: str = Field(..., min_length=1)
    maxHashtags: int = Field(default=10, ge=1, le=30)


class HashtagResponse(BaseModel):
    hashtags: list[str]
    provider: str


class ContentIdeasRequest(BaseModel):
    businessType: str = Field(..., min_length=1)
    month: str = Field(..., min_length=1)


class ContentIdeasResponse(BaseModel):
    ideas: list[str]
    provider: str


class AISettingRead(BaseModel):
    provider: str
    api_key: Optional[str] = None
    is_active: bool
    priority: int


class AISettingUpdate(BaseModel):
    apiKey: Optional[str] = None
    isActive: Optional[bool] = None
    priority: Optional[int] = Field(default=None, ge=0, le=1000)


class ProviderUsage(BaseModel):
    provider: str
    requests: int
    successes: int
    totalTokens: int
    costUsd: float
    avgLatencyMs: float


class UsageResponse(BaseModel):
    days: int
    providers: list[ProviderUsage]
    totalRequests: int
    totalCostUsd: float
