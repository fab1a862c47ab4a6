from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class AccountRequest(BaseModel):
    accountId: str = Field(..., min_length=1)


class SyncRequest(AccountRequest):
    syncType: Literal["full", "locations"] = "full"


class SyncReviewsRequest(AccountRequest):
    pageSize: int = Field(default=100, ge=1, le=200)


class SyncInsightsRequest(AccountRequest):
    days: int = Field(default=30, ge=1, le=540)


class RefreshTokenResponse(BaseModel):
    success: bool
    message: str
    access_token: str
    expires_in: int


class AuthUrlResponse(BaseModel):
    authUrl: str
    url: str
    state: str
