from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    location_id: str
    location_name: Optional[str] = None
    external_review_id: Optional[str] = None
    review_name: Optional[str] = None
    author_name: str
    rating: int
    review_text: Optional[str] = None
    review_date: dt.datetime
    reply_text: Optional[str] = None
    reply_date: Optional[dt.datetime] = None
    has_reply: bool


class ReviewCreate(BaseModel):
    location_id: str = Field(..., min_length=1)
    author_name: str = Field(..., min_length=1, max_length=300)
    rating: int = Field(..., ge=1, le=5)
    review_text: Optional[str] = None
    review_date: Optional[dt.datetime] = None


class ReviewReplyRequest(BaseModel):
    replyText: str
    accountId: Optional[str] = None

    @field_validator("replyText")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("replyText must not be empty")
        return value
