from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gmb_studio.models.post import PostStatus, PostType


class PostBase(BaseModel):
    post_type: PostType = PostType.UPDATE
    caption: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    media_urls: list[str] = Field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT
    scheduled_at: Optional[dt.datetime] = None


class PostCreate(PostBase):
    location_id: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _scheduled_needs_time(self) -> "PostCreate":
        if self.status == PostStatus.SCHEDULED and self.scheduled_at is None:
            raise ValueError("scheduled_at is required for scheduled posts")
        return self


class PostUpdate(BaseModel):
    post_type: Optional[PostType] = None
    caption: Optional[str] = Field(default=None, min_length=1)
    image_url: Optional[str] = None
    media_urls: Optional[list[str]] = None
    status: Optional[PostStatus] = None
    scheduled_at: Optional[dt.datetime] = None
    engagement: Optional[dict[str, Any]] = None


class PostRead(PostBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    location_id: str
    external_post_id: Optional[str] = None
    published_at: Optional[dt.datetime] = None
    engagement: dict[str, Any] = Field(default_factory=dict)
    created_at: dt.datetime
    updated_at: dt.datetime
