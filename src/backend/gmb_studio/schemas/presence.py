from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict


class MediaRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    location_id: str
    media_type: str
    url: str
    caption: Optional[str] = None
    category: Optional[str] = None
    uploaded_at: dt.datetime


class CitationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    location_id: str
    directory_name: str
    directory_url: str
    citation_url: Optional[str] = None
    business_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    status: str
    last_checked: Optional[dt.datetime] = None
    created_at: dt.datetime


class RankingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    location_id: str
    keyword: str
    current_position: Optional[int] = None
    previous_position: Optional[int] = None
    best_position: Optional[int] = None
    search_volume: Optional[int] = None
    difficulty: Optional[str] = None
    last_checked: Optional[dt.datetime] = None
    created_at: dt.datetime
