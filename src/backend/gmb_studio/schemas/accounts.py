from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AccountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    account_name: str
    account_email: Optional[str] = None
    account_id: Optional[str] = None
    is_active: bool
    status: Literal["active", "disconnected"]
    total_locations: int = 0
    last_sync: Optional[dt.datetime] = None
    created_at: dt.datetime


class AccountUpdate(BaseModel):
    account_name: Optional[str] = Field(default=None, min_length=1, max_length=300)
    is_active: Optional[bool] = None


class LocationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    gmb_account_id: str
    location_id: str
    location_name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    category: Optional[str] = None
    website: Optional[str] = None
    is_active: bool
