from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field

from gmb_studio.models.insight import MetricType


class DailyInsight(BaseModel):
    name: str
    date: dt.date
    views: float = 0
    searches: float = 0
    calls: float = 0
    messages: float = 0
    directions: float = 0
    website_clicks: float = 0


class InsightTotals(BaseModel):
    totalViews: float = 0
    totalSearches: float = 0
    totalCalls: float = 0
    totalMessages: float = 0


class InsightsResponse(BaseModel):
    days: int
    data: list[DailyInsight]
    totals: InsightTotals


class InsightCreate(BaseModel):
    location_id: str = Field(..., min_length=1)
    date: dt.date
    metric_type: MetricType
    metric_value: float = Field(..., ge=0)
    source: str = ""
