from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.models import GmbAccount, GmbInsight, GmbLocation
from gmb_studio.schemas.insights import DailyInsight, InsightsResponse, InsightTotals

_TOTAL_FIELDS = {
    "views": "totalViews",
    "searches": "totalSearches",
    "calls": "totalCalls",
    "messages": "totalMessages",
}


def load_insights(
    session: Session,
    user_id: str,
    days: int,
    location_id: Optional[str] = None,
    today: Optional[dt.date] = None,
) -> list[GmbInsight]:
    end = today or dt.datetime.now(dt.timezone.utc).date()
    start = end - dt.timedelta(days=days)
    stmt = (
        select(GmbInsight)
        .join(GmbLocation, GmbInsight.location_id == GmbLocation.id)
        .join(GmbAccount, GmbLocation.gmb_account_id == GmbAccount.id)
        .where(GmbAccount.user_id == user_id, GmbInsight.date >= start, GmbInsight.date <= end)
        .order_by(GmbInsight.date)
    )
    if location_id:
        stmt = stmt.where(GmbInsight.location_id == location_id)
    return list(session.execute(stmt).scalars())


def summarize(insights: Iterable[GmbInsight], days: int) -> InsightsResponse:
    buckets: dict[dt.date, DailyInsight] = {}
    totals = InsightTotals()
    for insight in insights:
        bucket = buckets.get(insight.date)
        if bucket is None:
            bucket = DailyInsight(name=insight.date.strftime("%a"), date=insight.date)
            buckets[insight.date] = bucket
        metric = insight.metric_type.value
        setattr(bucket, metric, getattr(bucket, metric) + insight.metric_value)
        total_field = _TOTAL_FIELDS.get(metric)
        if total_field:
            setattr(totals, total_field, getattr(totals, total_field) + insight.metric_value)

    data = [buckets[day] for day in sorted(buckets)]
    return InsightsResponse(days=days, data=data, totals=totals)
