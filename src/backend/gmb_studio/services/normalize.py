from __future__ import annotations

import datetime as dt
import json
from typing import Any, Iterable

from gmb_studio.models.insight import NO_SOURCE, MetricType

STAR_RATINGS = {"ONE": 1, "TWO": 2, "THREE": 3, "FOUR": 4, "FIVE": 5}

# Google metric name -> (metric_type, source)
METRIC_MAP: dict[str, tuple[MetricType, str]] = {
    "BUSINESS_QUERIES_DIRECT": (MetricType.SEARCHES, "direct"),
    "BUSINESS_QUERIES_INDIRECT": (MetricType.SEARCHES, "discovery"),
    "BUSINESS_QUERIES_CHAIN": (MetricType.SEARCHES, "branded"),
    "CALL_CLICKS": (MetricType.CALLS, NO_SOURCE),
    "WEBSITE_CLICKS": (MetricType.WEBSITE_CLICKS, NO_SOURCE),
    "DIRECTION_REQUESTS": (MetricType.DIRECTIONS, NO_SOURCE),
    "MESSAGES": (MetricType.MESSAGES, NO_SOURCE),
    "BUSINESS_CONVERSATIONS": (MetricType.MESSAGES, NO_SOURCE),
}


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def parse_timestamp(value: Any) -> dt.datetime | None:
    if isinstance(value, dt.datetime):
        return value if value.tzinfo else value.replace(tzinfo=dt.timezone.utc)
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=dt.timezone.utc)


def map_star_rating(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return STAR_RATINGS.get(value.upper(), 0)
    return 0


def external_review_id(review: dict[str, Any]) -> str | None:
    review_id = review.get("reviewId")
    if review_id:
        return str(review_id)
    name = review.get("name") or ""
    tail = name.rsplit("/", 1)[-1]
    return tail or None


def review_row(location_pk: str, review: dict[str, Any]) -> dict[str, Any]:
    reply = review.get("reviewReply") or {}
    reply_comment = reply.get("comment") or None
    reviewer = review.get("reviewer") or {}
    return {
        "location_id": location_pk,
        "external_review_id": external_review_id(review),
        "review_name": review.get("name") or None,
        "author_name": reviewer.get("displayName") or "Anonymous",
        "rating": map_star_rating(review.get("starRating")),
        "review_text": review.get("comment") or None,
        "review_date": parse_timestamp(review.get("createTime")) or _utcnow(),
        "reply_text": reply_comment,
        "reply_date": parse_timestamp(reply.get("updateTime")),
        "has_reply": bool(reply_comment),
    }


def location_row(account_pk: str, location: dict[str, Any]) -> dict[str, Any]:
    name = location.get("name")
    if not name:
        raise ValueError("Location missing resource name.")
    address = location.get("storefrontAddress")
    phones = location.get("phoneNumbers") or {}
    categories = location.get("categories") or {}
    primary_category = categories.get("primaryCategory") or {}
    return {
        "gmb_account_id": account_pk,
        "location_id": name,
        "location_name": location.get("title") or name,
        "address": json.dumps(address) if address else None,
        "phone": phones.get("primaryPhone") or None,
        "category": primary_category.get("displayName") or None,
        "website": location.get("websiteUri") or None,
    }


def _metric_key(metric_name: str) -> tuple[MetricType, str] | None:
    if "IMPRESSIONS" in metric_name:
        return MetricType.VIEWS, "total"
    return METRIC_MAP.get(metric_name)


def _point_date(raw: Any) -> dt.date | None:
    if not isinstance(raw, dict):
        return None
    try:
        return dt.date(int(raw["year"]), int(raw["month"]), int(raw["day"]))
    except (KeyError, TypeError, ValueError):
        return None


def _numeric(value: Any) -> float:
    # Performance API points carry either a bare value or {"count": "5"}
    if isinstance(value, dict):
        value = value.get("count")
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _series_entries(payload: dict[str, Any]) -> Iterable[dict[str, Any]]:
    for wrapper in payload.get("multiDailyMetricTimeSeries") or []:
        for series in wrapper.get("dailyMetricTimeSeries") or []:
            yield series
    for series in payload.get("timeSeries") or payload.get("metrics") or []:
        yield series


def _series_points(series: dict[str, Any]) -> tuple[str, list[dict[str, Any]]]:
    metric_name = str(series.get("metric") or series.get("dailyMetric") or "")
    if "dailyMetrics" in series:
        return metric_name, series.get("dailyMetrics") or []
    time_series = series.get("timeSeries") or {}
    return metric_name, time_series.get("datedValues") or []


def metric_rows(location_pk: str, payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten a daily-metrics response into insight rows.

    Points sharing (date, metric_type, source) are summed, so the four
    impression channels collapse into one ``views``/``total`` row per day.
    """
    totals: dict[tuple[dt.date, MetricType, str], float] = {}
    for series in _series_entries(payload):
        metric_name, points = _series_points(series)
        key = _metric_key(metric_name)
        if key is None:
            continue
        metric_type, source = key
        for point in points:
            day = _point_date(point.get("date"))
            if day is None:
                continue
            bucket = (day, metric_type, source)
            totals[bucket] = totals.get(bucket, 0.0) + _numeric(point.get("value"))

    return [
        {
            "location_id": location_pk,
            "date": day,
            "metric_type": metric_type,
            "source": source,
            "metric_value": value,
        }
        for (day, metric_type, source), value in sorted(totals.items(), key=lambda item: (item[0][0], item[0][1].value, item[0][2]))
    ]
