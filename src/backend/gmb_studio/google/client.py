"""Thin REST client for the Google Business Profile APIs."""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Iterator, Sequence

import httpx

from gmb_studio.core.errors import GoogleAPIError

logger = logging.getLogger(__name__)

ACCOUNT_ENDPOINTS = (
    "https://mybusinessaccountmanagement.googleapis.com/v1/accounts",
    "https://businessprofile.googleapis.com/v1/accounts",
)
BUSINESS_INFO_BASE = "https://mybusinessbusinessinformation.googleapis.com/v1"
REVIEWS_BASE = "https://mybusiness.googleapis.com/v4"
PERFORMANCE_BASE = "https://businessprofileperformance.googleapis.com/v1"
LOCATION_READ_MASK = "name,title,storefrontAddress,phoneNumbers,categories,websiteUri"


def _date_parts(value: dt.date) -> dict[str, int]:
    return {"year": value.year, "month": value.month, "day": value.day}


class GoogleBusinessClient:
    def __init__(
        self,
        access_token: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self._http = httpx.Client(transport=transport, timeout=timeout)

    def __enter__(self) -> "GoogleBusinessClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def set_access_token(self, access_token: str) -> None:
        self.access_token = access_token

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        headers.update(kwargs.pop("headers", {}) or {})
        response = self._http.request(method, url, headers=headers, **kwargs)
        if not response.is_success:
            raise GoogleAPIError(response.status_code, response.text, url=str(response.request.url))
        if not response.content:
            return {}
        return response.json()

    def list_accounts(self) -> list[dict[str, Any]]:
        for endpoint in ACCOUNT_ENDPOINTS:
            try:
                payload = self._request("GET", endpoint)
            except GoogleAPIError as exc:
                if exc.is_unauthorized:
                    raise
                logger.warning("Account listing failed at %s: %s", endpoint, exc.status_code)
                continue
            accounts = payload.get("accounts") or payload.get("items") or []
            if accounts:
                return accounts
        return []

    def list_locations(self, account_name: str, page_size: int = 100) -> list[dict[str, Any]]:
        url = f"{BUSINESS_INFO_BASE}/{account_name}/locations"
        params: dict[str, Any] = {"readMask": LOCATION_READ_MASK, "pageSize": page_size}
        locations: list[dict[str, Any]] = []
        while True:
            payload = self._request("GET", url, params=params)
            locations.extend(payload.get("locations") or [])
            next_token = payload.get("nextPageToken")
            if not next_token:
                return locations
            params["pageToken"] = next_token

    def iter_review_pages(
        self,
        account_name: str,
        location_id: str,
        page_size: int = 100,
    ) -> Iterator[list[dict[str, Any]]]:
        """Yield each page of reviews until Google stops returning a ``nextPageToken``.

        ``location_id`` may be the full resource name; only its trailing id is used
        because the v4 reviews endpoint nests locations under the account.
        """
        location_tail = str(location_id or "").rsplit("/", 1)[-1]
        url = f"{REVIEWS_BASE}/{account_name}/locations/{location_tail}/reviews"
        params: dict[str, Any] = {"pageSize": page_size}
        while True:
            payload = self._request("GET", url, params=params)
            yield payload.get("reviews") or []
            next_token = payload.get("nextPageToken")
            if not next_token:
                return
            params["pageToken"] = next_token

    def update_review_reply(self, review_name: str, comment: str) -> dict[str, Any]:
        return self._request("PUT", f"{REVIEWS_BASE}/{review_name}/reply", json={"comment": comment})

    def fetch_daily_metrics(
        self,
        location_id: str,
        metrics: Sequence[str],
        start: dt.date,
        end: dt.date,
    ) -> dict[str, Any]:
        url = f"{PERFORMANCE_BASE}/{location_id}/basicMetrics:searchDailyMetricsTimeSeries"
        body = {
            "dailyMetrics": [{"metric": metric} for metric in metrics],
            "dateRange": {"startDate": _date_parts(start), "endDate": _date_parts(end)},
        }
        return self._request("POST", url, json=body)
