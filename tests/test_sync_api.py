from __future__ import annotations

import datetime as dt
import json

import httpx
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from gmb_studio.models import GmbAccount, GmbInsight, GmbLocation, GmbReview

from conftest import GoogleStub, auth_headers, seed_account, seed_location

REVIEWS_URL = "mybusiness.googleapis.com/v4/accounts/123/locations/456/reviews"


def _review(review_id: str, rating: str = "FIVE", reply: str | None = None) -> dict:
    payload = {
        "reviewId": review_id,
        "name": f"accounts/123/locations/456/reviews/{review_id}",
        "reviewer": {"displayName": f"Guest {review_id}"},
        "starRating": rating,
        "comment": "Lovely place",
        "createTime": "2024-06-01T12:00:00Z",
    }
    if reply:
        payload["reviewReply"] = {"comment": reply, "updateTime": "2024-06-02T12:00:00Z"}
    return payload


def _paged_reviews(pages: list[list[dict]]):
    def handler(request: httpx.Request) -> httpx.Response:
        token = request.url.params.get("pageToken")
        index = int(token) if token else 0
        body: dict = {"reviews": pages[index]}
        if index + 1 < len(pages):
            body["nextPageToken"] = str(index + 1)
        return httpx.Response(200, json=body)

    return handler


def test_sync_reviews_follows_page_tokens_and_is_idempotent(
    client: TestClient, session_factory, google: GoogleStub
) -> None:
    with session_factory() as session:
        account = seed_account(session)
        seed_location(session, account)

    google.on("GET", REVIEWS_URL, _paged_reviews([[_review("a"), _review("b", "TWO")], [_review("c", "THREE")]]))

    response = client.post(
        "/api/v1/gmb/sync-reviews", json={"accountId": account.id, "pageSize": 2}, headers=auth_headers()
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "reviewsUpserted": 3, "failedLocations": []}

    calls = google.calls_to(REVIEWS_URL)
    assert [call.url.params.get("pageToken") for call in calls] == [None, "1"]
    assert all(call.url.params["pageSize"] == "2" for call in calls)
    assert calls[0].headers["Authorization"] == "Bearer access-1"

    google.handlers.clear()
    google.on(
        "GET",
        REVIEWS_URL,
        _paged_reviews([[_review("a", reply="Thank you!"), _review("b", "TWO")], [_review("c", "THREE")]]),
    )
    again = client.post("/api/v1/gmb/sync-reviews", json={"accountId": account.id}, headers=auth_headers())
    assert again.status_code == 200

    with session_factory() as session:
        assert session.execute(select(func.count(GmbReview.id))).scalar_one() == 3
        review_a = session.execute(select(GmbReview).where(GmbReview.external_review_id == "a")).scalar_one()
        assert review_a.has_reply is True
        assert review_a.reply_text == "Thank you!"
        stored = session.get(GmbAccount, account.id)
        assert stored.last_sync is not None


def test_sync_reviews_discovers_account_id(client: TestClient, session_factory, google: GoogleStub) -> None:
    with session_factory() as session:
        account = seed_account(session, account_id=None)
        seed_location(session, account)

    google.on("GET", "mybusinessaccountmanagement.googleapis.com/v1/accounts", lambda r: httpx.Response(403, text="disabled"))
    google.on(
        "GET",
        "businessprofile.googleapis.com/v1/accounts",
        lambda r: httpx.Response(200, json={"items": [{"name": "accounts/123", "accountName": "Cafe"}]}),
    )
    google.on("GET", REVIEWS_URL, _paged_reviews([[_review("a")]]))

    response = client.post("/api/v1/gmb/sync-reviews", json={"accountId": account.id}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["reviewsUpserted"] == 1
    with session_factory() as session:
        assert session.get(GmbAccount, account.id).account_id == "accounts/123"


def test_failing_location_is_skipped(client: TestClient, session_factory, google: GoogleStub) -> None:
    with session_factory() as session:
        account = seed_account(session)
        seed_location(session, account, "locations/456", "A cafe")
        seed_location(session, account, "locations/789", "B cafe")

    google.on("GET", "locations/789/reviews", lambda r: httpx.Response(500, text="boom"))
    google.on("GET", REVIEWS_URL, _paged_reviews([[_review("a")]]))

    response = client.post("/api/v1/gmb/sync-reviews", json={"accountId": account.id}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"success": True, "reviewsUpserted": 1, "failedLocations": ["locations/789"]}


def test_google_401_refreshes_once_and_retries(client: TestClient, session_factory, google: GoogleStub) -> None:
    with session_factory() as session:
        account = seed_account(session)
        seed_location(session, account)

    def reviews(request: httpx.Request) -> httpx.Response:
        if request.headers["Authorization"] == "Bearer access-1":
            return httpx.Response(401, json={"error": {"status": "UNAUTHENTICATED"}})
        return httpx.Response(200, json={"reviews": [_review("a")]})

    google.on("GET", REVIEWS_URL, reviews)
    google.on("POST", "oauth2.googleapis.com/token", lambda r: httpx.Response(200, json={"access_token": "access-2"}))

    response = client.post("/api/v1/gmb/sync-reviews", json={"accountId": account.id}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["reviewsUpserted"] == 1
    assert len(google.calls_to("oauth2.googleapis.com/token")) == 1
    with session_factory() as session:
        assert session.get(GmbAccount, account.id).access_token == "access-2"


def test_expired_token_with_invalid_grant_is_401(client: TestClient, session_factory, google: GoogleStub) -> None:
    with session_factory() as session:
        account = seed_account(session, expires_in=dt.timedelta(minutes=-1))

    google.on("POST", "oauth2.googleapis.com/token", lambda r: httpx.Response(400, json={"error": "invalid_grant"}))

    response = client.post("/api/v1/gmb/sync-reviews", json={"accountId": account.id}, headers=auth_headers())
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_grant"


def test_sync_locations_upserts_and_requires_account_id(
    client: TestClient, session_factory, google: GoogleStub
) -> None:
    with session_factory() as session:
        account = seed_account(session)
        missing = seed_account(session, account_id=None)

    def locations(request: httpx.Request) -> httpx.Response:
        assert "readMask" in request.url.params
        if request.url.params.get("pageToken") == "p2":
            return httpx.Response(200, json={"locations": [{"name": "locations/2", "title": "Second"}]})
        return httpx.Response(
            200,
            json={
                "locations": [
                    {
                        "name": "locations/1",
                        "title": "First",
                        "storefrontAddress": {"locality": "Jeddah"},
                        "phoneNumbers": {"primaryPhone": "123"},
                    }
                ],
                "nextPageToken": "p2",
            },
        )

    google.on("GET", "mybusinessbusinessinformation.googleapis.com/v1/accounts/123/locations", locations)

    response = client.post("/api/v1/gmb/sync", json={"accountId": account.id}, headers=auth_headers())
    assert response.status_code == 200
    body = response.json()
    assert body["locationsCount"] == 2
    assert [item["location_name"] for item in body["syncedLocations"]] == ["First", "Second"]

    assert client.post("/api/v1/gmb/sync", json={"accountId": account.id}, headers=auth_headers()).status_code == 200
    with session_factory() as session:
        assert session.execute(select(func.count(GmbLocation.id))).scalar_one() == 2
        first = session.execute(select(GmbLocation).where(GmbLocation.location_id == "locations/1")).scalar_one()
        assert json.loads(first.address) == {"locality": "Jeddah"}

    bad = client.post("/api/v1/gmb/sync", json={"accountId": missing.id}, headers=auth_headers())
    assert bad.status_code == 400
    assert bad.json()["error"] == "Missing account_id on selected account"


def test_sync_insights_is_idempotent(client: TestClient, session_factory, google: GoogleStub) -> None:
    with session_factory() as session:
        account = seed_account(session)
        seed_location(session, account)

    sent: list[dict] = []

    def metrics(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        point = {"date": {"year": 2024, "month": 6, "day": 1}, "value": "4"}
        return httpx.Response(
            200,
            json={
                "timeSeries": [
                    {"metric": "BUSINESS_IMPRESSIONS_MOBILE_MAPS", "dailyMetrics": [point]},
                    {"metric": "BUSINESS_IMPRESSIONS_DESKTOP_SEARCH", "dailyMetrics": [point]},
                    {"metric": "CALL_CLICKS", "dailyMetrics": [point]},
                ]
            },
        )

    google.on("POST", "locations/456/basicMetrics:searchDailyMetricsTimeSeries", metrics)

    for _ in range(2):
        response = client.post(
            "/api/v1/gmb/sync-insights", json={"accountId": account.id, "days": 7}, headers=auth_headers()
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "insightsUpserted": 2, "failedLocations": []}

    assert len(sent[0]["dailyMetrics"]) == 11
    start = sent[0]["dateRange"]["startDate"]
    end = sent[0]["dateRange"]["endDate"]
    assert dt.date(start["year"], start["month"], start["day"]) == dt.date(end["year"], end["month"], end["day"]) - dt.timedelta(days=7)

    with session_factory() as session:
        rows = session.execute(select(GmbInsight).order_by(GmbInsight.metric_type)).scalars().all()
        assert [(row.metric_type.value, row.source, row.metric_value) for row in rows] == [
            ("calls", "", 4.0),
            ("views", "total", 8.0),
        ]


def _unauthorized(request: httpx.Request) -> httpx.Response:
    return httpx.Response(401, json={"error": {"status": "UNAUTHENTICATED"}})


def _token_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"access_token": "access-2"})


def test_second_401_marks_location_failed(client: TestClient, session_factory, google: GoogleStub) -> None:
    with session_factory() as session:
        account = seed_account(session)
        seed_location(session, account)

    google.on("GET", REVIEWS_URL, _unauthorized)
    google.on("POST", "oauth2.googleapis.com/token", _token_ok)

    response = client.post("/api/v1/gmb/sync-reviews", json={"accountId": account.id}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"success": True, "reviewsUpserted": 0, "failedLocations": ["locations/456"]}
    assert len(google.calls_to("oauth2.googleapis.com/token")) == 1
    assert [call.headers["Authorization"] for call in google.calls_to(REVIEWS_URL)] == [
        "Bearer access-1",
        "Bearer access-2",
    ]


def test_location_sync_second_401_is_json_500(client: TestClient, session_factory, google: GoogleStub) -> None:
    with session_factory() as session:
        account = seed_account(session)

    locations_url = "mybusinessbusinessinformation.googleapis.com/v1/accounts/123/locations"
    google.on("GET", locations_url, _unauthorized)
    google.on("POST", "oauth2.googleapis.com/token", _token_ok)

    response = client.post("/api/v1/gmb/sync", json={"accountId": account.id}, headers=auth_headers())

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert "UNAUTHENTICATED" in response.json()["error"]
    assert len(google.calls_to(locations_url)) == 2
    assert len(google.calls_to("oauth2.googleapis.com/token")) == 1


def test_transport_failure_is_json_500_without_retries(
    client: TestClient, session_factory, google: GoogleStub
) -> None:
    with session_factory() as session:
        account = seed_account(session)

    locations_url = "mybusinessbusinessinformation.googleapis.com/v1/accounts/123/locations"

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    google.on("GET", locations_url, unreachable)

    response = client.post(
        "/api/v1/gmb/sync",
        json={"accountId": account.id},
        headers={**auth_headers(), "Origin": "http://localhost:5173"},
    )

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.headers["access-control-allow-origin"]
    assert response.json()["error"] == "connection refused"
    assert len(google.calls_to(locations_url)) == 1


def test_malformed_token_response_is_json_500(client: TestClient, session_factory, google: GoogleStub) -> None:
    with session_factory() as session:
        account = seed_account(session)

    google.on("POST", "oauth2.googleapis.com/token", lambda r: httpx.Response(200, json=["unexpected"]))

    response = client.post("/api/v1/gmb/refresh-token", json={"accountId": account.id}, headers=auth_headers())

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert "has no attribute" in response.json()["error"]
