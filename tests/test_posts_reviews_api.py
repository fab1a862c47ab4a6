from __future__ import annotations

import datetime as dt
import json

import httpx
from fastapi.testclient import TestClient

from gmb_studio.models import GmbPost, GmbReview

from conftest import GoogleStub, auth_headers, seed_account, seed_location


def _seed_location(session_factory, user_id: str = "user-1", location_id: str = "locations/456"):
    with session_factory() as session:
        account = seed_account(session, user_id=user_id, account_id=f"accounts/{user_id}")
        return account, seed_location(session, account, location_id=location_id)


def _seed_review(session_factory, location, **overrides) -> GmbReview:
    values = {
        "location_id": location.id,
        "author_name": "Guest",
        "rating": 5,
        "review_text": "Great",
        "review_date": dt.datetime(2024, 6, 1, tzinfo=dt.timezone.utc),
        "has_reply": False,
    }
    values.update(overrides)
    with session_factory() as session:
        review = GmbReview(**values)
        session.add(review)
        session.commit()
        return review


def test_post_crud_lifecycle(client: TestClient, session_factory) -> None:
    _, location = _seed_location(session_factory)

    created = client.post(
        "/api/v1/posts",
        json={"location_id": location.id, "caption": "Weekend brunch", "post_type": "offer"},
        headers=auth_headers(),
    )
    assert created.status_code == 201
    post = created.json()
    assert post["status"] == "draft"
    assert post["post_type"] == "offer"
    assert post["published_at"] is None
    assert post["media_urls"] == []

    published = client.patch(f"/api/v1/posts/{post['id']}", json={"status": "published"}, headers=auth_headers())
    assert published.status_code == 200
    assert published.json()["published_at"] is not None

    listed = client.get("/api/v1/posts", params={"locationId": location.id}, headers=auth_headers())
    assert [item["id"] for item in listed.json()] == [post["id"]]

    deleted = client.delete(f"/api/v1/posts/{post['id']}", headers=auth_headers())
    assert deleted.status_code == 204
    with session_factory() as session:
        assert session.get(GmbPost, post["id"]) is None


def test_scheduled_post_requires_time(client: TestClient, session_factory) -> None:
    _, location = _seed_location(session_factory)

    response = client.post(
        "/api/v1/posts",
        json={"location_id": location.id, "caption": "Soon", "status": "scheduled"},
        headers=auth_headers(),
    )
    assert response.status_code == 400

    created = client.post(
        "/api/v1/posts", json={"location_id": location.id, "caption": "Soon"}, headers=auth_headers()
    ).json()
    patched = client.patch(f"/api/v1/posts/{created['id']}", json={"status": "scheduled"}, headers=auth_headers())
    assert patched.status_code == 400
    assert patched.json()["error"] == "scheduled_at is required for scheduled posts"

    with session_factory() as session:
        assert session.get(GmbPost, created["id"]).status.value == "draft"


def test_posts_are_scoped_to_owner(client: TestClient, session_factory) -> None:
    _, location = _seed_location(session_factory)
    created = client.post(
        "/api/v1/posts", json={"location_id": location.id, "caption": "Mine"}, headers=auth_headers()
    ).json()

    assert client.get("/api/v1/posts", headers=auth_headers("user-2")).json() == []
    assert client.patch(
        f"/api/v1/posts/{created['id']}", json={"caption": "Theirs"}, headers=auth_headers("user-2")
    ).status_code == 404
    assert client.delete(f"/api/v1/posts/{created['id']}", headers=auth_headers("user-2")).status_code == 404
    assert client.post(
        "/api/v1/posts", json={"location_id": location.id, "caption": "Sneaky"}, headers=auth_headers("user-2")
    ).status_code == 404


def test_review_list_filters(client: TestClient, session_factory) -> None:
    _, location = _seed_location(session_factory)
    _seed_review(session_factory, location, author_name="Happy", rating=5)
    _seed_review(
        session_factory,
        location,
        author_name="Grumpy",
        rating=1,
        review_date=dt.datetime(2024, 6, 3, tzinfo=dt.timezone.utc),
        has_reply=True,
        reply_text="Sorry",
    )
    _, other_location = _seed_location(session_factory, user_id="user-2", location_id="locations/999")
    _seed_review(session_factory, other_location, author_name="Stranger")

    everything = client.get("/api/v1/reviews", headers=auth_headers()).json()
    assert [item["author_name"] for item in everything] == ["Grumpy", "Happy"]
    assert everything[0]["location_name"] == "Cafe Downtown"

    low = client.get("/api/v1/reviews", params={"rating": 1}, headers=auth_headers()).json()
    assert [item["author_name"] for item in low] == ["Grumpy"]

    pending = client.get("/api/v1/reviews", params={"hasReply": "false"}, headers=auth_headers()).json()
    assert [item["author_name"] for item in pending] == ["Happy"]


def test_manual_review_validates_rating(client: TestClient, session_factory) -> None:
    _, location = _seed_location(session_factory)

    bad = client.post(
        "/api/v1/reviews",
        json={"location_id": location.id, "author_name": "Guest", "rating": 6},
        headers=auth_headers(),
    )
    assert bad.status_code == 400

    good = client.post(
        "/api/v1/reviews",
        json={"location_id": location.id, "author_name": "Guest", "rating": 4, "review_text": "Nice"},
        headers=auth_headers(),
    )
    assert good.status_code == 201
    assert good.json()["external_review_id"] is None
    assert good.json()["has_reply"] is False


def test_blank_reply_is_rejected(client: TestClient, session_factory) -> None:
    _, location = _seed_location(session_factory)
    review = _seed_review(session_factory, location)

    response = client.post(f"/api/v1/reviews/{review.id}/reply", json={"replyText": "   "}, headers=auth_headers())
    assert response.status_code == 400


def test_manual_review_reply_stays_local(client: TestClient, session_factory, google: GoogleStub) -> None:
    _, location = _seed_location(session_factory)
    review = _seed_review(session_factory, location)

    response = client.post(
        f"/api/v1/reviews/{review.id}/reply", json={"replyText": " Thank you! "}, headers=auth_headers()
    )
    assert response.status_code == 200
    assert response.json()["reply_text"] == "Thank you!"
    assert response.json()["has_reply"] is True
    assert google.requests == []


def test_synced_review_reply_is_pushed_to_google(client: TestClient, session_factory, google: GoogleStub) -> None:
    account, location = _seed_location(session_factory)
    review_name = "accounts/123/locations/456/reviews/r1"
    review = _seed_review(session_factory, location, external_review_id="r1", review_name=review_name)
    google.on("PUT", f"{review_name}/reply", lambda request: httpx.Response(200, json={"comment": "ok"}))

    response = client.post(
        f"/api/v1/reviews/{review.id}/reply",
        json={"replyText": "See you soon", "accountId": account.id},
        headers=auth_headers(),
    )
    assert response.status_code == 200

    calls = google.calls_to(f"{review_name}/reply")
    assert len(calls) == 1
    assert json.loads(calls[0].content) == {"comment": "See you soon"}
    assert calls[0].headers["Authorization"] == "Bearer access-1"

    with session_factory() as session:
        stored = session.get(GmbReview, review.id)
        assert stored.has_reply is True
        assert stored.reply_text == "See you soon"


def test_reply_failure_keeps_review_unanswered(client: TestClient, session_factory, google: GoogleStub) -> None:
    _, location = _seed_location(session_factory)
    review_name = "accounts/123/locations/456/reviews/r2"
    review = _seed_review(session_factory, location, external_review_id="r2", review_name=review_name)
    google.on("PUT", f"{review_name}/reply", lambda request: httpx.Response(403, text="forbidden"))

    response = client.post(f"/api/v1/reviews/{review.id}/reply", json={"replyText": "Hi"}, headers=auth_headers())
    assert response.status_code == 500

    with session_factory() as session:
        assert session.get(GmbReview, review.id).has_reply is False


def test_reply_to_foreign_review_is_404(client: TestClient, session_factory) -> None:
    _, location = _seed_location(session_factory, user_id="user-2")
    review = _seed_review(session_factory, location)

    response = client.post(f"/api/v1/reviews/{review.id}/reply", json={"replyText": "Hi"}, headers=auth_headers())
    assert response.status_code == 404
    assert response.json()["error"] == "Review not found"
