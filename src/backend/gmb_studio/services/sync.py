from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, TypeVar

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.core.errors import GoogleAPIError
from gmb_studio.google.client import GoogleBusinessClient
from gmb_studio.google.oauth import GoogleOAuthClient
from gmb_studio.google.retry import refresh_once
from gmb_studio.models import GmbAccount, GmbLocation
from gmb_studio.services.normalize import location_row, metric_rows, review_row
from gmb_studio.services.persistence import upsert_insight, upsert_location, upsert_review
from gmb_studio.services.tokens import force_refresh

logger = logging.getLogger(__name__)

T = TypeVar("T")

INSIGHT_METRICS = (
    "BUSINESS_IMPRESSIONS_DESKTOP_MAPS",
    "BUSINESS_IMPRESSIONS_MOBILE_MAPS",
    "BUSINESS_IMPRESSIONS_DESKTOP_SEARCH",
    "BUSINESS_IMPRESSIONS_MOBILE_SEARCH",
    "BUSINESS_QUERIES_DIRECT",
    "BUSINESS_QUERIES_INDIRECT",
    "BUSINESS_QUERIES_CHAIN",
    "CALL_CLICKS",
    "DIRECTION_REQUESTS",
    "WEBSITE_CLICKS",
    "MESSAGES",
)


class MissingAccountIdError(ValueError):
    """The connection has no Google account resource name to sync against."""


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def call_with_refresh(
    session: Session,
    account: GmbAccount,
    client: GoogleBusinessClient,
    oauth: GoogleOAuthClient,
    call: Callable[[], T],
) -> T:
    def _refresh() -> None:
        logger.info("Google returned 401 for account %s, refreshing token once", account.id)
        grant = force_refresh(session, account, oauth)
        client.set_access_token(grant.access_token)

    return refresh_once(_refresh)(call)


def _active_locations(session: Session, account: GmbAccount) -> list[GmbLocation]:
    return list(
        session.execute(
            select(GmbLocation)
            .where(GmbLocation.gmb_account_id == account.id, GmbLocation.is_active.is_(True))
            .order_by(GmbLocation.location_name)
        ).scalars()
    )


def _stamp(session: Session, account: GmbAccount) -> None:
    account.last_sync = _now()
    session.add(account)
    session.commit()


def discover_account_id(
    session: Session,
    account: GmbAccount,
    client: GoogleBusinessClient,
    oauth: GoogleOAuthClient,
) -> str | None:
    if account.account_id:
        return account.account_id

    accounts = call_with_refresh(session, account, client, oauth, client.list_accounts)
    if not accounts:
        return None
    account.account_id = accounts[0].get("name")
    if not account.account_name or account.account_name == "Google Business Account":
        account.account_name = accounts[0].get("accountName") or account.account_name
    session.add(account)
    session.commit()
    logger.info("Discovered Google account %s for connection %s", account.account_id, account.id)
    return account.account_id


def sync_locations(
    session: Session,
    account: GmbAccount,
    client: GoogleBusinessClient,
    oauth: GoogleOAuthClient,
) -> dict[str, Any]:
    if not account.account_id:
        raise MissingAccountIdError("Missing account_id on selected account")

    account_name = account.account_id
    payloads = call_with_refresh(
        session, account, client, oauth, lambda: client.list_locations(account_name)
    )

    synced: list[dict[str, Any]] = []
    for payload in payloads:
        try:
            location = upsert_location(session, location_row(account.id, payload))
        except ValueError as exc:
            logger.warning("Skipping location without a resource name: %s", exc)
            continue
        synced.append(
            {
                "id": location.id,
                "location_id": location.location_id,
                "location_name": location.location_name,
            }
        )

    _stamp(session, account)
    return {"success": True, "locationsCount": len(synced), "syncedLocations": synced}


def sync_reviews(
    session: Session,
    account: GmbAccount,
    client: GoogleBusinessClient,
    oauth: GoogleOAuthClient,
    page_size: int = 100,
) -> dict[str, Any]:
    account_name = discover_account_id(session, account, client, oauth)
    if not account_name:
        raise MissingAccountIdError("Could not determine Google account id")

    upserted = 0
    failed: list[str] = []
    for location in _active_locations(session, account):
        try:
            pages = call_with_refresh(
                session,
                account,
                client,
                oauth,
                lambda: list(client.iter_review_pages(account_name, location.location_id, page_size)),
            )
        except (GoogleAPIError, httpx.HTTPError) as exc:
            logger.warning("Failed to fetch reviews for %s: %s", location.location_id, exc)
            failed.append(location.location_id)
            continue

        for page in pages:
            for review in page:
                upsert_review(session, review_row(location.id, review))
                upserted += 1
        session.commit()

    _stamp(session, account)
    return {"success": True, "reviewsUpserted": upserted, "failedLocations": failed}


def sync_insights(
    session: Session,
    account: GmbAccount,
    client: GoogleBusinessClient,
    oauth: GoogleOAuthClient,
    days: int = 30,
    today: dt.date | None = None,
) -> dict[str, Any]:
    end = today or _now().date()
    start = end - dt.timedelta(days=days)

    upserted = 0
    failed: list[str] = []
    for location in _active_locations(session, account):
        try:
            payload = call_with_refresh(
                session,
                account,
                client,
                oauth,
                lambda: client.fetch_daily_metrics(location.location_id, INSIGHT_METRICS, start, end),
            )
        except (GoogleAPIError, httpx.HTTPError) as exc:
            logger.warning("Insights API failed for %s: %s", location.location_id, exc)
            failed.append(location.location_id)
            continue

        for row in metric_rows(location.id, payload):
            upsert_insight(session, row)
            upserted += 1
        session.commit()

    _stamp(session, account)
    return {"success": True, "insightsUpserted": upserted, "failedLocations": failed}
