"""Periodic Google Business Profile Sync Job

Runs location, review and insights sync for every active account:
1. Ensures a valid access token (refreshing when expired)
2. Syncs locations, then reviews, then daily insights
3. Logs per-account failures and moves on to the next account

Intended to be invoked from cron.
"""
import argparse
import logging
from typing import Any, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.core.config import get_settings
from gmb_studio.core.errors import GoogleAPIError, TokenRefreshError
from gmb_studio.db.session import SessionLocal
from gmb_studio.google.client import GoogleBusinessClient
from gmb_studio.google.oauth import GoogleOAuthClient
from gmb_studio.models import GmbAccount
from gmb_studio.services.sync import MissingAccountIdError, sync_insights, sync_locations, sync_reviews
from gmb_studio.services.tokens import ensure_access_token

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class AccountSyncJob:
    """Job to sync every active Google Business account"""

    def __init__(
        self,
        oauth: Optional[GoogleOAuthClient] = None,
        client_factory: Optional[Any] = None,
        days: int = 30,
        page_size: int = 100,
        skip_insights: bool = False,
    ):
        """
        Initialize job

        Args:
            oauth: OAuth client used for token refresh
            client_factory: Callable building a GoogleBusinessClient from an access token
            days: Insights lookback window
            page_size: Review page size
            skip_insights: Only sync locations and reviews
        """
        settings = get_settings()
        self.oauth = oauth or GoogleOAuthClient(settings)
        self.client_factory = client_factory or (
            lambda token: GoogleBusinessClient(token, timeout=settings.google_http_timeout)
        )
        self.days = days
        self.page_size = page_size
        self.skip_insights = skip_insights

    def sync_account(self, session: Session, account: GmbAccount) -> dict[str, Any]:
        token = ensure_access_token(session, account, self.oauth)
        result: dict[str, Any] = {"account": account.id}
        with self.client_factory(token) as client:
            reviews = sync_reviews(session, account, client, self.oauth, page_size=self.page_size)
            # Reviews sync discovers account_id, so locations can follow it
            locations = sync_locations(session, account, client, self.oauth)
            result["locations"] = locations["locationsCount"]
            result["reviews"] = reviews["reviewsUpserted"]
            if not self.skip_insights:
                insights = sync_insights(session, account, client, self.oauth, days=self.days)
                result["insights"] = insights["insightsUpserted"]
        return result

    def run(self, session: Session, account_ids: Optional[list[str]] = None) -> dict[str, Any]:
        stmt = select(GmbAccount).where(GmbAccount.is_active.is_(True)).order_by(GmbAccount.created_at)
        if account_ids:
            stmt = stmt.where(GmbAccount.id.in_(account_ids))
        accounts = list(session.execute(stmt).scalars())

        logger.info("=" * 80)
        logger.info(f"Syncing {len(accounts)} active account(s)")
        logger.info("=" * 80)

        stats: dict[str, Any] = {"synced": [], "failed": []}
        for account in accounts:
            try:
                stats["synced"].append(self.sync_account(session, account))
            except (TokenRefreshError, GoogleAPIError, MissingAccountIdError, httpx.HTTPError) as e:
                session.rollback()
                logger.error(f"Sync failed for account {account.id}: {e}")
                stats["failed"].append({"account": account.id, "error": str(e)})

        logger.info(f"Synced: {len(stats['synced'])}, failed: {len(stats['failed'])}")
        return stats


def main() -> None:
    parser = argparse.ArgumentParser(description="Sync Google Business Profile data for active accounts")
    parser.add_argument("--account", action="append", dest="accounts", help="Limit to this account id (repeatable)")
    parser.add_argument("--days", type=int, default=30, help="Insights lookback window in days")
    parser.add_argument("--page-size", type=int, default=100, help="Review page size")
    parser.add_argument("--skip-insights", action="store_true", help="Only sync locations and reviews")
    args = parser.parse_args()

    job = AccountSyncJob(days=args.days, page_size=args.page_size, skip_insights=args.skip_insights)
    session = SessionLocal()
    try:
        stats = job.run(session, account_ids=args.accounts)
    finally:
        session.close()

    if stats["failed"]:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
