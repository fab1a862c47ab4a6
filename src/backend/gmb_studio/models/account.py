from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gmb_studio.db.base import Base
from gmb_studio.models.base import TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from gmb_studio.models.location import GmbLocation


class GmbAccount(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A user's connection to one Google Business Profile account."""

    __tablename__ = "gmb_accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "account_id", name="uq_gmb_accounts_user_account"),
        Index("ix_gmb_accounts_user_id", "user_id"),
    )

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    account_name: Mapped[str] = mapped_column(String(300), nullable=False, default="Google Business Account")
    account_email: Mapped[Optional[str]] = mapped_column(String(320))
    account_id: Mapped[Optional[str]] = mapped_column(String(128))
    access_token: Mapped[Optional[str]] = mapped_column(Text)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text)
    token_expires_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_sync: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))

    locations: Mapped[list["GmbLocation"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
    )

    @property
    def status(self) -> str:
        return "active" if self.is_active else "disconnected"

    def __repr__(self) -> str:
        return f"<GmbAccount id={self.id} account_id={self.account_id} user={self.user_id}>"
