"""AI provider settings and request audit log."""
from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from gmb_studio.db.base import Base
from gmb_studio.models.base import TimestampMixin, UUIDPrimaryKeyMixin, utcnow


class AISetting(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Per-user provider key and priority in the fallback chain"""

    __tablename__ = "ai_settings"
    __table_args__ = (UniqueConstraint("user_id", "provider", name="uq_ai_settings_user_provider"),)

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    api_key: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=100, nullable=False)

    def __repr__(self) -> str:
        return f"<AISetting user={self.user_id} provider={self.provider} priority={self.priority}>"


class AIRequestLog(UUIDPrimaryKeyMixin, Base):
    """One row per provider attempt"""

    __tablename__ = "ai_requests"
    __table_args__ = (
        Index("ix_ai_requests_user_id", "user_id"),
        Index("ix_ai_requests_created_at", "created_at"),
    )

    user_id: Mapped[Optional[str]] = mapped_column(String(64))
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    model: Mapped[str] = mapped_column(String(128), nullable=False)
    feature: Mapped[str] = mapped_column(String(64), nullable=False)
    prompt_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completion_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cost_usd: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    latency_ms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    success: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AIRequestLog provider={self.provider} success={self.success} cost=${self.cost_usd}>"
