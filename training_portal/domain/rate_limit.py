"""SQLAlchemy ORM model backing the fixed-window rate limiter."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from training_portal.db.base import Base
from training_portal.domain.mixins import UUIDPrimaryKeyMixin


class RateLimit(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "rate_limits"

    key: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
