"""User, farm, settings, audit and notification models."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from livestock_ops.models.base import Base, TimestampMixin, UpdatedAtMixin

DEFAULT_NOTIFICATIONS: dict[str, bool] = {
    "low_stock": True,
    "high_mortality": True,
    "invoice_due": True,
    "batch_harvest": True,
}


class User(Base, TimestampMixin):
    """Application user."""

    __tablename__ = "app_user"

    user_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="user")
    banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ban_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    ban_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (CheckConstraint("role IN ('user', 'admin')", name="app_user_role_check"),)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def is_banned(self, now: datetime) -> bool:
        """A ban without expiry, or with an expiry in the future, is active."""
        if not self.banned:
            return False
        return self.ban_expires_at is None or self.ban_expires_at > now


class Farm(Base, TimestampMixin):
    """Farm - the tenant that owns workers, batches and records."""

    __tablename__ = "farm"

    farm_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    farm_type: Mapped[str] = mapped_column(String, nullable=False, default="mixed")
    district_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("region.region_id"),
        nullable=True,
    )


class FarmMembership(Base, TimestampMixin):
    """A user's role on a farm."""

    __tablename__ = "farm_membership"

    membership_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String, nullable=False, default="viewer")

    __table_args__ = (
        UniqueConstraint("user_id", "farm_id", name="farm_membership_user_farm_unique"),
        CheckConstraint(
            "role IN ('owner', 'manager', 'viewer', 'worker')",
            name="farm_membership_role_check",
        ),
    )


class UserSettings(Base, TimestampMixin, UpdatedAtMixin):
    """Per-user display and alert preferences."""

    __tablename__ = "user_settings"

    settings_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    currency_symbol: Mapped[str] = mapped_column(String(5), nullable=False, default="$")
    currency_decimals: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    currency_symbol_position: Mapped[str] = mapped_column(
        String, nullable=False, default="before"
    )
    thousand_separator: Mapped[str] = mapped_column(String(1), nullable=False, default=",")
    decimal_separator: Mapped[str] = mapped_column(String(1), nullable=False, default=".")
    date_format: Mapped[str] = mapped_column(String, nullable=False, default="MM/DD/YYYY")
    time_format: Mapped[str] = mapped_column(String, nullable=False, default="12h")
    first_day_of_week: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weight_unit: Mapped[str] = mapped_column(String, nullable=False, default="kg")
    area_unit: Mapped[str] = mapped_column(String, nullable=False, default="sqm")
    temperature_unit: Mapped[str] = mapped_column(String, nullable=False, default="celsius")
    language: Mapped[str] = mapped_column(String(5), nullable=False, default="en")
    theme: Mapped[str] = mapped_column(String, nullable=False, default="system")
    low_stock_threshold_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    mortality_alert_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    mortality_alert_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    notifications: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: dict(DEFAULT_NOTIFICATIONS),
    )
    default_payment_terms_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    fiscal_year_start_month: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class AuditLog(Base, TimestampMixin):
    """Audit trail entry."""

    __tablename__ = "audit_log"

    audit_log_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="SET NULL"),
        nullable=True,
    )
    action: Mapped[str] = mapped_column(String, nullable=False)
    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String, nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)


class Notification(Base, TimestampMixin):
    """In-app notification for a user."""

    __tablename__ = "notification"

    notification_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    farm_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=True,
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(String, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    action_url: Mapped[str | None] = mapped_column(String, nullable=True)
    extra: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
