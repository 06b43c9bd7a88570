"""Regional administration models for extension services."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from livestock_ops.models.base import Base, TimestampMixin, utcnow


class Country(Base, TimestampMixin):
    """Country containing regions."""

    __tablename__ = "country"

    country_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    code: Mapped[str] = mapped_column(String(3), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Region(Base, TimestampMixin):
    """Region (level 1) or district (level 2)."""

    __tablename__ = "region"

    region_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    country_id: Mapped[UUID] = mapped_column(
        ForeignKey("country.country_id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("region.region_id"),
        nullable=True,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("country_id", "slug", name="region_country_slug_unique"),
        CheckConstraint("level IN (1, 2)", name="region_level_check"),
    )


class UserDistrict(Base):
    """Assignment of an extension agent to a district."""

    __tablename__ = "user_district"

    user_district_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    district_id: Mapped[UUID] = mapped_column(
        ForeignKey("region.region_id", ondelete="CASCADE"),
        nullable=False,
    )
    is_supervisor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    assigned_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "district_id", name="user_district_unique"),
    )


class SpeciesThreshold(Base, TimestampMixin):
    """Mortality-rate thresholds for a species, optionally per region."""

    __tablename__ = "species_threshold"

    threshold_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    species: Mapped[str] = mapped_column(String, nullable=False)
    region_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("region.region_id", ondelete="CASCADE"),
        nullable=True,
    )
    amber_threshold: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    red_threshold: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("amber_threshold < red_threshold", name="species_threshold_order_check"),
    )
