"""Batch, production, feed and finance record models."""

from __future__ import annotations

import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from livestock_ops.models.base import Base, TimestampMixin

LIVESTOCK_TYPES = ("poultry", "fish", "cattle", "goats", "sheep", "bees")
MORTALITY_CAUSES = (
    "disease",
    "predator",
    "weather",
    "unknown",
    "other",
    "starvation",
    "injury",
    "poisoning",
    "suffocation",
    "culling",
)


class Batch(Base, TimestampMixin):
    """A group of animals managed together."""

    __tablename__ = "batch"

    batch_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    livestock_type: Mapped[str] = mapped_column(String, nullable=False)
    species: Mapped[str] = mapped_column(String, nullable=False)
    initial_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    current_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    acquisition_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    cost_per_unit: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint(
            "livestock_type IN ('poultry', 'fish', 'cattle', 'goats', 'sheep', 'bees')",
            name="batch_livestock_type_check",
        ),
        CheckConstraint("status IN ('active', 'depleted', 'sold')", name="batch_status_check"),
        CheckConstraint("initial_quantity > 0", name="batch_initial_quantity_positive"),
        CheckConstraint("current_quantity >= 0", name="batch_current_quantity_non_negative"),
    )


class EggRecord(Base, TimestampMixin):
    """Daily egg collection for a layer batch."""

    __tablename__ = "egg_record"

    egg_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    batch_id: Mapped[UUID] = mapped_column(
        ForeignKey("batch.batch_id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    quantity_collected: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_broken: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quantity_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("quantity_collected >= 0", name="egg_record_collected_non_negative"),
        CheckConstraint("quantity_broken >= 0", name="egg_record_broken_non_negative"),
        CheckConstraint("quantity_sold >= 0", name="egg_record_sold_non_negative"),
    )


class MortalityRecord(Base, TimestampMixin):
    """Deaths recorded against a batch."""

    __tablename__ = "mortality_record"

    mortality_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    batch_id: Mapped[UUID] = mapped_column(
        ForeignKey("batch.batch_id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    cause: Mapped[str] = mapped_column(String, nullable=False, default="unknown")
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (CheckConstraint("quantity > 0", name="mortality_record_quantity_positive"),)


class FeedInventory(Base, TimestampMixin):
    """Feed stock held by a farm."""

    __tablename__ = "feed_inventory"

    inventory_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    feed_type: Mapped[str] = mapped_column(String, nullable=False)
    quantity_kg: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    min_threshold_kg: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        CheckConstraint("quantity_kg >= 0", name="feed_inventory_quantity_non_negative"),
    )


class FeedRecord(Base, TimestampMixin):
    """Feed given to a batch."""

    __tablename__ = "feed_record"

    feed_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    batch_id: Mapped[UUID] = mapped_column(
        ForeignKey("batch.batch_id", ondelete="CASCADE"),
        nullable=False,
    )
    feed_type: Mapped[str] = mapped_column(String, nullable=False)
    quantity_kg: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    cost: Mapped[Decimal] = mapped_column(nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    inventory_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("feed_inventory.inventory_id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("quantity_kg > 0", name="feed_record_quantity_positive"),
        CheckConstraint("cost >= 0", name="feed_record_cost_non_negative"),
    )


class Sale(Base, TimestampMixin):
    """Sale of livestock or produce."""

    __tablename__ = "sale"

    sale_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    batch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("batch.batch_id", ondelete="SET NULL"),
        nullable=True,
    )
    livestock_type: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)


class Expense(Base, TimestampMixin):
    """Farm expense."""

    __tablename__ = "expense"

    expense_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    batch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("batch.batch_id", ondelete="SET NULL"),
        nullable=True,
    )
    category: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    __table_args__ = (CheckConstraint("amount >= 0", name="expense_amount_non_negative"),)
