"""Feed records and farm feed inventory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.feed import (
    FEED_TYPES,
    FeedSummary,
    build_feed_summary,
    calculate_new_inventory_quantity,
    validate_feed_record,
    validate_feed_update_data,
)
from livestock_ops.errors import AppError
from livestock_ops.models import Batch, FeedInventory, FeedRecord, User
from livestock_ops.services.access import MANAGE_ROLES, require_farm_access
from livestock_ops.services.audit_service import AuditService
from livestock_ops.services.pagination import paginate

logger = logging.getLogger(__name__)

KG = Decimal("0.01")


def _kg(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(KG)


@dataclass
class InventoryItem:
    """Inventory row with its low-stock flag."""

    inventory: FeedInventory

    @property
    def low_stock(self) -> bool:
        return self.inventory.quantity_kg <= self.inventory.min_threshold_kg


class FeedService:
    """Feed usage records and stock.

    A record created against an inventory item deducts its quantity from
    that item; deleting it puts the quantity back and updating it
    re-balances the stock.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def _get_batch(self, actor: User, batch_id: UUID) -> Batch:
        batch = await self.session.get(Batch, batch_id)
        if batch is None:
            raise AppError("BATCH_NOT_FOUND", metadata={"batch_id": str(batch_id)})
        await require_farm_access(self.session, actor, batch.farm_id)
        return batch

    async def _get_record(self, actor: User, record_id: UUID) -> tuple[FeedRecord, Batch]:
        record = await self.session.get(FeedRecord, record_id)
        if record is None:
            raise AppError("FEED_RECORD_NOT_FOUND", metadata={"feed_record_id": str(record_id)})
        return record, await self._get_batch(actor, record.batch_id)

    async def _inventory_for_farm(self, inventory_id: UUID, farm_id: UUID) -> FeedInventory:
        inventory = await self.session.get(FeedInventory, inventory_id)
        if inventory is None or inventory.farm_id != farm_id:
            raise AppError("FEED_RECORD_NOT_FOUND", metadata={"inventory_id": str(inventory_id)})
        return inventory

    async def _inventory_by_type(self, farm_id: UUID, feed_type: str) -> FeedInventory | None:
        result = await self.session.execute(
            select(FeedInventory).where(
                FeedInventory.farm_id == farm_id,
                FeedInventory.feed_type == feed_type,
            )
        )
        return result.scalars().first()

    @staticmethod
    def _deduct(inventory: FeedInventory, quantity: Decimal) -> None:
        if inventory.quantity_kg < quantity:
            raise AppError(
                "INSUFFICIENT_STOCK",
                f"Insufficient inventory. Available: {inventory.quantity_kg}kg",
                metadata={
                    "resource": "Feed",
                    "available": inventory.quantity_kg,
                    "requested": quantity,
                },
            )
        inventory.quantity_kg = calculate_new_inventory_quantity(inventory.quantity_kg, quantity)

    async def create_feed_record(self, actor: User, data: dict[str, Any]) -> FeedRecord:
        error = validate_feed_record(data)
        if error:
            raise AppError("VALIDATION_ERROR", error)

        batch = await self._get_batch(actor, data["batch_id"])
        if data.get("farm_id") is not None and batch.farm_id != data["farm_id"]:
            raise AppError("BATCH_NOT_FOUND", metadata={"batch_id": str(data["batch_id"])})
        quantity = _kg(data["quantity_kg"])

        inventory_id = data.get("inventory_id")
        if inventory_id:
            inventory = await self._inventory_for_farm(inventory_id, batch.farm_id)
            self._deduct(inventory, quantity)

        record = FeedRecord(
            batch_id=batch.batch_id,
            feed_type=data["feed_type"],
            quantity_kg=quantity,
            cost=_kg(data.get("cost", 0)),
            date=data.get("date") or date.today(),
            inventory_id=inventory_id or None,
            notes=data.get("notes"),
        )
        self.session.add(record)
        await self.session.flush()
        await self.audit.record_audit(
            actor.user_id,
            "create",
            "feed_record",
            record.feed_record_id,
            {"batch_id": batch.batch_id, "feed_type": record.feed_type, "quantity_kg": quantity},
        )
        return record

    async def delete_feed_record(self, actor: User, record_id: UUID) -> None:
        record, batch = await self._get_record(actor, record_id)
        if record.inventory_id is not None:
            inventory = await self.session.get(FeedInventory, record.inventory_id)
            if inventory is not None:
                inventory.quantity_kg = inventory.quantity_kg + record.quantity_kg

        await self.audit.record_audit(
            actor.user_id,
            "delete",
            "feed_record",
            record_id,
            {"batch_id": batch.batch_id, "quantity_kg": record.quantity_kg},
        )
        await self.session.delete(record)
        await self.session.flush()

    async def update_feed_record(
        self,
        actor: User,
        record_id: UUID,
        updates: dict[str, Any],
    ) -> FeedRecord:
        error = validate_feed_update_data(updates)
        if error:
            raise AppError("VALIDATION_ERROR", error)

        record, batch = await self._get_record(actor, record_id)
        new_quantity = (
            _kg(updates["quantity_kg"])
            if updates.get("quantity_kg") is not None
            else record.quantity_kg
        )
        new_type = updates.get("feed_type") or record.feed_type
        changed = new_quantity != record.quantity_kg or new_type != record.feed_type

        if changed and record.inventory_id is not None:
            old = await self.session.get(FeedInventory, record.inventory_id)
            if old is not None:
                old.quantity_kg = old.quantity_kg + record.quantity_kg
            target = (
                old
                if new_type == record.feed_type
                else await self._inventory_by_type(batch.farm_id, new_type)
            )
            if target is None:
                raise AppError(
                    "INSUFFICIENT_STOCK",
                    f"Insufficient inventory for {new_type}. Available: 0kg",
                    metadata={"resource": "Feed", "available": 0, "requested": new_quantity},
                )
            self._deduct(target, new_quantity)
            record.inventory_id = target.inventory_id

        record.quantity_kg = new_quantity
        record.feed_type = new_type
        if updates.get("cost") is not None:
            record.cost = _kg(updates["cost"])
        if updates.get("date") is not None:
            record.date = updates["date"]
        if updates.get("notes") is not None:
            record.notes = updates["notes"]

        await self.audit.record_audit(
            actor.user_id,
            "update",
            "feed_record",
            record_id,
            {"quantity_kg": new_quantity, "feed_type": new_type},
        )
        await self.session.flush()
        return record

    async def list_feed_records(
        self,
        actor: User,
        farm_id: UUID,
        batch_id: UUID | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[FeedRecord], int]:
        await require_farm_access(self.session, actor, farm_id)
        query = (
            select(FeedRecord)
            .join(Batch, Batch.batch_id == FeedRecord.batch_id)
            .where(Batch.farm_id == farm_id)
        )
        if batch_id is not None:
            query = query.where(FeedRecord.batch_id == batch_id)
        query = query.order_by(FeedRecord.date.desc(), FeedRecord.created_at.desc())
        return await paginate(self.session, query, page, page_size)

    async def get_feed_summary(self, actor: User, farm_id: UUID) -> FeedSummary:
        await require_farm_access(self.session, actor, farm_id)
        result = await self.session.execute(
            select(FeedRecord)
            .join(Batch, Batch.batch_id == FeedRecord.batch_id)
            .where(Batch.farm_id == farm_id)
        )
        return build_feed_summary(result.scalars().all())

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    async def list_inventory(self, actor: User, farm_id: UUID) -> list[InventoryItem]:
        await require_farm_access(self.session, actor, farm_id)
        result = await self.session.execute(
            select(FeedInventory)
            .where(FeedInventory.farm_id == farm_id)
            .order_by(FeedInventory.feed_type)
        )
        return [InventoryItem(inv) for inv in result.scalars().all()]

    async def create_inventory(
        self,
        actor: User,
        farm_id: UUID,
        feed_type: str,
        quantity_kg: Any,
        min_threshold_kg: Any = 0,
    ) -> FeedInventory:
        await require_farm_access(self.session, actor, farm_id, MANAGE_ROLES)
        if feed_type not in FEED_TYPES:
            raise AppError("VALIDATION_ERROR", "Invalid feed type")
        quantity, threshold = _kg(quantity_kg), _kg(min_threshold_kg)
        if quantity < 0 or threshold < 0:
            raise AppError("VALIDATION_ERROR", "Quantities cannot be negative")
        if await self._inventory_by_type(farm_id, feed_type) is not None:
            raise AppError(
                "ALREADY_EXISTS",
                f"Inventory for {feed_type} already exists",
                metadata={"resource": "FeedInventory", "feed_type": feed_type},
            )

        inventory = FeedInventory(
            farm_id=farm_id,
            feed_type=feed_type,
            quantity_kg=quantity,
            min_threshold_kg=threshold,
        )
        self.session.add(inventory)
        await self.session.flush()
        await self.audit.record_audit(
            actor.user_id,
            "create",
            "feed_inventory",
            inventory.inventory_id,
            {"feed_type": feed_type, "quantity_kg": quantity},
        )
        return inventory

    async def update_inventory(
        self,
        actor: User,
        inventory_id: UUID,
        quantity_kg: Any = None,
        min_threshold_kg: Any = None,
    ) -> FeedInventory:
        inventory = await self.session.get(FeedInventory, inventory_id)
        if inventory is None:
            raise AppError(
                "FEED_INVENTORY_NOT_FOUND", metadata={"inventory_id": str(inventory_id)}
            )
        await require_farm_access(self.session, actor, inventory.farm_id, MANAGE_ROLES)

        if quantity_kg is not None:
            if _kg(quantity_kg) < 0:
                raise AppError("VALIDATION_ERROR", "Quantities cannot be negative")
            inventory.quantity_kg = _kg(quantity_kg)
        if min_threshold_kg is not None:
            if _kg(min_threshold_kg) < 0:
                raise AppError("VALIDATION_ERROR", "Quantities cannot be negative")
            inventory.min_threshold_kg = _kg(min_threshold_kg)

        await self.audit.record_audit(
            actor.user_id,
            "update",
            "feed_inventory",
            inventory_id,
            {"quantity_kg": inventory.quantity_kg, "min_threshold_kg": inventory.min_threshold_kg},
        )
        await self.session.flush()
        if InventoryItem(inventory).low_stock:
            logger.info("Feed inventory %s is below its threshold", inventory_id)
        return inventory

    async def delete_inventory(self, actor: User, inventory_id: UUID) -> None:
        inventory = await self.session.get(FeedInventory, inventory_id)
        if inventory is None:
            raise AppError(
                "FEED_INVENTORY_NOT_FOUND", metadata={"inventory_id": str(inventory_id)}
            )
        await require_farm_access(self.session, actor, inventory.farm_id, MANAGE_ROLES)
        await self.audit.record_audit(
            actor.user_id,
            "delete",
            "feed_inventory",
            inventory_id,
            {"feed_type": inventory.feed_type},
        )
        await self.session.delete(inventory)
        await self.session.flush()
