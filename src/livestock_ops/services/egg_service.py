"""Egg collection records for poultry batches."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.eggs import (
    EggSummary,
    build_egg_summary,
    calculate_laying_percentage,
    validate_egg_collection_data,
    validate_egg_update_data,
)
from livestock_ops.errors import AppError
from livestock_ops.models import Batch, EggRecord, User
from livestock_ops.services.access import require_farm_access
from livestock_ops.services.audit_service import AuditService
from livestock_ops.services.pagination import paginate

EGG_FIELDS = ("quantity_collected", "quantity_broken", "quantity_sold")


@dataclass
class BatchEggSummary:
    summary: EggSummary
    flock_size: int
    laying_percentage: float


class EggService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def _get_batch(self, actor: User, batch_id: UUID) -> Batch:
        batch = await self.session.get(Batch, batch_id)
        if batch is None:
            raise AppError("BATCH_NOT_FOUND", metadata={"batch_id": str(batch_id)})
        await require_farm_access(self.session, actor, batch.farm_id)
        return batch

    async def _get_record(self, actor: User, record_id: UUID) -> tuple[EggRecord, Batch]:
        record = await self.session.get(EggRecord, record_id)
        if record is None:
            raise AppError("EGG_RECORD_NOT_FOUND", metadata={"egg_record_id": str(record_id)})
        batch = await self._get_batch(actor, record.batch_id)
        return record, batch

    async def create_egg_record(self, actor: User, data: dict[str, Any]) -> EggRecord:
        error = validate_egg_collection_data(data)
        if error:
            raise AppError("VALIDATION_ERROR", error)

        batch = await self._get_batch(actor, data["batch_id"])
        if data.get("farm_id") is not None and batch.farm_id != data["farm_id"]:
            raise AppError("BATCH_NOT_FOUND", metadata={"batch_id": str(data["batch_id"])})
        if batch.livestock_type != "poultry":
            raise AppError(
                "VALIDATION_ERROR", "Egg records can only be created for poultry batches"
            )

        record = EggRecord(
            batch_id=batch.batch_id,
            date=data.get("date") or date.today(),
            quantity_collected=data["quantity_collected"],
            quantity_broken=data.get("quantity_broken", 0),
            quantity_sold=data.get("quantity_sold", 0),
        )
        self.session.add(record)
        await self.session.flush()
        await self.audit.record_audit(
            actor.user_id,
            "create",
            "egg_record",
            record.egg_record_id,
            {"batch_id": batch.batch_id, "quantity_collected": record.quantity_collected},
        )
        return record

    async def update_egg_record(
        self,
        actor: User,
        record_id: UUID,
        updates: dict[str, Any],
    ) -> EggRecord:
        error = validate_egg_update_data(updates)
        if error:
            raise AppError("VALIDATION_ERROR", error)

        record, _ = await self._get_record(actor, record_id)
        merged = {f: getattr(record, f) for f in EGG_FIELDS}
        merged.update({f: updates[f] for f in EGG_FIELDS if updates.get(f) is not None})
        if merged["quantity_broken"] + merged["quantity_sold"] > merged["quantity_collected"]:
            raise AppError(
                "VALIDATION_ERROR",
                "Broken and sold quantities cannot exceed collected quantity",
            )

        for key, value in merged.items():
            setattr(record, key, value)
        if updates.get("date") is not None:
            record.date = updates["date"]

        await self.audit.record_audit(actor.user_id, "update", "egg_record", record_id, merged)
        await self.session.flush()
        return record

    async def delete_egg_record(self, actor: User, record_id: UUID) -> None:
        record, _ = await self._get_record(actor, record_id)
        await self.audit.record_audit(actor.user_id, "delete", "egg_record", record_id)
        await self.session.delete(record)
        await self.session.flush()

    async def list_egg_records(
        self,
        actor: User,
        farm_id: UUID,
        batch_id: UUID | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[EggRecord], int]:
        await require_farm_access(self.session, actor, farm_id)
        query = (
            select(EggRecord)
            .join(Batch, Batch.batch_id == EggRecord.batch_id)
            .where(Batch.farm_id == farm_id)
        )
        if batch_id is not None:
            query = query.where(EggRecord.batch_id == batch_id)
        query = query.order_by(EggRecord.date.desc(), EggRecord.created_at.desc())
        return await paginate(self.session, query, page, page_size)

    async def get_batch_summary(
        self,
        actor: User,
        batch_id: UUID,
        start: date | None = None,
        end: date | None = None,
    ) -> BatchEggSummary:
        """Totals for a batch; laying percentage uses the average daily
        collection against the current flock size."""
        batch = await self._get_batch(actor, batch_id)
        query = select(EggRecord).where(EggRecord.batch_id == batch_id)
        if start is not None:
            query = query.where(EggRecord.date >= start)
        if end is not None:
            query = query.where(EggRecord.date <= end)
        records = list((await self.session.execute(query)).scalars().all())

        summary = build_egg_summary(records)
        days = len({r.date for r in records})
        average = summary.total_collected / days if days else 0
        return BatchEggSummary(
            summary=summary,
            flock_size=batch.current_quantity,
            laying_percentage=calculate_laying_percentage(average, batch.current_quantity),
        )
